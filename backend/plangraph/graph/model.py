"""
Graph model shared by every engine component.

Nodes and edges are frozen snapshots. Engine functions take sequences of
them and return new objects; nothing here is ever mutated in place.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence


class NodeType(str, Enum):
    """Known node types. Any other string is an open, UI-only type."""
    ROOT = "root"
    CLASSIFICATION = "classification"
    DOMAIN_PARENT = "domain-parent"
    FRONTEND = "frontend"
    BACKEND = "backend"
    DATA = "data"
    INFRASTRUCTURE = "infrastructure"
    REQUIREMENT = "requirement"
    DOC = "doc"
    FEATURE = "feature"


class Domain(str, Enum):
    PRODUCT = "product"
    TECH = "tech"
    PROCESS = "process"
    PEOPLE = "people"
    RESOURCES = "resources"
    OPERATIONS = "operations"
    BUSINESS = "business"
    DATA_AI = "data-ai"


class RelationshipType(str, Enum):
    # Hierarchy edges produced by the associator
    STRUCTURAL = "depends_on"

    # Semantic edges drawn by users
    DEPENDS_ON = "depends-on"
    BLOCKS = "blocks"
    IMPLEMENTS = "implements"
    TESTS = "tests"
    DOCUMENTS = "documents"
    EXTENDS = "extends"
    REFERENCES = "references"
    RELATED_TO = "related-to"

    @classmethod
    def parse(cls, value: Optional[str]) -> "RelationshipType":
        """Unknown or missing kinds read as related-to."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.RELATED_TO

    @property
    def is_hard(self) -> bool:
        return self in HARD_RELATIONSHIPS


HARD_RELATIONSHIPS = frozenset({RelationshipType.DEPENDS_ON, RelationshipType.BLOCKS})

ROOT_NODE_ID = "center"
AUTO_GENERATED_TAG = "auto-generated"
INTERMEDIATE_TAG = "intermediate"


@dataclass(frozen=True)
class GraphNode:
    id: str
    label: str = ""
    type: str = ""                 # NodeType value or an open extension type
    domain: Optional[str] = None   # Domain value
    ring: Optional[int] = None     # None = never assigned
    tags: FrozenSet[str] = frozenset()
    summary: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_NODE_ID or self.type == NodeType.ROOT

    @property
    def is_auto_generated(self) -> bool:
        return AUTO_GENERATED_TAG in self.tags

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "domain": self.domain,
            "ring": self.ring,
            "tags": sorted(self.tags),
            "summary": self.summary,
        }


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    relationship_type: RelationshipType = RelationshipType.RELATED_TO
    weight: float = 1.0

    @property
    def is_hard(self) -> bool:
        return self.relationship_type.is_hard

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "relationshipType": self.relationship_type.value,
            "weight": self.weight,
        }


def structural_edge_id(source: str, target: str) -> str:
    return f"edge-{source}-{target}"


def make_structural_edge(source: str, target: str) -> GraphEdge:
    """Parent -> child hierarchy edge with a deterministic id."""
    return GraphEdge(
        id=structural_edge_id(source, target),
        source=source,
        target=target,
        relationship_type=RelationshipType.STRUCTURAL,
    )


# ------------------------------------------------------------------ #
# Loose client payloads -> model
# ------------------------------------------------------------------ #

def node_from_dict(data: Mapping[str, Any]) -> GraphNode:
    """
    Build a node from the whiteboard's JSON shape.

    Accepts either a flat dict or one with a nested "data" payload, and
    either "label" or "title" for the display text.
    """
    payload: Mapping[str, Any] = data.get("data") or {}
    merged: Dict[str, Any] = {**payload, **{k: v for k, v in data.items() if k != "data"}}

    ring = merged.get("ring")
    return GraphNode(
        id=str(merged["id"]),
        label=merged.get("label") or merged.get("title") or "",
        type=merged.get("nodeType") or payload.get("type") or merged.get("type") or "",
        domain=merged.get("domain"),
        ring=int(ring) if ring is not None else None,
        tags=frozenset(merged.get("tags") or ()),
        summary=merged.get("summary"),
    )


def edge_from_dict(data: Mapping[str, Any]) -> GraphEdge:
    payload: Mapping[str, Any] = data.get("data") or {}
    kind = (
        data.get("relationshipType")
        or payload.get("relationshipType")
        or data.get("relation")
        or payload.get("relation")
    )
    weight = data.get("weight", payload.get("weight"))
    source, target = str(data["source"]), str(data["target"])
    return GraphEdge(
        id=str(data.get("id") or structural_edge_id(source, target)),
        source=source,
        target=target,
        relationship_type=RelationshipType.parse(kind),
        weight=float(weight) if weight else 1.0,  # 0 or missing reads as the default
    )


# ------------------------------------------------------------------ #
# Snapshot lookups
# ------------------------------------------------------------------ #

@dataclass
class GraphSnapshot:
    """Read-only indexed view over a node/edge list."""
    nodes: Sequence[GraphNode] = field(default_factory=list)
    edges: Sequence[GraphEdge] = field(default_factory=list)

    def __post_init__(self):
        self._by_id: Dict[str, GraphNode] = {}
        for node in self.nodes:
            # First occurrence wins on duplicate ids
            self._by_id.setdefault(node.id, node)
        self._incoming: Dict[str, List[GraphEdge]] = {}
        self._outgoing: Dict[str, List[GraphEdge]] = {}
        for edge in self.edges:
            self._incoming.setdefault(edge.target, []).append(edge)
            self._outgoing.setdefault(edge.source, []).append(edge)

    def node_by_id(self, node_id: str) -> Optional[GraphNode]:
        return self._by_id.get(node_id)

    def incoming(self, node_id: str) -> List[GraphEdge]:
        return self._incoming.get(node_id, [])

    def outgoing(self, node_id: str) -> List[GraphEdge]:
        return self._outgoing.get(node_id, [])

    def has_incoming(self, node_id: str) -> bool:
        return bool(self._incoming.get(node_id))

    def parents(self, node_id: str) -> List[GraphNode]:
        """Parent nodes via incoming edges; edges from unknown ids are skipped."""
        return [
            self._by_id[e.source]
            for e in self.incoming(node_id)
            if e.source in self._by_id
        ]

    def root(self) -> Optional[GraphNode]:
        """The ring-0 node, if any."""
        return next((n for n in self.nodes if n.ring == 0), None)

    def has_edge(self, source: str, target: str) -> bool:
        return any(e.target == target for e in self.outgoing(source))

    def connected(self, a: str, b: str) -> bool:
        """True when any edge links a and b in either direction."""
        return self.has_edge(a, b) or self.has_edge(b, a)


def nodes_from_dicts(items: Iterable[Mapping[str, Any]]) -> List[GraphNode]:
    return [node_from_dict(item) for item in items]


def edges_from_dicts(items: Iterable[Mapping[str, Any]]) -> List[GraphEdge]:
    return [edge_from_dict(item) for item in items]
