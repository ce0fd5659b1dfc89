from pydantic import BaseModel
from typing import Optional, Dict, Any, List

from plangraph.graph.model import (
    GraphEdge,
    GraphNode,
    RelationshipType,
    edge_from_dict,
    node_from_dict,
)
from plangraph.matching.deduplicator import NodeCandidate


class NodePayload(BaseModel):
    """Whiteboard node; `title` is accepted in place of `label`"""
    id: str
    label: Optional[str] = None
    title: Optional[str] = None
    type: Optional[str] = None
    nodeType: Optional[str] = None
    domain: Optional[str] = None
    ring: Optional[int] = None
    tags: Optional[List[str]] = None  # None lets nested data.tags through
    summary: Optional[str] = None
    data: Optional[Dict[str, Any]] = None  # nested client payload

    def to_node(self) -> GraphNode:
        return node_from_dict(self.model_dump(exclude_none=True))


class EdgePayload(BaseModel):
    """Whiteboard edge; `relation` is accepted in place of `relationshipType`"""
    id: Optional[str] = None
    source: str
    target: str
    relationshipType: Optional[str] = None
    relation: Optional[str] = None
    weight: Optional[float] = None
    data: Optional[Dict[str, Any]] = None

    def to_edge(self) -> GraphEdge:
        return edge_from_dict(self.model_dump(exclude_none=True))


class GraphRequest(BaseModel):
    nodes: List[NodePayload] = []
    edges: List[EdgePayload] = []

    def graph_nodes(self) -> List[GraphNode]:
        return [n.to_node() for n in self.nodes]

    def graph_edges(self) -> List[GraphEdge]:
        return [e.to_edge() for e in self.edges]


class DependencyRequest(GraphRequest):
    node_id: Optional[str] = None          # adds per-node sets to the response
    start_node_id: Optional[str] = None    # critical path start


class CycleCheckRequest(BaseModel):
    edges: List[EdgePayload] = []
    source: str
    target: str
    relationship_type: str = RelationshipType.DEPENDS_ON.value

    def graph_edges(self) -> List[GraphEdge]:
        return [e.to_edge() for e in self.edges]


class SuggestRequest(GraphRequest):
    limit: Optional[int] = None


class CandidatePayload(BaseModel):
    label: str = ""
    type: str = ""
    domain: Optional[str] = None
    keywords: List[str] = []

    def to_candidate(self) -> NodeCandidate:
        return NodeCandidate(
            label=self.label,
            type=self.type,
            domain=self.domain,
            keywords=tuple(self.keywords),
        )


class DeduplicateRequest(BaseModel):
    candidate: CandidatePayload
    nodes: List[NodePayload] = []
    parent_node_id: Optional[str] = None  # when set, return association edges

    def graph_nodes(self) -> List[GraphNode]:
        return [n.to_node() for n in self.nodes]
