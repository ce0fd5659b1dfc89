"""
Hierarchy Associator - Connects orphaned leaf nodes to the ring hierarchy.

Steps:
1. Evaluate the graph and find R3+ nodes with no incoming edge
2. Resolve each orphan to an existing parent, a fallback parent, or a
   suggested R2 intermediate
3. Synthesize one intermediate per missing label
4. Attach each new intermediate to a matching R1 classification (or R0)

Nothing here mutates the input. Results are proposals the caller merges.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from plangraph.graph.model import (
    AUTO_GENERATED_TAG,
    INTERMEDIATE_TAG,
    GraphEdge,
    GraphNode,
    GraphSnapshot,
    make_structural_edge,
)
from plangraph.hierarchy.rules import AssociationRule, ParentSpec, resolve_rule
from plangraph.hierarchy.rules_loader import get_association_rules

logger = logging.getLogger(__name__)


LEAF_MIN_RING = 3


@dataclass(frozen=True)
class SuggestedIntermediateNode:
    id: str
    label: str
    type: str
    domain: str
    ring: int
    reason: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "domain": self.domain,
            "ring": self.ring,
            "reason": self.reason,
        }


@dataclass
class ParentResolution:
    parent_id: Optional[str] = None
    parent_node: Optional[GraphNode] = None
    needs_new_intermediate: bool = False
    suggested_intermediate: Optional[SuggestedIntermediateNode] = None


@dataclass
class AssociationIssue:
    """A node the associator could not connect as-is"""
    node_id: str
    node_label: str
    issue: str
    suggestion: str

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "node_label": self.node_label,
            "issue": self.issue,
            "suggestion": self.suggestion,
        }


@dataclass
class EdgeEvaluationResult:
    current_edges: List[GraphEdge] = field(default_factory=list)
    optimal_edges: List[GraphEdge] = field(default_factory=list)
    suggested_intermediate_nodes: List[SuggestedIntermediateNode] = field(default_factory=list)
    issues: List[AssociationIssue] = field(default_factory=list)


@dataclass
class FoundationEdgesReport:
    new_intermediates: int = 0
    new_edges: int = 0
    issues: List[AssociationIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "new_intermediates": self.new_intermediates,
            "new_edges": self.new_edges,
            "issues": [i.to_dict() for i in self.issues],
        }


@dataclass
class FoundationEdgesResult:
    nodes_to_create: List[GraphNode] = field(default_factory=list)
    edges_to_create: List[GraphEdge] = field(default_factory=list)
    report: FoundationEdgesReport = field(default_factory=FoundationEdgesReport)

    def to_dict(self) -> dict:
        return {
            "nodes_to_create": [n.to_dict() for n in self.nodes_to_create],
            "edges_to_create": [e.to_dict() for e in self.edges_to_create],
            "report": self.report.to_dict(),
        }


# ============================================================
# SINGLE NODE
# ============================================================

def _find_parent(nodes: Sequence[GraphNode], spec: ParentSpec, exclude_id: str) -> Optional[GraphNode]:
    return next(
        (
            n for n in nodes
            if n.id != exclude_id and n.type == spec.type and n.label == spec.label
        ),
        None,
    )


def find_optimal_parent(
    node_id: str,
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge] = (),
    node_type: Optional[str] = None,
    rules: Optional[Mapping[str, AssociationRule]] = None,
) -> ParentResolution:
    """
    Best parent for a node: existing ideal parent, then fallbacks in order,
    then a suggested intermediate if the rule allows one.
    """
    node = next((n for n in nodes if n.id == node_id), None)
    if node_type is None and node is not None:
        node_type = node.type
    label = node.label if node is not None else ""

    if rules is None:
        rules = get_association_rules()
    rule = resolve_rule(node_id, node_type, label, rules)
    if rule is None:
        logger.debug("[ASSOCIATOR] No rule for %s (type=%s)", node_id, node_type)
        return ParentResolution()

    ideal = _find_parent(nodes, rule.ideal_parent, node_id)
    if ideal is not None:
        return ParentResolution(parent_id=ideal.id, parent_node=ideal)

    for fallback in rule.fallback_parents:
        parent = _find_parent(nodes, fallback, node_id)
        if parent is not None:
            logger.debug("[ASSOCIATOR] %s -> fallback parent '%s'", node_id, fallback.label)
            return ParentResolution(parent_id=parent.id, parent_node=parent)

    if rule.create_intermediate_if_missing:
        spec = rule.ideal_parent
        return ParentResolution(
            needs_new_intermediate=True,
            suggested_intermediate=SuggestedIntermediateNode(
                id=spec.synthetic_id,
                label=spec.label,
                type=spec.type,
                domain=spec.domain,
                ring=spec.ring,
                reason=f"Intermediate parent needed for {node_id}",
            ),
        )

    return ParentResolution()


# ============================================================
# WHOLE GRAPH
# ============================================================

def _find_orphans(snapshot: GraphSnapshot) -> List[GraphNode]:
    return [
        n for n in snapshot.nodes
        if n.ring is not None and n.ring >= LEAF_MIN_RING and not snapshot.has_incoming(n.id)
    ]


def evaluate_edges(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    rules: Optional[Mapping[str, AssociationRule]] = None,
) -> EdgeEvaluationResult:
    """Find every R3+ orphan and propose how to connect it."""
    snapshot = GraphSnapshot(nodes, edges)
    result = EdgeEvaluationResult(current_edges=list(edges))

    orphans = _find_orphans(snapshot)
    logger.debug("[ASSOCIATOR] %d orphaned R%d+ nodes", len(orphans), LEAF_MIN_RING)

    for node in orphans:
        optimal = find_optimal_parent(node.id, nodes, edges, node.type or None, rules)
        node_label = node.label or node.id

        if optimal.parent_node is not None:
            parent = optimal.parent_node
            if parent.ring is not None and parent.ring + 1 != node.ring:
                result.issues.append(AssociationIssue(
                    node_id=node.id,
                    node_label=node_label,
                    issue=f'Parent "{parent.label}" is R{parent.ring} but node is R{node.ring}',
                    suggestion=f"Move node to R{parent.ring + 1} or connect it to an R{node.ring - 1} node",
                ))
                continue
            result.optimal_edges.append(make_structural_edge(parent.id, node.id))

        elif optimal.suggested_intermediate is not None:
            suggested = optimal.suggested_intermediate
            if suggested.ring + 1 != node.ring:
                result.issues.append(AssociationIssue(
                    node_id=node.id,
                    node_label=node_label,
                    issue=f'Missing parent node "{suggested.label}" (R{suggested.ring}) cannot hold an R{node.ring} node',
                    suggestion=f"Connect node to an existing R{node.ring - 1} node",
                ))
                continue
            result.suggested_intermediate_nodes.append(suggested)
            # Source is the intermediate's id; the node is created later
            result.optimal_edges.append(make_structural_edge(suggested.id, node.id))
            result.issues.append(AssociationIssue(
                node_id=node.id,
                node_label=node_label,
                issue=f'Missing parent node "{suggested.label}" (R{suggested.ring})',
                suggestion=f"Create intermediate R{suggested.ring} node: {suggested.label}",
            ))

        else:
            result.issues.append(AssociationIssue(
                node_id=node.id,
                node_label=node_label,
                issue="No parent association rule found",
                suggestion=f"Define association rule for node type: {node.type or 'unknown'}",
            ))

    return result


def generate_missing_intermediate_nodes(
    nodes: Sequence[GraphNode],
    suggested_intermediates: Sequence[SuggestedIntermediateNode],
) -> List[GraphNode]:
    """One new R2 node per distinct label, skipping labels already in the graph."""
    new_nodes: List[GraphNode] = []
    seen_labels: Set[str] = set()
    existing_ids = {n.id for n in nodes}

    for intermediate in suggested_intermediates:
        if intermediate.label in seen_labels:
            continue
        seen_labels.add(intermediate.label)

        exists = any(
            n.label == intermediate.label and n.ring == intermediate.ring
            for n in nodes
        )
        if exists or intermediate.id in existing_ids:
            continue

        new_nodes.append(GraphNode(
            id=intermediate.id,
            label=intermediate.label,
            type=intermediate.type,
            domain=intermediate.domain,
            ring=intermediate.ring,
            tags=frozenset({AUTO_GENERATED_TAG, INTERMEDIATE_TAG}),
            summary=f"Auto-generated intermediate node for {intermediate.label}",
        ))

    return new_nodes


def _matching_classification(nodes: Sequence[GraphNode], intermediate: GraphNode) -> Optional[GraphNode]:
    label = (intermediate.label or "").lower()
    for n in nodes:
        if n.ring != 1:
            continue
        if intermediate.domain and n.domain == intermediate.domain:
            return n
        if label and n.label and n.label.lower() in label:
            return n
    return None


def connect_intermediate_to_classifications(
    nodes: Sequence[GraphNode],
    intermediates: Sequence[GraphNode],
) -> List[GraphEdge]:
    """Exactly one incoming edge per intermediate: from an R1 classification, else from R0."""
    snapshot = GraphSnapshot(nodes)
    center = snapshot.root()
    edges: List[GraphEdge] = []

    for intermediate in intermediates:
        classification = _matching_classification(nodes, intermediate)
        parent = classification or center
        if parent is None:
            logger.warning("[ASSOCIATOR] No classification or root for intermediate '%s'", intermediate.label)
            continue
        edges.append(make_structural_edge(parent.id, intermediate.id))

    return edges


def _redirect_skipped(
    nodes: Sequence[GraphNode],
    suggestions: Sequence[SuggestedIntermediateNode],
    created: Sequence[GraphNode],
) -> Dict[str, str]:
    """Synthetic id -> id of an equal-label node that already exists."""
    created_ids = {n.id for n in created}
    redirects: Dict[str, str] = {}
    for suggested in suggestions:
        if suggested.id in created_ids or suggested.id in redirects:
            continue
        existing = next(
            (n for n in nodes if n.label == suggested.label and n.ring == suggested.ring),
            None,
        )
        if existing is not None and existing.id != suggested.id:
            redirects[suggested.id] = existing.id
    return redirects


def process_foundation_edges(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    rules: Optional[Mapping[str, AssociationRule]] = None,
) -> FoundationEdgesResult:
    """
    Main entry point: evaluate, synthesize intermediates, wire them, and
    return everything the caller must add. Re-running on the merged graph
    returns nothing new.
    """
    # Step 1: evaluate
    evaluation = evaluate_edges(nodes, edges, rules)

    # Step 2: new intermediates
    new_intermediates = generate_missing_intermediate_nodes(
        nodes, evaluation.suggested_intermediate_nodes
    )

    # Step 3: wire intermediates
    intermediate_edges = connect_intermediate_to_classifications(
        [*nodes, *new_intermediates], new_intermediates
    )

    # Step 4: combine, pointing skipped suggestions at the node that already exists
    redirects = _redirect_skipped(nodes, evaluation.suggested_intermediate_nodes, new_intermediates)
    existing_pairs: Set[Tuple[str, str]] = {(e.source, e.target) for e in edges}
    all_new_edges: List[GraphEdge] = []

    for edge in [*evaluation.optimal_edges, *intermediate_edges]:
        source = redirects.get(edge.source, edge.source)
        if (source, edge.target) in existing_pairs:
            continue
        existing_pairs.add((source, edge.target))
        all_new_edges.append(
            edge if source == edge.source else make_structural_edge(source, edge.target)
        )

    report = FoundationEdgesReport(
        new_intermediates=len(new_intermediates),
        new_edges=len(all_new_edges),
        issues=evaluation.issues,
    )
    logger.info(
        "[ASSOCIATOR] %d intermediates, %d edges, %d issues",
        report.new_intermediates, report.new_edges, len(report.issues),
    )

    return FoundationEdgesResult(
        nodes_to_create=new_intermediates,
        edges_to_create=all_new_edges,
        report=report,
    )


def format_edge_report(report: FoundationEdgesReport) -> str:
    """Human-readable processing report"""
    lines = [
        "=" * 60,
        "  FOUNDATION EDGES - PROCESSING REPORT",
        "=" * 60,
        "",
        f"New Intermediate Nodes (R2): {report.new_intermediates}",
        f"New Edges Created: {report.new_edges}",
        "",
    ]

    if report.issues:
        lines.append("Issues Found:")
        for issue in report.issues:
            lines.append(f"  ⚠️  {issue.node_id} ({issue.issue})")
            lines.append(f"      → {issue.suggestion}")
    else:
        lines.append("✅ All foundation nodes properly connected!")

    return "\n".join(lines)
