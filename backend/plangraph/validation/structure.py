"""
Structure Checker - Snapshot sanity checks run before the ring rules.

Catches issues like:
- Duplicate node IDs
- Edges pointing at nodes that are not in the snapshot
- Self loops and duplicate edges
- Missing or multiple ring-0 roots
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple

from plangraph.graph.model import GraphEdge, GraphNode

logger = logging.getLogger(__name__)


class ValidationSeverity(str, Enum):
    ERROR = "error"      # Engine output would be wrong
    WARNING = "warning"  # Works, but the graph has issues
    INFO = "info"        # Suggestions for improvement


@dataclass
class ValidationIssue:
    """A single structural issue found in the snapshot"""
    severity: ValidationSeverity
    code: str           # Machine-readable issue code
    message: str        # Human-readable description
    node_id: Optional[str] = None
    edge_info: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "node_id": self.node_id,
            "edge_info": self.edge_info,
            "suggestion": self.suggestion,
        }


@dataclass
class StructureCheckResult:
    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.INFO)

    def codes(self) -> List[str]:
        return [i.code for i in self.issues]

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "issues": [i.to_dict() for i in self.issues],
            "stats": self.stats,
        }

    def get_summary(self) -> str:
        status = "✅ Valid" if self.is_valid else "❌ Invalid"
        return (
            f"{status} | "
            f"Errors: {self.error_count}, Warnings: {self.warning_count}, Info: {self.info_count}"
        )


def _duplicate_node_ids(nodes: Sequence[GraphNode]) -> List[ValidationIssue]:
    issues = []
    seen: Dict[str, int] = defaultdict(int)
    for node in nodes:
        seen[node.id] += 1
    for node_id, count in seen.items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="DUPLICATE_NODE_ID",
                message=f"Duplicate node ID '{node_id}' appears {count} times",
                node_id=node_id,
                suggestion="Ensure each node has a unique ID",
            ))
    return issues


def _missing_edge_references(edges: Sequence[GraphEdge], node_ids: Set[str]) -> List[ValidationIssue]:
    issues = []
    for edge in edges:
        if edge.source not in node_ids:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="MISSING_SOURCE_NODE",
                message=f"Edge '{edge.id}' references non-existent source node '{edge.source}'",
                edge_info=f"{edge.source} -> {edge.target}",
                suggestion=f"Add node '{edge.source}' or remove the edge",
            ))
        if edge.target not in node_ids:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="MISSING_TARGET_NODE",
                message=f"Edge '{edge.id}' references non-existent target node '{edge.target}'",
                edge_info=f"{edge.source} -> {edge.target}",
                suggestion=f"Add node '{edge.target}' or remove the edge",
            ))
    return issues


def _self_loops(edges: Sequence[GraphEdge]) -> List[ValidationIssue]:
    return [
        ValidationIssue(
            severity=ValidationSeverity.WARNING,
            code="SELF_LOOP",
            message=f"Edge creates self-loop on node '{edge.source}'",
            node_id=edge.source,
            edge_info=f"{edge.source} -> {edge.target}",
            suggestion="Remove self-referencing edge",
        )
        for edge in edges
        if edge.source == edge.target
    ]


def _duplicate_edges(edges: Sequence[GraphEdge]) -> List[ValidationIssue]:
    issues = []
    counts: Dict[Tuple[str, str, str], int] = defaultdict(int)
    for edge in edges:
        counts[(edge.source, edge.target, edge.relationship_type.value)] += 1
    for (source, target, relation), count in counts.items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.INFO,
                code="DUPLICATE_EDGE",
                message=f"Duplicate edge '{source}' -> '{target}' ({relation}) appears {count} times",
                edge_info=f"{source} -> {target}",
                suggestion="Consider consolidating duplicate edges",
            ))
    return issues


def _root_count(nodes: Sequence[GraphNode]) -> List[ValidationIssue]:
    if not nodes:
        return []

    roots = [n for n in nodes if n.ring == 0]
    if not roots:
        return [ValidationIssue(
            severity=ValidationSeverity.WARNING,
            code="NO_ROOT",
            message="Graph has no ring-0 root node",
            suggestion="Add a center node at ring 0",
        )]
    if len(roots) > 1:
        return [
            ValidationIssue(
                severity=ValidationSeverity.ERROR,
                code="MULTIPLE_ROOTS",
                message=f"Graph has {len(roots)} ring-0 nodes; expected exactly one",
                node_id=root.id,
                suggestion="Keep a single center node at ring 0",
            )
            for root in roots
        ]
    return []


def check_graph_structure(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
) -> StructureCheckResult:
    node_ids = {n.id for n in nodes}

    issues: List[ValidationIssue] = []
    issues.extend(_duplicate_node_ids(nodes))
    issues.extend(_missing_edge_references(edges, node_ids))
    issues.extend(_self_loops(edges))
    issues.extend(_duplicate_edges(edges))
    issues.extend(_root_count(nodes))

    connected: Set[str] = set()
    for edge in edges:
        connected.add(edge.source)
        connected.add(edge.target)

    stats = {
        "nodes": len(nodes),
        "edges": len(edges),
        "unique_node_ids": len(node_ids),
        "isolated_nodes": len(node_ids - connected),
    }

    result = StructureCheckResult(
        is_valid=not any(i.severity == ValidationSeverity.ERROR for i in issues),
        issues=issues,
        stats=stats,
    )
    logger.debug("[STRUCTURE] %s", result.get_summary())
    return result
