"""
Ring Hierarchy Validator - Checks every node against the ring rules.

Rules:
- The center node is R0
- Every node has a ring
- A child's ring is its parent's ring + 1
- Nothing but the center and classifications is left without a parent
- Classification nodes are R1, domain parents R2
- No edge points back to the same or a lower ring
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from plangraph.graph.model import GraphEdge, GraphNode, GraphSnapshot, NodeType
from plangraph.validation.structure import ValidationSeverity

logger = logging.getLogger(__name__)


MISSING_RING = -1
DOMAIN_PARENT_TYPES = {NodeType.DOMAIN_PARENT.value, "r2-parent"}
DOMAIN_PARENT_LABEL_MARKERS = ("& Platform", "& UI", "& APIs", "& AI")


class RingHierarchyError(ValueError):
    """Raised by raise_on_ring_errors() when the hierarchy has errors."""

    def __init__(self, violations: List["RingViolation"]):
        self.violations = violations
        lines = [f"[{v.node_id}] {v.issue}" for v in violations]
        super().__init__("Ring hierarchy has errors:\n" + "\n".join(lines))


@dataclass
class RingViolation:
    node_id: str
    node_label: str
    ring: int                   # MISSING_RING when unassigned
    expected_ring: int
    issue: str
    severity: ValidationSeverity
    parent_id: Optional[str] = None
    parent_label: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "node_label": self.node_label,
            "ring": self.ring,
            "expected_ring": self.expected_ring,
            "parent_id": self.parent_id,
            "parent_label": self.parent_label,
            "issue": self.issue,
            "severity": self.severity.value,
        }


@dataclass
class RingValidationResult:
    is_valid: bool
    violations: List[RingViolation] = field(default_factory=list)
    summary: str = ""
    stats: Dict[str, object] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == ValidationSeverity.WARNING)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "violations": [v.to_dict() for v in self.violations],
            "summary": self.summary,
            "stats": self.stats,
        }

    def get_summary(self) -> str:
        status = "✅ Valid" if self.is_valid else "❌ Invalid"
        return f"{status} | Errors: {self.error_count}, Warnings: {self.warning_count}"


def is_classification_node(node: GraphNode) -> bool:
    return (
        node.id.startswith("classification-")
        or node.type == NodeType.CLASSIFICATION
        or "Classification" in (node.label or "")
    )


def is_domain_parent_node(node: GraphNode) -> bool:
    label = node.label or ""
    return node.type in DOMAIN_PARENT_TYPES or any(m in label for m in DOMAIN_PARENT_LABEL_MARKERS)


class RingHierarchyValidator:
    """
    Validates ring assignments against parent edges.

    Usage:
        validator = RingHierarchyValidator()
        result = validator.validate(nodes, edges)

        for v in result.violations:
            print(f"[{v.severity.value}] {v.node_label}: {v.issue}")
    """

    def validate(self, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> RingValidationResult:
        snapshot = GraphSnapshot(nodes, edges)
        violations: List[RingViolation] = []

        for node in nodes:
            violations.extend(self._check_root(node))

            if node.ring is None:
                violations.append(self._violation(
                    node, MISSING_RING, 1, "Node has no ring assigned", ValidationSeverity.ERROR
                ))
                continue

            violations.extend(self._check_parents(node, snapshot))
            violations.extend(self._check_classification(node))
            violations.extend(self._check_domain_parent(node))
            violations.extend(self._check_reversion(node, snapshot))

        stats = self._calculate_stats(nodes, violations)
        is_valid = all(v.severity != ValidationSeverity.ERROR for v in violations)
        summary = _summary_text(violations, len(nodes))

        logger.info(
            "[RING-VALIDATOR] %d nodes, %d violations, valid=%s",
            len(nodes), len(violations), is_valid,
        )
        return RingValidationResult(is_valid=is_valid, violations=violations, summary=summary, stats=stats)

    @staticmethod
    def _violation(
        node: GraphNode,
        ring: int,
        expected_ring: int,
        issue: str,
        severity: ValidationSeverity,
        parent: Optional[GraphNode] = None,
    ) -> RingViolation:
        return RingViolation(
            node_id=node.id,
            node_label=node.label or node.id,
            ring=ring,
            expected_ring=expected_ring,
            issue=issue,
            severity=severity,
            parent_id=parent.id if parent else None,
            parent_label=parent.label if parent else None,
        )

    def _check_root(self, node: GraphNode) -> List[RingViolation]:
        if node.is_root and node.ring != 0:
            ring = node.ring if node.ring is not None else MISSING_RING
            return [self._violation(
                node, ring, 0, "Center node must be ring 0 (R0)", ValidationSeverity.ERROR
            )]
        return []

    def _check_parents(self, node: GraphNode, snapshot: GraphSnapshot) -> List[RingViolation]:
        parents = snapshot.parents(node.id)

        if not parents:
            if node.is_root or is_classification_node(node):
                return []
            return [self._violation(
                node, node.ring, 1,
                "Node has no parent (orphaned). Should connect to center or classification.",
                ValidationSeverity.WARNING,
            )]

        violations = []
        for parent in parents:
            parent_ring = parent.ring or 0
            expected = parent_ring + 1
            if node.ring != expected:
                violations.append(self._violation(
                    node, node.ring, expected,
                    f"Ring should be parent ring ({parent_ring}) + 1 = {expected}, but is {node.ring}",
                    ValidationSeverity.ERROR,
                    parent=parent,
                ))
        return violations

    def _check_classification(self, node: GraphNode) -> List[RingViolation]:
        if is_classification_node(node) and node.ring != 1:
            return [self._violation(
                node, node.ring, 1, "Classification node must be ring 1 (R1)", ValidationSeverity.ERROR
            )]
        return []

    def _check_domain_parent(self, node: GraphNode) -> List[RingViolation]:
        if is_domain_parent_node(node) and node.ring != 2:
            return [self._violation(
                node, node.ring, 2, "Domain parent node should be ring 2 (R2)", ValidationSeverity.WARNING
            )]
        return []

    def _check_reversion(self, node: GraphNode, snapshot: GraphSnapshot) -> List[RingViolation]:
        violations = []
        for edge in snapshot.outgoing(node.id):
            child = snapshot.node_by_id(edge.target)
            if child is None:
                continue
            child_ring = child.ring or 0
            if child_ring <= node.ring:
                violations.append(self._violation(
                    node, node.ring, node.ring,
                    f"Ring reversion detected: has edge to {child.label or child.id} "
                    f"(R{child_ring}) but this node is R{node.ring}",
                    ValidationSeverity.ERROR,
                ))
        return violations

    @staticmethod
    def _calculate_stats(nodes: Sequence[GraphNode], violations: List[RingViolation]) -> dict:
        invalid = len({v.node_id for v in violations})
        by_ring = Counter(n.ring if n.ring is not None else MISSING_RING for n in nodes)
        return {
            "total_nodes": len(nodes),
            "valid_nodes": len(nodes) - invalid,
            "invalid_nodes": invalid,
            "by_ring": dict(sorted(by_ring.items())),
        }


def _summary_text(violations: List[RingViolation], total_nodes: int) -> str:
    if not violations:
        return f"✅ Perfect! All {total_nodes} nodes follow ring hierarchy rules."

    errors = sum(1 for v in violations if v.severity == ValidationSeverity.ERROR)
    warnings = len(violations) - errors
    valid_count = total_nodes - len({v.node_id for v in violations})

    lines = []
    if errors:
        lines.append(f"❌ {errors} ERROR{'S' if errors != 1 else ''} - Ring hierarchy violated!")
    if warnings:
        lines.append(f"⚠️  {warnings} warning{'s' if warnings != 1 else ''} - Check node structure")
    lines.append(f"{valid_count} of {total_nodes} nodes are valid.")
    return "\n".join(lines)


def validate_ring_hierarchy(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> RingValidationResult:
    """Convenience function to validate a snapshot."""
    return RingHierarchyValidator().validate(nodes, edges)


def get_node_violations(node_id: str, result: RingValidationResult) -> List[RingViolation]:
    return [v for v in result.violations if v.node_id == node_id]


def get_violations_by_severity(severity: ValidationSeverity, result: RingValidationResult) -> List[RingViolation]:
    severity = ValidationSeverity(severity)
    return [v for v in result.violations if v.severity == severity]


def get_nodes_with_errors(result: RingValidationResult) -> Set[str]:
    return {v.node_id for v in result.violations if v.severity == ValidationSeverity.ERROR}


def format_validation_result(result: RingValidationResult) -> str:
    """Multi-line report for logs and the HTTP response."""
    rule = "=" * 60
    lines = [rule, "  RING HIERARCHY VALIDATION REPORT", rule, ""]

    lines.append(f"Status: {'✅ VALID' if result.is_valid else '❌ INVALID'}")
    lines.append(f"Total Nodes: {result.stats.get('total_nodes', 0)}")
    lines.append(f"Valid Nodes: {result.stats.get('valid_nodes', 0)}")
    lines.append(f"Invalid Nodes: {result.stats.get('invalid_nodes', 0)}")
    lines.append("")

    lines.append("Nodes by Ring:")
    for ring, count in sorted(result.stats.get("by_ring", {}).items()):
        lines.append(f"  R{ring}: {count} nodes")
    lines.append("")

    if not result.violations:
        lines.append("✅ No violations found!")
    else:
        lines.append(f"⚠️  {len(result.violations)} violations:")
        lines.append("")

        for heading, severity in (("🔴 ERRORS:", ValidationSeverity.ERROR), ("🟡 WARNINGS:", ValidationSeverity.WARNING)):
            group = get_violations_by_severity(severity, result)
            if not group:
                continue
            lines.append(heading)
            for v in group:
                lines.append(f"  • {v.node_label} ({v.node_id})")
                lines.append(f"    - {v.issue}")
                lines.append(f"    - Current: R{v.ring}, Expected: R{v.expected_ring}")
                if v.parent_label:
                    lines.append(f"    - Parent: {v.parent_label}")
                lines.append("")

    lines.append(rule)
    lines.append(result.summary)
    lines.append(rule)
    return "\n".join(lines)


def raise_on_ring_errors(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> RingValidationResult:
    """Validate and raise RingHierarchyError if any error is found."""
    result = validate_ring_hierarchy(nodes, edges)
    if not result.is_valid:
        raise RingHierarchyError(get_violations_by_severity(ValidationSeverity.ERROR, result))
    return result
