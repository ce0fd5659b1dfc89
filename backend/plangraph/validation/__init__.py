"""
Validation module for ring hierarchy and snapshot structure checks.
"""

from plangraph.validation.structure import (
    StructureCheckResult,
    ValidationIssue,
    ValidationSeverity,
    check_graph_structure,
)
from plangraph.validation.ring_validator import (
    RingHierarchyError,
    RingHierarchyValidator,
    RingValidationResult,
    RingViolation,
    format_validation_result,
    get_node_violations,
    get_nodes_with_errors,
    get_violations_by_severity,
    is_classification_node,
    is_domain_parent_node,
    raise_on_ring_errors,
    validate_ring_hierarchy,
)

__all__ = [
    "StructureCheckResult",
    "ValidationIssue",
    "ValidationSeverity",
    "check_graph_structure",
    "RingHierarchyError",
    "RingHierarchyValidator",
    "RingValidationResult",
    "RingViolation",
    "format_validation_result",
    "get_node_violations",
    "get_nodes_with_errors",
    "get_violations_by_severity",
    "is_classification_node",
    "is_domain_parent_node",
    "raise_on_ring_errors",
    "validate_ring_hierarchy",
]
