"""
Hierarchy module: association rules and automatic parenting.
"""

from plangraph.hierarchy.rules import (
    AssociationRule,
    ParentSpec,
    ASSOCIATION_RULES,
    default_rule_for_type,
    resolve_rule,
)

from plangraph.hierarchy.rules_loader import (
    RuleFileError,
    load_rules_file,
    build_rule_table,
    get_association_rules,
)

from plangraph.hierarchy.associator import (
    SuggestedIntermediateNode,
    ParentResolution,
    AssociationIssue,
    EdgeEvaluationResult,
    FoundationEdgesReport,
    FoundationEdgesResult,
    find_optimal_parent,
    evaluate_edges,
    generate_missing_intermediate_nodes,
    connect_intermediate_to_classifications,
    process_foundation_edges,
    format_edge_report,
)

__all__ = [
    "AssociationRule",
    "ParentSpec",
    "ASSOCIATION_RULES",
    "default_rule_for_type",
    "resolve_rule",
    "RuleFileError",
    "load_rules_file",
    "build_rule_table",
    "get_association_rules",
    "SuggestedIntermediateNode",
    "ParentResolution",
    "AssociationIssue",
    "EdgeEvaluationResult",
    "FoundationEdgesReport",
    "FoundationEdgesResult",
    "find_optimal_parent",
    "evaluate_edges",
    "generate_missing_intermediate_nodes",
    "connect_intermediate_to_classifications",
    "process_foundation_edges",
    "format_edge_report",
]
