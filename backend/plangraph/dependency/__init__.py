from plangraph.dependency.analyzer import (
    CircularDependency,
    CriticalPath,
    CriticalPathNode,
    DependencyChain,
    RelationshipFilter,
    RelationshipSuggestion,
    build_dependency_map,
    calculate_node_depth,
    detect_circular_dependencies,
    filter_nodes_by_relationship,
    find_critical_path,
    get_dependencies,
    get_dependency_chain,
    get_dependent_chain,
    get_dependents,
    get_relationship_label,
    get_relationship_stats,
    suggest_relationships,
    would_create_cycle,
)

__all__ = [
    "CircularDependency",
    "CriticalPath",
    "CriticalPathNode",
    "DependencyChain",
    "RelationshipFilter",
    "RelationshipSuggestion",
    "build_dependency_map",
    "calculate_node_depth",
    "detect_circular_dependencies",
    "filter_nodes_by_relationship",
    "find_critical_path",
    "get_dependencies",
    "get_dependency_chain",
    "get_dependent_chain",
    "get_dependents",
    "get_relationship_label",
    "get_relationship_stats",
    "suggest_relationships",
    "would_create_cycle",
]
