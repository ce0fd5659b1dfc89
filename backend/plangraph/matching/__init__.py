"""
Matching module: string similarity and node deduplication.
"""

from plangraph.matching.similarity import (
    extract_keywords,
    levenshtein_distance,
    similarity,
    is_fuzzy_match,
    normalize_label,
)

from plangraph.matching.deduplicator import (
    NodeCandidate,
    DeduplicationResult,
    find_existing_node,
    create_associations_for_existing,
    check_node_overlap,
    find_potential_conflicts,
    get_deduplication_summary,
)

__all__ = [
    "extract_keywords",
    "levenshtein_distance",
    "similarity",
    "is_fuzzy_match",
    "normalize_label",
    "NodeCandidate",
    "DeduplicationResult",
    "find_existing_node",
    "create_associations_for_existing",
    "check_node_overlap",
    "find_potential_conflicts",
    "get_deduplication_summary",
]
