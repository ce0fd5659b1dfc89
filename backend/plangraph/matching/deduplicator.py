"""
Node Deduplicator - Reuse existing nodes instead of creating duplicates.

Three-level matching, first non-empty level wins:
1. Exact label match (case-insensitive)
2. Type + domain match
3. Fuzzy keyword match

A candidate with missing data simply fails the levels it cannot satisfy,
so the caller creates a new node.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from plangraph.graph.model import GraphEdge, GraphNode, RelationshipType
from plangraph.matching.similarity import extract_keywords, is_fuzzy_match

logger = logging.getLogger(__name__)


TIER_EXACT_LABEL = "exact_label"
TIER_TYPE_DOMAIN = "type_domain"
TIER_FUZZY_KEYWORD = "fuzzy_keyword"


@dataclass(frozen=True)
class NodeCandidate:
    """Description of a node the caller is about to create"""
    label: str
    type: str = ""
    domain: Optional[str] = None
    keywords: Sequence[str] = ()


@dataclass
class DeduplicationResult:
    found: bool
    existing_node: Optional[GraphNode] = None
    match_tier: Optional[str] = None
    suggested_edges: List[GraphEdge] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "found": self.found,
            "existing_node": self.existing_node.to_dict() if self.existing_node else None,
            "match_tier": self.match_tier,
            "suggested_edges": [e.to_dict() for e in self.suggested_edges],
        }


def _candidate_keywords(candidate: NodeCandidate) -> List[str]:
    keywords: List[str] = []
    for keyword in candidate.keywords or ():
        keywords.extend(extract_keywords(keyword))
    return keywords


def _keywords_overlap(candidate_keywords: List[str], label: str) -> bool:
    node_keywords = extract_keywords(label)
    return any(
        is_fuzzy_match(kw, nk)
        for kw in candidate_keywords
        for nk in node_keywords
    )


def _same_type_and_domain(node: GraphNode, node_type: str, domain: Optional[str]) -> bool:
    # Missing type or domain never matches
    if not node_type or not domain:
        return False
    return node.type == node_type and node.domain == domain


def find_existing_node(candidate: NodeCandidate, nodes: Sequence[GraphNode]) -> DeduplicationResult:
    """
    Find an existing node that already represents the candidate.

    Ties inside a level resolve to the first node in the caller's order.
    """
    if not nodes:
        return DeduplicationResult(found=False)

    # Level 1: exact label
    wanted = (candidate.label or "").strip().lower()
    if wanted:
        for node in nodes:
            if (node.label or "").strip().lower() == wanted:
                logger.debug("[DEDUP] exact label match '%s' -> %s", candidate.label, node.id)
                return DeduplicationResult(True, node, TIER_EXACT_LABEL)

    # Level 2: type + domain
    for node in nodes:
        if _same_type_and_domain(node, candidate.type, candidate.domain):
            logger.debug("[DEDUP] type+domain match %s/%s -> %s", candidate.type, candidate.domain, node.id)
            return DeduplicationResult(True, node, TIER_TYPE_DOMAIN)

    # Level 3: fuzzy keywords
    keywords = _candidate_keywords(candidate)
    if keywords:
        for node in nodes:
            if _keywords_overlap(keywords, node.label):
                logger.debug("[DEDUP] fuzzy keyword match %s -> %s", keywords, node.id)
                return DeduplicationResult(True, node, TIER_FUZZY_KEYWORD)

    return DeduplicationResult(found=False)


def create_associations_for_existing(
    existing_node: GraphNode,
    parent_node_id: str,
    relationship_type: RelationshipType = RelationshipType.STRUCTURAL,
) -> List[GraphEdge]:
    """Edge from the parent to the reused node, in place of a duplicate."""
    return [
        GraphEdge(
            id=f"edge-{parent_node_id}-to-{existing_node.id}",
            source=parent_node_id,
            target=existing_node.id,
            relationship_type=relationship_type,
        )
    ]


def check_node_overlap(node1: GraphNode, node2: GraphNode) -> bool:
    """True when two nodes appear to serve the same purpose."""
    if _same_type_and_domain(node1, node2.type, node2.domain):
        return True

    if is_fuzzy_match(node1.label, node2.label):
        return True

    kw1 = extract_keywords(node1.label)
    kw2 = extract_keywords(node2.label)
    common = [kw for kw in kw1 if any(is_fuzzy_match(kw, k) for k in kw2)]
    return len(common) >= 2


def find_potential_conflicts(candidate: NodeCandidate, nodes: Sequence[GraphNode]) -> List[GraphNode]:
    """All nodes that trigger any matching level. Used for warnings only."""
    conflicts = []
    keywords = _candidate_keywords(candidate)
    wanted = (candidate.label or "").strip().lower()

    for node in nodes:
        if wanted and (node.label or "").strip().lower() == wanted:
            conflicts.append(node)
        elif _same_type_and_domain(node, candidate.type, candidate.domain):
            conflicts.append(node)
        elif is_fuzzy_match(node.label, candidate.label):
            conflicts.append(node)
        elif keywords and _keywords_overlap(keywords, node.label):
            conflicts.append(node)

    return conflicts


def get_deduplication_summary(candidate: NodeCandidate, result: DeduplicationResult) -> str:
    if not result.found or result.existing_node is None:
        return (
            f'No existing node found for "{candidate.label}" '
            f"({candidate.type or '?'}/{candidate.domain or '?'}). Creating new node."
        )
    return (
        f'Found existing node "{result.existing_node.label}" for "{candidate.label}" '
        f"({result.match_tier}). Reusing and adding associations."
    )
