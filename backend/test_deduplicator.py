"""Tests for node deduplication: tier precedence, ties and malformed candidates"""

from plangraph.graph.model import GraphNode, RelationshipType
from plangraph.matching.deduplicator import (
    TIER_EXACT_LABEL,
    TIER_FUZZY_KEYWORD,
    TIER_TYPE_DOMAIN,
    NodeCandidate,
    check_node_overlap,
    create_associations_for_existing,
    find_existing_node,
    find_potential_conflicts,
    get_deduplication_summary,
)


NODES = [
    GraphNode(id="n-api", label="API Gateway", type="backend", domain="tech", ring=3),
    GraphNode(id="n-db", label="Orders Database", type="backend", domain="tech", ring=3),
    GraphNode(id="n-ui", label="Checkout Page", type="frontend", domain="product", ring=3),
    GraphNode(id="n-pg", label="PostgreSQL Cluster", type="infrastructure", domain="tech", ring=3),
]


def test_empty_node_list_is_not_found():
    result = find_existing_node(NodeCandidate(label="Anything", type="backend", domain="tech"), [])
    assert not result.found
    assert result.existing_node is None


def test_exact_label_is_case_insensitive():
    result = find_existing_node(NodeCandidate(label="  checkout page "), NODES)
    assert result.found
    assert result.existing_node.id == "n-ui"
    assert result.match_tier == TIER_EXACT_LABEL


def test_exact_label_beats_type_domain():
    # type+domain would pick n-api first; the exact label wins
    candidate = NodeCandidate(label="Orders Database", type="backend", domain="tech")
    result = find_existing_node(candidate, NODES)
    assert result.existing_node.id == "n-db"
    assert result.match_tier == TIER_EXACT_LABEL


def test_type_domain_tie_breaks_on_caller_order():
    candidate = NodeCandidate(label="Payments", type="backend", domain="tech")
    assert find_existing_node(candidate, NODES).existing_node.id == "n-api"
    assert find_existing_node(candidate, list(reversed(NODES))).existing_node.id == "n-db"


def test_deterministic_for_same_input():
    candidate = NodeCandidate(label="Payments", type="backend", domain="tech")
    first = find_existing_node(candidate, NODES)
    second = find_existing_node(candidate, NODES)
    assert first.existing_node == second.existing_node
    assert first.match_tier == second.match_tier == TIER_TYPE_DOMAIN


def test_fuzzy_keyword_tier():
    candidate = NodeCandidate(label="Primary DB", type="data", domain="data-ai", keywords=["postgres"])
    result = find_existing_node(candidate, NODES)
    assert result.found
    assert result.existing_node.id == "n-pg"
    assert result.match_tier == TIER_FUZZY_KEYWORD


def test_keywords_are_tokenised():
    candidate = NodeCandidate(label="Something", keywords=["checkout-flow"])
    result = find_existing_node(candidate, NODES)
    assert result.existing_node.id == "n-ui"


def test_malformed_candidates_create_new():
    assert not find_existing_node(NodeCandidate(label=""), NODES).found
    assert not find_existing_node(NodeCandidate(label="", type="backend"), NODES).found
    assert not find_existing_node(NodeCandidate(label="", domain="tech"), NODES).found
    assert not find_existing_node(NodeCandidate(label="   ", keywords=["", "  "]), NODES).found


def test_blank_labels_never_match():
    nodes = [GraphNode(id="blank", label="", type="doc", ring=3)]
    assert not find_existing_node(NodeCandidate(label="", keywords=["api"]), nodes).found


def test_create_associations_for_existing():
    edges = create_associations_for_existing(NODES[0], "backend-parent")
    assert len(edges) == 1
    edge = edges[0]
    assert (edge.source, edge.target) == ("backend-parent", "n-api")
    assert edge.relationship_type == RelationshipType.STRUCTURAL
    assert create_associations_for_existing(NODES[0], "backend-parent")[0].id == edge.id


def test_check_node_overlap():
    assert check_node_overlap(NODES[0], NODES[1])  # same type + domain
    assert not check_node_overlap(NODES[2], NODES[3])
    a = GraphNode(id="a", label="User Auth Service", type="backend", domain="tech")
    b = GraphNode(id="b", label="Auth Service Worker", type="doc", domain="process")
    assert check_node_overlap(a, b)


def test_find_potential_conflicts():
    candidate = NodeCandidate(label="Orders Database", type="backend", domain="tech")
    ids = [n.id for n in find_potential_conflicts(candidate, NODES)]
    assert ids == ["n-api", "n-db"]


def test_summary_text():
    candidate = NodeCandidate(label="Checkout Page")
    found = find_existing_node(candidate, NODES)
    assert "Reusing" in get_deduplication_summary(candidate, found)
    missing = find_existing_node(NodeCandidate(label="Nothing Like It"), NODES)
    assert "Creating new node" in get_deduplication_summary(NodeCandidate(label="Nothing Like It"), missing)
