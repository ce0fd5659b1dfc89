"""Quick checks for the snapshot structure checker"""

from plangraph.graph.model import GraphEdge, GraphNode, RelationshipType, make_structural_edge
from plangraph.validation import ValidationSeverity, check_graph_structure


def test_clean_graph(hierarchy_graph):
    nodes, edges = hierarchy_graph
    result = check_graph_structure(nodes, edges)

    assert result.is_valid
    assert result.issues == []
    assert result.stats["nodes"] == 4
    assert result.stats["isolated_nodes"] == 0


def test_empty_graph_is_valid():
    result = check_graph_structure([], [])
    assert result.is_valid
    assert result.issues == []


def test_issue_codes():
    nodes = [
        GraphNode(id="center", label="Center", ring=0),
        GraphNode(id="a", label="A", ring=1),
        GraphNode(id="a", label="A again", ring=1),
    ]
    edges = [
        make_structural_edge("center", "a"),
        make_structural_edge("center", "a"),
        make_structural_edge("a", "a"),
        make_structural_edge("ghost", "a"),
        GraphEdge(id="e-out", source="a", target="nowhere", relationship_type=RelationshipType.TESTS),
    ]
    result = check_graph_structure(nodes, edges)
    codes = result.codes()

    assert not result.is_valid
    assert "DUPLICATE_NODE_ID" in codes
    assert "DUPLICATE_EDGE" in codes
    assert "SELF_LOOP" in codes
    assert "MISSING_SOURCE_NODE" in codes
    assert "MISSING_TARGET_NODE" in codes
    assert "NO_ROOT" not in codes


def test_root_count():
    no_root = check_graph_structure([GraphNode(id="a", ring=1)], [])
    assert no_root.codes() == ["NO_ROOT"]
    assert no_root.is_valid
    assert no_root.issues[0].severity == ValidationSeverity.WARNING

    two_roots = check_graph_structure([GraphNode(id="a", ring=0), GraphNode(id="b", ring=0)], [])
    assert two_roots.codes() == ["MULTIPLE_ROOTS", "MULTIPLE_ROOTS"]
    assert not two_roots.is_valid


def test_summary_and_dict():
    result = check_graph_structure([GraphNode(id="a", ring=0)], [make_structural_edge("a", "a")])
    assert result.warning_count == 1
    assert "Warnings: 1" in result.get_summary()
    assert result.to_dict()["issues"][0]["code"] == "SELF_LOOP"
