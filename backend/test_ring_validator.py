"""Tests for the ring hierarchy validator"""

from dataclasses import replace

import pytest

from plangraph.graph.model import GraphNode, make_structural_edge
from plangraph.validation import (
    RingHierarchyError,
    ValidationSeverity,
    format_validation_result,
    get_node_violations,
    get_nodes_with_errors,
    get_violations_by_severity,
    raise_on_ring_errors,
    validate_ring_hierarchy,
)


def _with(nodes, node_id, **changes):
    return [replace(n, **changes) if n.id == node_id else n for n in nodes]


def test_valid_hierarchy(hierarchy_graph):
    nodes, edges = hierarchy_graph
    result = validate_ring_hierarchy(nodes, edges)

    assert result.is_valid
    assert result.violations == []
    assert result.error_count == 0
    assert result.stats["valid_nodes"] == 4
    assert result.stats["by_ring"] == {0: 1, 1: 1, 2: 1, 3: 1}
    assert "Perfect" in result.summary


def test_leaf_at_wrong_ring_is_one_error(hierarchy_graph):
    nodes, edges = hierarchy_graph
    result = validate_ring_hierarchy(_with(nodes, "express-server", ring=5), edges)

    assert not result.is_valid
    assert len(result.violations) == 1
    violation = result.violations[0]
    assert violation.severity == ValidationSeverity.ERROR
    assert violation.node_id == "express-server"
    assert violation.expected_ring == 3
    assert violation.parent_id == "backend-parent"
    assert "ring should be" in violation.issue.lower()
    assert result.stats["invalid_nodes"] == 1


def test_root_must_be_ring_zero(hierarchy_graph):
    nodes, edges = hierarchy_graph
    result = validate_ring_hierarchy(_with(nodes, "center", ring=1), edges)
    issues = [v.issue for v in get_node_violations("center", result)]
    assert "Center node must be ring 0 (R0)" in issues
    assert not result.is_valid


def test_missing_ring_is_an_error(hierarchy_graph):
    nodes, edges = hierarchy_graph
    result = validate_ring_hierarchy(_with(nodes, "express-server", ring=None), edges)

    violations = get_node_violations("express-server", result)
    assert [v.issue for v in violations] == ["Node has no ring assigned"]
    assert violations[0].ring == -1
    assert result.stats["by_ring"][-1] == 1


def test_orphan_is_a_warning(hierarchy_graph):
    nodes, edges = hierarchy_graph
    loose = GraphNode(id="loose", label="Loose", type="backend", ring=3)
    result = validate_ring_hierarchy([*nodes, loose], edges)

    assert result.is_valid
    warnings = get_violations_by_severity(ValidationSeverity.WARNING, result)
    assert [w.node_id for w in warnings] == ["loose"]
    assert "orphaned" in warnings[0].issue


def test_classification_without_parent_is_not_orphan():
    nodes = [GraphNode(id="classification-people", label="People", type="classification", ring=1)]
    assert validate_ring_hierarchy(nodes, []).violations == []


def test_classification_must_be_ring_one():
    nodes = [
        GraphNode(id="center", label="Center", type="root", ring=0),
        GraphNode(id="c", label="Process Classification", type="custom", ring=2),
    ]
    result = validate_ring_hierarchy(nodes, [make_structural_edge("center", "c")])
    issues = [v.issue for v in get_node_violations("c", result)]
    assert "Classification node must be ring 1 (R1)" in issues


def test_domain_parent_off_ring_is_a_warning():
    nodes = [
        GraphNode(id="center", label="Center", type="root", ring=0),
        GraphNode(id="infra", label="Infrastructure & Platform", type="group", ring=1),
    ]
    result = validate_ring_hierarchy(nodes, [make_structural_edge("center", "infra")])
    assert result.is_valid
    assert [v.issue for v in result.violations] == ["Domain parent node should be ring 2 (R2)"]


def test_ring_reversion(hierarchy_graph):
    nodes, edges = hierarchy_graph
    back = make_structural_edge("express-server", "classification-tech")
    result = validate_ring_hierarchy(nodes, [*edges, back])

    assert "express-server" in get_nodes_with_errors(result)
    reversions = [v for v in result.violations if v.issue.startswith("Ring reversion detected")]
    assert len(reversions) == 1
    assert "(R1)" in reversions[0].issue


def test_format_validation_result(hierarchy_graph):
    nodes, edges = hierarchy_graph
    result = validate_ring_hierarchy(_with(nodes, "express-server", ring=5), edges)
    text = format_validation_result(result)

    assert "RING HIERARCHY VALIDATION REPORT" in text
    assert "Express Server (express-server)" in text
    assert "Current: R5, Expected: R3" in text
    assert "Parent: Backend & APIs" in text


def test_raise_on_ring_errors(hierarchy_graph):
    nodes, edges = hierarchy_graph
    assert raise_on_ring_errors(nodes, edges).is_valid

    with pytest.raises(RingHierarchyError) as exc_info:
        raise_on_ring_errors(_with(nodes, "express-server", ring=5), edges)
    assert len(exc_info.value.violations) == 1
    assert isinstance(exc_info.value, ValueError)


def test_to_dict_uses_plain_values(hierarchy_graph):
    nodes, edges = hierarchy_graph
    data = validate_ring_hierarchy(_with(nodes, "express-server", ring=5), edges).to_dict()
    assert data["violations"][0]["severity"] == "error"
    assert data["error_count"] == 1
