"""HTTP tests for the graph endpoints, using FastAPI's TestClient"""

import pytest
from fastapi.testclient import TestClient

from plangraph.main import app
from plangraph.schemas import EdgePayload, NodePayload


@pytest.fixture
def client():
    return TestClient(app)


FOUNDATION = {
    "nodes": [
        {"id": "center", "title": "My Product", "type": "root", "ring": 0},
        {"id": "classification-tech", "label": "Technology", "type": "classification", "domain": "tech", "ring": 1},
        {"id": "backend-api-server", "data": {"title": "API Server", "type": "backend", "ring": 3, "domain": "tech"}},
    ],
    "edges": [
        {"source": "center", "target": "classification-tech", "relationshipType": "depends_on"},
    ],
}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_foundation_edges(client):
    body = client.post("/graph/foundation-edges", json=FOUNDATION).json()

    assert body["status"] == "success"
    assert [n["id"] for n in body["nodes_to_create"]] == ["domain-parent-backend-apis"]
    pairs = {(e["source"], e["target"]) for e in body["edges_to_create"]}
    assert pairs == {
        ("domain-parent-backend-apis", "backend-api-server"),
        ("classification-tech", "domain-parent-backend-apis"),
    }
    assert body["report"]["new_edges"] == 2
    assert "PROCESSING REPORT" in body["formatted_report"]


def test_validate(client):
    payload = {
        "nodes": FOUNDATION["nodes"],
        "edges": FOUNDATION["edges"] + [{"source": "classification-tech", "target": "backend-api-server"}],
    }
    body = client.post("/graph/validate", json=payload).json()

    assert body["status"] == "success"
    assert body["is_valid"] is False
    violations = body["ring_validation"]["violations"]
    assert [v["node_id"] for v in violations] == ["backend-api-server"]
    assert body["structure"]["is_valid"] is True


def test_dependencies(client):
    payload = {
        "nodes": [{"id": "a"}, {"id": "b"}, {"id": "c"}],
        "edges": [
            {"source": "a", "target": "b", "relation": "depends-on", "weight": 2},
            {"source": "b", "target": "c", "relationshipType": "depends-on", "weight": 3},
        ],
        "node_id": "b",
    }
    body = client.post("/graph/dependencies", json=payload).json()

    assert body["cycles"] == []
    assert body["critical_path"]["path"] == ["c", "b", "a"]
    assert body["critical_path"]["total_weight"] == 5
    assert body["stats"]["hard_dependencies"] == 2
    assert body["node"]["dependencies"] == ["c"]
    assert body["node"]["dependent_chain"] == ["a"]


def test_would_create_cycle(client):
    payload = {
        "edges": [{"source": "a", "target": "b", "relationshipType": "depends-on"}],
        "source": "b",
        "target": "a",
        "relationship_type": "depends-on",
    }
    assert client.post("/graph/would-create-cycle", json=payload).json()["would_create_cycle"] is True

    payload["relationship_type"] = "references"
    assert client.post("/graph/would-create-cycle", json=payload).json()["would_create_cycle"] is False


def test_suggest_relationships(client):
    payload = {
        "nodes": [
            {"id": "fe", "label": "Web", "type": "frontend", "ring": 3},
            {"id": "be", "label": "API", "type": "backend", "ring": 3},
        ],
        "edges": [],
    }
    body = client.post("/graph/suggest-relationships", json=payload).json()
    assert body["suggestions"] == [{
        "source": "fe",
        "target": "be",
        "type": "depends-on",
        "reason": "Frontend often depends on backend APIs",
    }]


def test_deduplicate(client):
    payload = {
        "candidate": {"label": "api gateway", "type": "backend", "domain": "tech"},
        "nodes": [{"id": "n-api", "label": "API Gateway", "type": "backend", "domain": "tech", "ring": 3}],
        "parent_node_id": "backend-parent",
    }
    body = client.post("/graph/deduplicate", json=payload).json()

    assert body["found"] is True
    assert body["existing_node"]["id"] == "n-api"
    assert body["match_tier"] == "exact_label"
    assert body["suggested_edges"][0]["source"] == "backend-parent"
    assert [c["id"] for c in body["conflicts"]] == ["n-api"]


def test_invalid_payload_is_rejected(client):
    response = client.post("/graph/validate", json={"nodes": [{"label": "no id"}]})
    assert response.status_code == 422


def test_nested_tags_survive_payload_parsing():
    node = NodePayload(id="x", data={"tags": ["auto-generated"]}).to_node()
    assert node.tags == frozenset({"auto-generated"})
    assert node.is_auto_generated

    flat = NodePayload(id="y", tags=["manual"], data={"tags": ["auto-generated"]}).to_node()
    assert flat.tags == frozenset({"manual"})


@pytest.mark.parametrize("weight,expected", [
    (None, 1.0),
    (0, 1.0),
    (2.5, 2.5),
])
def test_edge_weight_defaults(weight, expected):
    payload = EdgePayload(source="a", target="b", relationshipType="depends-on", weight=weight)
    assert payload.to_edge().weight == expected


def test_zero_weight_edge_counts_on_critical_path(client):
    payload = {
        "nodes": [{"id": "a"}, {"id": "b"}],
        "edges": [{"source": "a", "target": "b", "relationshipType": "depends-on", "weight": 0}],
    }
    body = client.post("/graph/dependencies", json=payload).json()
    assert body["critical_path"]["path"] == ["b", "a"]
    assert body["critical_path"]["total_weight"] == 1
