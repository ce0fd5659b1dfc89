"""
Shared pytest fixtures for the plangraph tests.

- foundation_nodes / foundation_edges: center, two classifications and
  three orphaned R3 leaves that match built-in association rules
- hierarchy_graph: a fully connected four-ring chain
"""

import pytest

from plangraph.graph.model import GraphNode, make_structural_edge


def node(node_id, label, node_type, ring, domain=None, **kwargs):
    return GraphNode(id=node_id, label=label, type=node_type, ring=ring, domain=domain, **kwargs)


@pytest.fixture
def foundation_nodes():
    return [
        node("center", "My Product", "root", 0),
        node("classification-tech", "Technology", "classification", 1, "tech"),
        node("classification-product", "Product", "classification", 1, "product"),
        node("backend-api-server", "API Server", "backend", 3, "tech"),
        node("backend-authentication", "Authentication", "backend", 3, "tech"),
        node("frontend-app-shell", "App Shell", "frontend", 3, "product"),
    ]


@pytest.fixture
def foundation_edges():
    return [
        make_structural_edge("center", "classification-tech"),
        make_structural_edge("center", "classification-product"),
    ]


@pytest.fixture
def hierarchy_graph():
    nodes = [
        node("center", "My Product", "root", 0),
        node("classification-tech", "Technology", "classification", 1, "tech"),
        node("backend-parent", "Backend & APIs", "domain-parent", 2, "tech"),
        node("express-server", "Express Server", "backend", 3, "tech"),
    ]
    edges = [
        make_structural_edge("center", "classification-tech"),
        make_structural_edge("classification-tech", "backend-parent"),
        make_structural_edge("backend-parent", "express-server"),
    ]
    return nodes, edges
