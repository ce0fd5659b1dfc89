# Graph model
# Shared vocabulary for every engine component

from plangraph.graph.model import (
    GraphNode,
    GraphEdge,
    GraphSnapshot,
    NodeType,
    Domain,
    RelationshipType,
    HARD_RELATIONSHIPS,
    ROOT_NODE_ID,
    make_structural_edge,
    node_from_dict,
    edge_from_dict,
    nodes_from_dicts,
    edges_from_dicts,
)

__all__ = [
    "GraphNode",
    "GraphEdge",
    "GraphSnapshot",
    "NodeType",
    "Domain",
    "RelationshipType",
    "HARD_RELATIONSHIPS",
    "ROOT_NODE_ID",
    "make_structural_edge",
    "node_from_dict",
    "edge_from_dict",
    "nodes_from_dicts",
    "edges_from_dicts",
]
