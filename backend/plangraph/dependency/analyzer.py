"""
Dependency Analyzer - Dependency sets, cycles and critical paths.

Only hard relationships take part:
- A depends-on B  => B is a dependency of A
- A blocks B      => A is a dependency of B

Every other relationship type is soft and ignored here, except by
get_relationship_stats(). Traversals use explicit stacks or a depth
ceiling so cyclic or very deep input cannot exhaust the interpreter stack.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx

from plangraph.config import MAX_TRAVERSAL_DEPTH, RELATIONSHIP_SUGGESTION_LIMIT
from plangraph.graph.model import (
    GraphEdge,
    GraphNode,
    GraphSnapshot,
    NodeType,
    RelationshipType,
)

logger = logging.getLogger(__name__)


@dataclass
class DependencyChain:
    node_id: str
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    depth: int = 0

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "dependencies": self.dependencies,
            "dependents": self.dependents,
            "depth": self.depth,
        }


@dataclass
class CircularDependency:
    cycle: List[str]
    kind: str = "hard"  # hard = blocks/depends-on

    def to_dict(self) -> dict:
        return {"cycle": self.cycle, "type": self.kind}


@dataclass
class CriticalPathNode:
    weight: float   # accumulated distance at this node
    depth: int      # position along the path


@dataclass
class CriticalPath:
    path: List[str]
    total_weight: float
    nodes: Dict[str, CriticalPathNode] = field(default_factory=dict)
    has_cycles: bool = False  # cycle edges were left out of the computation

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "total_weight": self.total_weight,
            "nodes": {
                node_id: {"weight": n.weight, "depth": n.depth}
                for node_id, n in self.nodes.items()
            },
            "has_cycles": self.has_cycles,
        }


@dataclass
class RelationshipSuggestion:
    source: str
    target: str
    type: RelationshipType
    reason: str

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
            "reason": self.reason,
        }


@dataclass
class RelationshipFilter:
    has_incoming: Optional[bool] = None
    has_outgoing: Optional[bool] = None
    relationship_type: Optional[RelationshipType] = None
    is_in_cycle: bool = False
    is_on_critical_path: bool = False


# ============================================================
# NORMALISATION
# ============================================================

def _hard_pairs(edges: Iterable[GraphEdge]) -> List[Tuple[str, str, float]]:
    """(dependency, dependent, weight) for every hard edge."""
    pairs = []
    for edge in edges:
        if edge.relationship_type == RelationshipType.DEPENDS_ON:
            pairs.append((edge.target, edge.source, edge.weight))
        elif edge.relationship_type == RelationshipType.BLOCKS:
            pairs.append((edge.source, edge.target, edge.weight))
    return pairs


def _append_unique(mapping: Dict[str, List[str]], key: str, value: str) -> None:
    values = mapping.setdefault(key, [])
    if value not in values:
        values.append(value)


def _dependency_map(edges: Iterable[GraphEdge]) -> Dict[str, List[str]]:
    """node -> nodes it waits on"""
    deps: Dict[str, List[str]] = {}
    for dependency, dependent, _ in _hard_pairs(edges):
        _append_unique(deps, dependent, dependency)
    return deps


def _dependent_map(edges: Iterable[GraphEdge]) -> Dict[str, List[str]]:
    """node -> nodes waiting on it"""
    dependents: Dict[str, List[str]] = {}
    for dependency, dependent, _ in _hard_pairs(edges):
        _append_unique(dependents, dependency, dependent)
    return dependents


# ============================================================
# ONE HOP AND TRANSITIVE SETS
# ============================================================

def get_dependencies(node_id: str, edges: Sequence[GraphEdge]) -> List[str]:
    """Nodes this node must wait on."""
    return list(_dependency_map(edges).get(node_id, []))


def get_dependents(node_id: str, edges: Sequence[GraphEdge]) -> List[str]:
    """Nodes waiting on this node."""
    return list(_dependent_map(edges).get(node_id, []))


def _closure(start: str, adjacency: Dict[str, List[str]], max_depth: int) -> List[str]:
    result: List[str] = []
    seen: Set[str] = set()
    expanded = {start}
    stack = [(start, 0)]

    while stack:
        node, depth = stack.pop()
        for neighbour in adjacency.get(node, []):
            if neighbour not in seen:
                seen.add(neighbour)
                result.append(neighbour)
            if neighbour not in expanded and depth + 1 < max_depth:
                expanded.add(neighbour)
                stack.append((neighbour, depth + 1))

    return result


def get_dependency_chain(
    node_id: str,
    edges: Sequence[GraphEdge],
    max_depth: int = MAX_TRAVERSAL_DEPTH,
) -> List[str]:
    """All transitive dependencies (ancestors) of a node."""
    return _closure(node_id, _dependency_map(edges), max_depth)


def get_dependent_chain(
    node_id: str,
    edges: Sequence[GraphEdge],
    max_depth: int = MAX_TRAVERSAL_DEPTH,
) -> List[str]:
    """All transitive dependents (descendants) of a node."""
    return _closure(node_id, _dependent_map(edges), max_depth)


def _depth_of(
    node_id: str,
    dependency_map: Dict[str, List[str]],
    memo: Dict[str, int],
    max_depth: int,
) -> int:
    # A dependency already on the current path counts as depth 0. Results
    # that relied on the path (or on the depth ceiling) are not memoised.
    def settled(node: str, level: int) -> Optional[Tuple[int, bool]]:
        if node in memo:
            return memo[node], False
        if not dependency_map.get(node):
            return 0, False
        if level >= max_depth:
            return 0, True
        return None

    known = settled(node_id, 0)
    if known is not None:
        return known[0]

    # frame: [node, remaining deps, deepest child, path-dependent]
    stack = [[node_id, iter(dependency_map[node_id]), 0, False]]
    on_path = {node_id}

    while True:
        frame = stack[-1]
        dep = next(frame[1], None)

        if dep is None:
            stack.pop()
            on_path.discard(frame[0])
            depth, path_dependent = frame[2] + 1, frame[3]
            if not path_dependent:
                memo[frame[0]] = depth
            if not stack:
                return depth
            parent = stack[-1]
            parent[2] = max(parent[2], depth)
            parent[3] = parent[3] or path_dependent
            continue

        if dep in on_path:
            frame[3] = True
            continue

        known = settled(dep, len(stack))
        if known is not None:
            frame[2] = max(frame[2], known[0])
            frame[3] = frame[3] or known[1]
            continue

        on_path.add(dep)
        stack.append([dep, iter(dependency_map[dep]), 0, False])


def calculate_node_depth(
    node_id: str,
    edges: Sequence[GraphEdge],
    max_depth: int = MAX_TRAVERSAL_DEPTH,
) -> int:
    """Length of the longest dependency chain below a node (0 = none)."""
    return _depth_of(node_id, _dependency_map(edges), {}, max_depth)


def build_dependency_map(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    max_depth: int = MAX_TRAVERSAL_DEPTH,
) -> Dict[str, DependencyChain]:
    dependency_map = _dependency_map(edges)
    dependent_map = _dependent_map(edges)
    memo: Dict[str, int] = {}

    return {
        node.id: DependencyChain(
            node_id=node.id,
            dependencies=list(dependency_map.get(node.id, [])),
            dependents=list(dependent_map.get(node.id, [])),
            depth=_depth_of(node.id, dependency_map, memo, max_depth),
        )
        for node in nodes
    }


# ============================================================
# CYCLES
# ============================================================

def _is_rotation_of(cycle: List[str], other: List[str]) -> bool:
    if len(cycle) != len(other):
        return False
    return any(cycle[i:] + cycle[:i] == other for i in range(len(cycle)))


def _node_order(nodes: Sequence[GraphNode], adjacency: Dict[str, List[str]]) -> List[str]:
    """Node ids in caller order, then ids that only appear on edges."""
    order = [n.id for n in nodes]
    known = set(order)
    for node_id in adjacency:
        if node_id not in known:
            known.add(node_id)
            order.append(node_id)
    return order


def detect_circular_dependencies(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    max_depth: int = MAX_TRAVERSAL_DEPTH,
) -> List[CircularDependency]:
    """
    Depth-first search with a recursion stack over hard dependencies.

    A cycle A -> B -> C -> A is reported once, as [A, B, C], however many
    of its rotations the search runs into.
    """
    dependency_map = _dependency_map(edges)
    cycles: List[CircularDependency] = []
    visited: Set[str] = set()

    for start in _node_order(nodes, dependency_map):
        if start in visited:
            continue

        visited.add(start)
        path = [start]
        on_path = {start}
        stack = [iter(dependency_map.get(start, []))]

        while stack:
            neighbour = next(stack[-1], None)
            if neighbour is None:
                stack.pop()
                on_path.discard(path.pop())
                continue

            if neighbour in on_path:
                cycle = path[path.index(neighbour):]
                if not any(_is_rotation_of(cycle, c.cycle) for c in cycles):
                    cycles.append(CircularDependency(cycle=cycle, kind="hard"))
                continue

            if neighbour in visited or len(path) >= max_depth:
                continue

            visited.add(neighbour)
            path.append(neighbour)
            on_path.add(neighbour)
            stack.append(iter(dependency_map.get(neighbour, [])))

    if cycles:
        logger.info("[DEPENDENCY] %d circular dependencies detected", len(cycles))
    return cycles


def _component_index(vertices: List[str], pairs: List[Tuple[str, str, float]]) -> Dict[str, int]:
    """Strongly connected component index per vertex."""
    graph = nx.DiGraph()
    graph.add_nodes_from(vertices)
    graph.add_edges_from((dependency, dependent) for dependency, dependent, _ in pairs)

    component: Dict[str, int] = {}
    for index, members in enumerate(nx.strongly_connected_components(graph)):
        for member in members:
            component[member] = index
    return component


# ============================================================
# CRITICAL PATH
# ============================================================

def find_critical_path(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    start_node_id: Optional[str] = None,
) -> Optional[CriticalPath]:
    """
    Maximum-weight path through hard dependencies, in execution order
    (dependency first).

    Edges inside a dependency cycle are left out so the longest-path
    relaxation always runs on a DAG; `has_cycles` tells the caller.
    """
    # Execution direction: dependency -> dependent
    pairs = _hard_pairs(edges)
    graph: Dict[str, List[Tuple[str, float]]] = {}
    vertices = [n.id for n in nodes]
    known = set(vertices)

    for dependency, dependent, weight in pairs:
        for node_id in (dependency, dependent):
            if node_id not in known:
                known.add(node_id)
                vertices.append(node_id)
        graph.setdefault(dependency, []).append((dependent, weight))

    component = _component_index(vertices, pairs)
    has_cycles = False
    dag: Dict[str, List[Tuple[str, float]]] = {}
    for source, targets in graph.items():
        for target, weight in targets:
            if component[source] == component[target]:
                has_cycles = True
                continue
            dag.setdefault(source, []).append((target, weight))

    if has_cycles:
        logger.warning("[DEPENDENCY] Critical path computed without cycle edges")

    if start_node_id is not None:
        if start_node_id not in known:
            return None
        reachable = {start_node_id}
        pending = [start_node_id]
        while pending:
            node = pending.pop()
            for target, _ in dag.get(node, []):
                if target not in reachable:
                    reachable.add(target)
                    pending.append(target)
        considered = [v for v in vertices if v in reachable]
    else:
        considered = vertices

    in_scope = set(considered)
    in_degree = {v: 0 for v in considered}
    for source in considered:
        for target, _ in dag.get(source, []):
            if target in in_scope:
                in_degree[target] += 1

    if start_node_id is not None:
        queue = deque([start_node_id])
    else:
        queue = deque(v for v in considered if in_degree[v] == 0)
    if not queue:
        return None

    distances = {v: 0.0 for v in considered}
    predecessors: Dict[str, str] = {}

    while queue:
        current = queue.popleft()
        for target, weight in dag.get(current, []):
            if target not in in_scope:
                continue
            new_distance = distances[current] + weight
            if new_distance > distances[target]:
                distances[target] = new_distance
                predecessors[target] = current
            in_degree[target] -= 1
            if in_degree[target] == 0:
                queue.append(target)

    end_node = None
    max_distance = 0.0
    for node_id in considered:
        if distances[node_id] > max_distance:
            max_distance = distances[node_id]
            end_node = node_id

    if end_node is None:
        return None

    path = [end_node]
    while path[-1] in predecessors:
        path.append(predecessors[path[-1]])
    path.reverse()

    return CriticalPath(
        path=path,
        total_weight=max_distance,
        nodes={
            node_id: CriticalPathNode(weight=distances[node_id], depth=index)
            for index, node_id in enumerate(path)
        },
        has_cycles=has_cycles,
    )


# ============================================================
# REPORTING AND SUGGESTIONS
# ============================================================

_RELATIONSHIP_LABELS = {
    RelationshipType.STRUCTURAL: "Parent Of",
    RelationshipType.DEPENDS_ON: "Depends On",
    RelationshipType.BLOCKS: "Blocks",
    RelationshipType.IMPLEMENTS: "Implements",
    RelationshipType.TESTS: "Tests",
    RelationshipType.DOCUMENTS: "Documents",
    RelationshipType.EXTENDS: "Extends",
    RelationshipType.REFERENCES: "References",
    RelationshipType.RELATED_TO: "Related To",
}


def get_relationship_label(relationship_type: RelationshipType) -> str:
    return _RELATIONSHIP_LABELS.get(RelationshipType.parse(relationship_type), "Related")


def get_relationship_stats(edges: Sequence[GraphEdge]) -> dict:
    by_type = {t.value: 0 for t in RelationshipType}
    hard = 0

    for edge in edges:
        by_type[edge.relationship_type.value] += 1
        if edge.is_hard:
            hard += 1

    return {
        "total": len(edges),
        "by_type": by_type,
        "hard_dependencies": hard,
        "soft_relationships": len(edges) - hard,
    }


def _suggest(source: GraphNode, target: GraphNode) -> List[Tuple[RelationshipType, str]]:
    suggestions = []
    if source.type == NodeType.FRONTEND and target.type == NodeType.REQUIREMENT:
        suggestions.append((RelationshipType.IMPLEMENTS, "Frontend typically implements requirements"))
    if source.type == NodeType.BACKEND and target.type == NodeType.REQUIREMENT:
        suggestions.append((RelationshipType.IMPLEMENTS, "Backend typically implements requirements"))
    if source.type == NodeType.DOC and target.type != NodeType.DOC:
        suggestions.append((RelationshipType.DOCUMENTS, "Documentation node can document this"))
    if source.type == NodeType.FRONTEND and target.type == NodeType.BACKEND:
        suggestions.append((RelationshipType.DEPENDS_ON, "Frontend often depends on backend APIs"))
    return suggestions


def suggest_relationships(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    limit: int = RELATIONSHIP_SUGGESTION_LIMIT,
) -> List[RelationshipSuggestion]:
    """Heuristic type-pair suggestions for nodes that are not yet connected."""
    snapshot = GraphSnapshot(nodes, edges)
    suggestions: List[RelationshipSuggestion] = []

    for source in nodes:
        if source.is_root:
            continue
        for target in nodes:
            if target.id == source.id or target.is_root:
                continue
            if snapshot.connected(source.id, target.id):
                continue
            for kind, reason in _suggest(source, target):
                suggestions.append(RelationshipSuggestion(source.id, target.id, kind, reason))
                if len(suggestions) >= limit:
                    return suggestions

    return suggestions


def _has_dependency_path(start: str, goal: str, dependency_map: Dict[str, List[str]]) -> bool:
    visited = {start}
    stack = [start]
    while stack:
        node = stack.pop()
        if node == goal:
            return True
        for dep in dependency_map.get(node, []):
            if dep not in visited:
                visited.add(dep)
                stack.append(dep)
    return False


def would_create_cycle(
    source_id: str,
    target_id: str,
    edges: Sequence[GraphEdge],
    relationship_type: RelationshipType,
) -> bool:
    """True when adding source -> target would close a hard-dependency loop."""
    relationship_type = RelationshipType.parse(relationship_type)
    if not relationship_type.is_hard:
        return False
    if source_id == target_id:
        return True

    # The new edge makes `dependent` wait on `dependency`; a loop closes if
    # `dependency` already waits (transitively) on `dependent`.
    if relationship_type == RelationshipType.DEPENDS_ON:
        dependent, dependency = source_id, target_id
    else:
        dependent, dependency = target_id, source_id

    return _has_dependency_path(dependency, dependent, _dependency_map(edges))


def filter_nodes_by_relationship(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    criteria: RelationshipFilter,
) -> List[str]:
    snapshot = GraphSnapshot(nodes, edges)
    in_cycle: Set[str] = set()
    if criteria.is_in_cycle:
        for cycle in detect_circular_dependencies(nodes, edges):
            in_cycle.update(cycle.cycle)

    on_path: Set[str] = set()
    if criteria.is_on_critical_path:
        critical = find_critical_path(nodes, edges)
        if critical is not None:
            on_path.update(critical.path)

    matched = []
    for node in nodes:
        if criteria.has_incoming is not None and snapshot.has_incoming(node.id) != criteria.has_incoming:
            continue
        if criteria.has_outgoing is not None and bool(snapshot.outgoing(node.id)) != criteria.has_outgoing:
            continue
        if criteria.relationship_type is not None and not any(
            e.relationship_type == criteria.relationship_type
            for e in [*snapshot.incoming(node.id), *snapshot.outgoing(node.id)]
        ):
            continue
        if criteria.is_in_cycle and node.id not in in_cycle:
            continue
        if criteria.is_on_critical_path and node.id not in on_path:
            continue
        matched.append(node.id)

    return matched
