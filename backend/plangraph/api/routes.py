import logging

from fastapi import APIRouter

from plangraph.api.serializers import serialize_result
from plangraph.config import RELATIONSHIP_SUGGESTION_LIMIT
from plangraph.dependency import (
    build_dependency_map,
    detect_circular_dependencies,
    find_critical_path,
    get_dependency_chain,
    get_dependent_chain,
    get_relationship_stats,
    suggest_relationships,
    would_create_cycle,
)
from plangraph.hierarchy import format_edge_report, process_foundation_edges
from plangraph.matching import (
    create_associations_for_existing,
    find_existing_node,
    find_potential_conflicts,
    get_deduplication_summary,
)
from plangraph.schemas import (
    CycleCheckRequest,
    DeduplicateRequest,
    DependencyRequest,
    GraphRequest,
    SuggestRequest,
)
from plangraph.validation import (
    check_graph_structure,
    format_validation_result,
    validate_ring_hierarchy,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(e: Exception) -> dict:
    return {"status": "error", "message": str(e)}


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/graph/foundation-edges")
def foundation_edges(request: GraphRequest):
    try:
        nodes, edges = request.graph_nodes(), request.graph_edges()
        result = process_foundation_edges(nodes, edges)

        return {
            "status": "success",
            **serialize_result(result),
            "formatted_report": format_edge_report(result.report),
        }

    except Exception as e:
        logger.exception("[API] foundation-edges failed")
        return _error(e)


@router.post("/graph/validate")
def validate_graph(request: GraphRequest):
    try:
        nodes, edges = request.graph_nodes(), request.graph_edges()
        ring_result = validate_ring_hierarchy(nodes, edges)
        structure = check_graph_structure(nodes, edges)

        return {
            "status": "success",
            "is_valid": ring_result.is_valid and structure.is_valid,
            "ring_validation": serialize_result(ring_result),
            "structure": serialize_result(structure),
            "formatted_report": format_validation_result(ring_result),
        }

    except Exception as e:
        logger.exception("[API] validate failed")
        return _error(e)


@router.post("/graph/dependencies")
def analyze_dependencies(request: DependencyRequest):
    try:
        nodes, edges = request.graph_nodes(), request.graph_edges()
        critical = find_critical_path(nodes, edges, request.start_node_id)

        response = {
            "status": "success",
            "cycles": serialize_result(detect_circular_dependencies(nodes, edges)),
            "critical_path": serialize_result(critical),
            "stats": get_relationship_stats(edges),
        }

        if request.node_id:
            chain = build_dependency_map(nodes, edges).get(request.node_id)
            response["node"] = {
                **(chain.to_dict() if chain else {"node_id": request.node_id}),
                "dependency_chain": get_dependency_chain(request.node_id, edges),
                "dependent_chain": get_dependent_chain(request.node_id, edges),
            }

        return response

    except Exception as e:
        logger.exception("[API] dependencies failed")
        return _error(e)


@router.post("/graph/would-create-cycle")
def check_cycle(request: CycleCheckRequest):
    try:
        return {
            "status": "success",
            "would_create_cycle": would_create_cycle(
                request.source,
                request.target,
                request.graph_edges(),
                request.relationship_type,
            ),
        }

    except Exception as e:
        logger.exception("[API] would-create-cycle failed")
        return _error(e)


@router.post("/graph/suggest-relationships")
def suggest(request: SuggestRequest):
    try:
        limit = request.limit if request.limit is not None else RELATIONSHIP_SUGGESTION_LIMIT
        suggestions = suggest_relationships(request.graph_nodes(), request.graph_edges(), limit=limit)
        return {"status": "success", "suggestions": serialize_result(suggestions)}

    except Exception as e:
        logger.exception("[API] suggest-relationships failed")
        return _error(e)


@router.post("/graph/deduplicate")
def deduplicate(request: DeduplicateRequest):
    try:
        candidate = request.candidate.to_candidate()
        nodes = request.graph_nodes()
        result = find_existing_node(candidate, nodes)

        if result.found and request.parent_node_id:
            result.suggested_edges = create_associations_for_existing(
                result.existing_node, request.parent_node_id
            )

        return {
            "status": "success",
            **serialize_result(result),
            "conflicts": serialize_result(find_potential_conflicts(candidate, nodes)),
            "summary": get_deduplication_summary(candidate, result),
        }

    except Exception as e:
        logger.exception("[API] deduplicate failed")
        return _error(e)
