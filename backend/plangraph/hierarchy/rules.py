"""
Association Rules - Where each leaf node belongs in the ring hierarchy.

Two lookup stages, always applied in this order:
1. ASSOCIATION_RULES, keyed by well-known node ids
2. default_rule_for_type(), keyed by node type and routed by id keywords

Hierarchy:
- R0 (center) -> R1 (classifications)
- R1 (classifications) -> R2 (domain parents)
- R2 (domain parents) -> R3+ (feature nodes)
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from plangraph.graph.model import Domain, NodeType


INTERMEDIATE_RING = 2


@dataclass(frozen=True)
class ParentSpec:
    """Description of a domain-parent node a leaf should hang under"""
    type: str
    label: str
    domain: str
    ring: int = INTERMEDIATE_RING

    @property
    def synthetic_id(self) -> str:
        """Stable id for an intermediate that does not exist yet."""
        slug = re.sub(r"[^a-z0-9]+", "-", self.label.lower()).strip("-")
        return f"{self.type}-{slug}"


@dataclass(frozen=True)
class AssociationRule:
    node_types: Tuple[str, ...]
    ideal_parent: ParentSpec
    fallback_parents: Tuple[ParentSpec, ...] = ()
    create_intermediate_if_missing: bool = False


# ============================================================
# DOMAIN PARENTS (R2)
# ============================================================

_DOMAIN_PARENT = NodeType.DOMAIN_PARENT.value

FRONTEND_UI = ParentSpec(_DOMAIN_PARENT, "Frontend & UI", Domain.PRODUCT.value)
BACKEND_APIS = ParentSpec(_DOMAIN_PARENT, "Backend & APIs", Domain.TECH.value)
DATA_AI = ParentSpec(_DOMAIN_PARENT, "Data & AI", Domain.TECH.value)
INFRASTRUCTURE_PLATFORM = ParentSpec(_DOMAIN_PARENT, "Infrastructure & Platform", Domain.TECH.value)
OBSERVABILITY_MONITORING = ParentSpec(_DOMAIN_PARENT, "Observability & Monitoring", Domain.TECH.value)
SECURITY_COMPLIANCE = ParentSpec(_DOMAIN_PARENT, "Security & Compliance", Domain.TECH.value)


def _rule(node_types, ideal: ParentSpec, *fallbacks: ParentSpec) -> AssociationRule:
    return AssociationRule(
        node_types=tuple(t.value if isinstance(t, NodeType) else t for t in node_types),
        ideal_parent=ideal,
        fallback_parents=tuple(fallbacks),
        create_intermediate_if_missing=True,
    )


# ============================================================
# STAGE 1: PER-ID RULES
# ============================================================

ASSOCIATION_RULES: Mapping[str, AssociationRule] = MappingProxyType({
    # Backend
    "backend-api-server": _rule([NodeType.BACKEND], BACKEND_APIS),
    "backend-server": _rule([NodeType.BACKEND], BACKEND_APIS),
    "backend-domain-services": _rule([NodeType.BACKEND], BACKEND_APIS),
    "backend-authentication": _rule([NodeType.BACKEND], BACKEND_APIS, SECURITY_COMPLIANCE),
    "backend-identity-provider": _rule([NodeType.BACKEND], SECURITY_COMPLIANCE, BACKEND_APIS),

    # Frontend
    "frontend-app-shell": _rule([NodeType.FRONTEND], FRONTEND_UI),
    "frontend-mobile-app": _rule([NodeType.FRONTEND], FRONTEND_UI),
    "frontend-state-management": _rule([NodeType.FRONTEND], FRONTEND_UI),

    # Data
    "data-warehouse": _rule([NodeType.BACKEND, NodeType.DATA], DATA_AI),
    "data-pipeline": _rule([NodeType.BACKEND, NodeType.DATA], DATA_AI),

    # Infrastructure
    "infrastructure-kubernetes": _rule([NodeType.INFRASTRUCTURE], INFRASTRUCTURE_PLATFORM),
    "infrastructure-database": _rule([NodeType.INFRASTRUCTURE], INFRASTRUCTURE_PLATFORM),

    # Observability
    "observability-monitoring": _rule(
        [NodeType.INFRASTRUCTURE], OBSERVABILITY_MONITORING, INFRASTRUCTURE_PLATFORM
    ),

    # Security
    "security-compliance": _rule([NodeType.BACKEND], SECURITY_COMPLIANCE),
})


# ============================================================
# STAGE 2: PER-TYPE DEFAULTS
# ============================================================

@dataclass(frozen=True)
class KeywordRoute:
    """Send a node to `ideal` when its id starts with a prefix or contains a keyword"""
    ideal: ParentSpec
    keywords: Tuple[str, ...] = ()
    prefixes: Tuple[str, ...] = ()
    fallbacks: Tuple[ParentSpec, ...] = ()

    def matches(self, text: str) -> bool:
        return (
            any(text.startswith(p) for p in self.prefixes)
            or any(k in text for k in self.keywords)
        )


# Routes are checked in order; the trailing ParentSpec is the type's default.
_TYPE_ROUTES = {
    NodeType.FRONTEND.value: ((), FRONTEND_UI),
    NodeType.DATA.value: ((), DATA_AI),
    NodeType.BACKEND.value: (
        (
            KeywordRoute(SECURITY_COMPLIANCE, ("auth", "identity", "security"), fallbacks=(BACKEND_APIS,)),
        ),
        BACKEND_APIS,
    ),
    NodeType.REQUIREMENT.value: (
        (
            KeywordRoute(FRONTEND_UI, ("frontend",)),
            KeywordRoute(
                BACKEND_APIS,
                ("backend", "queue", "cache", "store", "bus", "webhook",
                 "payment", "job", "gateway", "mesh"),
                prefixes=("data-",),
                fallbacks=(DATA_AI,),
            ),
            KeywordRoute(DATA_AI, ("data", "warehouse")),
            KeywordRoute(
                INFRASTRUCTURE_PLATFORM,
                ("infra", "container", "kubernetes", "cicd", "deployment"),
            ),
            KeywordRoute(
                OBSERVABILITY_MONITORING,
                ("observability", "logging", "metric", "tracing", "monitoring",
                 "alert", "dashboard"),
                prefixes=("obs-",),
            ),
            KeywordRoute(
                SECURITY_COMPLIANCE,
                ("security", "audit", "compliance", "privacy", "encryption",
                 "zerotrust", "threat"),
                prefixes=("sec-",),
            ),
        ),
        BACKEND_APIS,
    ),
    NodeType.DOC.value: (
        (
            KeywordRoute(DATA_AI, ("governance", "data")),
            KeywordRoute(INFRASTRUCTURE_PLATFORM, ("infra", "iac")),
            KeywordRoute(SECURITY_COMPLIANCE, ("privacy", "security", "compliance")),
        ),
        BACKEND_APIS,
    ),
    NodeType.FEATURE.value: (
        (
            KeywordRoute(FRONTEND_UI, ("frontend", "ui", "web", "auth-ui", "dashboard", "form")),
            KeywordRoute(BACKEND_APIS, ("backend", "api", "service", "handler", "gateway", "middleware")),
            KeywordRoute(DATA_AI, ("data", "ml", "analytics", "pipeline", "warehouse", "etl")),
            KeywordRoute(
                INFRASTRUCTURE_PLATFORM,
                ("infra", "kubernetes", "docker", "cluster", "load-balancer", "storage", "database"),
            ),
            KeywordRoute(
                OBSERVABILITY_MONITORING,
                ("monitoring", "logging", "tracing", "prometheus", "grafana", "alert", "metric"),
            ),
            KeywordRoute(
                SECURITY_COMPLIANCE,
                ("security", "encryption", "auth", "compliance", "access", "certificate"),
            ),
        ),
        BACKEND_APIS,
    ),
}


def _label_key(label: str) -> str:
    return re.sub(r"\s+", "-", label.strip().lower())


def default_rule_for_type(
    node_type: Optional[str],
    node_id: str,
    label: str = "",
) -> Optional[AssociationRule]:
    """
    Rule for a node with no id-specific entry.

    Routes are matched against the node id first and the label second.
    Unknown types get no rule.
    """
    if not node_type or node_type not in _TYPE_ROUTES:
        return None

    routes, default_parent = _TYPE_ROUTES[node_type]
    texts = [node_id.lower()]
    if label:
        texts.append(_label_key(label))

    for text in texts:
        for route in routes:
            if route.matches(text):
                return _rule([node_type], route.ideal, *route.fallbacks)

    return _rule([node_type], default_parent)


def resolve_rule(
    node_id: str,
    node_type: Optional[str] = None,
    label: str = "",
    rules: Optional[Mapping[str, AssociationRule]] = None,
) -> Optional[AssociationRule]:
    """Specific beats generic: per-id table first, per-type default second."""
    table = ASSOCIATION_RULES if rules is None else rules
    rule = table.get(node_id)
    if rule is not None:
        return rule
    return default_rule_for_type(node_type, node_id, label)
