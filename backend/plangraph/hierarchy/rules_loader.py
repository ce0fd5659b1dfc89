"""
Loads extra per-id association rules from a YAML file.

File shape:

    rules:
      payments-service:
        node_types: [backend]
        ideal_parent:
          type: domain-parent
          label: Payments & Billing
          domain: business
          ring: 2
        fallback_parents:
          - {type: domain-parent, label: Backend & APIs, domain: tech}
        create_intermediate_if_missing: true

Entries override built-in rules with the same id.
"""

import logging
import os
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import yaml

from plangraph.config import ASSOCIATION_RULES_PATH
from plangraph.hierarchy.rules import (
    ASSOCIATION_RULES,
    INTERMEDIATE_RING,
    AssociationRule,
    ParentSpec,
)

logger = logging.getLogger(__name__)


class RuleFileError(ValueError):
    """The association rules file is missing or malformed."""


def _parse_parent(data: Any, path: str, rule_id: str) -> ParentSpec:
    if not isinstance(data, dict):
        raise RuleFileError(f"{path}: rule '{rule_id}' has a parent that is not a mapping")
    try:
        return ParentSpec(
            type=str(data["type"]),
            label=str(data["label"]),
            domain=str(data["domain"]),
            ring=int(data.get("ring", INTERMEDIATE_RING)),
        )
    except KeyError as e:
        raise RuleFileError(f"{path}: rule '{rule_id}' parent is missing {e}") from e


def _parse_rule(rule_id: str, data: Any, path: str) -> AssociationRule:
    if not isinstance(data, dict):
        raise RuleFileError(f"{path}: rule '{rule_id}' must be a mapping")
    if "ideal_parent" not in data:
        raise RuleFileError(f"{path}: rule '{rule_id}' has no ideal_parent")

    return AssociationRule(
        node_types=tuple(str(t) for t in data.get("node_types") or ()),
        ideal_parent=_parse_parent(data["ideal_parent"], path, rule_id),
        fallback_parents=tuple(
            _parse_parent(p, path, rule_id) for p in data.get("fallback_parents") or ()
        ),
        create_intermediate_if_missing=bool(data.get("create_intermediate_if_missing", True)),
    )


def load_rules_file(path: str) -> Dict[str, AssociationRule]:
    """Parse a rules file into {node_id: AssociationRule}."""
    if not os.path.exists(path):
        raise RuleFileError(f"Association rules file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            document = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuleFileError(f"{path}: invalid YAML: {e}") from e

    entries = document.get("rules") if isinstance(document, dict) else None
    if entries is None:
        return {}
    if not isinstance(entries, dict):
        raise RuleFileError(f"{path}: 'rules' must be a mapping of node id to rule")

    rules = {str(rule_id): _parse_rule(str(rule_id), data, path) for rule_id, data in entries.items()}
    logger.info("[RULES] Loaded %d association rules from %s", len(rules), path)
    return rules


def build_rule_table(path: Optional[str] = None) -> Mapping[str, AssociationRule]:
    """Built-in rules merged with the file at `path` (if any)."""
    if not path:
        return ASSOCIATION_RULES

    merged = dict(ASSOCIATION_RULES)
    for rule_id, rule in load_rules_file(path).items():
        if rule_id in merged:
            logger.info("[RULES] Overriding built-in rule '%s'", rule_id)
        merged[rule_id] = rule
    return MappingProxyType(merged)


@lru_cache(maxsize=1)
def get_association_rules() -> Mapping[str, AssociationRule]:
    """Rule table for the configured ASSOCIATION_RULES_PATH, loaded once."""
    return build_rule_table(ASSOCIATION_RULES_PATH or None)
