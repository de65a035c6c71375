"""Exclusion rules deciding which resources take part in the comparison."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from installer_diff.config import DEFAULT_RULES, RuleSet
from installer_diff.parser.manifest import Resource

logger = logging.getLogger(__name__)


def check_kind(resource: Resource, rules: RuleSet) -> Optional[str]:
    if resource.kind in rules.inclusion.kinds:
        return f"kind {resource.kind} is excluded"
    return None


def check_component(resource: Resource, rules: RuleSet) -> Optional[str]:
    component = resource.labels.get("component")
    if isinstance(component, str) and component in rules.inclusion.components:
        return f"component {component} is excluded"
    return None


def check_name(resource: Resource, rules: RuleSet) -> Optional[str]:
    if resource.name in rules.inclusion.names:
        return f"name {resource.name} is excluded"
    return None


def check_installer_configmap(resource: Resource, rules: RuleSet) -> Optional[str]:
    """Installer bookkeeping ConfigMaps."""
    if resource.kind == "ConfigMap" and resource.name in rules.inclusion.configmaps:
        return f"installer ConfigMap {resource.name}"
    return None


# Rules registry
EXCLUSION_RULES: list[Callable[[Resource, RuleSet], Optional[str]]] = [
    check_kind,
    check_component,
    check_name,
    check_installer_configmap,
]


def exclusion_reason(resource: Resource, rules: RuleSet = DEFAULT_RULES) -> Optional[str]:
    """Return why a resource is excluded, or None if it is kept."""
    for rule in EXCLUSION_RULES:
        reason = rule(resource, rules)
        if reason is not None:
            return reason
    return None


def should_include(resource: Resource, rules: RuleSet = DEFAULT_RULES) -> bool:
    reason = exclusion_reason(resource, rules)
    if reason is not None:
        logger.debug("Dropping %s: %s", resource.key, reason)
        return False
    return True
