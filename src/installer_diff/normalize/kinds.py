"""Kind-specific normalization strategies."""

from __future__ import annotations

from typing import Callable

from installer_diff.config import RuleSet
from installer_diff.normalize import shapes
from installer_diff.normalize.labels import filter_labels
from installer_diff.parser.manifest import Resource


def normalize_service(resource: Resource, rules: RuleSet) -> None:
    """Selector labels carry the same injected keys as metadata labels."""
    svc = shapes.project(resource, shapes.Service)
    # ExternalName and headless Services may have no selector at all
    if svc.spec is None or svc.spec.selector is None:
        return
    svc.spec.selector = filter_labels(svc.spec.selector, rules.labels)
    shapes.flatten(resource, svc)


def normalize_deployment(resource: Resource, rules: RuleSet) -> None:
    """Clean the pod template the same way the top-level metadata is cleaned."""
    dep = shapes.project(resource, shapes.Deployment)
    spec = dep.spec or shapes.DeploymentSpec()
    template = spec.template or shapes.PodTemplateSpec()
    meta = template.metadata or shapes.ObjectMeta()

    meta.labels = filter_labels(meta.labels, rules.labels)
    meta.creationTimestamp = None
    if template.spec is not None:
        shapes.omit(template.spec, "imagePullSecrets")

    template.metadata = meta
    spec.template = template
    dep.spec = spec
    shapes.flatten(resource, dep)


def normalize_cluster_role(resource: Resource, rules: RuleSet) -> None:
    role = shapes.project(resource, shapes.ClusterRole)
    meta = role.metadata or shapes.ObjectMeta()
    meta.labels = {}
    role.metadata = meta
    shapes.flatten(resource, role)


# Strategies registry, keyed by kind
KIND_STRATEGIES: dict[str, Callable[[Resource, RuleSet], None]] = {
    "Service": normalize_service,
    "Deployment": normalize_deployment,
    "ClusterRole": normalize_cluster_role,
}
