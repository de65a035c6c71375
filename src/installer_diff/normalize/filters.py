"""Cross-kind noise removal."""

from __future__ import annotations

from installer_diff.config import DEFAULT_RULES, RuleSet
from installer_diff.normalize import shapes
from installer_diff.normalize.kinds import KIND_STRATEGIES
from installer_diff.normalize.labels import filter_labels
from installer_diff.parser.manifest import Resource

# Top-level fields removed from every resource.
NOISE_FIELDS: tuple[str, ...] = (
    "status",
    "automountServiceAccountToken",
    "imagePullSecrets",
)


def normalize(resource: Resource, rules: RuleSet = DEFAULT_RULES) -> Resource:
    """Strip noise from a resource in place, then apply its kind strategy."""
    meta = shapes.validate(shapes.ObjectMeta, resource.body.get("metadata") or {}, resource.key)
    meta.annotations = {}
    meta.creationTimestamp = None
    meta.labels = filter_labels(meta.labels, rules.labels)
    shapes.omit(meta, "namespace")
    resource.body["metadata"] = shapes.dump(meta)

    for key in NOISE_FIELDS:
        resource.body.pop(key, None)

    strategy = KIND_STRATEGIES.get(resource.kind)
    if strategy is not None:
        strategy(resource, rules)
    return resource
