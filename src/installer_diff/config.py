"""Default rule sets and the optional YAML rules file."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from installer_diff.errors import ConfigError

# Label keys injected by the templating layer, dropped wherever labels appear.
EXCLUDED_LABEL_KEYS: frozenset[str] = frozenset({
    "stage",
    "kind",
    "chart",
    "heritage",
    "release",
})

EXCLUDED_LABEL_PREFIXES: tuple[str, ...] = (
    "helm.sh/",
    "app.kubernetes.io/",
)

# Cluster-scoped RBAC and certificate kinds, infrastructure noise for a comparison.
EXCLUDED_KINDS: frozenset[str] = frozenset({
    "ClusterRole",
    "ClusterRoleBinding",
    "PodSecurityPolicy",
    "Certificate",
    "Issuer",
})

# Third-party subsystems, compared through their own charts.
EXCLUDED_COMPONENTS: frozenset[str] = frozenset({
    "docker-registry",
    "minio",
    "mysql",
    "rabbitmq",
    "jaeger-operator",
})

# Resources of excluded subsystems that carry no component label.
EXCLUDED_NAMES: frozenset[str] = frozenset({
    "docker-registry-config",
    "minio-config",
    "mysql-initdb",
    "rabbitmq-definitions",
})

# Bookkeeping ConfigMaps written by the installer itself.
EXCLUDED_CONFIGMAPS: frozenset[str] = frozenset({
    "gitpod",
    "gitpod-app",
})

# (kind, name) -> data fields holding serialized JSON documents.
EMBEDDED_PAYLOADS: Mapping[tuple[str, str], tuple[str, ...]] = MappingProxyType({
    ("ConfigMap", "auth-providers-config"): ("auth-providers.json",),
    ("ConfigMap", "blobserve-config"): ("config.json",),
    ("ConfigMap", "content-service-config"): ("config.json",),
    ("ConfigMap", "image-builder-mk3-config"): ("image-builder.json",),
    ("ConfigMap", "registry-facade-config"): ("config.json",),
    ("ConfigMap", "server-config"): ("config.json",),
    ("ConfigMap", "workspace-template"): (
        "default.yaml",
        "imagebuild.yaml",
        "prebuild.yaml",
        "probe.yaml",
        "regular.yaml",
    ),
    ("ConfigMap", "ws-daemon-config"): ("config.json",),
    ("ConfigMap", "ws-manager-bridge-config"): ("ws-manager-bridge.json",),
    ("ConfigMap", "ws-manager-config"): ("config.json",),
    ("ConfigMap", "ws-proxy-config"): ("config.json",),
    ("Secret", "db-sync-config"): ("db-sync-gitpod.json", "db-sync-sessions.json"),
    ("Secret", "kedge-config"): ("config.json",),
    ("Secret", "kedge-config-gitpod"): ("config.json",),
})

# Indentation used when re-serializing embedded payloads.
PAYLOAD_INDENT = 1

# Indentation of the emitted resource array.
OUTPUT_INDENT = 2


@dataclass(frozen=True)
class LabelRules:
    keys: frozenset[str] = EXCLUDED_LABEL_KEYS
    prefixes: tuple[str, ...] = EXCLUDED_LABEL_PREFIXES

    def is_excluded(self, key: str) -> bool:
        return key in self.keys or key.startswith(self.prefixes)


@dataclass(frozen=True)
class InclusionRules:
    kinds: frozenset[str] = EXCLUDED_KINDS
    components: frozenset[str] = EXCLUDED_COMPONENTS
    names: frozenset[str] = EXCLUDED_NAMES
    configmaps: frozenset[str] = EXCLUDED_CONFIGMAPS


@dataclass(frozen=True)
class RuleSet:
    """All constant data consulted by the pipeline."""

    labels: LabelRules = field(default_factory=LabelRules)
    inclusion: InclusionRules = field(default_factory=InclusionRules)
    payloads: Mapping[tuple[str, str], tuple[str, ...]] = field(
        default_factory=lambda: EMBEDDED_PAYLOADS
    )

    def payload_fields(self, kind: str, name: str) -> tuple[str, ...]:
        return self.payloads.get((kind, name), ())


DEFAULT_RULES = RuleSet()

_SECTIONS = {"labels", "exclude", "embedded_payloads"}


def load_rules(path: str | None = None) -> RuleSet:
    """Build a RuleSet from a YAML rules file.

    Sections present in the file replace the matching default section;
    missing sections keep their defaults. Without a path the defaults are
    returned unchanged.
    """
    if path is None:
        return DEFAULT_RULES

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read rules file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Rules file {path} is not valid YAML: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Rules file {path} must contain a mapping")
    unknown = set(raw) - _SECTIONS
    if unknown:
        raise ConfigError(f"Unknown sections in {path}: {', '.join(sorted(unknown))}")

    return parse_rules(raw)


def parse_rules(raw: Mapping[str, Any]) -> RuleSet:
    """Build a RuleSet from an already loaded mapping."""
    labels = DEFAULT_RULES.labels
    if "labels" in raw:
        section = _section(raw, "labels", {"keys", "prefixes"})
        labels = LabelRules(
            keys=frozenset(_strings(section, "keys", "labels", labels.keys)),
            prefixes=tuple(_strings(section, "prefixes", "labels", labels.prefixes)),
        )

    inclusion = DEFAULT_RULES.inclusion
    if "exclude" in raw:
        section = _section(raw, "exclude", {"kinds", "components", "names", "configmaps"})
        inclusion = InclusionRules(
            kinds=frozenset(_strings(section, "kinds", "exclude", inclusion.kinds)),
            components=frozenset(_strings(section, "components", "exclude", inclusion.components)),
            names=frozenset(_strings(section, "names", "exclude", inclusion.names)),
            configmaps=frozenset(_strings(section, "configmaps", "exclude", inclusion.configmaps)),
        )

    payloads = DEFAULT_RULES.payloads
    if "embedded_payloads" in raw:
        payloads = MappingProxyType(_payloads(raw["embedded_payloads"]))

    return RuleSet(labels=labels, inclusion=inclusion, payloads=payloads)


def dump_rules(rules: RuleSet) -> str:
    """Render a RuleSet in the rules file format."""
    doc = {
        "labels": {
            "keys": sorted(rules.labels.keys),
            "prefixes": list(rules.labels.prefixes),
        },
        "exclude": {
            "kinds": sorted(rules.inclusion.kinds),
            "components": sorted(rules.inclusion.components),
            "names": sorted(rules.inclusion.names),
            "configmaps": sorted(rules.inclusion.configmaps),
        },
        "embedded_payloads": [
            {"kind": kind, "name": name, "fields": list(fields)}
            for (kind, name), fields in sorted(rules.payloads.items())
        ],
    }
    return yaml.safe_dump(doc, sort_keys=False)


def _section(raw: Mapping[str, Any], name: str, allowed: set[str]) -> Mapping[str, Any]:
    section = raw[name] or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    unknown = set(section) - allowed
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}': {', '.join(sorted(unknown))}")
    return section


def _strings(section: Mapping[str, Any], key: str, where: str, default: Any) -> list[str]:
    if key not in section:
        return list(default)
    values = section[key] or []
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ConfigError(f"'{where}.{key}' must be a list of strings")
    return values


def _payloads(entries: Any) -> dict[tuple[str, str], tuple[str, ...]]:
    if not isinstance(entries, list):
        raise ConfigError("'embedded_payloads' must be a list")

    result: dict[tuple[str, str], tuple[str, ...]] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError("'embedded_payloads' entries must be mappings")
        kind = entry.get("kind")
        name = entry.get("name")
        if not isinstance(kind, str) or not isinstance(name, str):
            raise ConfigError("'embedded_payloads' entries need a string 'kind' and 'name'")
        fields = _strings(entry, "fields", "embedded_payloads", ())
        result[(kind, name)] = result.get((kind, name), ()) + tuple(fields)
    return result
