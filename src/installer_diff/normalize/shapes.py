"""Typed views of the manifest kinds that need kind-specific handling.

Each shape only declares the fields the normalizer touches. Everything else
is kept as an extra field, so ``project`` followed by ``flatten`` gives back
the original document. Dumps use ``exclude_unset``: fields absent from the
input stay absent, while a field explicitly cleared to ``None`` is written
as ``null``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from installer_diff.errors import ProjectionError
from installer_diff.parser.manifest import Resource


class K8sModel(BaseModel):
    """Shared base for all shapes: unknown fields are kept verbatim."""

    model_config = ConfigDict(extra="allow")


class ObjectMeta(K8sModel):
    name: Optional[str] = None
    namespace: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None
    creationTimestamp: Optional[str] = None


class LocalObjectReference(K8sModel):
    name: Optional[str] = None


class PodSpec(K8sModel):
    imagePullSecrets: Optional[List[LocalObjectReference]] = None


class PodTemplateSpec(K8sModel):
    metadata: Optional[ObjectMeta] = None
    spec: Optional[PodSpec] = None


class DeploymentSpec(K8sModel):
    selector: Optional[Dict[str, Any]] = None
    template: Optional[PodTemplateSpec] = None


class Deployment(K8sModel):
    apiVersion: Optional[str] = None
    kind: Optional[str] = None
    metadata: Optional[ObjectMeta] = None
    spec: Optional[DeploymentSpec] = None


class ServiceSpec(K8sModel):
    selector: Optional[Dict[str, str]] = None
    type: Optional[str] = None


class Service(K8sModel):
    apiVersion: Optional[str] = None
    kind: Optional[str] = None
    metadata: Optional[ObjectMeta] = None
    spec: Optional[ServiceSpec] = None


class PolicyRule(K8sModel):
    apiGroups: Optional[List[str]] = None
    resources: Optional[List[str]] = None
    resourceNames: Optional[List[str]] = None
    nonResourceURLs: Optional[List[str]] = None
    verbs: Optional[List[str]] = None


class ClusterRole(K8sModel):
    apiVersion: Optional[str] = None
    kind: Optional[str] = None
    metadata: Optional[ObjectMeta] = None
    rules: Optional[List[PolicyRule]] = None


class ConfigMap(K8sModel):
    apiVersion: Optional[str] = None
    kind: Optional[str] = None
    metadata: Optional[ObjectMeta] = None
    data: Optional[Dict[str, str]] = None


class Secret(K8sModel):
    apiVersion: Optional[str] = None
    kind: Optional[str] = None
    metadata: Optional[ObjectMeta] = None
    type: Optional[str] = None
    # base64 encoded values
    data: Optional[Dict[str, str]] = None
    stringData: Optional[Dict[str, str]] = None


M = TypeVar("M", bound=K8sModel)


def validate(shape: type[M], doc: Any, key: str) -> M:
    """Validate any document (or sub-document) into a shape."""
    try:
        return shape.model_validate(doc)
    except ValidationError as e:
        raise ProjectionError(key, shape.__name__, _summarize(e)) from e


def dump(model: K8sModel) -> dict:
    return model.model_dump(mode="json", exclude_unset=True)


def project(resource: Resource, shape: type[M]) -> M:
    """Materialize a typed view of ``resource``."""
    return validate(shape, resource.body, resource.key)


def flatten(resource: Resource, model: K8sModel) -> Resource:
    """Write a typed view back over the resource's generic fields."""
    resource.body = dump(model)
    return resource


def omit(model: K8sModel, *fields: str) -> None:
    """Reset fields to unset so they are left out of the next dump."""
    for name in fields:
        setattr(model, name, None)
        model.model_fields_set.discard(name)


def _summarize(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
