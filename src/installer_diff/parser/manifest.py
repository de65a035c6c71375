"""Resource decoding, ordering and encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable

import yaml

from installer_diff.config import OUTPUT_INDENT
from installer_diff.errors import DecodeError, EncodeError


@dataclass
class Resource:
    """A generic manifest document.

    Identity fields are read live from ``body`` so they reflect any
    normalization applied to it.
    """

    body: dict

    @property
    def metadata(self) -> dict:
        meta = self.body.get("metadata")
        return meta if isinstance(meta, dict) else {}

    @property
    def kind(self) -> str:
        return self.body.get("kind", "")

    @property
    def name(self) -> str:
        return self.metadata.get("name") or ""

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace") or ""

    @property
    def labels(self) -> dict:
        labels = self.metadata.get("labels")
        return labels if isinstance(labels, dict) else {}

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.name}"


def decode_resources(data: bytes | str) -> list[Resource]:
    """Parse a JSON array of manifest documents, keeping input order."""
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Input is not valid UTF-8: {e}") from e

    try:
        docs = json.loads(data, parse_constant=reject_constant)
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"Failed to unmarshal json: {e}") from e

    if not isinstance(docs, list):
        raise DecodeError(
            f"Expected a JSON array of resources, got {type(docs).__name__}"
        )

    return [_to_resource(doc, i) for i, doc in enumerate(docs)]


def parse_multi_doc(data: bytes | str) -> list[Resource]:
    """Split multi-doc YAML (---) into Resource objects.

    Empty documents are skipped; anything else that is not a manifest
    mapping is rejected.
    """
    try:
        docs = list(yaml.safe_load_all(data))
    except yaml.YAMLError as e:
        raise DecodeError(f"Failed to parse yaml: {e}") from e

    return [_to_resource(doc, i) for i, doc in enumerate(docs) if doc is not None]


def _to_resource(doc: Any, index: int) -> Resource:
    if not isinstance(doc, dict):
        raise DecodeError(
            f"Document {index} is a {type(doc).__name__}, expected an object"
        )
    kind = doc.get("kind")
    if not isinstance(kind, str) or not kind:
        raise DecodeError(f"Document {index} has no 'kind'")
    return Resource(body=doc)


def sort_resources(resources: Iterable[Resource]) -> list[Resource]:
    """Order resources by "kind:name". The sort is stable."""
    return sorted(resources, key=lambda res: res.key)


def reject_constant(token: str) -> Any:
    """Refuse the NaN and Infinity tokens Python's json accepts."""
    raise ValueError(f"{token} is not valid JSON")


def encode_resources(resources: Iterable[Resource]) -> str:
    """Serialize resources as an indented JSON array with sorted keys."""
    try:
        text = json.dumps(
            [res.body for res in resources],
            indent=OUTPUT_INDENT,
            sort_keys=True,
            ensure_ascii=False,
            allow_nan=False,
        )
        # lone surrogates survive json but cannot be written out
        text.encode("utf-8")
        return text
    except (TypeError, ValueError, RecursionError) as e:
        raise EncodeError(f"Unable to print output: {e}") from e
