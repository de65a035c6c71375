"""Pretty-printing of JSON documents embedded in ConfigMap and Secret data.

A payload stays a string holding JSON text; only its layout changes, so a
line-based diff can see inside it. Secret values are base64 encoded in
``data``; they are decoded and moved to ``stringData`` so the text is
readable. Running the printer again over its own output is a no-op.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging

from installer_diff.config import DEFAULT_RULES, PAYLOAD_INDENT, RuleSet
from installer_diff.errors import MalformedEmbeddedPayloadError
from installer_diff.normalize import shapes
from installer_diff.parser.manifest import Resource, reject_constant

logger = logging.getLogger(__name__)


def pretty_print_json(text: str) -> str:
    """Re-serialize JSON text with stable indentation and key order.

    Raises ValueError if ``text`` is not JSON, including the NaN and
    Infinity tokens.
    """
    return json.dumps(
        json.loads(text, parse_constant=reject_constant),
        indent=PAYLOAD_INDENT,
        sort_keys=True,
        ensure_ascii=False,
        allow_nan=False,
    )


def pretty_print_payloads(resource: Resource, rules: RuleSet = DEFAULT_RULES) -> Resource:
    """Reformat the configured payload fields of a resource in place."""
    fields = rules.payload_fields(resource.kind, resource.name)
    if not fields:
        return resource

    if resource.kind == "Secret":
        _print_secret(resource, fields)
    else:
        _print_config_map(resource, fields)
    return resource


def _print_config_map(resource: Resource, fields: tuple[str, ...]) -> None:
    cm = shapes.project(resource, shapes.ConfigMap)
    if not cm.data:
        return

    data = dict(cm.data)
    for name in fields:
        if name in data:
            data[name] = _reformat(resource, name, data[name])
    cm.data = data
    shapes.flatten(resource, cm)


def _print_secret(resource: Resource, fields: tuple[str, ...]) -> None:
    secret = shapes.project(resource, shapes.Secret)
    data = dict(secret.data or {})
    string_data = dict(secret.stringData or {})

    touched = False
    for name in fields:
        if name in data:
            string_data[name] = _reformat(resource, name, _b64decode(resource, name, data.pop(name)))
            touched = True
        elif name in string_data:
            string_data[name] = _reformat(resource, name, string_data[name])
            touched = True

    if not touched:
        return
    if secret.data is not None:
        secret.data = data
    secret.stringData = string_data
    shapes.flatten(resource, secret)


def _reformat(resource: Resource, field: str, text: str) -> str:
    try:
        pretty = pretty_print_json(text)
    except (ValueError, RecursionError) as e:
        raise MalformedEmbeddedPayloadError(resource.key, field, str(e) or type(e).__name__) from e
    logger.debug("Pretty-printed %s of %s", field, resource.key)
    return pretty


def _b64decode(resource: Resource, field: str, value: str) -> str:
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise MalformedEmbeddedPayloadError(resource.key, field, f"bad base64: {e}") from e
