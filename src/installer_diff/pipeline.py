"""Normalization pipeline over a decoded resource collection."""

from __future__ import annotations

import logging

from installer_diff.config import DEFAULT_RULES, RuleSet
from installer_diff.normalize.filters import normalize
from installer_diff.normalize.payload import pretty_print_payloads
from installer_diff.parser.manifest import (
    Resource,
    decode_resources,
    encode_resources,
    parse_multi_doc,
    sort_resources,
)
from installer_diff.selection.inclusion import should_include

logger = logging.getLogger(__name__)


def process(
    resources: list[Resource],
    rules: RuleSet = DEFAULT_RULES,
    exclude: bool = True,
) -> list[Resource]:
    """Sort, normalize, filter and pretty-print a collection.

    The first failing resource aborts the whole batch.
    """
    results: list[Resource] = []
    for res in sort_resources(resources):
        normalize(res, rules)
        if exclude and not should_include(res, rules):
            continue
        pretty_print_payloads(res, rules)
        results.append(res)

    logger.info("Kept %d of %d resources", len(results), len(resources))
    return results


def filter_manifests(
    data: bytes | str,
    rules: RuleSet = DEFAULT_RULES,
    exclude: bool = True,
    input_format: str = "json",
) -> str:
    """Decode, process and re-encode a manifest set."""
    if input_format == "yaml":
        resources = parse_multi_doc(data)
    else:
        resources = decode_resources(data)
    return encode_resources(process(resources, rules, exclude=exclude))
