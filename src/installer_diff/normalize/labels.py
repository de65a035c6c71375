"""Label filtering."""

from __future__ import annotations

from typing import Mapping

from installer_diff.config import DEFAULT_RULES, LabelRules


def filter_labels(
    labels: Mapping[str, str] | None, rules: LabelRules = DEFAULT_RULES.labels
) -> dict[str, str]:
    """Drop labels injected by the templating layer. Returns a new dict."""
    return {k: v for k, v in (labels or {}).items() if not rules.is_excluded(k)}
