"""Error taxonomy. Every error is fatal for the whole batch."""

from __future__ import annotations


class InstallerDiffError(Exception):
    """Base class for all errors surfaced to the operator."""


class DecodeError(InstallerDiffError):
    """Raised when the input is not a well-formed array of resources."""


class ProjectionError(InstallerDiffError):
    """Raised when a resource cannot be coerced into its typed shape."""

    def __init__(self, key: str, shape: str, detail: str) -> None:
        self.key = key
        self.shape = shape
        self.detail = detail
        super().__init__(f"Cannot read {key} as {shape}: {detail}")


class MalformedEmbeddedPayloadError(InstallerDiffError):
    """Raised when a field expected to hold JSON text does not parse."""

    def __init__(self, key: str, field: str, detail: str) -> None:
        self.key = key
        self.field = field
        self.detail = detail
        super().__init__(f"Field {field!r} of {key} is not valid JSON: {detail}")


class EncodeError(InstallerDiffError):
    """Raised when the final collection cannot be serialized."""


class ConfigError(InstallerDiffError):
    """Raised when a rules file is unreadable or malformed."""
