"""Error taxonomy for normalization and rule conversion."""

from __future__ import annotations

from typing import Any


class DriftError(Exception):
    """Base class for all errors raised by dash0-drift."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class MalformedInput(DriftError):
    """Raised when a document cannot be parsed, or is not shaped like a document."""


class UnsupportedShape(DriftError):
    """Raised when a rule document has the wrong number of groups or rules."""


class InvalidFieldValue(DriftError):
    """Raised when a field does not parse as the type it is meant to carry."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"invalid value for {field}: {value!r} ({reason})",
            details={"field": field, "value": value},
        )
