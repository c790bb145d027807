"""Turn pydantic validation errors into short client-facing messages.

Messages take the form ``"<field> is required"``, ``"<field> is too short"``,
``"<field> is too long"`` or ``"<field> validation failed"``.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

# Location prefixes FastAPI adds in front of the field name
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}

_MESSAGE_BY_TYPE = {
    "missing": "is required",
    "string_too_short": "is too short",
    "too_short": "is too short",
    "string_too_long": "is too long",
    "too_long": "is too long",
}


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc if part not in _LOCATION_PREFIXES]
    if not parts:
        return "body"
    return ".".join(parts)


def normalize_validation_errors(errors: Iterable[Mapping[str, Any]]) -> list[str]:
    """Map pydantic error dicts (``exc.errors()``) to readable messages.

    Examples:
        >>> normalize_validation_errors([{"type": "missing", "loc": ("body", "title")}])
        ['title is required']
    """
    messages: list[str] = []
    for error in errors:
        name = _field_name(error.get("loc", ()))
        suffix = _MESSAGE_BY_TYPE.get(error.get("type", ""), "validation failed")
        message = f"{name} {suffix}"
        if message not in messages:
            messages.append(message)
    return messages or ["validation failed"]
