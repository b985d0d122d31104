"""Custom metadata normalization for Gemini ``import_file``.

The browser form sends metadata either as a flat JSON object
(``{"category": "technical", "pages": 5}``) or as an already structured
list in the provider's key/value schema. Both end up as a list of
``{"key": ..., "string_value"|"numeric_value": ...}`` dicts, the format
the SDK's ``custom_metadata`` config accepts.

Malformed input never fails an upload: it is logged and dropped, and
the file is imported without metadata.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

logger = logging.getLogger(__name__)

# Provider field names in both JSON (camelCase) and SDK (snake_case) spelling.
_STRING_KEYS = ("string_value", "stringValue")
_NUMERIC_KEYS = ("numeric_value", "numericValue")


def _is_number(value: Any) -> bool:
    # bool is an int subclass but JSON true/false are not numbers
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_non_finite(value: Any) -> bool:
    return isinstance(value, float) and not math.isfinite(value)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON, and the provider cannot store them
    raise ValueError(f"{name} is not a valid JSON value")


def _coerce_string(value: Any) -> str:
    """String coercion matching what the browser form would have sent."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return json.dumps(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _from_mapping(data: Mapping[str, Any]) -> list[dict[str, Any]]:
    result: list[dict[str, Any]] = []
    for key, value in data.items():
        if _is_non_finite(value):
            logger.warning("Dropping metadata entry %r: %r is not a finite number", key, value)
            continue
        if _is_number(value):
            result.append({"key": str(key), "numeric_value": value})
        else:
            result.append({"key": str(key), "string_value": _coerce_string(value)})
    return result


def _first_present(entry: Mapping[str, Any], names: Sequence[str]) -> Any:
    for name in names:
        if entry.get(name) is not None:
            return entry[name]
    return None


def _from_entries(entries: Sequence[Any]) -> list[dict[str, Any]]:
    result: list[dict[str, Any]] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            logger.warning("Dropping metadata entry that is not an object: %r", entry)
            continue
        key = entry.get("key")
        if not isinstance(key, str) or not key:
            logger.warning("Dropping metadata entry without a key: %r", entry)
            continue

        string_value = _first_present(entry, _STRING_KEYS)
        numeric_value = _first_present(entry, _NUMERIC_KEYS)
        if (string_value is None) == (numeric_value is None):
            logger.warning(
                "Dropping metadata entry %r: needs exactly one of stringValue/numericValue",
                key,
            )
            continue

        if numeric_value is not None:
            if not _is_number(numeric_value) or _is_non_finite(numeric_value):
                logger.warning("Dropping metadata entry %r: numericValue is not a number", key)
                continue
            result.append({"key": key, "numeric_value": numeric_value})
        else:
            result.append({"key": key, "string_value": _coerce_string(string_value)})
    return result


def normalize_custom_metadata(raw: Any) -> list[dict[str, Any]] | None:
    """Normalize user supplied metadata into Gemini ``custom_metadata`` format.

    Accepts:

    * ``None`` or an empty string -> ``None``
    * a JSON string holding an object or an array
    * a mapping of key -> scalar; numbers become ``numeric_value``,
      everything else ``string_value`` via string coercion
    * a sequence of structured entries using either ``stringValue`` /
      ``numericValue`` or ``string_value`` / ``numeric_value``

    Args:
        raw: Metadata in any of the accepted forms.

    Returns:
        List of metadata dicts, or ``None`` when there is nothing usable.
        Invalid JSON or a JSON scalar is ignored with a warning.
    """
    if raw is None:
        return None

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw, parse_constant=_reject_constant)
        except ValueError as exc:
            logger.warning("Ignoring custom metadata that is not valid JSON: %s", exc)
            return None

    if isinstance(raw, Mapping):
        result = _from_mapping(raw)
    elif isinstance(raw, Sequence) and not isinstance(raw, str):
        result = _from_entries(raw)
    else:
        logger.warning(
            "Ignoring custom metadata of type %s; expected an object or an array",
            type(raw).__name__,
        )
        return None

    return result or None
