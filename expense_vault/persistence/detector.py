"""
Stored Format Detection

Two on-disk shapes exist for every collection:

- LEGACY: the bare payload written before versioning existed (a JSON
  array for list collections, a bare number for the budget). It is
  treated as version 0.
- VERSIONED: an envelope `{"version": <int>, "<payload key>": <payload>}`.

Anything else is UNRECOGNIZED and is never migrated.
"""

import json
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

from expense_vault.persistence.errors import ParseFailure


VERSION_FIELD = "version"
LEGACY_VERSION = 0


class FormatKind(str, Enum):
    """Shape of a decoded stored value."""
    LEGACY = "legacy"
    VERSIONED = "versioned"
    UNRECOGNIZED = "unrecognized"


class DetectedFormat(BaseModel):
    """Result of classifying a decoded stored value."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: FormatKind
    version: Optional[int] = None
    payload: Any = None
    problem: Optional[str] = None

    @property
    def is_recognized(self) -> bool:
        return self.kind != FormatKind.UNRECOGNIZED


def _is_instance(value: Any, types: tuple[type, ...]) -> bool:
    # JSON true/false decode to bool, which is an int subclass
    if isinstance(value, bool) and bool not in types:
        return False
    return isinstance(value, types)


def _type_names(types: tuple[type, ...]) -> str:
    return " or ".join(t.__name__ for t in types)


def decode_stored_value(raw: str) -> Any:
    """
    Parse stored text into an untyped Python value.

    Raises:
        ParseFailure: If the text is not JSON
    """
    if raw.startswith("\ufeff"):
        raw = raw[1:]
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ParseFailure(f"Invalid JSON: {e}") from e


def detect_format(
    value: Any,
    payload_key: str,
    payload_type: Union[type, tuple[type, ...]],
    legacy_types: tuple[type, ...] = (list,),
) -> DetectedFormat:
    """
    Classify a decoded stored value without modifying it.

    Args:
        value: Output of decode_stored_value
        payload_key: Envelope field that holds the payload
        payload_type: Type(s) the envelope payload must have
        legacy_types: Bare value types accepted as the version-0 shape

    Returns:
        DetectedFormat with the implied version and the payload
    """
    if not isinstance(payload_type, tuple):
        payload_type = (payload_type,)

    if _is_instance(value, legacy_types):
        return DetectedFormat(
            kind=FormatKind.LEGACY,
            version=LEGACY_VERSION,
            payload=value,
        )

    if not isinstance(value, dict):
        return DetectedFormat(
            kind=FormatKind.UNRECOGNIZED,
            problem=(
                f"expected {_type_names(legacy_types)} or an envelope object, "
                f"got {type(value).__name__}"
            ),
        )

    if VERSION_FIELD not in value:
        return DetectedFormat(
            kind=FormatKind.UNRECOGNIZED,
            problem=f"object has no '{VERSION_FIELD}' field",
        )

    version = value[VERSION_FIELD]
    if not _is_instance(version, (int,)) or version < 0:
        return DetectedFormat(
            kind=FormatKind.UNRECOGNIZED,
            problem=f"'{VERSION_FIELD}' is {version!r}, not a non-negative integer",
        )

    if payload_key not in value:
        return DetectedFormat(
            kind=FormatKind.UNRECOGNIZED,
            problem=f"envelope has no '{payload_key}' field",
        )

    payload = value[payload_key]
    if not _is_instance(payload, payload_type):
        return DetectedFormat(
            kind=FormatKind.UNRECOGNIZED,
            problem=(
                f"'{payload_key}' is {type(payload).__name__}, "
                f"expected {_type_names(payload_type)}"
            ),
        )

    return DetectedFormat(
        kind=FormatKind.VERSIONED,
        version=version,
        payload=payload,
    )
