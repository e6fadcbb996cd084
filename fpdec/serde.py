"""Serialization hook for the decimal types.

Const-scale types plug into pydantic: a model field annotated with one
validates strings, ints, floats, ``{"mantissa", "scale"}`` mappings and
instances, and dumps to JSON as the decimal string, or as the raw mapping
when the type's serialize mode is MANTISSA:

    class Account(BaseModel):
        balance: Balance

    Account(balance="12.60").model_dump_json()   # {"balance":"12.6"}

Out-of-band values have no scale of their own and travel as their int
mantissa; ``OobFmt.to_raw()`` emits mantissa and scale together.

Python-mode dumps keep the instances untouched.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import structlog
from pydantic_core import core_schema

from fpdec.config import SerializeMode
from fpdec.errors import FpdecError
from fpdec.text import DECIMAL_PATTERN

logger = structlog.get_logger()

__all__ = ["to_raw", "raw_parts", "dump", "decimal_core_schema", "decimal_json_schema"]


def to_raw(mantissa: int, scale: int) -> dict[str, int]:
    return {"mantissa": mantissa, "scale": scale}


def raw_parts(data: Mapping[str, Any]) -> tuple[int, int]:
    """Read (mantissa, scale) from a raw mapping.

    Raises:
        ValueError: If a key is missing or not an int
    """
    try:
        mantissa, scale = data["mantissa"], data["scale"]
    except KeyError as e:
        raise ValueError(f"Raw decimal mapping missing key {e}") from None
    for key, item in (("mantissa", mantissa), ("scale", scale)):
        if isinstance(item, bool) or not isinstance(item, int):
            raise ValueError(f"Raw decimal {key} must be int, got {type(item).__name__}")
    return mantissa, scale


def dump(value: Any, text: str, raw: dict[str, int]) -> str | dict[str, int]:
    """Pick the JSON form of a value according to its type's serialize mode."""
    if type(value).SERIALIZE_MODE is SerializeMode.MANTISSA:
        return raw
    return text


def decimal_core_schema(
    cls: type,
    coerce: Callable[[Any], Any],
    serialize: Callable[[Any], Any],
) -> core_schema.CoreSchema:
    """pydantic core schema validating with ``coerce`` and dumping JSON with ``serialize``."""

    def validate(value: Any) -> Any:
        try:
            return coerce(value)
        except (FpdecError, TypeError, ValueError) as e:
            logger.debug(
                "fpdec_validation_rejected",
                type=cls.__name__,
                input_type=type(value).__name__,
                error=str(e),
            )
            raise ValueError(str(e)) from e

    return core_schema.no_info_plain_validator_function(
        validate,
        serialization=core_schema.plain_serializer_function_ser_schema(serialize, when_used="json"),
    )


def decimal_json_schema(mode: SerializeMode) -> dict[str, Any]:
    """JSON schema of the serialized form."""
    if mode is SerializeMode.MANTISSA:
        return {
            "type": "object",
            "properties": {
                "mantissa": {"type": "integer"},
                "scale": {"type": "integer"},
            },
            "required": ["mantissa", "scale"],
        }
    return {"type": "string", "pattern": DECIMAL_PATTERN}
