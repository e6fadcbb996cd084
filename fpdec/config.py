"""Library-wide defaults for the decimal types."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

import structlog

from fpdec.rounding import Rounding

logger = structlog.get_logger()

ENV_DEFAULT_ROUNDING = "FPDEC_DEFAULT_ROUNDING"
ENV_SERIALIZE_MODE = "FPDEC_SERIALIZE_MODE"


class SerializeMode(Enum):
    """What JSON serialization emits for a decimal value."""

    STRING = "string"  # "12.60"
    MANTISSA = "mantissa"  # {"mantissa": 1260, "scale": 2}

    @classmethod
    def parse(cls, name: str) -> SerializeMode:
        """Look up a mode by value or member name, case-insensitive.

        Raises:
            ValueError: If no mode matches
        """
        key = name.strip().lower()
        for mode in cls:
            if key in (mode.value, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown serialize mode: {name!r}")


@dataclass(frozen=True)
class FpdecConfig:
    """Defaults applied when a call does not choose explicitly.

    Value types read these at class creation unless the class overrides
    them with the ``rounding=`` or ``serialize_mode=`` class keywords.

    Attributes:
        default_rounding: Rounding mode for operations called without one
            (default: ROUND, half away from zero)
        serialize_mode: JSON output of the pydantic hook (default: STRING)
    """

    default_rounding: Rounding = Rounding.ROUND
    serialize_mode: SerializeMode = SerializeMode.STRING

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> FpdecConfig:
        """Build a config from environment variables.

        - FPDEC_DEFAULT_ROUNDING: round, floor, ceiling, toward_zero,
          away_from_zero or unexpected (default: round)
        - FPDEC_SERIALIZE_MODE: string or mantissa (default: string)

        Raises:
            ValueError: If a variable holds an unknown value
        """
        env = os.environ if environ is None else environ
        config = cls()

        rounding = env.get(ENV_DEFAULT_ROUNDING)
        serialize_mode = env.get(ENV_SERIALIZE_MODE)
        return cls(
            default_rounding=Rounding.parse(rounding) if rounding else config.default_rounding,
            serialize_mode=SerializeMode.parse(serialize_mode) if serialize_mode else config.serialize_mode,
        )


def _load_default_config() -> FpdecConfig:
    try:
        return FpdecConfig.from_env()
    except ValueError as e:
        logger.warning("fpdec_config_env_invalid", error=str(e))
        return FpdecConfig()


# Default configuration instance
DEFAULT_CONFIG = _load_default_config()
