"""Behaviour shared by the const-scale and out-of-band value types.

Both shapes wrap a single range-checked mantissa. This module holds what
does not depend on where the scale lives: construction, comparison,
sign queries, negation and the ``checked_*`` convention of turning any
``FpdecError`` into ``None``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, TypeVar

import structlog

from fpdec.backend.base import MantissaBackend
from fpdec.config import DEFAULT_CONFIG, SerializeMode
from fpdec.errors import FpdecError
from fpdec.rounding import Rounding

logger = structlog.get_logger()

T = TypeVar("T", bound="FpdecBase")


class FpdecBase(ABC):
    """Immutable fixed-point value over one mantissa backend.

    Attributes:
        mantissa: The underlying W-bit integer (read-only)
    """

    BACKEND: ClassVar[MantissaBackend | None] = None
    ROUNDING: ClassVar[Rounding] = DEFAULT_CONFIG.default_rounding
    SERIALIZE_MODE: ClassVar[SerializeMode] = DEFAULT_CONFIG.serialize_mode

    __slots__ = ("_mantissa",)
    _mantissa: int

    def __init_subclass__(
        cls,
        rounding: Rounding | str | None = None,
        serialize_mode: SerializeMode | str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if rounding is not None:
            cls.ROUNDING = rounding if isinstance(rounding, Rounding) else Rounding.parse(rounding)
        if serialize_mode is not None:
            cls.SERIALIZE_MODE = (
                serialize_mode
                if isinstance(serialize_mode, SerializeMode)
                else SerializeMode.parse(serialize_mode)
            )

    def __init__(self, mantissa: int) -> None:
        """Create a value from its raw mantissa.

        Args:
            mantissa: Integer mantissa; must fit the type's backend

        Raises:
            TypeError: If mantissa is not an int or the type has no backend
            Overflow: If mantissa does not fit the backend
        """
        backend = type(self).BACKEND
        if backend is None:
            raise TypeError(f"{type(self).__name__} has no backend; declare one with backend=...")
        if not isinstance(mantissa, int):
            raise TypeError(f"{type(self).__name__} requires int mantissa, got {type(mantissa).__name__}")
        self._mantissa = backend.check(mantissa)

    @classmethod
    def _set_constants(cls, backend: MantissaBackend) -> None:
        cls.BACKEND = backend
        cls.DIGITS = backend.digits
        cls.ZERO = cls(0)
        cls.MIN_POSITIVE = cls(1)
        cls.MAX = cls(backend.max)
        cls.MIN = cls(backend.min)
        cls.MAX_POWER_OF_TEN = cls(backend.max_power_of_ten)

    @classmethod
    @abstractmethod
    def _kind(cls) -> tuple:
        """Key shared by all types whose values compare and add directly."""
        ...

    @property
    def mantissa(self) -> int:
        """The underlying integer mantissa."""
        return self._mantissa

    @property
    def backend(self) -> MantissaBackend:
        """The mantissa backend of this value's type."""
        return type(self).BACKEND  # type: ignore[return-value]

    def _rounding(self, rounding: Rounding | None) -> Rounding:
        return type(self).ROUNDING if rounding is None else rounding

    def _compatible(self, other: object) -> bool:
        return isinstance(other, FpdecBase) and other._kind() == self._kind()

    def _require_compatible(self, other: object, op: str) -> FpdecBase:
        if not self._compatible(other):
            raise TypeError(
                f"Cannot {op} {type(self).__name__} and {type(other).__name__}: "
                f"backends or scales differ"
            )
        return other  # type: ignore[return-value]

    def _ratio_operands(self, a: FpdecBase | int, b: FpdecBase | int) -> tuple[int, int]:
        """Mantissas of a ratio given as two ints or two compatible values."""
        if isinstance(a, FpdecBase) and isinstance(b, FpdecBase):
            if a._kind() != b._kind():
                raise TypeError("Ratio operands must share backend and scale")
            if a.backend is not self.backend:
                raise TypeError("Ratio operands must share this value's backend")
            return a._mantissa, b._mantissa
        if isinstance(a, int) and isinstance(b, int):
            return self.backend.check(a), self.backend.check(b)
        raise TypeError("Ratio operands must be two ints or two decimal values")

    def _checked(self, op: str, *args: Any, **kwargs: Any) -> Any:
        """Run a raising method, returning None on any FpdecError."""
        try:
            return getattr(self, op)(*args, **kwargs)
        except FpdecError as e:
            logger.debug(
                "fpdec_checked_op_failed",
                op=op,
                kind=e.kind.value,
                type=type(self).__name__,
            )
            return None

    # --- Sign ---

    def is_zero(self) -> bool:
        """True if the value is zero."""
        return self._mantissa == 0

    def is_neg(self) -> bool:
        """True if the value is strictly negative."""
        return self._mantissa < 0

    def is_pos(self) -> bool:
        """True if the value is strictly positive."""
        return self._mantissa > 0

    def signum(self) -> int:
        """-1, 0 or 1 according to the sign."""
        return (self._mantissa > 0) - (self._mantissa < 0)

    def __bool__(self) -> bool:
        return self._mantissa != 0

    def __neg__(self: T) -> T:
        """Negate.

        Raises:
            Overflow: For the most negative mantissa
        """
        return type(self)(self.backend.checked_neg(self._mantissa))

    def __pos__(self: T) -> T:
        return self

    def __abs__(self: T) -> T:
        """Absolute value.

        Raises:
            Overflow: For the most negative mantissa
        """
        if self._mantissa >= 0:
            return self
        return -self

    def neg(self: T) -> T:
        return -self

    def abs(self: T) -> T:
        return abs(self)

    def checked_neg(self: T) -> T | None:
        """Negate, returning None on overflow."""
        return self._checked("neg")

    def checked_abs(self: T) -> T | None:
        """Absolute value, returning None on overflow."""
        return self._checked("abs")

    # --- Comparison ---

    def __eq__(self, other: object) -> bool:
        if not self._compatible(other):
            return NotImplemented
        return self._mantissa == other._mantissa  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((self._kind(), self._mantissa))

    def __lt__(self, other: object) -> bool:
        if not self._compatible(other):
            return NotImplemented
        return self._mantissa < other._mantissa  # type: ignore[attr-defined]

    def __le__(self, other: object) -> bool:
        if not self._compatible(other):
            return NotImplemented
        return self._mantissa <= other._mantissa  # type: ignore[attr-defined]

    def __gt__(self, other: object) -> bool:
        if not self._compatible(other):
            return NotImplemented
        return self._mantissa > other._mantissa  # type: ignore[attr-defined]

    def __ge__(self, other: object) -> bool:
        if not self._compatible(other):
            return NotImplemented
        return self._mantissa >= other._mantissa  # type: ignore[attr-defined]
