"""Decimal types whose scale is fixed by the type.

Declare a type once per quantity and let the types carry the scales:

    class Balance(ConstScaleFpdec, backend=I64, scale=2):
        pass

    class Rate(ConstScaleFpdec, backend=I64, scale=4):
        pass

    cum = CumulativeError()
    fee = balance.mul(rate, Balance, Rounding.CEILING, cum)

``ConstScaleFpdec[I64, 2]`` returns a cached anonymous type for quick use.

Addition, subtraction and comparison only accept values of the same
backend and scale. Multiplication and division derive the scale
difference from the operand and result types.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from fpdec import scale as ops
from fpdec import serde
from fpdec.backend import backend_for_bits
from fpdec.backend.base import MantissaBackend
from fpdec.base import FpdecBase
from fpdec.rounding import CumulativeError, Rounding, rounding_div
from fpdec.text import format_decimal, parse_decimal

if TYPE_CHECKING:
    from fpdec.oob_scale import OobScaleFpdec

__all__ = ["ConstScaleFpdec"]

C = TypeVar("C", bound="ConstScaleFpdec")

_TYPE_CACHE: dict[tuple[type, int, int], type] = {}


class ConstScaleFpdec(FpdecBase):
    """Fixed-point decimal with a type-level scale.

    value = mantissa * 10^-SCALE

    Subclass with ``backend=`` and ``scale=`` class keywords, optionally
    ``rounding=`` (default mode for calls that pass none) and
    ``serialize_mode=``.

    Class constants: ZERO, MIN_POSITIVE, MAX, MIN, MAX_POWER_OF_TEN, DIGITS
    """

    SCALE: ClassVar[int | None] = None

    __slots__ = ()

    def __init_subclass__(
        cls,
        backend: MantissaBackend | int | None = None,
        scale: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if isinstance(backend, int):
            backend = backend_for_bits(backend)
        backend = backend if backend is not None else cls.BACKEND
        scale = scale if scale is not None else cls.SCALE

        if backend is None and scale is None:
            return
        if backend is None or scale is None:
            raise TypeError(f"{cls.__name__} needs both backend= and scale=")
        if not isinstance(scale, int):
            raise TypeError(f"scale must be int, got {type(scale).__name__}")

        cls.SCALE = scale
        cls._set_constants(backend)

    def __class_getitem__(cls, params: tuple[MantissaBackend | int, int]) -> type[ConstScaleFpdec]:
        backend, scale = params
        if isinstance(backend, int):
            backend = backend_for_bits(backend)
        key = (cls, backend.bits, scale)
        cached = _TYPE_CACHE.get(key)
        if cached is None:
            name = f"{cls.__name__}[{backend.name}, {scale}]"
            cached = type(cls)(name, (cls,), {"__slots__": ()}, backend=backend, scale=scale)
            _TYPE_CACHE[key] = cached
        return cached

    @classmethod
    def _kind(cls) -> tuple:
        return ("const", cls.BACKEND.bits if cls.BACKEND else None, cls.SCALE)

    @property
    def scale(self) -> int:
        """The type's scale."""
        return type(self).SCALE  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"{type(self).__name__}('{self}')"

    def __str__(self) -> str:
        return format_decimal(self._mantissa, self.scale)

    def __format__(self, spec: str) -> str:
        """Format with an optional ``.precision`` spec, e.g. ``f"{v:.2}"``."""
        if not spec:
            return str(self)
        if not (spec.startswith(".") and spec[1:].isdigit()):
            raise ValueError(f"Invalid format spec {spec!r} for {type(self).__name__}")
        return self.to_string(int(spec[1:]))

    def to_string(self, precision: int | None = None, rounding: Rounding | None = None) -> str:
        """Decimal string, optionally rounded or padded to a display precision."""
        return format_decimal(self._mantissa, self.scale, precision, self._rounding(rounding))

    # --- Construction ---

    @classmethod
    def from_str(cls: type[C], text: str) -> C:
        """Parse a decimal string exactly.

        Raises:
            ParseError: If the text is empty, malformed, too large or too precise
        """
        return cls(parse_decimal(text, cls.BACKEND, cls.SCALE))

    @classmethod
    def from_int(cls: type[C], value: int) -> C:
        """Convert an integer.

        Raises:
            Overflow: If the value does not fit at this scale
            Inexact: If the scale is negative and value has nonzero low digits
        """
        return cls(ops.from_int(cls.BACKEND, value, cls.SCALE))

    @classmethod
    def from_float(cls: type[C], value: float) -> C:
        """Convert a float, rounding half away from zero.

        Raises:
            Overflow: If value is not finite or does not fit
        """
        return cls(ops.from_float(cls.BACKEND, value, cls.SCALE))

    @classmethod
    def from_oob(cls: type[C], value: OobScaleFpdec) -> C:
        """Reinterpret an out-of-band value as this type; the mantissa is kept.

        Raises:
            TypeError: If the backends differ
        """
        if value.backend is not cls.BACKEND:
            raise TypeError(f"Cannot convert {type(value).__name__} to {cls.__name__}: backends differ")
        return cls(value.mantissa)

    @classmethod
    def from_raw(cls: type[C], data: Mapping[str, Any]) -> C:
        """Build from a ``{"mantissa": m, "scale": s}`` mapping, rescaling exactly.

        Raises:
            ValueError: If the mapping is malformed
            Overflow: If the value does not fit this type
            Inexact: If the value has digits below this type's scale
        """
        mantissa, scale = serde.raw_parts(data)
        backend = cls.BACKEND
        return cls(ops.rescale(backend, backend.check(mantissa), scale - cls.SCALE))

    def to_raw(self) -> dict[str, int]:
        """``{"mantissa": m, "scale": S}``."""
        return serde.to_raw(self._mantissa, self.scale)

    def to_oob(self) -> OobScaleFpdec:
        """Out-of-band value with the same backend and mantissa."""
        from fpdec.oob_scale import OobScaleFpdec

        return OobScaleFpdec[self.backend](self._mantissa)

    def convert(self, target_type: type[C]) -> C:
        """Convert exactly to another const-scale type, changing width and/or scale.

        Raises:
            Overflow: If the value does not fit the target
            Inexact: If the target scale cannot hold the value's digits
        """
        target = target_type.BACKEND
        backend = self.backend if self.backend.digits >= target.digits else target
        mantissa = ops.rescale(backend, self._mantissa, self.scale - target_type.SCALE)
        return target_type(target.check(mantissa))

    # --- Arithmetic ---

    def _result_type(self, result_type: type[C] | None) -> type[C]:
        if result_type is None:
            return type(self)  # type: ignore[return-value]
        if not (isinstance(result_type, type) and issubclass(result_type, ConstScaleFpdec)):
            raise TypeError(f"result_type must be a ConstScaleFpdec type, got {result_type!r}")
        if result_type.BACKEND is not self.backend:
            raise TypeError(f"{result_type.__name__} does not share the backend of {type(self).__name__}")
        return result_type

    def _operand(self, rhs: object, op: str) -> ConstScaleFpdec:
        if not isinstance(rhs, ConstScaleFpdec) or rhs.backend is not self.backend:
            raise TypeError(f"Cannot {op} {type(self).__name__} by {type(rhs).__name__}")
        return rhs

    def add(self: C, rhs: ConstScaleFpdec) -> C:
        """Add a value of the same backend and scale.

        Raises:
            TypeError: If backend or scale differ
            Overflow: If the sum does not fit
        """
        rhs = self._require_compatible(rhs, "add")
        return type(self)(self.backend.checked_add(self._mantissa, rhs._mantissa))

    def sub(self: C, rhs: ConstScaleFpdec) -> C:
        """Subtract a value of the same backend and scale.

        Raises:
            TypeError: If backend or scale differ
            Overflow: If the difference does not fit
        """
        rhs = self._require_compatible(rhs, "subtract")
        return type(self)(self.backend.checked_sub(self._mantissa, rhs._mantissa))

    def mul(
        self,
        rhs: ConstScaleFpdec,
        result_type: type[C] | None = None,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C:
        """Multiply, producing a value of result_type (default: this type).

        Args:
            rhs: Value of the same backend, any scale
            result_type: Type of the product
            rounding: Rounding mode (default: the type's mode)
            cum_error: Optional cumulative-error cell

        Raises:
            Overflow: If the product does not fit
            Inexact: If rounding is UNEXPECTED and digits would be dropped
        """
        rhs = self._operand(rhs, "multiply")
        result_type = self._result_type(result_type)
        diff_scale = self.scale + rhs.scale - result_type.SCALE
        mantissa = ops.mul(
            self.backend, self._mantissa, rhs._mantissa, diff_scale, self._rounding(rounding), cum_error
        )
        return result_type(mantissa)

    def div(
        self,
        rhs: ConstScaleFpdec,
        result_type: type[C] | None = None,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C:
        """Divide, producing a value of result_type (default: this type).

        Raises:
            DivisionByZero: If rhs is zero
            Overflow: If the quotient does not fit
            Inexact: If rounding is UNEXPECTED and the quotient is inexact
        """
        rhs = self._operand(rhs, "divide")
        result_type = self._result_type(result_type)
        diff_scale = self.scale - rhs.scale - result_type.SCALE
        mantissa = ops.div(
            self.backend, self._mantissa, rhs._mantissa, diff_scale, self._rounding(rounding), cum_error
        )
        return result_type(mantissa)

    def mul_int(self: C, n: int) -> C:
        """Multiply by an integer; the scale is unchanged.

        Raises:
            Overflow: If the product does not fit
        """
        if not isinstance(n, int):
            raise TypeError(f"mul_int requires int, got {type(n).__name__}")
        return type(self)(self.backend.checked_mul(self._mantissa, n))

    def div_int(
        self: C,
        n: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C:
        """Divide by an integer; the scale is unchanged.

        Raises:
            DivisionByZero: If n is zero
            Overflow: If n does not fit the backend or for MIN / -1
            Inexact: If rounding is UNEXPECTED and the quotient is inexact
        """
        if not isinstance(n, int):
            raise TypeError(f"div_int requires int, got {type(n).__name__}")
        divisor = self.backend.check(n)
        return type(self)(self.backend.idiv(self._mantissa, divisor, self._rounding(rounding), cum_error))

    def mul_ratio(
        self: C,
        a: FpdecBase | int,
        b: FpdecBase | int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C:
        """Compute self * a / b without intermediate overflow.

        a and b are two ints or two values of the same type, whose scales
        cancel out.

        Raises:
            DivisionByZero: If b is zero
            Overflow: If the result does not fit
            Inexact: If rounding is UNEXPECTED and the result is inexact
        """
        num, den = self._ratio_operands(a, b)
        return type(self)(self.backend.muldiv(self._mantissa, num, den, self._rounding(rounding), cum_error))

    def round_with_rounding(
        self: C,
        scale: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C:
        """Round to a coarser scale, keeping the type.

        ``Balance('1.26').round_with_rounding(1)`` is ``Balance('1.3')``.

        Raises:
            Overflow: If rounding away from zero leaves the mantissa range
            Inexact: If rounding is UNEXPECTED and digits would be dropped
        """
        mantissa = ops.shrink(self.backend, self._mantissa, self.scale - scale, self._rounding(rounding), cum_error)
        return type(self)(mantissa)

    def to_int(self, rounding: Rounding | None = None) -> int:
        """Round to an integer."""
        if self._mantissa == 0:
            return 0
        if self.scale <= 0:
            return self._mantissa * 10**-self.scale
        # |mantissa| < 10^(D+1), so past D+2 digits every divisor rounds alike
        drop = min(self.scale, self.backend.digits + 2)
        q, _ = rounding_div(self._mantissa, 10**drop, self._rounding(rounding))
        return q

    def to_float(self) -> float:
        """Nearest float; expect binary rounding."""
        return ops.to_float(self._mantissa, self.scale)

    def __int__(self) -> int:
        return self.to_int(Rounding.TOWARD_ZERO)

    def __float__(self) -> float:
        return self.to_float()

    def __round__(self, ndigits: int | None = None) -> Any:
        if ndigits is None:
            return self.to_int(Rounding.ROUND)
        return self.round_with_rounding(ndigits, Rounding.ROUND)

    # --- Checked twins ---

    def checked_add(self: C, rhs: ConstScaleFpdec) -> C | None:
        """Add, returning None on overflow."""
        return self._checked("add", rhs)

    def checked_sub(self: C, rhs: ConstScaleFpdec) -> C | None:
        """Subtract, returning None on overflow."""
        return self._checked("sub", rhs)

    def checked_mul(
        self,
        rhs: ConstScaleFpdec,
        result_type: type[C] | None = None,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C | None:
        """Multiply, returning None on failure."""
        return self._checked("mul", rhs, result_type, rounding, cum_error)

    def checked_div(
        self,
        rhs: ConstScaleFpdec,
        result_type: type[C] | None = None,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C | None:
        """Divide, returning None on failure."""
        return self._checked("div", rhs, result_type, rounding, cum_error)

    def checked_mul_int(self: C, n: int) -> C | None:
        return self._checked("mul_int", n)

    def checked_div_int(
        self: C,
        n: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C | None:
        return self._checked("div_int", n, rounding, cum_error)

    def checked_mul_ratio(
        self: C,
        a: FpdecBase | int,
        b: FpdecBase | int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C | None:
        return self._checked("mul_ratio", a, b, rounding, cum_error)

    def checked_round(
        self: C,
        scale: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> C | None:
        """round_with_rounding, returning None on failure."""
        return self._checked("round_with_rounding", scale, rounding, cum_error)

    def checked_convert(self, target_type: type[C]) -> C | None:
        return self._checked("convert", target_type)

    # --- Operators ---

    def __add__(self: C, other: object) -> C:
        if not self._compatible(other):
            return NotImplemented
        return self.add(other)  # type: ignore[arg-type]

    def __sub__(self: C, other: object) -> C:
        if not self._compatible(other):
            return NotImplemented
        return self.sub(other)  # type: ignore[arg-type]

    def __mul__(self: C, other: object) -> C:
        if isinstance(other, int):
            return self.mul_int(other)
        if isinstance(other, ConstScaleFpdec) and other.backend is self.backend:
            return self.mul(other)
        return NotImplemented

    def __rmul__(self: C, other: object) -> C:
        if isinstance(other, int):
            return self.mul_int(other)
        return NotImplemented

    def __truediv__(self: C, other: object) -> C:
        if isinstance(other, int):
            return self.div_int(other)
        if isinstance(other, ConstScaleFpdec) and other.backend is self.backend:
            return self.div(other)
        return NotImplemented

    # --- Serialization ---

    @classmethod
    def _coerce(cls: type[C], value: Any) -> C:
        """Build a value from any input the pydantic hook accepts."""
        if isinstance(value, cls):
            return value
        if isinstance(value, ConstScaleFpdec):
            return value.convert(cls)
        if isinstance(value, str):
            return cls.from_str(value)
        if isinstance(value, bool):
            raise TypeError(f"{cls.__name__} does not accept bool")
        if isinstance(value, int):
            return cls.from_int(value)
        if isinstance(value, float):
            return cls.from_float(value)
        if isinstance(value, Mapping):
            return cls.from_raw(value)
        raise TypeError(f"{cls.__name__} cannot be built from {type(value).__name__}")

    def _dump(self) -> str | dict[str, int]:
        return serde.dump(self, str(self), self.to_raw())

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> Any:
        return serde.decimal_core_schema(cls, cls._coerce, cls._dump)

    @classmethod
    def __get_pydantic_json_schema__(cls, core_schema: Any, handler: Any) -> dict[str, Any]:
        return serde.decimal_json_schema(cls.SERIALIZE_MODE)
