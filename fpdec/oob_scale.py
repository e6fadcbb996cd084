"""Decimal types whose scale is carried outside the value.

An out-of-band value is just a mantissa of a known width. The caller keeps
track of the scale and passes the scale difference to every operation
that changes it:

    Qty = OobScaleFpdec[I64]
    qty = Qty.from_str("1.5", 4)            # mantissa 15000 at scale 4
    price = Qty.from_str("2.25", 2)         # mantissa 225 at scale 2
    cost = qty.mul(price, diff_scale=4)     # 3.375 at scale 2 -> 338

Addition and subtraction assume both operands share a scale; that is not
checked. ``OobFmt`` pairs a value with its scale for display and parsing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from fpdec import scale as ops
from fpdec import serde
from fpdec.backend import backend_for_bits
from fpdec.backend.base import MantissaBackend
from fpdec.base import FpdecBase
from fpdec.errors import Inexact, Overflow, ParseInexact, ParseOverflow
from fpdec.rounding import CumulativeError, Rounding
from fpdec.text import format_decimal, parse_decimal, parse_guess_scale

if TYPE_CHECKING:
    from fpdec.const_scale import ConstScaleFpdec

__all__ = ["OobScaleFpdec", "OobFmt"]

V = TypeVar("V", bound="OobScaleFpdec")
C = TypeVar("C", bound="ConstScaleFpdec")

_TYPE_CACHE: dict[tuple[type, int], type] = {}


class OobScaleFpdec(FpdecBase):
    """Fixed-point decimal whose scale is supplied per call.

    value = mantissa * 10^-scale, scale known only to the caller

    Subclass with the ``backend=`` class keyword (and optionally
    ``rounding=``), or use ``OobScaleFpdec[I64]``.

    Class constants: ZERO, MIN_POSITIVE, MAX, MIN, MAX_POWER_OF_TEN, DIGITS
    """

    __slots__ = ()

    def __init_subclass__(cls, backend: MantissaBackend | int | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if isinstance(backend, int):
            backend = backend_for_bits(backend)
        backend = backend if backend is not None else cls.BACKEND
        if backend is not None:
            cls._set_constants(backend)

    def __class_getitem__(cls, backend: MantissaBackend | int) -> type[OobScaleFpdec]:
        if isinstance(backend, int):
            backend = backend_for_bits(backend)
        key = (cls, backend.bits)
        cached = _TYPE_CACHE.get(key)
        if cached is None:
            name = f"{cls.__name__}[{backend.name}]"
            cached = type(cls)(name, (cls,), {"__slots__": ()}, backend=backend)
            _TYPE_CACHE[key] = cached
        return cached

    @classmethod
    def _kind(cls) -> tuple:
        return ("oob", cls.BACKEND.bits if cls.BACKEND else None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._mantissa})"

    # --- Construction ---

    @classmethod
    def from_str(cls: type[V], text: str, scale: int) -> V:
        """Parse a decimal string exactly at the given scale.

        Raises:
            ParseError: If the text is empty, malformed, too large or too precise
        """
        return cls(parse_decimal(text, cls.BACKEND, scale))

    @classmethod
    def from_int(cls: type[V], value: int, scale: int) -> V:
        """Convert an integer to a value at the given scale.

        Raises:
            Overflow: If the value does not fit at this scale
            Inexact: If the scale is negative and value has nonzero low digits
        """
        return cls(ops.from_int(cls.BACKEND, value, scale))

    @classmethod
    def from_float(cls: type[V], value: float, scale: int) -> V:
        """Convert a float at the given scale, rounding half away from zero.

        Raises:
            Overflow: If value is not finite or does not fit
        """
        return cls(ops.from_float(cls.BACKEND, value, scale))

    @classmethod
    def from_const(cls: type[V], value: ConstScaleFpdec) -> V:
        """Drop the type-level scale of a const-scale value; the mantissa is kept.

        Raises:
            TypeError: If the backends differ
        """
        if value.backend is not cls.BACKEND:
            raise TypeError(f"Cannot convert {type(value).__name__} to {cls.__name__}: backends differ")
        return cls(value.mantissa)

    def to_const(self, target_type: type[C]) -> C:
        """Attach the scale of a const-scale type; the mantissa is kept."""
        return target_type.from_oob(self)

    def convert(self: V, target_type: type[OobScaleFpdec]) -> OobScaleFpdec:
        """Convert to another width at the same scale.

        Raises:
            Overflow: If the mantissa does not fit the target width
        """
        return target_type(target_type.BACKEND.check(self._mantissa))

    # --- Display ---

    def to_string(self, scale: int, precision: int | None = None, rounding: Rounding | None = None) -> str:
        """Decimal string of this value read at the given scale."""
        return format_decimal(self._mantissa, scale, precision, self._rounding(rounding))

    def to_float(self, scale: int) -> float:
        """Nearest float of this value read at the given scale."""
        return ops.to_float(self._mantissa, scale)

    def fmt(self, scale: int) -> OobFmt:
        """Pair with a scale for formatting."""
        return OobFmt(self, scale)

    def to_raw(self, scale: int) -> dict[str, int]:
        """``{"mantissa": m, "scale": scale}``."""
        return serde.to_raw(self._mantissa, scale)

    # --- Arithmetic ---

    def add(self: V, rhs: OobScaleFpdec) -> V:
        """Add a value of the same backend; scales must match (unchecked).

        Raises:
            Overflow: If the sum does not fit
        """
        rhs = self._require_compatible(rhs, "add")
        return type(self)(self.backend.checked_add(self._mantissa, rhs._mantissa))

    def sub(self: V, rhs: OobScaleFpdec) -> V:
        """Subtract a value of the same backend; scales must match (unchecked).

        Raises:
            Overflow: If the difference does not fit
        """
        rhs = self._require_compatible(rhs, "subtract")
        return type(self)(self.backend.checked_sub(self._mantissa, rhs._mantissa))

    def mul(
        self: V,
        rhs: OobScaleFpdec,
        diff_scale: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V:
        """Multiply, with diff_scale = S(self) + S(rhs) - S(result).

        Raises:
            Overflow: If the product does not fit
            Inexact: If rounding is UNEXPECTED and digits would be dropped
        """
        rhs = self._require_compatible(rhs, "multiply")
        mantissa = ops.mul(
            self.backend, self._mantissa, rhs._mantissa, diff_scale, self._rounding(rounding), cum_error
        )
        return type(self)(mantissa)

    def div(
        self: V,
        rhs: OobScaleFpdec,
        diff_scale: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V:
        """Divide, with diff_scale = S(self) - S(rhs) - S(result).

        Raises:
            DivisionByZero: If rhs is zero
            Overflow: If the quotient does not fit
            Inexact: If rounding is UNEXPECTED and the quotient is inexact
        """
        rhs = self._require_compatible(rhs, "divide")
        mantissa = ops.div(
            self.backend, self._mantissa, rhs._mantissa, diff_scale, self._rounding(rounding), cum_error
        )
        return type(self)(mantissa)

    def mul_int(self: V, n: int) -> V:
        """Multiply by an integer; the scale is unchanged.

        Raises:
            Overflow: If the product does not fit
        """
        if not isinstance(n, int):
            raise TypeError(f"mul_int requires int, got {type(n).__name__}")
        return type(self)(self.backend.checked_mul(self._mantissa, n))

    def div_int(
        self: V,
        n: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V:
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
        self: V,
        a: FpdecBase | int,
        b: FpdecBase | int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V:
        """Compute self * a / b without intermediate overflow; the scale is unchanged.

        Raises:
            DivisionByZero: If b is zero
            Overflow: If the result does not fit
            Inexact: If rounding is UNEXPECTED and the result is inexact
        """
        num, den = self._ratio_operands(a, b)
        return type(self)(self.backend.muldiv(self._mantissa, num, den, self._rounding(rounding), cum_error))

    def rescale(self: V, diff_scale: int) -> V:
        """Move to another scale exactly, with diff_scale = S(source) - S(target).

        Raises:
            Inexact: If moving to a coarser scale would drop nonzero digits
            Overflow: If moving to a finer scale overflows
        """
        return type(self)(ops.rescale(self.backend, self._mantissa, diff_scale))

    def shrink(
        self: V,
        diff_scale: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V:
        """Round away the last diff_scale digits, keeping the scale.

        Raises:
            Overflow: If rounding away from zero leaves the mantissa range
            Inexact: If rounding is UNEXPECTED and digits would be dropped
        """
        mantissa = ops.shrink(self.backend, self._mantissa, diff_scale, self._rounding(rounding), cum_error)
        return type(self)(mantissa)

    # --- Checked twins ---

    def checked_add(self: V, rhs: OobScaleFpdec) -> V | None:
        """Add, returning None on overflow."""
        return self._checked("add", rhs)

    def checked_sub(self: V, rhs: OobScaleFpdec) -> V | None:
        """Subtract, returning None on overflow."""
        return self._checked("sub", rhs)

    def checked_mul(
        self: V,
        rhs: OobScaleFpdec,
        diff_scale: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V | None:
        """Multiply, returning None on failure."""
        return self._checked("mul", rhs, diff_scale, rounding, cum_error)

    def checked_div(
        self: V,
        rhs: OobScaleFpdec,
        diff_scale: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V | None:
        """Divide, returning None on failure."""
        return self._checked("div", rhs, diff_scale, rounding, cum_error)

    def checked_mul_int(self: V, n: int) -> V | None:
        return self._checked("mul_int", n)

    def checked_div_int(
        self: V,
        n: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V | None:
        return self._checked("div_int", n, rounding, cum_error)

    def checked_mul_ratio(
        self: V,
        a: FpdecBase | int,
        b: FpdecBase | int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V | None:
        return self._checked("mul_ratio", a, b, rounding, cum_error)

    def checked_rescale(self: V, diff_scale: int) -> V | None:
        return self._checked("rescale", diff_scale)

    def checked_shrink(
        self: V,
        diff_scale: int,
        rounding: Rounding | None = None,
        cum_error: CumulativeError | None = None,
    ) -> V | None:
        return self._checked("shrink", diff_scale, rounding, cum_error)

    # --- Operators ---

    def __add__(self: V, other: object) -> V:
        if not self._compatible(other):
            return NotImplemented
        return self.add(other)  # type: ignore[arg-type]

    def __sub__(self: V, other: object) -> V:
        if not self._compatible(other):
            return NotImplemented
        return self.sub(other)  # type: ignore[arg-type]

    def __mul__(self: V, other: object) -> V:
        if isinstance(other, int):
            return self.mul_int(other)
        return NotImplemented

    def __rmul__(self: V, other: object) -> V:
        return self.__mul__(other)

    def __truediv__(self: V, other: object) -> V:
        if isinstance(other, int):
            return self.div_int(other)
        return NotImplemented

    # --- Serialization ---

    @classmethod
    def _coerce(cls: type[V], value: Any) -> V:
        """Build a value from a mantissa or an instance."""
        if isinstance(value, cls):
            return value
        if isinstance(value, OobScaleFpdec):
            return value.convert(cls)  # type: ignore[return-value]
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        raise TypeError(f"{cls.__name__} is built from an int mantissa, got {type(value).__name__}")

    def _dump(self) -> int:
        return self._mantissa

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> Any:
        return serde.decimal_core_schema(cls, cls._coerce, cls._dump)

    @classmethod
    def __get_pydantic_json_schema__(cls, core_schema: Any, handler: Any) -> dict[str, Any]:
        return {"type": "integer"}


@dataclass(frozen=True)
class OobFmt:
    """An out-of-band value paired with its scale, for display and parsing.

    Attributes:
        value: The out-of-band value
        scale: Scale to read the value at
    """

    value: OobScaleFpdec
    scale: int

    def __str__(self) -> str:
        return self.value.to_string(self.scale)

    def __format__(self, spec: str) -> str:
        """Format with an optional ``.precision`` spec."""
        if not spec:
            return str(self)
        if not (spec.startswith(".") and spec[1:].isdigit()):
            raise ValueError(f"Invalid format spec {spec!r} for OobFmt")
        return self.value.to_string(self.scale, int(spec[1:]))

    @classmethod
    def parse(cls, text: str, fpdec_type: type[OobScaleFpdec]) -> OobFmt:
        """Parse a string, guessing the scale from its digits.

        ``OobFmt.parse("3.14", OobScaleFpdec[I16])`` holds mantissa 314 at
        scale 2. An integer too large for the width gets a negative scale.

        Raises:
            ParseError: If the text is malformed or its digits do not fit
        """
        mantissa, scale = parse_guess_scale(text, fpdec_type.BACKEND)
        return cls(fpdec_type(mantissa), scale)

    def rescale(self, scale: int) -> OobScaleFpdec:
        """The value at another scale, exactly.

        Raises:
            ParseOverflow: If moving to a finer scale overflows
            ParseInexact: If moving to a coarser scale drops digits
        """
        try:
            return self.value.rescale(self.scale - scale)
        except Inexact as e:
            raise ParseInexact(str(e)) from e
        except Overflow as e:
            raise ParseOverflow(str(e)) from e

    def to_raw(self) -> dict[str, int]:
        """``{"mantissa": m, "scale": s}``."""
        return self.value.to_raw(self.scale)

    @classmethod
    def from_raw(cls, data: Mapping[str, Any], fpdec_type: type[OobScaleFpdec]) -> OobFmt:
        """Inverse of ``to_raw``.

        Raises:
            ValueError: If the mapping is malformed
            Overflow: If the mantissa does not fit the type
        """
        mantissa, scale = serde.raw_parts(data)
        return cls(fpdec_type(mantissa), scale)
