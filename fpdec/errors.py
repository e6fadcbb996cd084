"""Error types for fixed-point decimal arithmetic.

Every failure in the library is reported by raising one of these errors.
The façade types also offer ``checked_*`` methods which turn any
``FpdecError`` into ``None``:

    from fpdec import Overflow

    try:
        total = balance + fee
    except Overflow:
        ...

    total = balance.checked_add(fee)  # None on overflow
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Kinds of failure, shared by arithmetic and parsing."""

    EMPTY = "empty"
    INVALID = "invalid"
    OVERFLOW = "overflow"
    INEXACT = "inexact"
    DIV_BY_ZERO = "div_by_zero"


class FpdecError(ArithmeticError):
    """Base class for fixed-point decimal errors."""

    kind: ErrorKind

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind.value)


class Overflow(FpdecError):
    """Result or an intermediate value exceeds the mantissa range."""

    kind = ErrorKind.OVERFLOW


class Inexact(FpdecError):
    """Operation would lose precision and the rounding mode forbids it."""

    kind = ErrorKind.INEXACT


class DivisionByZero(FpdecError, ZeroDivisionError):
    """Division by zero."""

    kind = ErrorKind.DIV_BY_ZERO


class ParseError(FpdecError, ValueError):
    """Base class for errors reading a decimal string."""

    kind = ErrorKind.INVALID


class EmptyInput(ParseError):
    """Input had no digits."""

    kind = ErrorKind.EMPTY


class InvalidInput(ParseError):
    """Disallowed character or malformed structure."""

    kind = ErrorKind.INVALID


class ParseOverflow(ParseError, Overflow):
    """Parsed value does not fit the mantissa at the target scale."""

    kind = ErrorKind.OVERFLOW


class ParseInexact(ParseError, Inexact):
    """Parsed value has more precision than the target scale holds."""

    kind = ErrorKind.INEXACT


def fmt_int(value: int) -> str:
    """Render an int for an error message, by size when it is too long to print."""
    bits = value.bit_length()
    if bits > 256:
        return f"<{bits}-bit int>"
    return str(value)


__all__ = [
    "fmt_int",
    "ErrorKind",
    "FpdecError",
    "Overflow",
    "Inexact",
    "DivisionByZero",
    "ParseError",
    "EmptyInput",
    "InvalidInput",
    "ParseOverflow",
    "ParseInexact",
]
