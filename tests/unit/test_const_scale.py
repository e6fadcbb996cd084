"""Tests for const-scale decimal types."""

import math

import pytest

from fpdec import I32, I64, ConstScaleFpdec, CumulativeError, OobScaleFpdec, Rounding
from fpdec.base import FpdecBase
from fpdec.errors import DivisionByZero, FpdecError, Inexact, Overflow, ParseInexact
from tests.helpers import Balance, CeilingBalance, Qty, Qty16, Rate, Small, Tiny, Wide

R = Rounding


def bal(text: str) -> Balance:
    return Balance.from_str(text)


class TestDeclaration:
    """Tests for declaring const-scale types."""

    def test_class_attributes(self):
        """backend= and scale= become class constants."""
        assert Balance.SCALE == 2
        assert Balance.BACKEND is I64
        assert Balance.DIGITS == 18

    def test_shared_base_is_abstract(self):
        """FpdecBase only exists to be subclassed."""
        with pytest.raises(TypeError):
            FpdecBase(1)

    def test_constants(self):
        """ZERO, MIN_POSITIVE, MAX, MIN and MAX_POWER_OF_TEN."""
        assert Balance.ZERO.mantissa == 0
        assert str(Balance.MIN_POSITIVE) == "0.01"
        assert Balance.MAX.mantissa == 2**63 - 1
        assert Balance.MIN.mantissa == -(2**63)
        assert Balance.MAX_POWER_OF_TEN.mantissa == 10**18
        assert str(Tiny.MAX) == "12.7"
        assert str(Tiny.MIN) == "-12.8"
        assert isinstance(Balance.ZERO, Balance)

    def test_int_backend(self):
        """A bit width selects the backend."""

        class Amount(ConstScaleFpdec, backend=32, scale=3):
            pass

        assert Amount.BACKEND is I32
        assert str(Amount.MAX) == "2147483.647"

    def test_subclass_inherits(self):
        """Subclasses keep backend and scale and get their own constants."""

        class Fee(Balance):
            pass

        assert Fee.SCALE == 2
        assert isinstance(Fee.ZERO, Fee)

    def test_rounding_keyword(self):
        """rounding= accepts a mode or its name."""

        class FloorBalance(ConstScaleFpdec, backend=I64, scale=2, rounding="floor"):
            pass

        assert FloorBalance.ROUNDING is R.FLOOR
        assert CeilingBalance.ROUNDING is R.CEILING
        assert Balance.ROUNDING is R.ROUND

    def test_incomplete_declaration(self):
        """backend= without scale= is an error."""
        with pytest.raises(TypeError):

            class Broken(ConstScaleFpdec, backend=I64):
                pass

    def test_base_class_has_no_backend(self):
        """The base class cannot hold values."""
        with pytest.raises(TypeError):
            ConstScaleFpdec(5)

    def test_subscription(self):
        """ConstScaleFpdec[backend, scale] returns one cached type."""
        t = ConstScaleFpdec[I64, 2]
        assert t is ConstScaleFpdec[64, 2]
        assert t.__name__ == "ConstScaleFpdec[i64, 2]"
        assert t.SCALE == 2
        assert repr(t.from_str("1.5")) == "ConstScaleFpdec[i64, 2]('1.5')"

    def test_mantissa_checked(self):
        """The constructor takes a range-checked int mantissa."""
        assert Tiny(127).mantissa == 127
        with pytest.raises(Overflow):
            Tiny(128)
        with pytest.raises(TypeError):
            Balance(1.5)


class TestConstruction:
    """Tests for building values."""

    def test_from_str(self):
        """Strings parse exactly at the type's scale."""
        v = bal("12.60")
        assert v.mantissa == 1260
        assert repr(v) == "Balance('12.6')"

    def test_from_str_inexact(self):
        """More fractional digits than the scale is an error, not a rounding."""
        with pytest.raises(ParseInexact):
            bal("1.234")

    def test_from_int(self):
        """Integers are scaled up."""
        assert Balance.from_int(12).mantissa == 1200
        with pytest.raises(Overflow):
            Tiny.from_int(13)

    def test_from_float(self):
        """Floats round half away from zero."""
        assert str(Balance.from_float(3.1415)) == "3.14"
        assert str(Balance.from_float(-0.125)) == "-0.13"

    def test_raw(self):
        """Raw mappings rescale exactly into the type."""
        assert bal("12.6").to_raw() == {"mantissa": 1260, "scale": 2}
        assert Balance.from_raw({"mantissa": 126, "scale": 1}) == bal("12.6")
        assert Balance.from_raw({"mantissa": 126000, "scale": 4}) == bal("12.6")

    def test_raw_errors(self):
        """Digits below the scale or malformed mappings are rejected."""
        with pytest.raises(Inexact):
            Balance.from_raw({"mantissa": 1261, "scale": 3})
        with pytest.raises(ValueError):
            Balance.from_raw({"mantissa": 1261})
        with pytest.raises(ValueError):
            Balance.from_raw({"mantissa": "1261", "scale": 2})


class TestDisplay:
    """Tests for string conversion."""

    def test_str_drops_trailing_zeros(self):
        """str() is the shortest exact form."""
        assert str(bal("12.60")) == "12.6"
        assert str(bal("-0.05")) == "-0.05"

    def test_format_precision(self):
        """A .N format spec pads or rounds."""
        v = bal("12.6")
        assert f"{v}" == "12.6"
        assert f"{v:.4}" == "12.6000"
        assert f"{v:.0}" == "13"

    def test_format_invalid_spec(self):
        """Only .N is understood."""
        with pytest.raises(ValueError):
            format(bal("1"), "x")

    def test_to_string_rounding(self):
        """An explicit mode overrides the type's default."""
        assert bal("12.65").to_string(1) == "12.7"
        assert bal("12.65").to_string(1, R.FLOOR) == "12.6"
        assert CeilingBalance.from_str("12.61").to_string(1) == "12.7"


class TestAddSub:
    """Tests for addition and subtraction."""

    def test_add_sub(self):
        """Same-type values add and subtract mantissas."""
        assert bal("1.10") + bal("2.25") == bal("3.35")
        assert bal("1.10") - bal("2.25") == bal("-1.15")

    def test_scales_must_match(self):
        """Different scales do not add implicitly."""
        with pytest.raises(TypeError):
            bal("1") + Rate.from_str("1")
        with pytest.raises(TypeError, match="backends or scales differ"):
            bal("1").add(Rate.from_str("1"))

    def test_overflow(self):
        """Sums beyond the width overflow."""
        with pytest.raises(Overflow):
            Tiny.MAX + Tiny.MIN_POSITIVE
        with pytest.raises(Overflow):
            Tiny.MIN - Tiny.MIN_POSITIVE

    def test_checked(self):
        """checked_add/checked_sub return None on overflow."""
        assert Tiny.MAX.checked_add(Tiny.MIN_POSITIVE) is None
        assert Tiny.MIN.checked_sub(Tiny.MIN_POSITIVE) is None
        assert Tiny.MAX.checked_sub(Tiny.MIN_POSITIVE) == Tiny(126)


class TestMul:
    """Tests for multiplication."""

    def test_fee_accrual(self):
        """Ceiling fees of 1% on 12.60, three times, with one cell."""
        balance = bal("12.60")
        rate = Rate.from_str("0.0100")
        cum = CumulativeError()
        fees = [str(balance.mul(rate, Balance, R.CEILING, cum)) for _ in range(3)]
        assert fees == ["0.13", "0.13", "0.12"]

    def test_operator(self):
        """v * w keeps the left type."""
        assert bal("1.5") * bal("2") == bal("3")
        assert bal("1.25") * bal("1.25") == bal("1.56")

    def test_result_type(self):
        """The result scale comes from the result type."""
        assert str(bal("1.25").mul(bal("1.25"), Rate)) == "1.5625"

    def test_int(self):
        """Integers multiply on either side."""
        assert bal("1.5") * 3 == bal("4.5")
        assert 3 * bal("1.5") == bal("4.5")

    def test_backends_must_match(self):
        """Operands and result share one backend."""
        with pytest.raises(TypeError):
            bal("1") * Small.from_str("1")
        with pytest.raises(TypeError):
            bal("1").mul(bal("1"), Small)

    def test_overflow(self):
        """Products beyond the width overflow or return None."""
        two = bal("2")
        with pytest.raises(Overflow):
            Balance.MAX * two
        assert Balance.MAX.checked_mul(two) is None

    def test_unexpected(self):
        """UNEXPECTED refuses to round the product."""
        with pytest.raises(Inexact):
            bal("1.25").mul(bal("1.25"), rounding=R.UNEXPECTED)

    def test_wide(self):
        """128-bit products beyond 128 bits keep every digit."""
        v = Wide.from_str("12345678901234567890.123456789012345678")
        assert str(v * Wide.from_str("2")) == "24691357802469135780.246913578024691356"


class TestDiv:
    """Tests for division."""

    def test_div(self):
        """10 / 3 at scale 2 and at scale 4."""
        ten, three = bal("10.00"), bal("3.00")
        assert str(ten / three) == "3.33"
        assert str(ten.div(three, Rate)) == "3.3333"
        assert str(ten.div(three, rounding=R.CEILING)) == "3.34"

    def test_division_by_zero(self):
        """Zero divisors raise or return None."""
        with pytest.raises(DivisionByZero):
            bal("1") / Balance.ZERO
        assert bal("1").checked_div(Balance.ZERO) is None

    def test_unexpected_leaves_cell_untouched(self):
        """A failed division does not write to the cell."""
        cum = CumulativeError()
        with pytest.raises(Inexact):
            bal("10").div(bal("3"), rounding=R.UNEXPECTED, cum_error=cum)
        assert cum == 0

    def test_default_rounding_of_type(self):
        """Types can round up by default."""
        assert str(CeilingBalance.from_str("10") / CeilingBalance.from_str("3")) == "3.34"


class TestIntOps:
    """Tests for integer multiplication, division and ratios."""

    def test_div_int(self):
        """Division by an integer keeps the scale."""
        assert str(bal("10").div_int(3)) == "3.33"
        assert str(bal("10").div_int(3, R.CEILING)) == "3.34"
        assert str(bal("2") / 4) == "0.5"

    def test_div_int_errors(self):
        """Zero, out-of-range divisors and MIN / -1."""
        with pytest.raises(DivisionByZero):
            bal("1").div_int(0)
        with pytest.raises(Overflow):
            bal("1").div_int(2**64)
        with pytest.raises(Overflow):
            Balance.MIN.div_int(-1)
        assert Balance.MIN.checked_div_int(-1) is None

    def test_mul_int_overflow(self):
        """Integer products are checked."""
        assert Tiny.from_str("6.3").checked_mul_int(2) == Tiny(126)
        assert Tiny.from_str("6.4").checked_mul_int(2) is None

    def test_mul_ratio_ints(self):
        """self * a / b without intermediate overflow."""
        assert str(bal("100").mul_ratio(1, 3)) == "33.33"
        assert str(Balance.MAX.mul_ratio(3, 3)) == str(Balance.MAX)

    def test_mul_ratio_values(self):
        """The scales of two same-type values cancel."""
        assert str(bal("100").mul_ratio(Rate.from_str("0.5"), Rate.from_str("1.5"))) == "33.33"

    def test_mul_ratio_rejects_mixed(self):
        """An int and a value, or two different types, are rejected."""
        with pytest.raises(TypeError):
            bal("1").mul_ratio(1, Rate.from_str("1"))
        with pytest.raises(TypeError):
            bal("1").mul_ratio(bal("1"), Rate.from_str("1"))

    def test_checked_mul_ratio(self):
        """Zero denominators give None."""
        assert bal("1").checked_mul_ratio(1, 0) is None


class TestSignAndComparison:
    """Tests for sign queries, negation and ordering."""

    def test_sign(self):
        """is_zero/is_neg/is_pos/signum/bool."""
        assert Balance.ZERO.is_zero()
        assert not Balance.ZERO
        assert bal("-1").is_neg()
        assert bal("1").is_pos()
        assert [v.signum() for v in (bal("-2"), Balance.ZERO, bal("0.01"))] == [-1, 0, 1]

    def test_neg_abs(self):
        """Negation and absolute value act on the mantissa."""
        assert -bal("1.5") == bal("-1.5")
        assert abs(bal("-1.5")) == bal("1.5")
        assert +bal("1.5") == bal("1.5")

    def test_neg_min(self):
        """The most negative value has no positive counterpart."""
        with pytest.raises(Overflow):
            -Tiny.MIN
        with pytest.raises(Overflow):
            abs(Tiny.MIN)
        assert Tiny.MIN.checked_neg() is None
        assert Tiny.MIN.checked_abs() is None
        assert Tiny.MAX.checked_neg() == Tiny(-127)

    def test_ordering(self):
        """Values order by mantissa."""
        values = [bal("2"), bal("-1"), bal("0.5")]
        assert sorted(values) == [bal("-1"), bal("0.5"), bal("2")]
        assert bal("1") <= bal("1")
        assert bal("2") > bal("1")

    def test_equal_across_declarations(self):
        """Types with the same backend and scale compare and hash alike."""
        anon = ConstScaleFpdec[I64, 2].from_str("1")
        assert anon == bal("1")
        assert hash(anon) == hash(bal("1"))
        assert len({anon, bal("1")}) == 1

    def test_different_scales_never_equal(self):
        """Same mantissa, different scale: not equal and not ordered."""
        assert bal("1") != Rate.from_str("0.01")
        assert bal("1") != 1
        with pytest.raises(TypeError):
            bal("1") < Rate.from_str("1")


class TestRounding:
    """Tests for rounding to fewer digits and to native numbers."""

    def test_round_with_rounding(self):
        """Digits below the scale argument are rounded away."""
        assert bal("1.26").round_with_rounding(1) == bal("1.3")
        assert bal("1.26").round_with_rounding(1, R.FLOOR) == bal("1.2")
        assert bal("1234.56").round_with_rounding(-1) == bal("1230")

    def test_round_builtin(self):
        """round() rounds half away from zero."""
        assert round(bal("1.25"), 1) == bal("1.3")
        assert round(bal("2.5")) == 3
        assert round(bal("-2.5")) == -3

    def test_checked_round(self):
        """Rounding 12.7 up to 13 overflows i8."""
        assert Tiny.MAX.checked_round(0, R.CEILING) is None
        assert Tiny.MAX.checked_round(0, R.FLOOR) == Tiny(120)

    def test_int_float(self):
        """int() truncates; float() is the nearest float."""
        assert int(bal("-2.7")) == -2
        assert bal("-2.7").to_int(R.FLOOR) == -3
        assert float(bal("12.6")) == 12.6


class TestConvert:
    """Tests for exact conversion between const-scale types."""

    def test_finer_scale(self):
        """12.6 at scale 4."""
        assert Rate.from_str("12.6") == bal("12.6").convert(Rate)

    def test_coarser_scale_inexact(self):
        """0.0125 has no exact scale-2 form."""
        with pytest.raises(Inexact):
            Rate.from_str("0.0125").convert(Balance)
        assert Rate.from_str("0.0100").convert(Balance) == bal("0.01")

    def test_narrower_width(self):
        """Values that do not fit the narrower width overflow."""
        with pytest.raises(Overflow):
            Balance.MAX.convert(Small)
        assert Balance.MAX.checked_convert(Small) is None
        assert bal("327.67").convert(Small) == Small.MAX

    def test_wider_width(self):
        """The wider backend holds the rescaled mantissa."""
        assert str(Small.from_str("1.5").convert(Wide)) == "1.5"
        assert Tiny.from_str("1.5").convert(Small) == Small.from_str("1.5")


class TestExtremeScales:
    """Tests for scales far beyond the digit capacity."""

    def test_large_negative_scale_display(self):
        """7 at scale -5000 prints as 7 followed by 5000 zeros."""
        coarse = ConstScaleFpdec[I64, -5000]
        v = coarse(7)
        assert str(v) == "7" + "0" * 5000
        assert coarse.from_str(str(v)) == v
        assert str(coarse(-7)) == "-7" + "0" * 5000

    def test_large_negative_scale_conversions(self):
        """to_int is exact; to_float saturates to infinity."""
        v = ConstScaleFpdec[I64, -5000](7)
        assert v.to_int() == 7 * 10**5000
        assert float(v) == math.inf
        assert ConstScaleFpdec[I64, -5000](0).to_int() == 0

    @pytest.mark.parametrize(
        "mantissa,rounding,expected",
        [
            (7, R.ROUND, 0),
            (7, R.CEILING, 1),
            (-7, R.FLOOR, -1),
            (-7, R.AWAY_FROM_ZERO, -1),
            (7, R.TOWARD_ZERO, 0),
        ],
    )
    def test_large_positive_scale_to_int(self, mantissa, rounding, expected):
        """7 * 10^-5000 rounds to a whole number by the mode."""
        assert ConstScaleFpdec[I64, 5000](mantissa).to_int(rounding) == expected

    def test_large_positive_scale_float(self):
        """Far below the float range the value is zero."""
        assert float(ConstScaleFpdec[I64, 5000](7)) == 0.0

    def test_from_float_int_too_large(self):
        """A float-overflowing int is a library Overflow."""
        with pytest.raises(Overflow):
            Balance.from_float(10**400)
        with pytest.raises(FpdecError):
            Balance.from_float(10**400)

    def test_from_int_too_long_to_print(self):
        """The overflow message describes the int by size."""
        with pytest.raises(Overflow, match="bit int"):
            Balance.from_int(10**5000)


class TestOobInterop:
    """Tests for switching between const-scale and out-of-band shapes."""

    def test_to_oob(self):
        """The mantissa is kept, the scale is dropped."""
        oob = bal("12.6").to_oob()
        assert type(oob) is OobScaleFpdec[I64]
        assert oob.mantissa == 1260

    def test_from_oob(self):
        """The type's scale is attached to the mantissa."""
        assert Balance.from_oob(Qty(1260)) == bal("12.6")

    def test_from_oob_backend_mismatch(self):
        """Backends must match."""
        with pytest.raises(TypeError):
            Balance.from_oob(Qty16(5))


class TestCheckedLogging:
    """Failures swallowed by checked_* are logged at debug level."""

    def test_checked_failure_logged(self, logs):
        """The event names the operation and the error kind."""
        assert Tiny.MAX.checked_add(Tiny.MIN_POSITIVE) is None
        assert logs == [
            {
                "event": "fpdec_checked_op_failed",
                "log_level": "debug",
                "op": "add",
                "kind": "overflow",
                "type": "Tiny",
            }
        ]

    def test_success_not_logged(self, logs):
        """Successful checked operations stay quiet."""
        assert bal("1").checked_add(bal("1")) == bal("2")
        assert logs == []
