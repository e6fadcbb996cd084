#!/usr/bin/env python3
"""Benchmark fpdec against the standard library decimal module.

Runs the same operations on both (fixed-scale decimal mul, div, parse and
format) and reports time per operation.

Usage:
    python scripts/bench_vs_decimal.py [--iterations N] [--bits 64] [--scale 8]
    python scripts/bench_vs_decimal.py --format json
"""

import argparse
import decimal
import json
import sys
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path

import structlog

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fpdec import ConstScaleFpdec, Overflow, Rounding, backend_for_bits  # noqa: E402

logger = structlog.get_logger()

OPERANDS = ["12.34567891", "0.98765432", "-3.14159265", "1000.5", "7.00000001"]


@dataclass
class OpTiming:
    """Timing of one operation on both implementations."""

    op: str
    fpdec_ns: float
    decimal_ns: float

    @property
    def speedup(self) -> float:
        if self.fpdec_ns == 0:
            return 0.0
        return self.decimal_ns / self.fpdec_ns


def time_per_op(fn: Callable[[], object], iterations: int) -> float:
    """Average nanoseconds per call of fn."""
    start = time.perf_counter_ns()
    for _ in range(iterations):
        fn()
    return (time.perf_counter_ns() - start) / iterations


def run(iterations: int, bits: int, scale: int) -> list[OpTiming]:
    fpdec_type = ConstScaleFpdec[backend_for_bits(bits), scale]
    quantum = decimal.Decimal(1).scaleb(-scale)
    ctx = decimal.Context(prec=60, rounding=decimal.ROUND_HALF_UP)

    fx = []
    for text in OPERANDS:
        try:
            fx.append(fpdec_type.from_float(float(text)))
        except Overflow:
            logger.warning("operand_skipped", operand=text, type=fpdec_type.__name__)
    if not fx:
        raise SystemExit(f"No operand fits {fpdec_type.__name__}")
    dx = [ctx.create_decimal(str(v)) for v in fx]
    n = len(fx)

    # Checked twins: narrow widths overflow on some operand pairs
    ops: dict[str, tuple[Callable[[int], object], Callable[[int], object]]] = {
        "mul": (
            lambda i: fx[i % n].checked_mul(fx[(i + 1) % n], rounding=Rounding.ROUND),
            lambda i: ctx.multiply(dx[i % n], dx[(i + 1) % n]).quantize(quantum, context=ctx),
        ),
        "div": (
            lambda i: fx[i % n].checked_div(fx[(i + 1) % n], rounding=Rounding.ROUND),
            lambda i: ctx.divide(dx[i % n], dx[(i + 1) % n]).quantize(quantum, context=ctx),
        ),
        "parse": (
            lambda i: fpdec_type.from_str(str(fx[i % n])),
            lambda i: ctx.create_decimal(str(dx[i % n])).quantize(quantum, context=ctx),
        ),
        "format": (
            lambda i: str(fx[i % n]),
            lambda i: str(dx[i % n]),
        ),
    }

    timings = []
    for op, (fpdec_fn, decimal_fn) in ops.items():
        counter = iter(range(iterations * 2))
        fpdec_ns = time_per_op(lambda: fpdec_fn(next(counter)), iterations)
        decimal_ns = time_per_op(lambda: decimal_fn(next(counter)), iterations)
        timing = OpTiming(op=op, fpdec_ns=fpdec_ns, decimal_ns=decimal_ns)
        logger.info(
            "benchmark_op_complete",
            op=op,
            fpdec_ns=round(fpdec_ns, 1),
            decimal_ns=round(decimal_ns, 1),
            speedup=round(timing.speedup, 2),
        )
        timings.append(timing)
    return timings


def print_table(timings: list[OpTiming], bits: int, scale: int) -> None:
    print(f"fpdec i{bits} scale {scale} vs decimal.Decimal")
    print("=" * 60)
    print(f"{'op':<10}{'fpdec ns/op':>16}{'decimal ns/op':>16}{'ratio':>10}")
    print("-" * 60)
    for t in timings:
        print(f"{t.op:<10}{t.fpdec_ns:>16.1f}{t.decimal_ns:>16.1f}{t.speedup:>10.2f}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark fpdec against the decimal module")
    parser.add_argument(
        "--iterations",
        "-n",
        type=int,
        default=100_000,
        help="Calls per operation (default: 100000)",
    )
    parser.add_argument(
        "--bits",
        type=int,
        choices=[8, 16, 32, 64, 128],
        default=64,
        help="Mantissa width (default: 64)",
    )
    parser.add_argument(
        "--scale",
        type=int,
        default=8,
        help="Decimal scale (default: 8)",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    # Configure logging
    import logging

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )

    if args.iterations <= 0:
        logger.error("invalid_iterations", iterations=args.iterations)
        return 1

    timings = run(args.iterations, args.bits, args.scale)

    if args.format == "json":
        print(json.dumps([asdict(t) | {"speedup": t.speedup} for t in timings], indent=2))
    else:
        print_table(timings, args.bits, args.scale)
    return 0


if __name__ == "__main__":
    sys.exit(main())
