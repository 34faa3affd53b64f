"""
COST CALIBRATION - Sample Collection

Producers of (size, cost) samples for the calibration run:
- RecordedSampleSource: samples loaded from JSON / JSON Lines files
- BenchmarkSampleSource: in-process timing of host primitives
"""

from .source import (
    SampleSource,
    RecordedSampleSource,
    SampleSourceError,
    UnsupportedOperationError,
)
from .benchmarks import Benchmark, BenchmarkSampleSource, BENCHMARKS
from .checked import (
    ArithmeticOverflowError,
    NumericKind,
    CheckedOp,
    checked_binop,
    checked,
    NUMERIC_KINDS,
    CHECKED_OPS,
)

__all__ = [
    "SampleSource",
    "RecordedSampleSource",
    "SampleSourceError",
    "UnsupportedOperationError",
    "Benchmark",
    "BenchmarkSampleSource",
    "BENCHMARKS",
    "ArithmeticOverflowError",
    "NumericKind",
    "CheckedOp",
    "checked_binop",
    "checked",
    "NUMERIC_KINDS",
    "CHECKED_OPS",
]
