"""
COST CALIBRATION - Cost Model Core

Turns benchmarked (size, cost) samples into conservative integer cost
models for the host metering layer:
- Fitter: pinned least-squares affine fit with degenerate-case handling
- Quantizer: round-to-one-decimal then ceiling
- Evaluator: saturating u64 evaluation
"""

from .types import Sample, CostModel, QuantizedCostModel, U64_MAX
from .errors import (
    CostModelError,
    InvalidSampleSetError,
    NonMonotoneCostFitError,
    UndefinedFitQualityError,
    QuantizationError,
    NegativeParameterError,
    UncalibratedOperationError,
)
from .fitter import fit_model, fit_samples, compute_r_squared
from .quantizer import quantize, quantize_param
from .evaluator import evaluate

__all__ = [
    "Sample",
    "CostModel",
    "QuantizedCostModel",
    "U64_MAX",
    "CostModelError",
    "InvalidSampleSetError",
    "NonMonotoneCostFitError",
    "UndefinedFitQualityError",
    "QuantizationError",
    "NegativeParameterError",
    "UncalibratedOperationError",
    "fit_model",
    "fit_samples",
    "compute_r_squared",
    "quantize",
    "quantize_param",
    "evaluate",
]
