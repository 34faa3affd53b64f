"""
Quantizer

Converts a floating-point CostModel into the integer parameters the
runtime evaluator consumes. Each parameter is rounded to one decimal
digit (filters fit noise) and then ceiled, so the runtime never charges
less than the rounded model predicts.
"""

import math

import structlog

from .errors import NegativeParameterError, QuantizationError
from .types import CostModel, QuantizedCostModel, U64_MAX

logger = structlog.get_logger()


def round_to_one_decimal(value: float) -> float:
    """Round to one decimal digit the way the value would be printed."""
    return float(f"{value:.1f}")


def quantize_param(value: float, name: str = "param") -> int:
    """
    Quantize a single non-negative real parameter.

    Raises:
        NegativeParameterError: value < 0
        QuantizationError: value not finite or above u64 max
    """
    if not math.isfinite(value):
        raise QuantizationError(f"Cost model parameter {name}={value!r} is not finite")
    if value < 0:
        raise NegativeParameterError(name, value)

    quantized = math.ceil(round_to_one_decimal(value))
    if quantized > U64_MAX:
        raise QuantizationError(f"Cost model parameter {name}={value!r} exceeds u64 range")
    return quantized


def quantize(model: CostModel) -> QuantizedCostModel:
    """Quantize both parameters of a fitted model."""
    quantized = QuantizedCostModel(
        const_param=quantize_param(model.const_param, "const_param"),
        lin_param=quantize_param(model.lin_param, "lin_param"),
    )
    logger.debug(
        "cost_model_quantized",
        const_param=model.const_param,
        lin_param=model.lin_param,
        quantized_const=quantized.const_param,
        quantized_lin=quantized.lin_param,
    )
    return quantized
