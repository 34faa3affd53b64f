"""
Cost Model Data Types

A cost model approximates an operation's resource cost as an affine
function of its input size: cost(size) = const_param + lin_param * size.
The floating-point form comes out of the fitter; the quantized integer
form is what the runtime metering layer actually evaluates.
"""

from dataclasses import dataclass
from typing import Any, Dict, NamedTuple
import math

U64_MAX = 2**64 - 1


class Sample(NamedTuple):
    """One empirical (input size, measured cost) observation."""
    size: int
    cost: int


@dataclass(frozen=True)
class CostModel:
    """
    Floating-point cost model produced by the fitter.

    r_squared is a diagnostic only. It is 0 for the degenerate constant
    model, where there is no independent variable to explain variance.
    """
    const_param: float
    lin_param: float
    r_squared: float = 0.0

    def evaluate(self, size: float) -> float:
        """Same as the integer evaluator, using float ops instead of saturation."""
        result = self.const_param
        if math.isfinite(size) and size != 0:
            result += self.lin_param * size
        return result

    @property
    def is_constant(self) -> bool:
        return self.lin_param == 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "const_param": self.const_param,
            "lin_param": self.lin_param,
            "r_squared": self.r_squared,
        }


@dataclass(frozen=True)
class QuantizedCostModel:
    """Integer cost model consumed by the runtime evaluator."""
    const_param: int
    lin_param: int

    def __post_init__(self):
        for name in ("const_param", "lin_param"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an int, got {type(value).__name__}")
            if value < 0 or value > U64_MAX:
                raise ValueError(f"{name}={value} outside u64 range")

    def to_dict(self) -> Dict[str, int]:
        return {
            "const_param": self.const_param,
            "lin_param": self.lin_param,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuantizedCostModel":
        return cls(
            const_param=int(data["const_param"]),
            lin_param=int(data["lin_param"]),
        )
