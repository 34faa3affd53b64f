"""
Integer Cost Evaluator

Runtime-side evaluation of a QuantizedCostModel. Uses saturating u64
arithmetic only: adversarial input sizes clamp at U64_MAX, they never
wrap or raise.
"""

from .types import QuantizedCostModel, U64_MAX


def saturating_add(a: int, b: int) -> int:
    return min(a + b, U64_MAX)


def saturating_mul(a: int, b: int) -> int:
    return min(a * b, U64_MAX)


def evaluate(model: QuantizedCostModel, size: int) -> int:
    """
    Charged cost for an input of the given size.

    cost = const_param                      if size == 0
    cost = const_param + lin_param * size   otherwise, saturating
    """
    if size < 0 or size > U64_MAX:
        raise ValueError(f"size={size} outside u64 range")

    cost = model.const_param
    if size != 0:
        cost = saturating_add(cost, saturating_mul(model.lin_param, size))
    return cost
