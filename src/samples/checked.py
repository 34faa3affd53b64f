"""
Checked Numeric Operations

One generic checked binary operation, parameterized by a numeric kind
(bit width and signedness) and an operation descriptor. Results outside
the kind's range signal ArithmeticOverflowError instead of wrapping.

Used by the NumOp benchmark to exercise the same arithmetic the host
charges for.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional


class ArithmeticOverflowError(ArithmeticError):
    """Raised when a checked operation leaves its numeric kind's range."""

    def __init__(self, kind: str, op: str, lhs: int, rhs: int):
        self.kind = kind
        self.op = op
        self.lhs = lhs
        self.rhs = rhs
        super().__init__(f"overflow has occurred: {kind}.{op}({lhs}, {rhs})")


@dataclass(frozen=True)
class NumericKind:
    """A fixed-width integer type."""
    name: str
    bits: int
    signed: bool

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value


U64 = NumericKind("u64", 64, False)
I64 = NumericKind("i64", 64, True)
U128 = NumericKind("u128", 128, False)
I128 = NumericKind("i128", 128, True)
U256 = NumericKind("u256", 256, False)
I256 = NumericKind("i256", 256, True)

NUMERIC_KINDS: Dict[str, NumericKind] = {
    k.name: k for k in (U64, I64, U128, I128, U256, I256)
}


def _trunc_div(lhs: int, rhs: int) -> Optional[int]:
    if rhs == 0:
        return None
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient


def _trunc_rem(lhs: int, rhs: int) -> Optional[int]:
    quotient = _trunc_div(lhs, rhs)
    return None if quotient is None else lhs - rhs * quotient


def _pow(lhs: int, rhs: int) -> Optional[int]:
    return None if rhs < 0 else lhs ** rhs


def _shl(lhs: int, rhs: int, kind: NumericKind) -> Optional[int]:
    if rhs < 0 or rhs >= kind.bits:
        return None
    # Shifting is modular in the kind's width, like the fixed-width ops it mirrors
    shifted = (lhs << rhs) & ((1 << kind.bits) - 1)
    if kind.signed and shifted > kind.max_value:
        shifted -= 1 << kind.bits
    return shifted


def _shr(lhs: int, rhs: int, kind: NumericKind) -> Optional[int]:
    if rhs < 0 or rhs >= kind.bits:
        return None
    return lhs >> rhs


@dataclass(frozen=True)
class CheckedOp:
    """
    Descriptor for a checked binary operation.

    apply returns None when the operation itself is undefined
    (division by zero, out-of-range shift); range checking is done by
    checked_binop.
    """
    name: str
    apply: Callable[[int, int, NumericKind], Optional[int]]
    rhs_is_u32: bool = False


CHECKED_OPS: Dict[str, CheckedOp] = {
    "add": CheckedOp("add", lambda a, b, k: a + b),
    "sub": CheckedOp("sub", lambda a, b, k: a - b),
    "mul": CheckedOp("mul", lambda a, b, k: a * b),
    "div": CheckedOp("div", lambda a, b, k: _trunc_div(a, b)),
    "rem": CheckedOp("rem", lambda a, b, k: _trunc_rem(a, b)),
    "pow": CheckedOp("pow", lambda a, b, k: _pow(a, b), rhs_is_u32=True),
    "shl": CheckedOp("shl", _shl, rhs_is_u32=True),
    "shr": CheckedOp("shr", _shr, rhs_is_u32=True),
}


def checked_binop(kind: NumericKind, op: CheckedOp, lhs: int, rhs: int) -> int:
    """
    Apply op to lhs and rhs as values of kind.

    Raises:
        ValueError: an operand is not a value of its declared kind
        ArithmeticOverflowError: the result is undefined or out of range
    """
    if not kind.contains(lhs):
        raise ValueError(f"lhs {lhs} is not a valid {kind.name}")
    if op.rhs_is_u32:
        if not 0 <= rhs <= 0xFFFFFFFF:
            raise ValueError(f"rhs {rhs} is not a valid u32")
    elif not kind.contains(rhs):
        raise ValueError(f"rhs {rhs} is not a valid {kind.name}")

    if op.name == "pow" and rhs > kind.bits and abs(lhs) > 1:
        # Certain to overflow; skip building a huge intermediate
        raise ArithmeticOverflowError(kind.name, op.name, lhs, rhs)

    result = op.apply(lhs, rhs, kind)
    if result is None or not kind.contains(result):
        raise ArithmeticOverflowError(kind.name, op.name, lhs, rhs)
    return result


def checked(kind_name: str, op_name: str, lhs: int, rhs: int) -> int:
    """checked_binop by name, e.g. checked("u128", "mul", a, b)."""
    try:
        kind = NUMERIC_KINDS[kind_name]
        op = CHECKED_OPS[op_name]
    except KeyError as e:
        raise ValueError(f"Unknown numeric kind or operation: {e}") from e
    return checked_binop(kind, op, lhs, rhs)
