"""
Cost Model Fitter

Reduces one operation's (size, cost) samples to a two-parameter affine
cost model.

Strategy:
1. Degenerate constant: every sample has the same size, so cost does not
   vary with input in the sampled range. Predict the mean.
2. Pinned fit: least squares over coordinates shifted by the first sample,
   so the line always passes through (x0, y0). An unconstrained two-parameter
   fit produces wild intercepts when the size range starts far from zero.
3. Slope gate: a non-positive slope is bad measurement data. Fatal.
4. Intercept correction: a negative intercept is refit through the origin.

The first sample is assumed to be representative and to carry the
smallest size. No outlier-robust fitting is attempted.
"""

from typing import List, Optional, Sequence
import math
import numbers

import numpy as np
import structlog

from .errors import InvalidSampleSetError, NonMonotoneCostFitError, UndefinedFitQualityError
from .types import CostModel, Sample, U64_MAX

logger = structlog.get_logger()

# Singular value cutoff for the one-column least squares solves
LSTSQ_RCOND = 1e-14

# Residual sums at or below this are treated as an exact fit
EXACT_FIT_TOLERANCE = 1e-9


def _as_u64_list(values: Sequence[int], name: str) -> List[int]:
    result = []
    for i, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise InvalidSampleSetError(
                f"{name}[{i}]={value!r} is not an integer"
            )
        value = int(value)
        if value < 0 or value > U64_MAX:
            raise InvalidSampleSetError(f"{name}[{i}]={value} outside u64 range")
        result.append(value)
    return result


def validate_samples(x: Sequence[int], y: Sequence[int]) -> tuple[List[int], List[int]]:
    """
    Check a sample set before fitting.

    Returns the sizes and costs as plain int lists.
    Raises InvalidSampleSetError for empty, mismatched or out-of-range input.
    """
    if len(x) != len(y):
        raise InvalidSampleSetError(
            f"Sample length mismatch: {len(x)} sizes, {len(y)} costs"
        )
    if len(x) == 0:
        raise InvalidSampleSetError("Sample set is empty")

    return _as_u64_list(x, "x"), _as_u64_list(y, "y")


def compute_r_squared(
    x: Sequence[float],
    y: Sequence[float],
    const_param: float,
    lin_param: float,
) -> float:
    """
    Coefficient of determination of const_param + lin_param * x against y.

    With zero total variance the ratio is undefined. An exact fit then
    scores 1.0; anything else raises UndefinedFitQualityError.
    """
    x_arr = np.asarray(x, dtype=np.float64)
    y_arr = np.asarray(y, dtype=np.float64)
    if x_arr.shape != y_arr.shape:
        raise InvalidSampleSetError(
            f"Sample length mismatch: {x_arr.size} sizes, {y_arr.size} costs"
        )

    predicted = const_param + lin_param * x_arr
    ss_res = float(np.sum((y_arr - predicted) ** 2))
    ss_tot = float(np.sum((y_arr - y_arr.mean()) ** 2))

    if ss_tot == 0.0:
        if math.isclose(ss_res, 0.0, abs_tol=EXACT_FIT_TOLERANCE):
            return 1.0
        raise UndefinedFitQualityError(ss_res)

    return 1.0 - ss_res / ss_tot


def _solve_slope(a: np.ndarray, b: np.ndarray) -> float:
    """Least squares for the single unknown in b = slope * a."""
    solution, _, _, _ = np.linalg.lstsq(a.reshape(-1, 1), b, rcond=LSTSQ_RCOND)
    assert solution.shape == (1,)
    return float(solution[0])


def fit_model(
    x: Sequence[int],
    y: Sequence[int],
    operation: Optional[str] = None,
) -> CostModel:
    """
    Fit a cost model to sizes x and measured costs y.

    Args:
        x: Input sizes, non-decreasing, first entry the pin point
        y: Measured costs, same length as x
        operation: Operation name, used for logging only

    Returns:
        The fitted CostModel

    Raises:
        InvalidSampleSetError: empty or mismatched input
        NonMonotoneCostFitError: fitted slope <= 0
        UndefinedFitQualityError: zero total variance with non-zero residuals
    """
    sizes, costs = validate_samples(x, y)

    if len(set(sizes)) == 1:
        const_param = sum(costs) / len(costs)
        logger.info(
            "constant_cost_model",
            operation=operation,
            size=sizes[0],
            const_param=const_param,
            samples=len(costs),
        )
        return CostModel(const_param=const_param, lin_param=0.0, r_squared=0.0)

    if any(b < a for a, b in zip(sizes, sizes[1:])):
        logger.warning(
            "sample_sizes_not_sorted",
            operation=operation,
            pin_size=sizes[0],
            min_size=min(sizes),
        )

    x_arr = np.asarray(sizes, dtype=np.float64)
    y_arr = np.asarray(costs, dtype=np.float64)

    # Pin the line through the first observed point
    x0 = x_arr[0]
    y0 = y_arr[0]
    lin_param = _solve_slope(x_arr - x0, y_arr - y0)
    const_param = float(y0 - lin_param * x0)
    r_squared = compute_r_squared(x_arr, y_arr, const_param, lin_param)

    if lin_param <= 0.0:
        logger.error(
            "non_monotone_cost_fit",
            operation=operation,
            lin_param=lin_param,
            pin_size=float(x0),
            pin_cost=float(y0),
        )
        raise NonMonotoneCostFitError(lin_param, operation)

    if const_param < 0.0:
        logger.warning(
            "negative_intercept_refit",
            operation=operation,
            const_param=const_param,
            pinned_lin_param=lin_param,
        )
        lin_param = _solve_slope(x_arr, y_arr)
        const_param = 0.0
        r_squared = compute_r_squared(x_arr, y_arr, const_param, lin_param)

    logger.info(
        "cost_model_fitted",
        operation=operation,
        const_param=const_param,
        lin_param=lin_param,
        r_squared=r_squared,
        samples=len(sizes),
    )

    return CostModel(const_param=const_param, lin_param=lin_param, r_squared=r_squared)


def fit_samples(samples: Sequence[Sample], operation: Optional[str] = None) -> CostModel:
    """Fit a cost model to a sequence of Sample pairs."""
    return fit_model(
        [s.size for s in samples],
        [s.cost for s in samples],
        operation=operation,
    )
