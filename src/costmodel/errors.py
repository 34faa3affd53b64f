"""
Cost Model Errors

Calibration-time errors are local to one operation's fit. Runtime
evaluation has no error path: saturating arithmetic is total.
"""

from typing import Optional


class CostModelError(Exception):
    """Base class for all cost-model errors."""
    pass


class InvalidSampleSetError(CostModelError):
    """Raised when a sample set is empty, mismatched, or out of range.

    Recoverable by the caller: re-collect the samples.
    """
    pass


class NonMonotoneCostFitError(CostModelError):
    """Raised when the fitted slope is not strictly positive.

    This signals bad measurement data and must be surfaced to the operator.
    The fitter never falls back to a different model.
    """

    def __init__(self, lin_param: float, operation: Optional[str] = None):
        self.lin_param = lin_param
        self.operation = operation
        target = f" for {operation}" if operation else ""
        super().__init__(
            f"Non-positive slope {lin_param!r} detected{target}; "
            "examine the data or measure a constant model"
        )


class UndefinedFitQualityError(CostModelError):
    """Raised when r_squared has zero total variance but non-zero residuals."""

    def __init__(self, ss_res: float):
        self.ss_res = ss_res
        super().__init__(
            f"Fit quality undefined: total variance is zero but residual sum is {ss_res!r}"
        )


class QuantizationError(CostModelError):
    """Raised when a fitted parameter cannot be stored as a u64."""
    pass


class NegativeParameterError(QuantizationError):
    """Raised when a negative parameter reaches the quantizer."""

    def __init__(self, name: str, value: float):
        self.name = name
        self.value = value
        super().__init__(f"Cost model parameter {name}={value!r} is negative")


class UncalibratedOperationError(CostModelError, KeyError):
    """Raised when the metering layer asks for an operation with no model.

    A host configuration error, distinct from contract-level failures.
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(operation)

    def __str__(self) -> str:
        return f"Operation not calibrated: {self.operation}"
