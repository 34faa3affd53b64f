"""
COST CALIBRATION - Metering Module

Cost model tables and their runtime consumer:
- CostModelTable: immutable operation -> quantized model mapping
- calibrate: batch fit of every operation's samples
- CostMeter: charges operations against a table, with optional budget
"""

from .operations import CostType, operation_id
from .config import CalibrationConfig
from .table import (
    CostModelTable,
    CalibrationReport,
    OperationFailure,
    calibrate,
)
from .meter import CostMeter, BudgetExceededError

__all__ = [
    "CostType",
    "operation_id",
    "CalibrationConfig",
    "CostModelTable",
    "CalibrationReport",
    "OperationFailure",
    "calibrate",
    "CostMeter",
    "BudgetExceededError",
]
