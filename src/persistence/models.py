"""
Data Models for Persistence Layer

These mirror the cost model domain objects but are shaped for storage.
u64 parameters travel as decimal strings so they round-trip exactly.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from costmodel.types import QuantizedCostModel


@dataclass
class CalibrationRunRecord:
    """Persisted calibration run header."""
    fingerprint: str
    calibrated_at: str
    operation_count: int
    stored_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    active: bool = True
    run_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "fingerprint": self.fingerprint,
            "calibrated_at": self.calibrated_at,
            "stored_at": self.stored_at,
            "operation_count": self.operation_count,
            "active": self.active,
        }

    def to_db_tuple(self) -> tuple:
        return (
            self.fingerprint,
            self.calibrated_at,
            self.stored_at,
            self.operation_count,
            1 if self.active else 0,
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CalibrationRunRecord":
        return cls(
            run_id=row.get("run_id"),
            fingerprint=row["fingerprint"],
            calibrated_at=row["calibrated_at"],
            stored_at=row["stored_at"],
            operation_count=row["operation_count"],
            active=bool(row.get("active", 1)),
        )


@dataclass
class CostModelRecord:
    """Persisted quantized cost model for one operation."""
    operation: str
    const_param: int
    lin_param: int
    r_squared: Optional[float] = None
    run_id: Optional[int] = None

    def to_model(self) -> QuantizedCostModel:
        return QuantizedCostModel(const_param=self.const_param, lin_param=self.lin_param)

    def to_db_tuple(self) -> tuple:
        return (
            self.run_id,
            self.operation,
            str(self.const_param),
            str(self.lin_param),
            self.r_squared,
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CostModelRecord":
        return cls(
            run_id=row.get("run_id"),
            operation=row["operation"],
            const_param=int(row["const_param"]),
            lin_param=int(row["lin_param"]),
            r_squared=row.get("r_squared"),
        )


@dataclass
class CalibrationFailureRecord:
    """Persisted calibration failure for one operation."""
    operation: str
    error_type: str
    message: str
    run_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "error_type": self.error_type,
            "message": self.message,
        }

    def to_db_tuple(self) -> tuple:
        return (self.run_id, self.operation, self.error_type, self.message)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CalibrationFailureRecord":
        return cls(
            run_id=row.get("run_id"),
            operation=row["operation"],
            error_type=row["error_type"],
            message=row["message"],
        )
