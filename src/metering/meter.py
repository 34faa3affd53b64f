"""
Cost Meter

Charges host operations against their calibrated cost models before
they run. The cost model table is handed to the meter at construction
and can only be swapped wholesale.

Tracks:
- Total charged cost (saturating u64)
- Charges per operation
- Remaining budget when a limit is set
"""

from threading import Lock
from typing import Any, Dict, Optional
import structlog

from costmodel.errors import CostModelError
from costmodel.evaluator import saturating_add
from costmodel.types import U64_MAX

from .operations import operation_id
from .table import CostModelTable, OperationKey

logger = structlog.get_logger()


class BudgetExceededError(CostModelError):
    """Raised when a charge would push the meter past its limit."""

    def __init__(self, operation: str, charge: int, consumed: int, limit: int):
        self.operation = operation
        self.charge = charge
        self.consumed = consumed
        self.limit = limit
        super().__init__(
            f"Charging {charge} for {operation} exceeds budget "
            f"({consumed} of {limit} consumed)"
        )


class CostMeter:
    """
    Per-execution resource meter backed by a CostModelTable.

    Uncalibrated operations propagate UncalibratedOperationError: an
    operation without a known cost must not proceed.
    """

    def __init__(self, table: CostModelTable, limit: Optional[int] = None):
        if limit is not None and (limit < 0 or limit > U64_MAX):
            raise ValueError(f"limit={limit} outside u64 range")
        self._table = table
        self.limit = limit
        self._lock = Lock()
        self._consumed = 0
        self._charges: Dict[str, int] = {}
        self._counts: Dict[str, int] = {}

    @property
    def table(self) -> CostModelTable:
        return self._table

    @property
    def consumed(self) -> int:
        return self._consumed

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(self.limit - self._consumed, 0)

    def charge(self, operation: OperationKey, size: int = 0) -> int:
        """
        Charge one operation run on an input of the given size.

        Returns the charged cost.
        """
        op = operation_id(operation)

        with self._lock:
            cost = self._table.evaluate(op, size)
            new_total = saturating_add(self._consumed, cost)

            if self.limit is not None and new_total > self.limit:
                logger.warning(
                    "budget_exceeded",
                    operation=op,
                    size=size,
                    charge=cost,
                    consumed=self._consumed,
                    limit=self.limit,
                )
                raise BudgetExceededError(op, cost, self._consumed, self.limit)

            self._consumed = new_total
            self._charges[op] = saturating_add(self._charges.get(op, 0), cost)
            self._counts[op] = self._counts.get(op, 0) + 1

        logger.debug("operation_charged", operation=op, size=size, charge=cost)
        return cost

    def replace_table(self, table: CostModelTable) -> None:
        """Swap in a recalibrated table; running totals are kept."""
        with self._lock:
            old = self._table
            self._table = table

        logger.info(
            "cost_model_table_replaced",
            old_fingerprint=old.fingerprint,
            new_fingerprint=table.fingerprint,
            operations=len(table),
        )

    def reset(self) -> None:
        with self._lock:
            self._consumed = 0
            self._charges.clear()
            self._counts.clear()

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metering metrics."""
        with self._lock:
            return {
                "consumed": self._consumed,
                "limit": self.limit,
                "remaining": self.remaining,
                "charges": dict(self._charges),
                "counts": dict(self._counts),
                "table_fingerprint": self._table.fingerprint,
            }
