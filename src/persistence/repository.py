"""
Repository Layer for Cost Model Tables

Stores and loads whole calibration runs. A save writes the run header,
every model and every failure inside a single transaction and retires
the previously active run, so readers only ever see complete tables.
"""

from typing import Dict, List, Mapping, Optional
import structlog

from costmodel.types import CostModel, QuantizedCostModel
from metering.table import CalibrationReport, CostModelTable, OperationFailure

from .database import Database, get_database
from .models import CalibrationFailureRecord, CalibrationRunRecord, CostModelRecord

logger = structlog.get_logger()


class RepositoryError(Exception):
    """Raised when a stored calibration run is inconsistent."""
    pass


class CostModelRepository:
    """Repository for calibration runs and their cost model tables."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_database()
        self.db.initialize()

    def save_table(
        self,
        table: CostModelTable,
        models: Optional[Mapping[str, CostModel]] = None,
        failures: Optional[Mapping[str, OperationFailure]] = None,
    ) -> int:
        """Store a table as the new active calibration run and return its run_id."""
        models = models or {}
        failures = failures or {}

        run = CalibrationRunRecord(
            fingerprint=table.fingerprint,
            calibrated_at=table.calibrated_at,
            operation_count=len(table),
        )

        with self.db.connection() as conn:
            conn.execute("UPDATE calibration_runs SET active = 0 WHERE active = 1")
            cursor = conn.execute(
                """INSERT INTO calibration_runs
                   (fingerprint, calibrated_at, stored_at, operation_count, active)
                   VALUES (?, ?, ?, ?, ?)""",
                run.to_db_tuple()
            )
            run_id = cursor.lastrowid

            model_rows = []
            for op, quantized in table.entries.items():
                fitted = models.get(op)
                model_rows.append(CostModelRecord(
                    run_id=run_id,
                    operation=op,
                    const_param=quantized.const_param,
                    lin_param=quantized.lin_param,
                    r_squared=fitted.r_squared if fitted else None,
                ).to_db_tuple())
            conn.executemany(
                """INSERT INTO cost_models
                   (run_id, operation, const_param, lin_param, r_squared)
                   VALUES (?, ?, ?, ?, ?)""",
                model_rows
            )

            failure_rows = [
                CalibrationFailureRecord(
                    run_id=run_id,
                    operation=failure.operation,
                    error_type=failure.error_type,
                    message=str(failure.error),
                ).to_db_tuple()
                for failure in failures.values()
            ]
            if failure_rows:
                conn.executemany(
                    """INSERT INTO calibration_failures
                       (run_id, operation, error_type, message)
                       VALUES (?, ?, ?, ?)""",
                    failure_rows
                )

        logger.info(
            "cost_model_table_stored",
            run_id=run_id,
            operations=len(table),
            failures=len(failures),
            fingerprint=table.fingerprint,
        )
        return run_id

    def save_report(self, report: CalibrationReport) -> int:
        """Store a calibration report's table, fit diagnostics and failures."""
        return self.save_table(report.table, report.models, report.failures)

    def get_active_run(self) -> Optional[CalibrationRunRecord]:
        results = self.db.execute(
            "SELECT * FROM calibration_runs WHERE active = 1 ORDER BY run_id DESC LIMIT 1"
        )
        return CalibrationRunRecord.from_row(results[0]) if results else None

    def get_run(self, run_id: int) -> Optional[CalibrationRunRecord]:
        results = self.db.execute(
            "SELECT * FROM calibration_runs WHERE run_id = ?",
            (run_id,)
        )
        return CalibrationRunRecord.from_row(results[0]) if results else None

    def list_runs(self, limit: int = 100) -> List[CalibrationRunRecord]:
        """List calibration runs, newest first."""
        results = self.db.execute(
            "SELECT * FROM calibration_runs ORDER BY run_id DESC LIMIT ?",
            (limit,)
        )
        return [CalibrationRunRecord.from_row(r) for r in results]

    def get_models(self, run_id: int) -> List[CostModelRecord]:
        results = self.db.execute(
            "SELECT * FROM cost_models WHERE run_id = ? ORDER BY operation",
            (run_id,)
        )
        return [CostModelRecord.from_row(r) for r in results]

    def get_failures(self, run_id: int) -> List[CalibrationFailureRecord]:
        results = self.db.execute(
            "SELECT * FROM calibration_failures WHERE run_id = ? ORDER BY operation",
            (run_id,)
        )
        return [CalibrationFailureRecord.from_row(r) for r in results]

    def load_table(self, run_id: Optional[int] = None) -> Optional[CostModelTable]:
        """
        Load a whole table: the active run by default, or a specific run.

        Returns None when no run exists.
        """
        run = self.get_run(run_id) if run_id is not None else self.get_active_run()
        if run is None:
            return None

        try:
            entries: Dict[str, QuantizedCostModel] = {
                record.operation: record.to_model()
                for record in self.get_models(run.run_id)
            }
        except (TypeError, ValueError) as e:
            raise RepositoryError(f"Stored table for run {run.run_id} is malformed: {e}") from e
        table = CostModelTable(entries, calibrated_at=run.calibrated_at)

        if table.fingerprint != run.fingerprint:
            logger.error(
                "cost_model_table_fingerprint_mismatch",
                run_id=run.run_id,
                expected=run.fingerprint,
                actual=table.fingerprint,
            )
            raise RepositoryError(f"Stored table for run {run.run_id} does not match its fingerprint")

        logger.info("cost_model_table_loaded", run_id=run.run_id, operations=len(table))
        return table
