"""
Cost Model Table

Maps operation identifiers to quantized cost models. Built once by an
offline calibration run and treated as immutable configuration after
that: reloading replaces the whole table, entries are never patched.

Calibration fits every operation independently. A failure for one
operation is recorded in the report and never aborts the others.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union
import hashlib
import json
import structlog

from costmodel.errors import CostModelError, InvalidSampleSetError, UncalibratedOperationError
from costmodel.evaluator import evaluate
from costmodel.fitter import fit_samples
from costmodel.quantizer import quantize
from costmodel.types import CostModel, QuantizedCostModel, Sample

from .operations import CostType, operation_id

logger = structlog.get_logger()

OperationKey = Union[str, CostType]
SampleInput = Sequence[Union[Sample, Tuple[int, int]]]

DEFAULT_REVIEW_THRESHOLD = 0.9


class CostModelTable:
    """
    Immutable operation -> QuantizedCostModel mapping.

    Lookups of operations that were never calibrated fail. The metering
    layer must treat that as a configuration error, never as zero cost.
    """

    def __init__(
        self,
        entries: Mapping[OperationKey, QuantizedCostModel],
        calibrated_at: Optional[str] = None,
    ):
        normalized = {}
        for op, model in entries.items():
            if not isinstance(model, QuantizedCostModel):
                raise TypeError(f"Entry for {op} is not a QuantizedCostModel")
            normalized[operation_id(op)] = model
        self._entries = MappingProxyType(dict(sorted(normalized.items())))
        self.calibrated_at = calibrated_at or datetime.now(timezone.utc).isoformat()

    @classmethod
    def build(
        cls,
        samples_by_operation: Mapping[OperationKey, SampleInput],
        workers: Optional[int] = None,
    ) -> "CostModelTable":
        """Fit and quantize every operation; failed operations are left out."""
        return calibrate(samples_by_operation, workers=workers).table

    def lookup(self, operation: OperationKey) -> QuantizedCostModel:
        op = operation_id(operation)
        model = self._entries.get(op)
        if model is None:
            logger.error("uncalibrated_operation", operation=op)
            raise UncalibratedOperationError(op)
        return model

    def evaluate(self, operation: OperationKey, size: int) -> int:
        """Charged cost of running an operation on an input of the given size."""
        return evaluate(self.lookup(operation), size)

    def operations(self) -> List[str]:
        return list(self._entries.keys())

    @property
    def entries(self) -> Mapping[str, QuantizedCostModel]:
        return self._entries

    def canonicalize(self) -> str:
        """Deterministic serialization of the entries (timestamp excluded)."""
        return json.dumps(
            {op: model.to_dict() for op, model in self._entries.items()},
            sort_keys=True,
            separators=(',', ':'),
        )

    @property
    def fingerprint(self) -> str:
        """SHA-256 of the canonical entries, stable across reloads."""
        return hashlib.sha256(self.canonicalize().encode()).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "calibrated_at": self.calibrated_at,
            "fingerprint": self.fingerprint,
            "entries": {op: model.to_dict() for op, model in self._entries.items()},
        }

    def __contains__(self, operation: object) -> bool:
        try:
            return operation_id(operation) in self._entries
        except ValueError:
            return False

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CostModelTable):
            return NotImplemented
        return dict(self._entries) == dict(other._entries)

    def __repr__(self) -> str:
        return f"CostModelTable(operations={len(self)}, fingerprint={self.fingerprint[:12]})"


@dataclass
class OperationFailure:
    """One operation's calibration failure."""
    operation: str
    error: CostModelError

    @property
    def error_type(self) -> str:
        return type(self.error).__name__

    def to_dict(self) -> Dict[str, str]:
        return {
            "operation": self.operation,
            "error_type": self.error_type,
            "message": str(self.error),
        }


@dataclass
class CalibrationReport:
    """Outcome of a batch calibration run."""
    table: CostModelTable
    models: Dict[str, CostModel] = field(default_factory=dict)
    failures: Dict[str, OperationFailure] = field(default_factory=dict)
    needs_review: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def summary(self) -> Dict[str, Any]:
        return {
            "calibrated": len(self.table),
            "failed": len(self.failures),
            "needs_review": list(self.needs_review),
            "fingerprint": self.table.fingerprint,
            "failures": [f.to_dict() for f in self.failures.values()],
        }


def _operation_key(key: object) -> str:
    try:
        return operation_id(key)
    except ValueError as e:
        raise InvalidSampleSetError(f"Invalid operation identifier: {key!r}") from e


def _to_samples(samples: SampleInput) -> List[Sample]:
    try:
        return [s if isinstance(s, Sample) else Sample(*s) for s in samples]
    except (TypeError, ValueError) as e:
        raise InvalidSampleSetError(f"Malformed sample set: {e}") from e


def _calibrate_one(
    key: OperationKey,
    samples: SampleInput,
) -> Tuple[str, Optional[CostModel], Optional[QuantizedCostModel], Optional[CostModelError]]:
    op = str(key)
    try:
        op = _operation_key(key)
        model = fit_samples(_to_samples(samples), operation=op)
        return (op, model, quantize(model), None)
    except CostModelError as e:
        logger.error(
            "operation_calibration_failed",
            operation=op,
            error_type=type(e).__name__,
            error=str(e),
        )
        return (op, None, None, e)


def calibrate(
    samples_by_operation: Mapping[OperationKey, SampleInput],
    workers: Optional[int] = None,
    review_threshold: float = DEFAULT_REVIEW_THRESHOLD,
) -> CalibrationReport:
    """
    Fit, quantize and tabulate every operation's samples.

    Args:
        samples_by_operation: Sample sequence per operation
        workers: Thread pool size; None or 1 fits serially
        review_threshold: r_squared below which a linear fit is flagged

    Returns:
        CalibrationReport with the table of successfully calibrated operations
    """
    jobs = list(samples_by_operation.items())

    if workers and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda job: _calibrate_one(*job), jobs))
    else:
        results = [_calibrate_one(op, samples) for op, samples in jobs]

    models: Dict[str, CostModel] = {}
    entries: Dict[str, QuantizedCostModel] = {}
    failures: Dict[str, OperationFailure] = {}
    needs_review: List[str] = []

    for op, model, quantized, error in results:
        if error is not None:
            failures[op] = OperationFailure(operation=op, error=error)
            continue
        models[op] = model
        entries[op] = quantized
        if not model.is_constant and model.r_squared < review_threshold:
            needs_review.append(op)
            logger.warning(
                "cost_model_low_fit_quality",
                operation=op,
                r_squared=model.r_squared,
                threshold=review_threshold,
            )

    report = CalibrationReport(
        table=CostModelTable(entries),
        models=models,
        failures=failures,
        needs_review=sorted(needs_review),
    )

    logger.info(
        "calibration_completed",
        calibrated=len(entries),
        failed=len(failures),
        needs_review=len(needs_review),
        fingerprint=report.table.fingerprint,
    )

    return report
