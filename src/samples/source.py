"""
Sample Sources

A sample source produces, for a named operation, an ordered sequence of
(input size, measured cost) pairs: one per benchmark run, sizes
non-decreasing, at least one sample.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union
import json
import numbers
import structlog

from costmodel.types import Sample
from metering.operations import CostType, operation_id

logger = structlog.get_logger()


class SampleSourceError(Exception):
    """Raised when samples cannot be produced or loaded."""
    pass


class UnsupportedOperationError(SampleSourceError):
    """Raised when a source has no way to sample an operation."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"No samples available for operation: {operation}")


def _integral(value, field: str) -> int:
    # Recorded costs are never rounded; a fractional value is bad input
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValueError(f"{field}={value!r} is not an integer")
    return int(value)


class SampleSource(ABC):
    """Abstract producer of per-operation samples."""

    @abstractmethod
    def collect(self, operation: Union[str, CostType]) -> List[Sample]:
        """Collect ordered samples for one operation."""
        pass

    @abstractmethod
    def operations(self) -> List[str]:
        """Operations this source can sample."""
        pass

    def collect_all(
        self,
        operations: Iterable[Union[str, CostType]] = (),
    ) -> Tuple[Dict[str, List[Sample]], List[str]]:
        """
        Collect samples for several operations.

        Returns (samples by operation, operations that were skipped).
        Unsupported operations and failed benchmarks are skipped, not raised.
        An empty operations argument means every supported operation.
        """
        targets = [operation_id(op) for op in operations] or self.operations()
        collected: Dict[str, List[Sample]] = {}
        skipped: List[str] = []

        for op in targets:
            try:
                collected[op] = self.collect(op)
            except UnsupportedOperationError:
                logger.warning("operation_not_sampled", operation=op)
                skipped.append(op)
            except SampleSourceError as e:
                logger.error("operation_sampling_failed", operation=op, error=str(e))
                skipped.append(op)

        return collected, skipped


class RecordedSampleSource(SampleSource):
    """
    Samples recorded by an earlier benchmark run.

    Accepted file formats:
    - JSON object: {"ComputeSha256Hash": [[size, cost], ...], ...}
    - JSON Lines: one {"operation": ..., "size": ..., "cost": ...} per line
    """

    def __init__(self, samples: Mapping[Union[str, CostType], Sequence[Sequence[int]]]):
        self._samples: Dict[str, List[Sample]] = {}
        for op, pairs in samples.items():
            try:
                self._samples[operation_id(op)] = [
                    Sample(_integral(size, "size"), _integral(cost, "cost"))
                    for size, cost in pairs
                ]
            except (TypeError, ValueError) as e:
                raise SampleSourceError(f"Invalid samples for {op}: {e}") from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RecordedSampleSource":
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SampleSourceError(f"Cannot read samples from {path}: {e}") from e

        if path.suffix == ".jsonl":
            return cls(cls._parse_jsonl(text, path))

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SampleSourceError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise SampleSourceError(f"Expected a JSON object in {path}")

        logger.info("samples_loaded", path=str(path), operations=len(data))
        return cls(data)

    @staticmethod
    def _parse_jsonl(text: str, path: Path) -> Dict[str, List[Tuple[int, int]]]:
        grouped: Dict[str, List[Tuple[int, int]]] = {}
        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
                grouped.setdefault(record["operation"], []).append(
                    (_integral(record["size"], "size"), _integral(record["cost"], "cost"))
                )
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                raise SampleSourceError(f"{path}:{lineno}: invalid sample record: {e}") from e

        logger.info("samples_loaded", path=str(path), operations=len(grouped))
        return grouped

    def collect(self, operation: Union[str, CostType]) -> List[Sample]:
        op = operation_id(operation)
        if op not in self._samples:
            raise UnsupportedOperationError(op)
        return list(self._samples[op])

    def operations(self) -> List[str]:
        return list(self._samples.keys())
