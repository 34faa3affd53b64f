"""
Cost Model Table Artifact

JSON file form of a CostModelTable, the artifact handed from the offline
calibration run to the host at startup. Parameters are JSON integers, so
the quantized u64 values round-trip exactly. Files are written to a
temporary sibling and renamed into place, and loaded as a whole table.
"""

from pathlib import Path
from typing import Dict, Optional, Union
import json
import os
import tempfile
import structlog

from pydantic import BaseModel, Field, ValidationError, field_validator

from costmodel.types import QuantizedCostModel, U64_MAX
from metering.table import CostModelTable

logger = structlog.get_logger()

ARTIFACT_FORMAT_VERSION = 1


class ArtifactError(Exception):
    """Raised when an artifact cannot be read, validated or written."""
    pass


class CostModelEntry(BaseModel):
    """One operation's quantized parameters."""
    const_param: int = Field(..., ge=0, strict=True)
    lin_param: int = Field(..., ge=0, strict=True)

    @field_validator("const_param", "lin_param")
    @classmethod
    def _fits_u64(cls, value: int) -> int:
        if value > U64_MAX:
            raise ValueError(f"{value} exceeds u64 range")
        return value


class CostModelTableArtifact(BaseModel):
    """Serialized cost model table."""
    format_version: int = Field(default=ARTIFACT_FORMAT_VERSION)
    calibrated_at: str
    fingerprint: Optional[str] = Field(None, description="SHA-256 of the canonical entries")
    entries: Dict[str, CostModelEntry]

    @classmethod
    def from_table(cls, table: CostModelTable) -> "CostModelTableArtifact":
        return cls(
            calibrated_at=table.calibrated_at,
            fingerprint=table.fingerprint,
            entries={
                op: CostModelEntry(const_param=m.const_param, lin_param=m.lin_param)
                for op, m in table.entries.items()
            },
        )

    def to_table(self) -> CostModelTable:
        table = CostModelTable(
            {
                op: QuantizedCostModel(const_param=e.const_param, lin_param=e.lin_param)
                for op, e in self.entries.items()
            },
            calibrated_at=self.calibrated_at,
        )
        if self.fingerprint is not None and self.fingerprint != table.fingerprint:
            raise ArtifactError(
                f"Fingerprint mismatch: artifact says {self.fingerprint}, "
                f"entries hash to {table.fingerprint}"
            )
        return table


def dump_table(table: CostModelTable) -> str:
    """Serialize a table to artifact JSON text."""
    artifact = CostModelTableArtifact.from_table(table)
    return json.dumps(artifact.model_dump(), indent=2, sort_keys=True)


def parse_table(text: str) -> CostModelTable:
    """Parse and validate artifact JSON text into a table."""
    try:
        artifact = CostModelTableArtifact.model_validate_json(text)
    except ValidationError as e:
        raise ArtifactError(f"Invalid cost model table artifact: {e}") from e

    if artifact.format_version != ARTIFACT_FORMAT_VERSION:
        raise ArtifactError(f"Unsupported artifact format version: {artifact.format_version}")

    return artifact.to_table()


def save_table(table: CostModelTable, path: Union[str, Path]) -> Path:
    """Write the artifact atomically: temp file in the same directory, then rename."""
    path = Path(path)
    text = dump_table(table)
    directory = path.parent if str(path.parent) else Path(".")

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    except OSError as e:
        raise ArtifactError(f"Cannot write cost model table to {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise ArtifactError(f"Cannot write cost model table to {path}: {e}") from e

    logger.info(
        "cost_model_artifact_written",
        path=str(path),
        operations=len(table),
        fingerprint=table.fingerprint,
    )
    return path


def load_table(path: Union[str, Path]) -> CostModelTable:
    """Load a whole table from an artifact file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ArtifactError(f"Cannot read cost model table from {path}: {e}") from e

    table = parse_table(text)
    logger.info(
        "cost_model_artifact_loaded",
        path=str(path),
        operations=len(table),
        fingerprint=table.fingerprint,
    )
    return table
