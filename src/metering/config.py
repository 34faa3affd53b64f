"""
Calibration Configuration

Constructor arguments win; environment variables fill the gaps.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import os

DEFAULT_SIZES = [1, 16, 64, 256, 1024, 4096, 16384]


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return int(raw)


@dataclass
class CalibrationConfig:
    """
    Settings for an offline calibration run.

    Environment:
        DATABASE_URL: sqlite:///path for the calibration database
        COST_TABLE_PATH: JSON artifact written by calibrate
        CALIBRATION_WORKERS: thread pool size for fitting (unset = serial)
        CALIBRATION_REVIEW_THRESHOLD: r_squared below which a fit is flagged
        CALIBRATION_ITERATIONS: benchmark runs per input size
        CALIBRATION_SIZES: comma-separated benchmark input sizes
    """
    database_url: str = "sqlite:///cost_models.db"
    table_path: str = "cost_models.json"
    workers: Optional[int] = None
    review_threshold: float = 0.9
    iterations: int = 5
    sizes: List[int] = field(default_factory=lambda: list(DEFAULT_SIZES))

    @classmethod
    def from_env(cls) -> "CalibrationConfig":
        sizes_raw = os.environ.get("CALIBRATION_SIZES")
        sizes = (
            [int(s) for s in sizes_raw.split(",") if s.strip()]
            if sizes_raw
            else list(DEFAULT_SIZES)
        )
        return cls(
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            table_path=os.environ.get("COST_TABLE_PATH", cls.table_path),
            workers=_env_int("CALIBRATION_WORKERS", None),
            review_threshold=float(
                os.environ.get("CALIBRATION_REVIEW_THRESHOLD", cls.review_threshold)
            ),
            iterations=_env_int("CALIBRATION_ITERATIONS", cls.iterations),
            sizes=sorted(sizes),
        )
