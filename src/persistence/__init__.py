"""
Persistence Layer for Cost Model Tables

- JSON artifact: the file loaded by the host at startup
- SQLite: history of calibration runs with fit diagnostics and failures
"""

from .database import Database, get_database
from .models import CalibrationRunRecord, CostModelRecord, CalibrationFailureRecord
from .repository import CostModelRepository, RepositoryError
from .artifact import (
    ArtifactError,
    CostModelTableArtifact,
    dump_table,
    parse_table,
    save_table,
    load_table,
)

__all__ = [
    "Database",
    "get_database",
    "CalibrationRunRecord",
    "CostModelRecord",
    "CalibrationFailureRecord",
    "CostModelRepository",
    "RepositoryError",
    "ArtifactError",
    "CostModelTableArtifact",
    "dump_table",
    "parse_table",
    "save_table",
    "load_table",
]
