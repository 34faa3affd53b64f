"""
Calibration Store

SQLite storage for calibration runs. Tables are created on first use.
"""

import os
import sqlite3
from contextlib import contextmanager
from typing import Optional, Generator, Any, Dict, List
from datetime import datetime, timezone
import threading
import structlog

logger = structlog.get_logger()

SQLITE_PREFIX = "sqlite:///"

# Bumped when the calibration tables change shape
SCHEMA_VERSION = 1

# u64 parameters are stored as TEXT: SQLite INTEGER is a signed 64-bit value
SCHEMA_SQL = """
-- One row per calibration run; the newest active run is the live table
CREATE TABLE IF NOT EXISTS calibration_runs (
    run_id INTEGER PRIMARY KEY AUTOINCREMENT,
    fingerprint TEXT NOT NULL,
    calibrated_at TEXT NOT NULL,
    stored_at TEXT NOT NULL,
    operation_count INTEGER NOT NULL,
    active INTEGER NOT NULL DEFAULT 1
);

-- Quantized models of a run
CREATE TABLE IF NOT EXISTS cost_models (
    run_id INTEGER NOT NULL,
    operation TEXT NOT NULL,
    const_param TEXT NOT NULL,
    lin_param TEXT NOT NULL,
    r_squared REAL,
    PRIMARY KEY (run_id, operation),
    FOREIGN KEY (run_id) REFERENCES calibration_runs(run_id)
);

-- Operations that failed calibration in a run
CREATE TABLE IF NOT EXISTS calibration_failures (
    run_id INTEGER NOT NULL,
    operation TEXT NOT NULL,
    error_type TEXT NOT NULL,
    message TEXT NOT NULL,
    PRIMARY KEY (run_id, operation),
    FOREIGN KEY (run_id) REFERENCES calibration_runs(run_id)
);

-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_runs_active ON calibration_runs(active);
"""


class Database:
    """
    Calibration store on a local SQLite file.

    Usage:
        db = Database("sqlite:///cost_models.db")
        with db.connection() as conn:
            conn.execute("SELECT * FROM cost_models")

    A connection() block is one transaction: committed on exit, rolled
    back if the block raises. Each thread gets its own connection.
    """

    _instance: Optional["Database"] = None
    _lock = threading.Lock()

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or os.environ.get(
            "DATABASE_URL",
            "sqlite:///cost_models.db"
        )
        if not self.database_url.startswith(SQLITE_PREFIX):
            raise ValueError(f"Unsupported database URL: {self.database_url}")
        self.path = self.database_url[len(SQLITE_PREFIX):] or "cost_models.db"
        self._local = threading.local()
        self._initialized = False

    @classmethod
    def get_instance(cls, database_url: Optional[str] = None) -> "Database":
        """Shared store for callers that do not pass their own."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = cls(database_url)
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the shared store so the next get_instance reconnects."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.close()
            cls._instance = None

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path, check_same_thread=False, timeout=30.0)
        conn.row_factory = sqlite3.Row
        if self.path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield this thread's connection inside a transaction."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = self._local.conn = self._open()

        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self) -> None:
        """Create the calibration tables if they do not exist yet."""
        with self._lock:
            if self._initialized:
                return
            with self.connection() as conn:
                conn.executescript(SCHEMA_SQL)
                conn.execute(
                    "INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                    (SCHEMA_VERSION, datetime.now(timezone.utc).isoformat())
                )
            self._initialized = True

        logger.info("calibration_store_initialized", path=self.path, schema_version=SCHEMA_VERSION)

    def execute(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Run one statement; rows come back as plain dicts."""
        with self.connection() as conn:
            cursor = conn.execute(query, params)
            if cursor.description is None:
                return []
            return [dict(row) for row in cursor.fetchall()]

    def close(self) -> None:
        """Close this thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None


def get_database(database_url: Optional[str] = None) -> Database:
    """Shared, initialized calibration store."""
    db = Database.get_instance(database_url)
    db.initialize()
    return db
