"""
Pytest Configuration and Fixtures
"""

import os
import sys
import pytest
import tempfile

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

# Set test environment
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.pop("CALIBRATION_WORKERS", None)
os.environ.pop("CALIBRATION_SIZES", None)

from costmodel.types import QuantizedCostModel  # noqa: E402
from metering.table import CostModelTable  # noqa: E402


@pytest.fixture
def temp_db():
    """Create a temporary calibration database."""
    from persistence.database import Database

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    db = Database(f"sqlite:///{db_path}")
    db.initialize()

    yield db

    db.close()
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(db_path + suffix)
        except OSError:
            pass


@pytest.fixture
def linear_samples():
    """Samples on the exact line y = 10 + 0.4x."""
    return {
        "x": [100, 200, 300, 400],
        "y": [50, 90, 130, 170],
    }


@pytest.fixture
def samples_by_operation():
    """Sample sets for a small calibration batch."""
    return {
        "ComputeSha256Hash": [(100, 50), (200, 90), (300, 130), (400, 170)],
        "ComputeEd25519PubKey": [(0, 42)] * 10,
        "HostMemCpy": [(10, 15), (20, 35), (30, 55), (40, 75)],
    }


@pytest.fixture
def sample_table():
    """A small quantized cost model table."""
    return CostModelTable({
        "ComputeSha256Hash": QuantizedCostModel(const_param=10, lin_param=1),
        "ComputeEd25519PubKey": QuantizedCostModel(const_param=42, lin_param=0),
        "HostMemCpy": QuantizedCostModel(const_param=0, lin_param=2),
    })
