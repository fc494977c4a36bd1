"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and provides common fixtures for unit and integration tests.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Configure before anything imports api.config (engine and logger are built at import).
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="mindspark-logs-"))
os.environ.setdefault("LOG_CONSOLE", "0")

# Add project root and src to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


# ----- In-memory DB (for tests that need DB without touching real DB) -----
@pytest.fixture
def in_memory_engine():
    """In-memory SQLite shared across threads (persistence runs in the threadpool)."""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest.fixture
def session_factory(in_memory_engine):
    from api.config import Base
    from api.models import models  # noqa: F401
    Base.metadata.create_all(in_memory_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)


@pytest.fixture
def history_store(session_factory):
    from api.utils.history_store import HistoryStore
    return HistoryStore(session_factory)


@pytest.fixture
def count_history_rows(session_factory):
    """Callable returning the number of persisted history rows."""
    from api.models.models import HistoryRecord

    def _count() -> int:
        db = session_factory()
        try:
            return db.query(HistoryRecord).count()
        finally:
            db.close()

    return _count
