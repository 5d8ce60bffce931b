"""Pytest configuration and fixtures."""

import pytest

from stagedb import Database, RowStore
from stagedb.config import Settings, reset_settings
from stagedb.log import configure_logging


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for var in ("STAGEDB_MAX_ITERATIONS", "STAGEDB_TRACE_LEVEL", "STAGEDB_DETAILED_ERRORS", "STAGEDB_DATA_DIR"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(scope="session", autouse=True)
def _logging():
    configure_logging(Settings(log_level="WARNING"))


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path)


@pytest.fixture
def store():
    return RowStore()


@pytest.fixture
def db(store, settings):
    return Database(store=store, settings=settings)


@pytest.fixture
def people(db):
    """A users table with five rows, one of them with NULL age and city."""
    db.execute_script(
        """
        CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER, city TEXT);
        INSERT INTO users VALUES
            (1, 'Alice', 30, 'NYC'),
            (2, 'Bob', 25, 'LA'),
            (3, 'Carol', 35, 'NYC'),
            (4, 'Dave', 28, 'Boston'),
            (5, 'Eve', NULL, NULL);
        """
    )
    return db
