"""SAVE DATABASE / LOAD DATABASE stages."""

from __future__ import annotations

from pathlib import Path

from .. import persistence
from ..ast import LoadDatabase, SaveDatabase
from ..log import get_logger
from ..store import RowStore
from ..units import Outcome, WorkUnit
from .base import StatementStage

logger = get_logger(__name__)


def _size_kb(path: Path) -> float:
    return round(path.stat().st_size / 1024, 2)


class SaveStage(StatementStage):
    name = "save.execute"
    statement_type = SaveDatabase

    def __init__(self, store: RowStore, data_dir: Path | None = None, name: str | None = None):
        super().__init__(name)
        self.store = store
        self.data_dir = data_dir

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt: SaveDatabase = unit.payload
        path = persistence.save(self.store, persistence.resolve_path(stmt.path, self.data_dir))
        logger.info("database_saved", path=str(path), tables=len(self.store.names()))
        dispatcher.submit(unit.derive(Outcome.ok(f"Database saved to '{path}' ({_size_kb(path)} KB)")))


class LoadStage(StatementStage):
    """Replaces the store's contents with a saved database."""

    name = "load.execute"
    statement_type = LoadDatabase

    def __init__(self, store: RowStore, data_dir: Path | None = None, name: str | None = None):
        super().__init__(name)
        self.store = store
        self.data_dir = data_dir

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt: LoadDatabase = unit.payload
        path = persistence.resolve_path(stmt.path, self.data_dir)
        loaded = persistence.load(path)
        self.store.replace_with(loaded)
        count = len(loaded.names())
        logger.info("database_loaded", path=str(path), tables=count)
        dispatcher.submit(
            unit.derive(Outcome.ok(f"Database loaded from '{path}' ({count} tables, {_size_kb(path)} KB)"))
        )
