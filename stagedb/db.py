"""
stagedb/db.py

Public Database API for the StageDB query engine.

Responsibilities:
- Provide a simple library interface:
    - Database() / Database.open(path)
    - db.execute(sql) -> str
    - db.execute_script(sql_script) -> list[str]
    - db.run(sql) -> RunReport (result plus dispatch bookkeeping)
- Own the row store shared by every statement
- Build a fresh dispatcher pipeline for each statement

Every statement yields exactly one string: a status message, a row listing,
or an error starting with "ERROR: ". Only PipelineLoopError is raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from . import persistence
from .config import Settings, get_settings
from .dispatcher import Dispatcher, RunReport
from .parser import split_statements
from .stages import build_pipeline
from .store import RowStore


@dataclass
class Database:
    """
    In-memory database.

    Attributes:
        store: Tables and rows.
        settings: Dispatcher and persistence settings.
    """
    store: RowStore = field(default_factory=RowStore)
    settings: Settings = field(default_factory=get_settings)

    @classmethod
    def open(cls, path: str | Path, settings: Settings | None = None) -> "Database":
        """
        Open a saved database file, or start empty if it does not exist yet.

        Args:
            path: Database file (the .stagedb suffix may be omitted).

        Returns:
            Database instance.

        Raises:
            PersistenceError: if the file exists but cannot be loaded.
        """
        settings = settings or get_settings()
        target = persistence.resolve_path(path, settings.data_dir)
        store = persistence.load(target) if target.exists() else RowStore()
        return cls(store=store, settings=settings)

    def dispatcher(self) -> Dispatcher:
        """A dispatcher wired with the standard pipeline over this database's store."""
        return Dispatcher(build_pipeline(self.store, self.settings.data_dir), settings=self.settings)

    def run(self, sql: str) -> RunReport:
        """
        Dispatch one statement and return the full run report.

        Raises:
            PipelineLoopError: if the pipeline exceeds its iteration budget.
        """
        d = self.dispatcher()
        d.submit(sql.strip())
        return d.run()

    def execute(self, sql: str) -> str:
        """
        Execute a single SQL statement (semicolon optional).

        Returns:
            The statement's result text.
        """
        return self.run(sql).text

    def execute_script(self, sql: str) -> list[str]:
        """
        Execute a script of semicolon-separated statements.

        A failing statement does not stop the ones after it.

        Returns:
            List of results in statement order.
        """
        return [self.execute(s) for s in split_statements(sql)]

    def save(self, path: str | Path) -> Path:
        return persistence.save(self.store, persistence.resolve_path(path, self.settings.data_dir))
