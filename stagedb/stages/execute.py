"""
Execution stages for DDL and DML statements.

Every stage validates the whole statement against the store before it
mutates anything, so a failing statement leaves the store untouched.
"""

from __future__ import annotations

from typing import Iterable

from ..ast import CreateTable, Delete, DropTable, Insert, TableSchema, Update
from ..errors import ConstraintError, ExecutionError
from ..log import get_logger
from ..predicate import columns_of
from ..results import rows_message
from ..store import RowStore, check_not_null, complete_row
from ..units import Outcome, WorkUnit
from .base import StatementStage

logger = get_logger(__name__)


def require_columns(schema: TableSchema, names: Iterable[str]) -> None:
    """
    Raises:
        ExecutionError: naming the first column the table lacks.
    """
    for name in names:
        if not schema.has_column(name):
            raise ExecutionError(f"Column '{name}' does not exist in table '{schema.name}'")


class StoreStage(StatementStage):
    """Statement stage bound to a row store."""

    def __init__(self, store: RowStore, name: str | None = None):
        super().__init__(name)
        self.store = store


class CreateTableStage(StoreStage):
    name = "create_table.execute"
    statement_type = CreateTable

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt: CreateTable = unit.payload
        if self.store.has_collection(stmt.table_name):
            if not stmt.if_not_exists:
                raise ExecutionError(f"Table '{stmt.table_name}' already exists")
            dispatcher.submit(unit.derive(Outcome.ok(f"Table '{stmt.table_name}' already exists (skipped)")))
            return

        self.store.create_collection(TableSchema(name=stmt.table_name, columns=stmt.columns))
        logger.info("table_created", table=stmt.table_name, columns=len(stmt.columns))
        dispatcher.submit(unit.derive(Outcome.ok(f"Table '{stmt.table_name}' created")))


class DropTableStage(StoreStage):
    name = "drop_table.execute"
    statement_type = DropTable

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt: DropTable = unit.payload
        if not self.store.has_collection(stmt.table_name):
            if not stmt.if_exists:
                raise ExecutionError(f"Table '{stmt.table_name}' does not exist")
            dispatcher.submit(unit.derive(Outcome.ok(f"Table '{stmt.table_name}' does not exist (skipped)")))
            return

        self.store.drop_collection(stmt.table_name)
        logger.info("table_dropped", table=stmt.table_name)
        dispatcher.submit(unit.derive(Outcome.ok(f"Table '{stmt.table_name}' dropped")))


class InsertStage(StoreStage):
    """
    Inserts one or more value tuples.

    Without a column list each tuple must supply every column, in schema order.
    With one, omitted columns take their DEFAULT (or NULL).
    """

    name = "insert.execute"
    statement_type = Insert

    def build_rows(self, stmt: Insert, schema: TableSchema) -> list[dict]:
        if stmt.columns is not None:
            require_columns(schema, stmt.columns)
            if len(set(stmt.columns)) != len(stmt.columns):
                raise ExecutionError("Duplicate column in INSERT column list")

        multi = len(stmt.rows) > 1
        rows = []
        for n, values in enumerate(stmt.rows, 1):
            where = f" (row {n})" if multi else ""
            if stmt.columns is None:
                if len(values) != len(schema.columns):
                    raise ExecutionError(
                        f"Column count mismatch{where}. Table '{schema.name}' has {len(schema.columns)} "
                        f"columns, but INSERT provides {len(values)} values"
                    )
                named = dict(zip(schema.column_names(), values))
            else:
                if len(values) != len(stmt.columns):
                    raise ExecutionError(
                        f"Column count mismatch{where}. {len(stmt.columns)} columns named, "
                        f"but {len(values)} values given"
                    )
                named = dict(zip(stmt.columns, values))
            row = complete_row(schema.columns, named)
            check_not_null(schema, row)
            rows.append(row)
        return rows

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt: Insert = unit.payload
        table = self.store.get_collection(stmt.table_name)
        rows = self.build_rows(stmt, table.schema)

        for row in rows:
            self.store.insert_row(stmt.table_name, row)

        logger.info("rows_inserted", table=stmt.table_name, count=len(rows))
        dispatcher.submit(unit.derive(Outcome.ok(rows_message(len(rows), "inserted", stmt.table_name))))


class UpdateStage(StoreStage):
    name = "update.execute"
    statement_type = Update

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt: Update = unit.payload
        schema = self.store.get_collection(stmt.table_name).schema

        changes = dict(stmt.assignments)
        require_columns(schema, changes)
        require_columns(schema, columns_of(stmt.where))
        for col, value in changes.items():
            if value is None and schema.get_column(col).not_null:
                raise ConstraintError(f"Column '{col}' cannot be NULL")

        count = self.store.update_rows(stmt.table_name, changes, stmt.where)
        logger.info("rows_updated", table=stmt.table_name, count=count)
        dispatcher.submit(unit.derive(Outcome.ok(rows_message(count, "updated"))))


class DeleteStage(StoreStage):
    name = "delete.execute"
    statement_type = Delete

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt: Delete = unit.payload
        schema = self.store.get_collection(stmt.table_name).schema
        require_columns(schema, columns_of(stmt.where))

        count = self.store.delete_rows(stmt.table_name, stmt.where)
        logger.info("rows_deleted", table=stmt.table_name, count=count)
        dispatcher.submit(unit.derive(Outcome.ok(rows_message(count, "deleted"))))
