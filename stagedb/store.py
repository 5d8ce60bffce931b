"""
stagedb/store.py

In-memory row store for the StageDB query engine.

Responsibilities:
- Hold tables: a TableSchema plus an ordered list of rows.
- Enforce basic DDL validation rules (supported types, duplicate names, single PRIMARY KEY).
- Apply row mutations (insert, predicate-driven update and delete).

Design notes:
- Rows are plain dicts keyed by column name, in schema order.
- update_rows builds replacement dicts, so a row handed out by a scan is never
  changed underneath its reader.
- Nothing here is durable; see stagedb/persistence.py for save/load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from .ast import ColumnDef, Predicate, TableSchema
from .errors import ConstraintError, ExecutionError
from .predicate import evaluate

SUPPORTED_TYPES = {"INTEGER", "TEXT", "REAL", "BLOB"}

Row = dict[str, Any]


@dataclass
class Table:
    """
    One table's schema and rows.

    Attributes:
        schema: Table structure.
        rows: Rows in insertion order.
    """
    schema: TableSchema
    rows: list[Row] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.schema.name

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)


def validate_schema(schema: TableSchema) -> None:
    """
    Validate a CREATE TABLE schema.

    Checks:
    - At least one column
    - No duplicate column names
    - Supported types
    - At most one PRIMARY KEY column

    Raises:
        ExecutionError / ConstraintError: on invalid schema.
    """
    if not schema.columns:
        raise ExecutionError(f"Table '{schema.name}' must have at least one column")

    seen: set[str] = set()
    for c in schema.columns:
        if c.name in seen:
            raise ExecutionError(f"Duplicate column name '{c.name}' in table '{schema.name}'")
        seen.add(c.name)
        if c.typ not in SUPPORTED_TYPES:
            raise ExecutionError(f"Unsupported type: {c.typ}")

    if sum(1 for c in schema.columns if c.primary_key) > 1:
        raise ConstraintError("Table can have only one PRIMARY KEY")


def check_not_null(schema: TableSchema, row: Mapping[str, Any]) -> None:
    """
    Raises:
        ConstraintError: if a NOT NULL column holds None.
    """
    for c in schema.columns:
        if c.not_null and row.get(c.name) is None:
            raise ConstraintError(f"Column '{c.name}' cannot be NULL")


class RowStore:
    """
    Named collection of tables.

    The dispatcher stages only talk to the store through these methods.
    """

    def __init__(self) -> None:
        self.tables: dict[str, Table] = {}

    # ---------- collections ----------

    def has_collection(self, name: str) -> bool:
        return name in self.tables

    def get_collection(self, name: str) -> Table:
        """
        Fetch a table by name or raise ExecutionError.

        Raises:
            ExecutionError: if table does not exist.
        """
        t = self.tables.get(name)
        if t is None:
            raise ExecutionError(f"Table '{name}' does not exist")
        return t

    def create_collection(self, schema: TableSchema) -> Table:
        """
        Validate and add a new, empty table.

        Raises:
            ExecutionError: if the table exists or the schema is invalid.
        """
        if schema.name in self.tables:
            raise ExecutionError(f"Table '{schema.name}' already exists")
        validate_schema(schema)
        table = Table(schema=schema)
        self.tables[schema.name] = table
        return table

    def drop_collection(self, name: str) -> None:
        self.get_collection(name)
        del self.tables[name]

    def names(self) -> list[str]:
        """Table names in creation order."""
        return list(self.tables)

    def clear(self) -> None:
        self.tables.clear()

    def replace_with(self, other: "RowStore") -> None:
        """Take over another store's tables (used by LOAD DATABASE)."""
        self.tables = dict(other.tables)

    # ---------- rows ----------

    def insert_row(self, name: str, row: Mapping[str, Any]) -> Row:
        """
        Append a row. Missing columns are filled from their DEFAULT (or None).

        Raises:
            ExecutionError: unknown table or column.
            ConstraintError: NOT NULL violation.
        """
        table = self.get_collection(name)
        unknown = [k for k in row if not table.schema.has_column(k)]
        if unknown:
            raise ExecutionError(f"Column '{unknown[0]}' does not exist in table '{name}'")
        stored = complete_row(table.schema.columns, row)
        check_not_null(table.schema, stored)
        table.rows.append(stored)
        return stored

    def update_rows(self, name: str, changes: Mapping[str, Any], predicate: Predicate | None = None) -> int:
        """
        Apply changes to every row matching predicate (all rows when None).

        Returns:
            Number of rows changed.
        """
        table = self.get_collection(name)
        count = 0
        new_rows: list[Row] = []
        for row in table.rows:
            if predicate is None or evaluate(predicate, row):
                row = {**row, **changes}
                check_not_null(table.schema, row)
                count += 1
            new_rows.append(row)
        table.rows = new_rows
        return count

    def delete_rows(self, name: str, predicate: Predicate | None = None) -> int:
        """
        Remove every row matching predicate (all rows when None).

        Returns:
            Number of rows removed.
        """
        table = self.get_collection(name)
        before = len(table.rows)
        if predicate is None:
            table.rows = []
        else:
            table.rows = [r for r in table.rows if not evaluate(predicate, r)]
        return before - len(table.rows)


def complete_row(columns: tuple[ColumnDef, ...], values: Mapping[str, Any]) -> Row:
    """Build a full row in schema order, taking DEFAULT (or None) for missing columns."""
    return {c.name: values[c.name] if c.name in values else c.default for c in columns}
