"""
stagedb/ast.py

AST (Abstract Syntax Tree) node definitions for the StageDB SQL subset.

The parser stages convert statement text into instances of these dataclasses.
The execution stages then use them to perform DDL/DML operations, and the
relational operator stages consult a Select while threading row-sets.

Design notes:
- Every node is frozen; a statement is derived once from its text and never changes.
- WHERE clauses are binary trees of Comparison leaves and Logical branches.
- A Comparison's operand shape follows its operator: Range for BETWEEN,
  a tuple for IN, None for the null tests, a single literal otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


# ---------- Predicate tree ----------

COMPARISON_OPS = ("=", "!=", "<>", "<", ">", "<=", ">=")
NULL_OPS = ("IS NULL", "IS NOT NULL")
OPERATORS = COMPARISON_OPS + NULL_OPS + ("IN", "LIKE", "BETWEEN")
COMBINATORS = ("AND", "OR")


@dataclass(frozen=True)
class Range:
    """Inclusive bounds of a BETWEEN comparison."""
    low: Any
    high: Any


@dataclass(frozen=True)
class Comparison:
    """
    Leaf of a predicate tree: <column> <op> <operand>.

    Attributes:
        column: Column name on the left side.
        op: One of OPERATORS (uppercased).
        operand: Literal, tuple of literals (IN), Range (BETWEEN) or None (null tests).
    """
    column: str
    op: str
    operand: Any = None

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unknown comparison operator: {self.op}")
        if self.op == "BETWEEN" and not isinstance(self.operand, Range):
            raise ValueError("BETWEEN requires a Range operand")
        if self.op == "IN" and not isinstance(self.operand, tuple):
            raise ValueError("IN requires a tuple operand")

    def __str__(self) -> str:
        if self.op in NULL_OPS:
            return f"{self.column} {self.op}"
        if self.op == "BETWEEN":
            return f"{self.column} BETWEEN {_literal(self.operand.low)} AND {_literal(self.operand.high)}"
        if self.op == "IN":
            return f"{self.column} IN ({', '.join(_literal(v) for v in self.operand)})"
        return f"{self.column} {self.op} {_literal(self.operand)}"


@dataclass(frozen=True)
class Logical:
    """Branch of a predicate tree: <left> AND|OR <right>."""
    left: "Predicate"
    combinator: str
    right: "Predicate"

    def __post_init__(self):
        if self.combinator not in COMBINATORS:
            raise ValueError(f"Unknown combinator: {self.combinator}")

    def __str__(self) -> str:
        return f"({self.left} {self.combinator} {self.right})"


Predicate = Union[Comparison, Logical]


def _literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


# ---------- Core nodes ----------

class Statement:
    """Base class marker for all statements."""


@dataclass(frozen=True)
class ColumnDef:
    """
    Column definition in CREATE TABLE.

    Attributes:
        name: Column name.
        typ: Uppercased type name, one of INTEGER, TEXT, REAL, BLOB.
        primary_key: Whether this column is the (single) PRIMARY KEY. Implies not_null.
        not_null: Whether NOT NULL is required.
        default: Value used when an INSERT omits this column.
    """
    name: str
    typ: str = "TEXT"
    primary_key: bool = False
    not_null: bool = False
    default: Any = None

    def __post_init__(self):
        if self.primary_key and not self.not_null:
            object.__setattr__(self, "not_null", True)

    def __str__(self) -> str:
        out = f"{self.name} {self.typ}"
        if self.primary_key:
            out += " PRIMARY KEY"
        elif self.not_null:
            out += " NOT NULL"
        if self.default is not None:
            out += f" DEFAULT {_literal(self.default)}"
        return out


@dataclass(frozen=True)
class OrderBy:
    """ORDER BY <column> [ASC|DESC]."""
    column: str
    descending: bool = False


# ---------- Statements ----------

@dataclass(frozen=True)
class CreateTable(Statement):
    """CREATE TABLE statement."""
    table_name: str
    columns: tuple[ColumnDef, ...]
    if_not_exists: bool = False


@dataclass(frozen=True)
class DropTable(Statement):
    """DROP TABLE statement."""
    table_name: str
    if_exists: bool = False


@dataclass(frozen=True)
class Insert(Statement):
    """
    INSERT statement.

    Attributes:
        table_name: Target table.
        columns: Explicit column list, or None for positional values.
        rows: One value tuple per parenthesized group after VALUES.
    """
    table_name: str
    columns: tuple[str, ...] | None
    rows: tuple[tuple[Any, ...], ...]


@dataclass(frozen=True)
class Select(Statement):
    """
    SELECT statement.

    Attributes:
        table_name: Table to read.
        columns: Requested columns in order; empty means '*'.
        where: Optional predicate tree.
        order_by: Optional single-column ordering.
        limit: Optional maximum row count.
        offset: Optional number of leading rows to skip.
        distinct: Whether duplicate result rows are removed.
    """
    table_name: str
    columns: tuple[str, ...] = ()
    where: Predicate | None = None
    order_by: OrderBy | None = None
    limit: int | None = None
    offset: int | None = None
    distinct: bool = False

    @property
    def select_all(self) -> bool:
        return not self.columns


@dataclass(frozen=True)
class Update(Statement):
    """UPDATE statement; assignments keep SET order."""
    table_name: str
    assignments: tuple[tuple[str, Any], ...]
    where: Predicate | None = None


@dataclass(frozen=True)
class Delete(Statement):
    """DELETE statement."""
    table_name: str
    where: Predicate | None = None


@dataclass(frozen=True)
class SaveDatabase(Statement):
    """SAVE DATABASE '<path>'."""
    path: str


@dataclass(frozen=True)
class LoadDatabase(Statement):
    """LOAD DATABASE '<path>'."""
    path: str


@dataclass(frozen=True)
class TableSchema:
    """
    Structure of a table: its name and ordered column definitions.

    Attributes:
        name: Table name.
        columns: Column definitions in declaration order.
    """
    name: str
    columns: tuple[ColumnDef, ...] = field(default_factory=tuple)

    def column_names(self) -> list[str]:
        """Return column names in declaration order."""
        return [c.name for c in self.columns]

    def has_column(self, name: str) -> bool:
        return any(c.name == name for c in self.columns)

    def get_column(self, name: str) -> ColumnDef | None:
        """Return ColumnDef by name, or None if not found."""
        for c in self.columns:
            if c.name == name:
                return c
        return None

    def primary_key(self) -> str | None:
        """Return the primary key column name if present, else None."""
        return next((c.name for c in self.columns if c.primary_key), None)

    def __str__(self) -> str:
        return f"{self.name} ({', '.join(str(c) for c in self.columns)})"
