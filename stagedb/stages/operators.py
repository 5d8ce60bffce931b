"""
Relational operator stages for SELECT.

A Select is scanned into a RowSet, which then passes through whichever of
filter, order, project, distinct and limit the statement asks for, in that
order. Each operator only accepts a RowSet from an earlier phase and tags its
output with its own phase, so no operator sees its own output.
"""

from __future__ import annotations

from abc import abstractmethod
from functools import cmp_to_key
from typing import ClassVar

from ..ast import Select
from ..errors import ExecutionError
from ..predicate import columns_of, compare, evaluate
from ..store import RowStore
from ..units import Phase, RowSet, WorkUnit
from .base import Stage, StatementStage
from .execute import require_columns


class ScanStage(StatementStage):
    """
    Materializes a table's rows for a Select.

    Every column the statement mentions is checked here, before any operator runs.
    """

    name = "select.scan"
    statement_type = Select

    def __init__(self, store: RowStore, name: str | None = None):
        super().__init__(name)
        self.store = store

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt: Select = unit.payload
        table = self.store.get_collection(stmt.table_name)
        schema = table.schema

        require_columns(schema, stmt.columns)
        require_columns(schema, columns_of(stmt.where))
        if stmt.order_by is not None and not schema.has_column(stmt.order_by.column):
            raise ExecutionError(f"ORDER BY column '{stmt.order_by.column}' does not exist")

        columns = stmt.columns if not stmt.select_all else tuple(schema.column_names())
        rowset = RowSet(rows=tuple(table.rows), columns=tuple(columns), select=stmt)
        dispatcher.submit(unit.derive(rowset))


class RowSetStage(Stage):
    """Base for operators: takes a RowSet from an earlier phase whose Select needs this operator."""

    phase: ClassVar[Phase]

    def matches(self, unit: WorkUnit) -> bool:
        rs = unit.payload
        return isinstance(rs, RowSet) and rs.phase < self.phase and self.applies(rs.select)

    @abstractmethod
    def applies(self, select: Select) -> bool:
        ...

    @abstractmethod
    def apply(self, rowset: RowSet) -> RowSet:
        ...

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        dispatcher.submit(unit.derive(self.apply(unit.payload)))


class FilterStage(RowSetStage):
    name = "select.filter"
    phase = Phase.FILTERED

    def applies(self, select: Select) -> bool:
        return select.where is not None

    def apply(self, rowset: RowSet) -> RowSet:
        pred = rowset.select.where
        return rowset.advance(self.phase, rows=[r for r in rowset.rows if evaluate(pred, r)])


def order_rows(rows, column: str, descending: bool = False) -> list:
    """
    Stable sort on one column.

    NULLs go last in both directions; DESC reverses only the non-null part.
    """
    present = [r for r in rows if r.get(column) is not None]
    missing = [r for r in rows if r.get(column) is None]
    key = cmp_to_key(lambda a, b: compare(a[column], b[column]))
    return sorted(present, key=key, reverse=descending) + missing


class OrderStage(RowSetStage):
    name = "select.order"
    phase = Phase.ORDERED

    def applies(self, select: Select) -> bool:
        return select.order_by is not None

    def apply(self, rowset: RowSet) -> RowSet:
        ob = rowset.select.order_by
        return rowset.advance(self.phase, rows=order_rows(rowset.rows, ob.column, ob.descending))


class ProjectStage(RowSetStage):
    name = "select.project"
    phase = Phase.PROJECTED

    def applies(self, select: Select) -> bool:
        return not select.select_all

    def apply(self, rowset: RowSet) -> RowSet:
        cols = rowset.columns
        return rowset.advance(self.phase, rows=[{c: r.get(c) for c in cols} for r in rowset.rows])


class DistinctStage(RowSetStage):
    name = "select.distinct"
    phase = Phase.DISTINCT

    def applies(self, select: Select) -> bool:
        return select.distinct

    def apply(self, rowset: RowSet) -> RowSet:
        seen: set[tuple] = set()
        kept = []
        for r in rowset.rows:
            sig = tuple(r.get(c) for c in rowset.columns)
            if sig in seen:
                continue
            seen.add(sig)
            kept.append(r)
        return rowset.advance(self.phase, rows=kept)


class LimitStage(RowSetStage):
    name = "select.limit"
    phase = Phase.LIMITED

    def applies(self, select: Select) -> bool:
        return select.limit is not None or select.offset is not None

    def apply(self, rowset: RowSet) -> RowSet:
        start = rowset.select.offset or 0
        limit = rowset.select.limit
        end = None if limit is None else start + limit
        return rowset.advance(self.phase, rows=rowset.rows[start:end])
