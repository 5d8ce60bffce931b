"""Stages that finish a run: row-set formatting and result capture."""

from __future__ import annotations

from ..results import QueryResult
from ..units import Outcome, RowSet, WorkUnit
from .base import Stage


class FormatStage(Stage):
    """Renders a RowSet that needs no further operators."""

    name = "select.format"

    def matches(self, unit: WorkUnit) -> bool:
        return isinstance(unit.payload, RowSet)

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        rs: RowSet = unit.payload
        text = QueryResult(columns=rs.columns, rows=rs.rows).render()
        dispatcher.submit(unit.derive(Outcome.ok(text)))


class ResultStage(Stage):
    """Captures an Outcome as the run's result. The last one captured wins."""

    name = "result"

    def matches(self, unit: WorkUnit) -> bool:
        return isinstance(unit.payload, Outcome)

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        dispatcher.capture(unit.payload)
