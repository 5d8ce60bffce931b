"""
stagedb/units.py

Values that flow through the dispatcher.

A WorkUnit pairs an immutable payload with a Trace of its routing history.
The payload's Python type says what stage of processing it is in:

- str:        raw statement text
- Statement:  a parsed statement (see stagedb/ast.py)
- RowSet:     rows moving through the SELECT operator chain
- Outcome:    the final text of a run (success or error)

Units are never modified. Every bookkeeping update returns a new unit whose
trace has been replaced.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Mapping

from .ast import Select

Row = Mapping[str, Any]


class Phase(IntEnum):
    """
    Position of a RowSet in the SELECT operator chain.

    Operators only accept row-sets from an earlier phase, so none of them can
    run twice on the same rows.
    """
    SCANNED = 1
    FILTERED = 2
    ORDERED = 3
    PROJECTED = 4
    DISTINCT = 5
    LIMITED = 6


@dataclass(frozen=True)
class RowSet:
    """
    Rows in flight for one SELECT.

    Attributes:
        rows: Row mappings. Operators subset or reorder these; projection builds new ones.
        columns: Output column names in display order.
        select: The statement being answered.
        phase: Last operator applied.
    """
    rows: tuple[Row, ...]
    columns: tuple[str, ...]
    select: Select
    phase: Phase = Phase.SCANNED

    def advance(self, phase: Phase, rows=None, columns=None) -> "RowSet":
        return replace(
            self,
            phase=phase,
            rows=self.rows if rows is None else tuple(rows),
            columns=self.columns if columns is None else tuple(columns),
        )


@dataclass(frozen=True)
class Outcome:
    """Final text of a run."""
    text: str
    is_error: bool = False

    @classmethod
    def ok(cls, text: str) -> "Outcome":
        return cls(text=text)

    @classmethod
    def error(cls, text: str) -> "Outcome":
        return cls(text=text, is_error=True)

    def render(self) -> str:
        """Error outcomes are prefixed with "ERROR: "; success text is returned as-is."""
        return f"ERROR: {self.text}" if self.is_error else self.text


def payload_kind(payload: Any) -> str:
    """Short label for a payload, used in traces and logs."""
    if isinstance(payload, str):
        return "text"
    if isinstance(payload, RowSet):
        return f"rowset:{payload.phase.name.lower()}"
    if isinstance(payload, Outcome):
        return "error" if payload.is_error else "outcome"
    # Statements are labelled by node class, e.g. "Select"
    return type(payload).__name__


def preview(payload: Any, width: int = 60) -> str:
    text = payload if isinstance(payload, str) else repr(payload)
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 3] + "..."


@dataclass(frozen=True)
class Trace:
    """
    Routing history of one unit.

    Attributes:
        declined_by: Stages that looked at the unit and passed, in visit order, no repeats.
        transformed_by: Stages that transformed this unit or one of its ancestors.
        total_stages: Pipeline length when the unit was last dequeued.
        history: (stage, payload kind, payload preview) records, kept only at the detailed trace level.
    """
    declined_by: tuple[str, ...] = ()
    transformed_by: tuple[str, ...] = ()
    total_stages: int = 0
    history: tuple[tuple[str, str, str], ...] = ()


@dataclass(frozen=True)
class WorkUnit:
    """
    One item in the dispatcher's queue.

    Attributes:
        payload: What is being processed.
        origin: Id of the dispatch run that created the unit.
        trace: Routing history.
    """
    payload: Any
    origin: str = ""
    trace: Trace = field(default_factory=Trace)

    @property
    def kind(self) -> str:
        return payload_kind(self.payload)

    @property
    def exhausted(self) -> bool:
        """True once every stage in the pipeline has declined this unit."""
        return len(self.trace.declined_by) == self.trace.total_stages

    def entering(self, total_stages: int) -> "WorkUnit":
        return replace(self, trace=replace(self.trace, total_stages=total_stages))

    def declined(self, stage_name: str) -> "WorkUnit":
        if stage_name in self.trace.declined_by:
            return self
        return replace(self, trace=replace(self.trace, declined_by=self.trace.declined_by + (stage_name,)))

    def transformed(self, stage_name: str, detailed: bool = False) -> "WorkUnit":
        """Record that stage_name handled this unit; detailed adds a payload snapshot."""
        history = self.trace.history
        if detailed:
            history = history + ((stage_name, self.kind, preview(self.payload)),)
        return replace(
            self,
            trace=replace(
                self.trace,
                transformed_by=self.trace.transformed_by + (stage_name,),
                history=history,
            ),
        )

    def derive(self, payload: Any) -> "WorkUnit":
        """
        Child unit carrying a new payload.

        The child keeps the transform lineage but starts with no declines.
        """
        return WorkUnit(
            payload=payload,
            origin=self.origin,
            trace=Trace(transformed_by=self.trace.transformed_by, history=self.trace.history),
        )

    def failure_report(self) -> str:
        """Multi-line description of why no stage could process this unit."""
        lines = [
            "=== UNIT PROCESSING ERROR ===",
            f"Input: {preview(self.payload, width=200)}",
            f"Run ID: {self.origin}",
            f"Stages attempted: {self.trace.total_stages}",
            "Declined by:",
        ]
        lines += [f"  - {name}" for name in self.trace.declined_by]
        if self.trace.transformed_by:
            lines.append("")
            lines.append("Transformed by:")
            lines += [f"  - {name}" for name in self.trace.transformed_by]
        lines.append("")
        lines.append("Suggestion: check the statement syntax.")
        return "\n".join(lines)
