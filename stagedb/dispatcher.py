"""
stagedb/dispatcher.py

Rule-based dispatch loop.

The dispatcher owns an ordered list of stages and a queue of work units.
Each dequeued unit is offered to the stages in registration order; the first
stage whose matches() is true transforms it and the scan stops. Stages passed
over on the way are recorded as decliners. A unit that every stage declines is
rejected.

Errors:
- A StageDBError raised by a stage becomes an error Outcome unit for the run.
- PipelineLoopError (iteration budget exceeded) is fatal and propagates.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable
from uuid import uuid4

from .config import Settings, get_settings
from .errors import PipelineLoopError, StageDBError
from .log import get_logger
from .stages.base import Stage
from .units import Outcome, WorkUnit

logger = get_logger(__name__)


@dataclass
class RunReport:
    """
    What one dispatch run produced.

    Attributes:
        result: The captured terminal outcome, if any.
        rejected: Units every stage declined.
        iterations: Number of dequeues performed.
        transformed: (stage name, payload kind) for each transform, in order.
    """
    origin: str
    result: Outcome | None = None
    rejected: list[WorkUnit] = field(default_factory=list)
    iterations: int = 0
    transformed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Rendered result text, or an empty string when the run produced nothing."""
        return self.result.render() if self.result is not None else ""

    def summary(self, stages: Iterable[Stage] = ()) -> str:
        lines = [
            "=== Dispatch Report ===",
            f"Run ID: {self.origin}",
            f"Iterations: {self.iterations}",
            f"Result: {self.text or '(none)'}",
            f"Rejected units: {len(self.rejected)}",
        ]
        names = [s.name for s in stages]
        if names:
            lines.append("--- Pipeline ---")
            lines += [f"{i}. {name}" for i, name in enumerate(names, 1)]
        if self.transformed:
            lines.append("--- Transforms ---")
            lines += [f"{name} <- {kind}" for name, kind in self.transformed]
        return "\n".join(lines)


class Dispatcher:
    """
    Ordered stage pipeline plus a work queue.

    Args:
        stages: Stages to register, in order.
        settings: Source of defaults for the keyword arguments below.
        max_iterations: Dequeue budget per run.
        trace_level: "none", "minimal" or "detailed".
        detailed_errors: Whether rejected input is reported with its full decline history.
    """

    def __init__(
        self,
        stages: Iterable[Stage] = (),
        *,
        settings: Settings | None = None,
        max_iterations: int | None = None,
        trace_level: str | None = None,
        detailed_errors: bool | None = None,
    ):
        settings = settings or get_settings()
        self.max_iterations = settings.max_iterations if max_iterations is None else max_iterations
        self.trace_level = settings.trace_level if trace_level is None else trace_level
        self.detailed_errors = settings.detailed_errors if detailed_errors is None else detailed_errors

        self.stages: list[Stage] = []
        self.queue: deque[WorkUnit] = deque()
        self.origin = uuid4().hex
        self.result: Outcome | None = None

        for stage in stages:
            self.register(stage)

    def register(self, stage: Stage) -> "Dispatcher":
        """Append a stage; earlier stages take precedence."""
        if any(s.name == stage.name for s in self.stages):
            raise ValueError(f"Stage name already registered: {stage.name}")
        self.stages.append(stage)
        return self

    def submit(self, item: Any) -> None:
        """Enqueue a WorkUnit, or wrap any other payload in a fresh one."""
        unit = item if isinstance(item, WorkUnit) else WorkUnit(payload=item, origin=self.origin)
        self.queue.append(unit)

    def capture(self, outcome: Outcome) -> None:
        """Store a terminal outcome. Later captures replace earlier ones."""
        self.result = outcome

    def run(self) -> RunReport:
        """
        Drain the queue.

        Returns:
            RunReport for this run.

        Raises:
            PipelineLoopError: if more than max_iterations units are dequeued.
        """
        self.result = None
        report = RunReport(origin=self.origin)
        log = logger.bind(origin=self.origin)
        log.info("run_started", stages=len(self.stages), queued=len(self.queue))

        try:
            while self.queue:
                if report.iterations >= self.max_iterations:
                    self.queue.clear()
                    log.error("iteration_budget_exceeded", max_iterations=self.max_iterations)
                    raise PipelineLoopError(self.max_iterations)
                report.iterations += 1
                unit = self.queue.popleft().entering(len(self.stages))
                self._dispatch(unit, report, log)
        finally:
            # Units submitted after this point belong to the next run
            self.origin = uuid4().hex

        if self.result is None and report.rejected:
            self.result = self.rejection_outcome(report.rejected[0])

        report.result = self.result
        log.info(
            "run_finished",
            iterations=report.iterations,
            rejected=len(report.rejected),
            error=bool(self.result and self.result.is_error),
        )
        return report

    def _dispatch(self, unit: WorkUnit, report: RunReport, log) -> None:
        for stage in self.stages:
            if not stage.matches(unit):
                unit = unit.declined(stage.name)
                continue

            report.transformed.append((stage.name, unit.kind))
            log.debug("unit_transformed", stage=stage.name, kind=unit.kind)
            if self.trace_level != "none":
                unit = unit.transformed(stage.name, detailed=self.trace_level == "detailed")
            try:
                stage.transform(unit, self)
            except PipelineLoopError:
                raise
            except StageDBError as e:
                log.info("stage_failed", stage=stage.name, error=str(e))
                self.submit(unit.derive(Outcome.error(str(e))))
            return

        if unit.exhausted:
            log.warning("unit_rejected", kind=unit.kind, declined_by=list(unit.trace.declined_by))
            report.rejected.append(unit)

    def rejection_outcome(self, unit: WorkUnit) -> Outcome:
        """Error outcome for a unit no stage would take."""
        if self.detailed_errors:
            return Outcome.error(unit.failure_report())
        return Outcome.error("Invalid SQL syntax")
