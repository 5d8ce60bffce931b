"""Base classes for dispatcher stages."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from ..ast import Statement
from ..units import WorkUnit

if TYPE_CHECKING:
    from ..dispatcher import Dispatcher


class Stage(ABC):
    """
    A matcher plus a transformer, registered into a Dispatcher.

    A stage's name is its identity in traces, so it must be stable and unique
    within one pipeline.
    """

    name: ClassVar[str] = ""

    def __init__(self, name: str | None = None):
        if name is not None:
            self.name = name
        elif not self.name:
            self.name = type(self).__name__

    @abstractmethod
    def matches(self, unit: WorkUnit) -> bool:
        """Return True if this stage should take the unit."""

    @abstractmethod
    def transform(self, unit: WorkUnit, dispatcher: "Dispatcher") -> None:
        """Process the unit, submitting zero or more follow-up units."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class TextStage(Stage):
    """Stage that takes raw statement text starting with a keyword prefix."""

    prefix: ClassVar[re.Pattern[str]]

    def matches(self, unit: WorkUnit) -> bool:
        return isinstance(unit.payload, str) and self.prefix.match(unit.payload) is not None


class StatementStage(Stage):
    """Stage that takes one kind of parsed statement."""

    statement_type: ClassVar[type[Statement]]

    def matches(self, unit: WorkUnit) -> bool:
        return isinstance(unit.payload, self.statement_type)


def keyword_prefix(*words: str) -> re.Pattern[str]:
    """Case-insensitive pattern for a run of leading keywords, e.g. ("INSERT", "INTO")."""
    return re.compile(r"\s*" + r"\s+".join(words) + r"\b", re.IGNORECASE)
