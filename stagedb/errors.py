"""
stagedb/errors.py

Centralized exception types for the StageDB query engine.

This module defines:
- A common base exception for all engine errors
- A lightweight Position structure for reporting syntax errors with line/column context
- Specialized error types raised by the lexer, parser, stages and persistence layer

Stages raise these freely; the dispatcher turns every StageDBError except
PipelineLoopError into an error outcome for the current run.
"""

from __future__ import annotations

from dataclasses import dataclass


class StageDBError(Exception):
    """
    Base class for all StageDB errors.

    Catching this exception allows callers (shell, tests) to handle all engine errors
    without accidentally swallowing unrelated system exceptions.
    """


@dataclass(frozen=True)
class Position:
    """
    Represents a location in an input statement.

    Attributes:
        line: 1-based line number
        col:  1-based column number
    """
    line: int
    col: int


class SqlSyntaxError(StageDBError):
    """
    Raised when tokenization/parsing fails due to invalid syntax.

    Args:
        message: Human readable explanation.
        position: Optional Position indicating where the error occurred.
        fragment: Optional offending text (a clause or token).
        expected: Optional grammar line shown as a hint.
    """

    def __init__(
        self,
        message: str,
        position: Position | None = None,
        fragment: str | None = None,
        expected: str | None = None,
    ):
        self.message = message
        self.position = position
        self.fragment = fragment
        self.expected = expected
        super().__init__(self.__str__())

    def __str__(self) -> str:
        text = self.message
        if self.position is not None:
            text += f" (line {self.position.line}, col {self.position.col})"
        if self.fragment is not None:
            text += f": {self.fragment}"
        if self.expected is not None:
            text += f"\nExpected: {self.expected}"
        return text


class ExecutionError(StageDBError):
    """
    Raised when a statement is syntactically valid but cannot be executed.

    Examples:
      - Missing table/column
      - Column/value arity mismatch
    """


class ConstraintError(StageDBError):
    """
    Raised when a schema or data integrity rule is violated.

    Examples:
      - More than one PRIMARY KEY declared
      - NOT NULL violation
    """


class PersistenceError(StageDBError):
    """Raised when a database file cannot be written, read, or understood."""


class PipelineLoopError(StageDBError):
    """
    Raised when a dispatch run exceeds its iteration budget.

    This signals a pipeline construction bug (a stage keeps re-emitting work),
    not bad user input, so it is never converted into an outcome.
    """

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(
            f"Dispatcher exceeded maximum iterations ({max_iterations}). "
            "Possible infinite loop detected."
        )
