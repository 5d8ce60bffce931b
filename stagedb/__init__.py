"""StageDB: an in-memory relational query engine built on a stage dispatcher."""

from .db import Database
from .dispatcher import Dispatcher, RunReport
from .errors import (
    ConstraintError,
    ExecutionError,
    PersistenceError,
    PipelineLoopError,
    SqlSyntaxError,
    StageDBError,
)
from .parser import parse_predicate
from .predicate import evaluate
from .store import RowStore
from .units import Outcome, RowSet, WorkUnit

__version__ = "0.1.0"

__all__ = [
    "Database",
    "Dispatcher",
    "RunReport",
    "RowStore",
    "WorkUnit",
    "RowSet",
    "Outcome",
    "parse_predicate",
    "evaluate",
    "StageDBError",
    "SqlSyntaxError",
    "ExecutionError",
    "ConstraintError",
    "PersistenceError",
    "PipelineLoopError",
]
