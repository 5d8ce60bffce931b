"""Dispatcher stages and the standard pipeline."""

from __future__ import annotations

from pathlib import Path

from ..store import RowStore
from .base import Stage, StatementStage, TextStage, keyword_prefix
from .execute import CreateTableStage, DeleteStage, DropTableStage, InsertStage, UpdateStage
from .operators import DistinctStage, FilterStage, LimitStage, OrderStage, ProjectStage, ScanStage
from .parse import PARSE_STAGES
from .persist import LoadStage, SaveStage
from .terminal import FormatStage, ResultStage


def build_pipeline(store: RowStore, data_dir: Path | None = None) -> list[Stage]:
    """
    Standard stage order: parsers, statement execution, SELECT operators,
    formatting, then result capture.
    """
    stages: list[Stage] = [cls() for cls in PARSE_STAGES]
    stages += [
        CreateTableStage(store),
        DropTableStage(store),
        InsertStage(store),
        UpdateStage(store),
        DeleteStage(store),
        SaveStage(store, data_dir),
        LoadStage(store, data_dir),
        ScanStage(store),
        FilterStage(),
        OrderStage(),
        ProjectStage(),
        DistinctStage(),
        LimitStage(),
        FormatStage(),
        ResultStage(),
    ]
    return stages


__all__ = [
    "Stage",
    "StatementStage",
    "TextStage",
    "keyword_prefix",
    "build_pipeline",
]
