"""
Statement parser stages.

Each stage takes raw statement text that starts with its keyword(s) and
submits the parsed statement. Parsed statements are never text, so a parser
stage cannot see its own output again.
"""

from __future__ import annotations

from typing import Callable, ClassVar

from .. import parser
from ..ast import Statement
from ..units import WorkUnit
from .base import TextStage, keyword_prefix


class ParseStage(TextStage):
    """Turns statement text into a Statement; syntax errors propagate as SqlSyntaxError."""

    parse: ClassVar[Callable[[str], Statement]]

    def transform(self, unit: WorkUnit, dispatcher) -> None:
        stmt = self.parse(unit.payload)
        dispatcher.submit(unit.derive(stmt))


class CreateTableParseStage(ParseStage):
    name = "create_table.parse"
    prefix = keyword_prefix("CREATE", "TABLE")
    parse = staticmethod(parser.parse_create_table)


class DropTableParseStage(ParseStage):
    name = "drop_table.parse"
    prefix = keyword_prefix("DROP", "TABLE")
    parse = staticmethod(parser.parse_drop_table)


class InsertParseStage(ParseStage):
    name = "insert.parse"
    prefix = keyword_prefix("INSERT", "INTO")
    parse = staticmethod(parser.parse_insert)


class SelectParseStage(ParseStage):
    name = "select.parse"
    prefix = keyword_prefix("SELECT")
    parse = staticmethod(parser.parse_select)


class UpdateParseStage(ParseStage):
    name = "update.parse"
    prefix = keyword_prefix("UPDATE")
    parse = staticmethod(parser.parse_update)


class DeleteParseStage(ParseStage):
    name = "delete.parse"
    prefix = keyword_prefix("DELETE", "FROM")
    parse = staticmethod(parser.parse_delete)


class SaveParseStage(ParseStage):
    name = "save.parse"
    prefix = keyword_prefix("SAVE", "DATABASE")
    parse = staticmethod(parser.parse_save)


class LoadParseStage(ParseStage):
    name = "load.parse"
    prefix = keyword_prefix("LOAD", "DATABASE")
    parse = staticmethod(parser.parse_load)


PARSE_STAGES = (
    CreateTableParseStage,
    DropTableParseStage,
    InsertParseStage,
    SelectParseStage,
    UpdateParseStage,
    DeleteParseStage,
    SaveParseStage,
    LoadParseStage,
)
