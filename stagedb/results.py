"""
stagedb/results.py

Text rendering of statement results.

Every statement produces one string:
- a status message for DDL, INSERT/UPDATE/DELETE and SAVE/LOAD
- a row listing for SELECT:

      2 rows returned

      name<TAB>age
      ------------------
      Alice<TAB>30
      Bob<TAB>NULL

  An empty result is the single line "0 rows returned".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

NULL_MARKER = "NULL"


def plural_rows(n: int) -> str:
    return f"{n} row" if n == 1 else f"{n} rows"


def rows_message(n: int, verb: str, table: str | None = None) -> str:
    """e.g. "2 rows inserted into 'users'" or "1 row deleted"."""
    msg = f"{plural_rows(n)} {verb}"
    if table is not None:
        msg += f" into '{table}'"
    return msg


def format_value(value: Any) -> str:
    return NULL_MARKER if value is None else str(value)


@dataclass(frozen=True)
class QueryResult:
    """
    Output of a SELECT.

    Attributes:
        columns: Output column names in order.
        rows: Rows as mappings; values are looked up by column name.
    """
    columns: Sequence[str]
    rows: Sequence[Mapping[str, Any]]

    def render(self) -> str:
        if not self.rows:
            return "0 rows returned"
        header = "\t".join(self.columns)
        lines = [
            f"{plural_rows(len(self.rows))} returned",
            "",
            header,
            "-" * (len(header) + len(self.columns) * 3),
        ]
        for row in self.rows:
            lines.append("\t".join(format_value(row.get(c)) for c in self.columns))
        return "\n".join(lines)
