"""
stagedb/predicate.py

Evaluation of WHERE predicate trees against rows.

Comparison policy:
- If both sides are numbers (or strings that look like numbers), compare numerically.
- Otherwise compare their text forms.
- NULL (None) is equal only to NULL. Ordering, BETWEEN and LIKE against NULL are false.
- IN holds when any listed value is equal under the same rules.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterator, Mapping

from .ast import Comparison, Logical, Predicate

# Plain decimal or scientific notation; no underscores, no inf/nan spellings
NUMERIC_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def as_number(value: Any) -> int | float | None:
    """
    Return value as a number if it is one or looks like one, else None.

    Booleans and non-finite floats are not treated as numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not NUMERIC_RE.fullmatch(text):
            return None
        try:
            return int(text)
        except ValueError:
            pass
        number = float(text)
        return number if math.isfinite(number) else None
    return None


def compare(left: Any, right: Any) -> int:
    """
    Three-way compare two non-null values: -1, 0 or 1.
    """
    ln, rn = as_number(left), as_number(right)
    if ln is not None and rn is not None:
        a, b = ln, rn
    else:
        a, b = str(left), str(right)
    return (a > b) - (a < b)


def values_equal(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is None and right is None
    return compare(left, right) == 0


def like_to_regex(pattern: str) -> re.Pattern[str]:
    """
    Translate a LIKE pattern into an anchored case-insensitive regex.

    '%' matches any sequence, '_' matches one character, everything else is literal.
    """
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _eval_comparison(node: Comparison, row: Mapping[str, Any]) -> bool:
    value = row.get(node.column)
    op = node.op

    if op == "IS NULL":
        return value is None
    if op == "IS NOT NULL":
        return value is not None
    if op == "IN":
        return any(values_equal(value, v) for v in node.operand)
    if op == "=":
        return values_equal(value, node.operand)
    if op in ("!=", "<>"):
        return not values_equal(value, node.operand)

    # Remaining operators never hold for NULL on either side
    if value is None:
        return False
    if op == "BETWEEN":
        low, high = node.operand.low, node.operand.high
        if low is None or high is None:
            return False
        return compare(value, low) >= 0 and compare(value, high) <= 0
    if node.operand is None:
        return False
    if op == "LIKE":
        return like_to_regex(str(node.operand)).fullmatch(str(value)) is not None

    c = compare(value, node.operand)
    if op == "<":
        return c < 0
    if op == ">":
        return c > 0
    if op == "<=":
        return c <= 0
    if op == ">=":
        return c >= 0
    raise ValueError(f"Unsupported operator: {op}")


def evaluate(predicate: Predicate, row: Mapping[str, Any]) -> bool:
    """
    Evaluate a predicate tree against one row.

    Both children of a Logical node are always evaluated.
    """
    if isinstance(predicate, Comparison):
        return _eval_comparison(predicate, row)
    if isinstance(predicate, Logical):
        left = evaluate(predicate.left, row)
        right = evaluate(predicate.right, row)
        if predicate.combinator == "AND":
            return left and right
        return left or right
    raise TypeError(f"Not a predicate: {predicate!r}")


def iter_columns(predicate: Predicate) -> Iterator[str]:
    if isinstance(predicate, Comparison):
        yield predicate.column
    else:
        yield from iter_columns(predicate.left)
        yield from iter_columns(predicate.right)


def columns_of(predicate: Predicate | None) -> list[str]:
    """Return the distinct column names a predicate refers to, in first-seen order."""
    if predicate is None:
        return []
    return list(dict.fromkeys(iter_columns(predicate)))
