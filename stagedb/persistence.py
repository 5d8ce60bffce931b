"""
stagedb/persistence.py

Whole-database save/load as a single JSON document.

File format (version 1):

    {
      "version": 1,
      "created": "<ISO-8601 timestamp>",
      "tables": {
        "<table>": {
          "schema": {"name": ..., "columns": [{"name", "type", "primary_key", "not_null", "default"}]},
          "rows": [{column: value, ...}, ...]
        }
      }
    }

Files carry a ".stagedb" suffix; it is appended when a caller leaves it off.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .ast import ColumnDef, TableSchema
from .errors import PersistenceError
from .store import RowStore, Table

FORMAT_VERSION = 1
FILE_SUFFIX = ".stagedb"


def resolve_path(path: str | Path, base_dir: Path | None = None) -> Path:
    """Add the file suffix if missing and anchor relative paths at base_dir."""
    p = Path(path)
    if not p.name.endswith(FILE_SUFFIX):
        p = p.with_name(p.name + FILE_SUFFIX)
    if base_dir is not None and not p.is_absolute():
        p = base_dir / p
    return p


def _column_to_dict(c: ColumnDef) -> dict[str, Any]:
    return {
        "name": c.name,
        "type": c.typ,
        "primary_key": c.primary_key,
        "not_null": c.not_null,
        "default": c.default,
    }


def _column_from_dict(raw: dict[str, Any]) -> ColumnDef:
    return ColumnDef(
        name=raw["name"],
        typ=str(raw.get("type", "TEXT")).upper(),
        primary_key=bool(raw.get("primary_key", False)),
        not_null=bool(raw.get("not_null", False)),
        default=raw.get("default"),
    )


def dump(store: RowStore) -> dict[str, Any]:
    """Serialize a store to a JSON-compatible dict."""
    tables: dict[str, Any] = {}
    for name in store.names():
        table = store.get_collection(name)
        tables[name] = {
            "schema": {
                "name": table.schema.name,
                "columns": [_column_to_dict(c) for c in table.schema.columns],
            },
            "rows": [dict(r) for r in table.rows],
        }
    return {
        "version": FORMAT_VERSION,
        "created": datetime.now(timezone.utc).isoformat(),
        "tables": tables,
    }


def restore(raw: Any) -> RowStore:
    """
    Rebuild a store from a dict produced by dump().

    Raises:
        PersistenceError: on an unknown version or malformed content.
    """
    if not isinstance(raw, dict) or raw.get("version") != FORMAT_VERSION:
        raise PersistenceError("Incompatible database format version")

    store = RowStore()
    try:
        for name, data in raw.get("tables", {}).items():
            columns = tuple(_column_from_dict(c) for c in data["schema"]["columns"])
            schema = TableSchema(name=name, columns=columns)
            # Rows were valid when saved; they are restored as-is, in schema order
            store.tables[name] = Table(
                schema=schema,
                rows=[{c.name: r.get(c.name) for c in columns} for r in data.get("rows", [])],
            )
    except (KeyError, TypeError, AttributeError) as e:
        raise PersistenceError(f"Malformed database file: {e}") from e
    return store


def save(store: RowStore, path: str | Path) -> Path:
    """
    Write the store to path (suffix added if missing).

    Returns:
        The path actually written.

    Raises:
        PersistenceError: if the file cannot be written.
    """
    target = resolve_path(path)
    try:
        target.write_text(json.dumps(dump(store), indent=2), encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Failed to write to file: {target}") from e
    return target


def load(path: str | Path) -> RowStore:
    """
    Read a store from path (suffix added if missing).

    Raises:
        PersistenceError: missing file, unreadable JSON, or incompatible version.
    """
    source = resolve_path(path)
    if not source.exists():
        raise PersistenceError(f"Database file not found: {source}")
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Failed to parse database file: {source}") from e
    return restore(raw)
