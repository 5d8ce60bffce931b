"""
stagedb/repl.py

Interactive REPL (Read-Eval-Print Loop) for the StageDB query engine.

Responsibilities:
- Provide a CLI shell for executing SQL-like statements against an in-memory database.
- Support multiline SQL input until a semicolon ';' is entered outside of quotes.
- Provide small meta-commands for introspection:
    - .help
    - .exit / .quit
    - .tables
    - .schema <table>
    - .trace (toggle the dispatch report after each statement)

Usage:
    python -m stagedb [database-file]
If a database file is given and exists it is loaded at startup.
"""

from __future__ import annotations

import sys
from pathlib import Path

try:
    import readline  # noqa: F401
except ImportError:
    # readline is optional; if missing, REPL still works.
    readline = None  # type: ignore[assignment]

from .db import Database
from .errors import StageDBError
from .log import configure_logging
from .parser import split_statements

PROMPT = "stagedb> "
PROMPT_CONT = "....> "


def is_complete_statement(buf: str) -> bool:
    """
    Decide whether the current buffer contains at least one complete statement.

    A statement is considered complete when a semicolon ';' appears outside of
    quoted string literals.

    Args:
        buf: Current accumulated input buffer.

    Returns:
        True if complete, else False.
    """
    quote: str | None = None
    for ch in buf:
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            return True
    return False


def cmd_tables(db: Database) -> None:
    """
    Meta-command: list all tables with their row counts.

    Args:
        db: Database instance.
    """
    names = sorted(db.store.names())
    if not names:
        print("(no tables)")
        return
    for n in names:
        print(f"{n} ({len(db.store.get_collection(n))} rows)")


def cmd_schema(db: Database, table: str) -> None:
    """
    Meta-command: print table schema.

    Args:
        db: Database instance.
        table: Table name.
    """
    if not db.store.has_collection(table):
        print(f"Table '{table}' does not exist")
        return

    schema = db.store.get_collection(table).schema
    print(f"TABLE {schema.name}")
    for c in schema.columns:
        print(f"  - {c}")


def print_help() -> None:
    print("Meta commands:")
    print("  .help              show this help")
    print("  .tables            list tables")
    print("  .schema <table>    show table schema")
    print("  .trace             toggle the dispatch report")
    print("  .exit / .quit      exit")
    print()
    print("SQL statements end with ';'. Example:")
    print("  CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER);")
    print("  INSERT INTO users VALUES (1, 'Alice', 30), (2, 'Bob', NULL);")
    print("  SELECT name FROM users WHERE age BETWEEN 25 AND 35 ORDER BY name;")
    print("  SAVE DATABASE 'users';")


def run_buffer(db: Database, buf: str, trace: bool = False) -> None:
    """Execute every complete statement in buf and print each result."""
    for sql in split_statements(buf):
        try:
            report = db.run(sql)
        except StageDBError as e:
            # Only the iteration budget escapes the dispatcher
            print(f"ERROR: {e}")
            continue
        print(report.text)
        if trace:
            print(report.summary())
        print()


def repl(db: Database, label: str = "memory") -> int:
    """
    Run the interactive REPL.

    Args:
        db: Database to run statements against.
        label: Shown in the banner.

    Returns:
        Process exit code (0 on normal exit).
    """
    print(f"StageDB REPL ({label})")
    print("Type .help for commands. End SQL with ';'.")

    trace = False
    buf = ""
    while True:
        try:
            prompt = PROMPT if not buf else PROMPT_CONT
            line = input(prompt)
        except EOFError:
            print()
            return 0
        except KeyboardInterrupt:
            # Clear current buffer on Ctrl+C
            print()
            buf = ""
            continue

        line_stripped = line.strip()

        # Meta commands only apply if we're not in the middle of a multi-line SQL buffer.
        if not buf and line_stripped.startswith("."):
            parts = line_stripped.split()
            cmd = parts[0].lower()

            if cmd in (".exit", ".quit"):
                return 0

            if cmd == ".help":
                print_help()
                continue

            if cmd == ".tables":
                cmd_tables(db)
                continue

            if cmd == ".schema":
                if len(parts) != 2:
                    print("Usage: .schema <table>")
                else:
                    cmd_schema(db, parts[1])
                continue

            if cmd == ".trace":
                trace = not trace
                print(f"trace {'on' if trace else 'off'}")
                continue

            print(f"Unknown command: {cmd}. Type .help")
            continue

        buf += line + "\n"
        if not is_complete_statement(buf):
            continue

        run_buffer(db, buf, trace)
        buf = ""


def main(argv: list[str]) -> int:
    """
    CLI entrypoint.

    Args:
        argv: sys.argv list.

    Returns:
        Exit code.
    """
    configure_logging()
    if len(argv) > 1:
        try:
            db = Database.open(Path(argv[1]))
        except StageDBError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        return repl(db, label=argv[1])
    return repl(Database())


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
