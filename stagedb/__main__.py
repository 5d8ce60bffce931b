"""
stagedb/__main__.py

Package entry point for running StageDB as a module:

    python -m stagedb [database-file]

This also serves as the target for the console script entry point defined in
pyproject.toml:

    stagedb [database-file]
"""

from __future__ import annotations

import sys


def main() -> int:
    """
    Entry point for `python -m stagedb` and the installed `stagedb` command.

    Returns:
        Exit code (0 for normal exit).
    """
    from .repl import main as repl_main

    return int(repl_main(sys.argv))


if __name__ == "__main__":
    raise SystemExit(main())
