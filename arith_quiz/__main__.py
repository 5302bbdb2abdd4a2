from __future__ import annotations

from .app import run
from .logging_setup import setup_logging


def main() -> int:
    """Entry point for running the quiz from the command line."""
    setup_logging()
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
