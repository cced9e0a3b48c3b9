#!/usr/bin/env python3
"""
fcards - Terminal Flashcards
============================
Review question/answer cards stored in a local SQLite database
(~/.fcards/flashcards.db, or $FCARDS_HOME/flashcards.db).

Usage:
    python fcards.py
    python fcards.py --type general
    python fcards.py --group type
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from fcards_db import (
    DB_FILENAME,
    StoreError,
    connect,
    get_data_dir,
    load_category_groups,
    load_questions,
    run_migrations,
    seed_if_empty,
    shuffle_questions,
)
from fcards_state import CategoryBrowser, browser_state, card_state, view
from fcards_tui import run_ui

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LOG_FILENAME = "fcards.log"
LOG_LEVEL_ENV = "FCARDS_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
GROUP_CHOICES = ("type",)

RED = "\033[91m"
RESET = "\033[0m"

LOGGER = logging.getLogger("fcards")


def fail(message):
    """Print an error to stderr and return the exit status for main()."""
    print(f"{RED}Error: {message}{RESET}", file=sys.stderr)
    return 1


def setup_logging(data_dir, level=None):
    """Log to a file in the data directory; the terminal belongs to the UI."""
    level = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    logging.basicConfig(
        filename=str(Path(data_dir) / LOG_FILENAME),
        level=getattr(logging, level, logging.WARNING),
        format=LOG_FORMAT,
    )


def print_plain(state):
    """Write frames without a UI: every card revealed, or the type list."""
    if isinstance(state.mode, CategoryBrowser):
        print(view(state))
        return
    for index in range(len(state.mode.questions)):
        card = replace(state.mode, index=index, revealed=True)
        print(view(replace(state, mode=card)))


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fcards",
        description="Terminal flashcards backed by a local SQLite database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keys:
  Enter     flip the card / open the selected type
  H / L     previous / next card
  Up/Down   scroll a long card (J/K also move in the type list)
  /         search types
  q         quit

Examples:
  fcards
  fcards --type general
  fcards --group type
        """,
    )
    parser.add_argument("--type", default="", help="only review questions of this type")
    parser.add_argument(
        "--group",
        default="",
        help="browse questions grouped by a field (supported: type)",
    )
    parser.add_argument("--db", help=f"database file (default: <data dir>/{DB_FILENAME})")
    parser.add_argument(
        "--log-level",
        help=f"log level for {LOG_FILENAME} (default: ${LOG_LEVEL_ENV} or WARNING)",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    group = args.group.strip().lower()
    if group and group not in GROUP_CHOICES:
        return fail(f"unsupported group: {args.group}")

    try:
        data_dir = get_data_dir()
    except OSError as exc:
        return fail(f"failed to get data directory: {exc}")
    setup_logging(data_dir, args.log_level)

    db_path = Path(args.db).expanduser() if args.db else data_dir / DB_FILENAME
    try:
        conn = connect(db_path)
    except StoreError as exc:
        return fail(f"failed to open db: {exc}")

    try:
        try:
            run_migrations(conn)
            seed_if_empty(conn)
        except StoreError as exc:
            return fail(f"failed to init schema: {exc}")

        if group:
            try:
                groups = load_category_groups(conn)
            except StoreError as exc:
                return fail(f"failed to list questions by type: {exc}")
            state = browser_state(groups)
        else:
            try:
                questions = load_questions(conn, args.type)
            except StoreError as exc:
                return fail(f"failed to load questions: {exc}")
            if not questions:
                return fail("no questions found in database")
            state = card_state(shuffle_questions(questions))

        if not sys.stdout.isatty():
            print_plain(state)
            return 0

        try:
            run_ui(
                state,
                loader=lambda category: load_questions(conn, category, exact=True),
            )
        except Exception as exc:
            LOGGER.exception("ui error")
            return fail(f"ui error: {exc}")
        return 0
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
