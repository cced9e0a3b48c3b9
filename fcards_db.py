"""
fcards - storage
================
SQLite-backed question store: schema migrations, starter cards and the two
queries the reviewer needs (questions, and question counts per type).
"""

from __future__ import annotations

import datetime
import logging
import os
import random
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HOME_ENV = "FCARDS_HOME"
DATA_DIR_NAME = ".fcards"
DB_FILENAME = "flashcards.db"

# Applied in order, once each; the name is recorded in schema_migrations.
MIGRATIONS = (
    (
        "0001_create_questions.sql",
        """
        CREATE TABLE IF NOT EXISTS questions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            text TEXT NOT NULL
        );
        """,
    ),
    (
        "0002_create_answers.sql",
        """
        CREATE TABLE IF NOT EXISTS answers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            question_id INTEGER NOT NULL REFERENCES questions(id) ON DELETE CASCADE,
            text TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_answers_question_id ON answers(question_id);
        """,
    ),
)

SEED_CARDS = (
    ("What is Go's concurrency model built on?", ("Goroutines", "Channels"), "general"),
    ("Which SQL clause filters rows?", ("WHERE",), "general"),
    ("Name a Git command to list branches.", ("git branch",), "general"),
)


class StoreError(Exception):
    """Raised when the question store cannot be read or written."""


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Question:
    id: int
    text: str
    answers: tuple = field(default_factory=tuple)
    category: str = ""


@dataclass(frozen=True)
class CategoryGroup:
    category: str
    count: int


# ---------------------------------------------------------------------------
# Connection / configuration
# ---------------------------------------------------------------------------


def get_data_dir() -> Path:
    """Return the data directory ($FCARDS_HOME or ~/.fcards), creating it."""
    override = os.environ.get(HOME_ENV, "").strip()
    data_dir = Path(override).expanduser() if override else Path.home() / DATA_DIR_NAME
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def connect(path) -> sqlite3.Connection:
    """Open the database in autocommit mode; transactions are explicit."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path), isolation_level=None)
        conn.execute("PRAGMA foreign_keys=ON")
    except (OSError, sqlite3.Error) as exc:
        raise StoreError(f"cannot open {path}: {exc}") from exc
    return conn


def _split_statements(script: str) -> list:
    return [stmt.strip() for stmt in script.split(";") if stmt.strip()]


def run_migrations(conn: sqlite3.Connection, migrations=MIGRATIONS) -> list:
    """Apply every migration not yet recorded. Returns the versions applied."""
    try:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            " version TEXT PRIMARY KEY,"
            " applied_at TEXT NOT NULL)"
        )
        applied = {row[0] for row in conn.execute("SELECT version FROM schema_migrations")}
    except sqlite3.Error as exc:
        raise StoreError(f"cannot read schema_migrations: {exc}") from exc

    newly_applied = []
    for version, body in sorted(migrations):
        if version in applied or not body.strip():
            continue
        conn.execute("BEGIN")
        try:
            for statement in _split_statements(body):
                conn.execute(statement)
            conn.execute(
                "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
                (version, datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="seconds")),
            )
        except sqlite3.Error as exc:
            conn.execute("ROLLBACK")
            raise StoreError(f"migration {version} failed: {exc}") from exc
        conn.execute("COMMIT")
        LOGGER.info("applied migration %s", version)
        newly_applied.append(version)

    ensure_question_type_column(conn)
    return newly_applied


def ensure_question_type_column(conn: sqlite3.Connection) -> bool:
    """Add questions.type to databases created before it existed."""
    try:
        columns = [row[1] for row in conn.execute("PRAGMA table_info(questions)")]
        if "type" in columns:
            return False
        conn.execute("ALTER TABLE questions ADD COLUMN type TEXT NOT NULL DEFAULT ''")
    except sqlite3.Error as exc:
        raise StoreError(f"cannot add questions.type: {exc}") from exc
    LOGGER.info("added questions.type column")
    return True


def seed_if_empty(conn: sqlite3.Connection, cards=SEED_CARDS) -> int:
    """Insert the starter cards into an empty store. Returns how many were added."""
    try:
        (count,) = conn.execute("SELECT COUNT(1) FROM questions").fetchone()
    except sqlite3.Error as exc:
        raise StoreError(f"cannot count questions: {exc}") from exc
    if count:
        return 0

    conn.execute("BEGIN")
    try:
        for text, answers, category in cards:
            cur = conn.execute(
                "INSERT INTO questions(text, type) VALUES (?, ?)", (text, category)
            )
            conn.executemany(
                "INSERT INTO answers(question_id, text) VALUES (?, ?)",
                [(cur.lastrowid, answer) for answer in answers],
            )
    except sqlite3.Error as exc:
        conn.execute("ROLLBACK")
        raise StoreError(f"seeding failed: {exc}") from exc
    conn.execute("COMMIT")
    LOGGER.info("seeded %d starter cards", len(cards))
    return len(cards)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def load_questions(
    conn: sqlite3.Connection, category: Optional[str] = None, exact: bool = False
) -> list:
    """
    Load questions with their answers, ordered by question id then answer id.

    A blank *category* means every category, unless *exact* is set: then
    any non-None *category* is matched as stored, so "" selects untyped
    questions.
    """
    query = (
        "SELECT q.id, q.text, q.type, a.text"
        " FROM questions q"
        " LEFT JOIN answers a ON q.id = a.question_id"
    )
    params = ()
    if category is not None and (exact or category.strip()):
        query += " WHERE q.type = ?"
        params = (category,)
    query += " ORDER BY q.id, a.id"

    try:
        rows = conn.execute(query, params).fetchall()
    except sqlite3.Error as exc:
        raise StoreError(f"cannot load questions: {exc}") from exc

    by_id = {}
    for qid, text, qtype, answer in rows:
        entry = by_id.setdefault(qid, {"text": text, "type": qtype, "answers": []})
        if answer is not None:
            entry["answers"].append(answer)

    return [
        Question(id=qid, text=e["text"], answers=tuple(e["answers"]), category=e["type"])
        for qid, e in by_id.items()
    ]


def load_category_groups(conn: sqlite3.Connection) -> list:
    """Return (type, question count) pairs sorted by type."""
    try:
        rows = conn.execute(
            "SELECT q.type, COUNT(1) FROM questions q GROUP BY q.type ORDER BY q.type"
        ).fetchall()
    except sqlite3.Error as exc:
        raise StoreError(f"cannot list question types: {exc}") from exc
    return [CategoryGroup(category=qtype, count=count) for qtype, count in rows]


def shuffle_questions(questions, rng: Optional[random.Random] = None) -> list:
    """Return a shuffled copy of *questions*."""
    shuffled = list(questions)
    (rng or random).shuffle(shuffled)
    return shuffled
