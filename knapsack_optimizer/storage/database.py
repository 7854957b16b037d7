"""SQLite storage utilities for run history and per-session item lists."""
from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterable, List, Optional

from knapsack_optimizer.config import DATABASE_PATH


SCHEMA = """
CREATE TABLE IF NOT EXISTS runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    profile TEXT NOT NULL,
    capacity REAL NOT NULL,
    allow_fractional INTEGER NOT NULL,
    total_weight REAL NOT NULL,
    total_value REAL NOT NULL,
    item_count INTEGER NOT NULL,
    selected_items TEXT NOT NULL,
    steps TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS item_lists (
    list_token TEXT NOT NULL,
    profile TEXT NOT NULL,
    position INTEGER NOT NULL,
    item_id TEXT NOT NULL,
    name TEXT NOT NULL,
    weight REAL NOT NULL,
    value REAL NOT NULL,
    PRIMARY KEY (list_token, profile, position)
);
"""

_COLUMNS = """
    id, profile, capacity, allow_fractional, total_weight, total_value,
    item_count, selected_items, steps, created_at
"""


def initialize_database(path: Optional[Path] = None) -> None:
    """Ensure the SQLite database and schema exist."""
    db_path = path or DATABASE_PATH
    with sqlite3.connect(db_path) as conn:
        conn.executescript(SCHEMA)


@contextmanager
def get_connection(path: Optional[Path] = None) -> Generator[sqlite3.Connection, None, None]:
    db_path = path or DATABASE_PATH
    conn = sqlite3.connect(db_path)
    try:
        yield conn
    finally:
        conn.close()


def _row_to_dict(row: tuple) -> dict:
    return {
        "id": row[0],
        "profile": row[1],
        "capacity": row[2],
        "allow_fractional": bool(row[3]),
        "total_weight": row[4],
        "total_value": row[5],
        "item_count": row[6],
        "selected_items": json.loads(row[7]),
        "steps": json.loads(row[8]),
        "created_at": row[9],
    }


def record_run(
    *,
    profile: str,
    capacity: float,
    allow_fractional: bool,
    total_weight: float,
    total_value: float,
    selected_items: Iterable[dict],
    steps: Iterable[str],
    path: Optional[Path] = None,
) -> int:
    """Persist a completed run and return its identifier."""
    selected_items = list(selected_items)
    with get_connection(path) as conn:
        cursor = conn.execute(
            """
            INSERT INTO runs (
                profile,
                capacity,
                allow_fractional,
                total_weight,
                total_value,
                item_count,
                selected_items,
                steps
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                profile,
                capacity,
                int(allow_fractional),
                total_weight,
                total_value,
                len(selected_items),
                json.dumps(selected_items),
                json.dumps(list(steps)),
            ),
        )
        conn.commit()
        return int(cursor.lastrowid)


def fetch_history(
    *,
    limit: int = 50,
    offset: int = 0,
    profile: Optional[str] = None,
    path: Optional[Path] = None,
) -> List[dict]:
    """Return the most recent optimization runs, optionally for one profile."""
    with get_connection(path) as conn:
        cursor = conn.execute(
            f"""
            SELECT {_COLUMNS}
            FROM runs
            WHERE ? IS NULL OR profile = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            (profile, profile, limit, offset),
        )
        return [_row_to_dict(row) for row in cursor.fetchall()]


def fetch_run(run_id: int, *, path: Optional[Path] = None) -> Optional[dict]:
    """Fetch a single run by its identifier."""
    with get_connection(path) as conn:
        cursor = conn.execute(
            f"""
            SELECT {_COLUMNS}
            FROM runs
            WHERE id = ?
            """,
            (run_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return _row_to_dict(row)


def save_item_list(
    list_token: str, profile: str, records: Iterable[dict], *, path: Optional[Path] = None
) -> None:
    """Replace the stored item list of one session and profile."""
    rows = [
        (
            list_token,
            profile,
            position,
            record["id"],
            record["name"],
            record["weight"],
            record["value"],
        )
        for position, record in enumerate(records)
    ]
    with get_connection(path) as conn:
        conn.execute(
            "DELETE FROM item_lists WHERE list_token = ? AND profile = ?",
            (list_token, profile),
        )
        conn.executemany(
            """
            INSERT INTO item_lists (
                list_token, profile, position, item_id, name, weight, value
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        conn.commit()


def fetch_item_list(
    list_token: str, profile: str, *, path: Optional[Path] = None
) -> List[dict]:
    """Return the stored item records of one session and profile, in order."""
    with get_connection(path) as conn:
        cursor = conn.execute(
            """
            SELECT item_id, name, weight, value
            FROM item_lists
            WHERE list_token = ? AND profile = ?
            ORDER BY position
            """,
            (list_token, profile),
        )
        return [
            {"id": row[0], "name": row[1], "weight": row[2], "value": row[3]}
            for row in cursor.fetchall()
        ]
