"""Persisted import progress.

Each progress snapshot of a run is appended to ``import_progress`` so the API
and the watch script can follow runs hosted by the worker.
"""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.config import DEFAULT_DB_PATH
from core.models.attendance import ImportProgress


def init_progress_db(db_path: Path = DEFAULT_DB_PATH) -> None:
    """Create the import_progress table if it doesn't exist."""
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS import_progress (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                import_id TEXT NOT NULL,
                status TEXT NOT NULL,
                total INTEGER NOT NULL DEFAULT 0,
                current INTEGER NOT NULL DEFAULT 0,
                imported INTEGER NOT NULL DEFAULT 0,
                failed INTEGER NOT NULL DEFAULT 0,
                message TEXT,
                created_at TEXT NOT NULL
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_import_progress_import
            ON import_progress(import_id, id)
        """)
        conn.commit()
    finally:
        conn.close()


def log_progress(import_id: str, snapshot: ImportProgress, db_path: Path = DEFAULT_DB_PATH) -> None:
    """Append a progress snapshot for an import run."""
    now = datetime.utcnow().isoformat()
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("""
            INSERT INTO import_progress (import_id, status, total, current, imported, failed, message, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            import_id,
            snapshot.status.value,
            snapshot.total,
            snapshot.current,
            snapshot.imported,
            snapshot.failed,
            snapshot.message,
            now,
        ))
        conn.commit()
    finally:
        conn.close()


def get_progress(import_id: str, db_path: Path = DEFAULT_DB_PATH, since_id: int = 0) -> List[dict]:
    """Get progress entries for an import run, oldest first.

    Args:
        import_id: Import run ID
        db_path: Path to SQLite database
        since_id: Only return entries with a larger row id
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        cursor = conn.execute("""
            SELECT id, status, total, current, imported, failed, message, created_at
            FROM import_progress
            WHERE import_id = ? AND id > ?
            ORDER BY id
        """, (import_id, since_id))
        return [dict(row) for row in cursor.fetchall()]
    finally:
        conn.close()


def get_latest_import_id(db_path: Path = DEFAULT_DB_PATH) -> Optional[str]:
    """Get the import ID of the most recently logged run."""
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.execute("SELECT import_id FROM import_progress ORDER BY id DESC LIMIT 1")
        row = cursor.fetchone()
        return row[0] if row else None
    finally:
        conn.close()
