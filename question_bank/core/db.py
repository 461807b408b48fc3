"""
SQLite document table standing in for the remote question store.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from .config import ensure_db_directory, get_db_path


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    ensure_db_directory()
    conn = sqlite3.connect(get_db_path())
    try:
        yield conn
    finally:
        conn.close()


def init_db():
    """Initialize the database with required tables."""
    with get_db() as conn:
        cursor = conn.cursor()

        # Identifier uniqueness per category is checked by callers, not enforced here
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS questions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                category TEXT NOT NULL,
                identifier TEXT NOT NULL,
                content TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_questions_category_identifier ON questions(category, identifier)')

        conn.commit()


def health_check():
    """Check database health."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [table[0] for table in cursor.fetchall()]
            return 'questions' in table_names
    except sqlite3.Error:
        return False
