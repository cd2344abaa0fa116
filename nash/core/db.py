"""
SQLite connection handling and schema for the knowledge and credential tables.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from . import config


@contextmanager
def get_db(db_path: str = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    conn = sqlite3.connect(db_path or config.DB_PATH, timeout=30)
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = None):
    """Initialize the database with required tables."""
    path = db_path or config.DB_PATH
    config.ensure_data_directory(path)

    with get_db(path) as conn:
        cursor = conn.cursor()

        # Taught question/answer pairs; exact duplicates are rejected
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS responses (
                question TEXT NOT NULL,
                answer TEXT NOT NULL,
                UNIQUE (question, answer)
            )
        ''')

        # Issued API keys; expires_at is a UTC unix timestamp
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS api_keys (
                api_key TEXT PRIMARY KEY,
                expires_at REAL NOT NULL
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_api_keys_expires_at ON api_keys(expires_at)')

        conn.commit()


def health_check(db_path: str = None):
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [table[0] for table in cursor.fetchall()]

            required_tables = ['responses', 'api_keys']
            return all(table in table_names for table in required_tables)
    except sqlite3.Error:
        return False
