"""
Knowledge store - canonical question/answer pairs in SQLite.
Pairs are only ever inserted; an exact duplicate insert is a no-op.
"""

import sqlite3
from collections import OrderedDict
from typing import Dict, List

from .db import get_db, init_db
from .errors import StorageError
from .schema import QAPair
from ..util.logging import logger


class KnowledgeStore:
    """Data access for the responses table."""

    def __init__(self, db_path: str = None):
        self.db_path = db_path

    def initialize(self):
        """Create tables if they do not exist yet."""
        try:
            init_db(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize knowledge store: {e}")
            raise StorageError("init", e)

    def add_pair(self, question: str, answer: str) -> bool:
        """
        Insert a question/answer pair.

        Returns:
            True if the pair was stored, False if it already existed.
        """
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "INSERT OR IGNORE INTO responses (question, answer) VALUES (?, ?)",
                    (question, answer)
                )
                conn.commit()
                return cursor.rowcount == 1
        except sqlite3.Error as e:
            logger.error(f"Failed to store pair for question '{question[:50]}': {e}")
            raise StorageError("add_pair", e)

    def list_pairs(self) -> List[QAPair]:
        """List all pairs in insertion order."""
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT question, answer FROM responses ORDER BY rowid")
                return [QAPair(question=row[0], answer=row[1]) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Failed to list pairs: {e}")
            raise StorageError("list_pairs", e)

    def list_questions(self) -> List[str]:
        """List distinct questions in first-taught order."""
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT question FROM responses GROUP BY question ORDER BY MIN(rowid)"
                )
                return [row[0] for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Failed to list questions: {e}")
            raise StorageError("list_questions", e)

    def answers_by_question(self) -> Dict[str, List[str]]:
        """Group distinct answers under each question, both in insertion order."""
        grouped: Dict[str, List[str]] = OrderedDict()
        for pair in self.list_pairs():
            answers = grouped.setdefault(pair.question, [])
            if pair.answer not in answers:
                answers.append(pair.answer)
        return grouped

    def count(self) -> int:
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM responses")
                return cursor.fetchone()[0]
        except sqlite3.Error as e:
            logger.error(f"Failed to count pairs: {e}")
            raise StorageError("count", e)
