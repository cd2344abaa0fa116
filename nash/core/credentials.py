"""
API key lifecycle - generation, validation, listing and expiry sweep.
Keys live in the api_keys table; every operation is serialized on one lock.
"""

import secrets
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from . import config
from .db import get_db
from .errors import StorageError
from .schema import ApiKey
from ..util.logging import logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CredentialManager:
    """Issues and expires bearer API keys."""

    def __init__(self, db_path: str = None, clock: Callable[[], datetime] = utc_now, validity: timedelta = None):
        self.db_path = db_path
        self.clock = clock
        self.validity = validity or timedelta(days=config.API_KEY_EXPIRY_DAYS)
        self._lock = threading.RLock()

    def generate(self) -> ApiKey:
        """Create, persist and return a new key valid for the configured window."""
        token = f"{config.API_KEY_PREFIX}{secrets.token_hex(16)}"
        expires_at = self.clock() + self.validity

        with self._lock:
            try:
                with get_db(self.db_path) as conn:
                    cursor = conn.cursor()
                    cursor.execute(
                        "INSERT INTO api_keys (api_key, expires_at) VALUES (?, ?)",
                        (token, expires_at.timestamp())
                    )
                    conn.commit()
            except sqlite3.Error as e:
                logger.log_credential_event("generate", token, {"error": str(e)}, status="failed")
                raise StorageError("generate_api_key", e)

        logger.log_credential_event("generate", token, {"expires_at": expires_at.isoformat()})
        return ApiKey(token=token, expires_at=expires_at)

    def is_valid(self, token: str) -> bool:
        """True iff the exact token exists and has not expired."""
        if not token:
            return False

        with self._lock:
            try:
                with get_db(self.db_path) as conn:
                    cursor = conn.cursor()
                    cursor.execute(
                        "SELECT expires_at FROM api_keys WHERE api_key = ?",
                        (token,)
                    )
                    row = cursor.fetchone()
            except sqlite3.Error as e:
                logger.log_credential_event("validate", token, {"error": str(e)}, status="failed")
                raise StorageError("validate_api_key", e)

        if row is None:
            return False
        return row[0] > self.clock().timestamp()

    def sweep(self) -> int:
        """
        Remove every key that expired before the sweep started.

        Returns:
            Number of keys removed.
        """
        with self._lock:
            cutoff = self.clock().timestamp()
            try:
                with get_db(self.db_path) as conn:
                    cursor = conn.cursor()
                    cursor.execute("DELETE FROM api_keys WHERE expires_at <= ?", (cutoff,))
                    removed = cursor.rowcount
                    conn.commit()
            except sqlite3.Error as e:
                logger.log_credential_event("sweep", details={"error": str(e)}, status="failed")
                raise StorageError("sweep_api_keys", e)

        logger.log_credential_event("sweep", details={"removed": removed})
        return removed

    def list_all(self) -> List[ApiKey]:
        """Snapshot of all stored keys, expired ones included."""
        with self._lock:
            try:
                with get_db(self.db_path) as conn:
                    cursor = conn.cursor()
                    cursor.execute("SELECT api_key, expires_at FROM api_keys ORDER BY rowid")
                    rows = cursor.fetchall()
            except sqlite3.Error as e:
                logger.error(f"Failed to list API keys: {e}")
                raise StorageError("list_api_keys", e)

        return [
            ApiKey(token=token, expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc))
            for token, expires_at in rows
        ]

    def count(self) -> int:
        with self._lock:
            try:
                with get_db(self.db_path) as conn:
                    cursor = conn.cursor()
                    cursor.execute("SELECT COUNT(*) FROM api_keys")
                    return cursor.fetchone()[0]
            except sqlite3.Error as e:
                logger.error(f"Failed to count API keys: {e}")
                raise StorageError("count_api_keys", e)
