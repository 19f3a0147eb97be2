"""
User directory: one principal record per Spotify account.

Two interchangeable backends share the :class:`PrincipalDirectory` contract:
an in-process map for development and tests, and a SQLite table that keeps
tokens encrypted at rest.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from gazette.models.principal import Principal
from gazette.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


class DuplicatePrincipalError(Exception):
    """Raised when creating a principal whose provider id is already known."""


class PrincipalNotFoundError(Exception):
    """Raised when updating a principal that does not exist."""


class PrincipalDirectory(ABC):
    """Lookup by internal id or Spotify id; whole-record replace on update."""

    @abstractmethod
    def get(self, internal_id: str) -> Optional[Principal]:
        """Return the principal with this internal id, if any."""

    @abstractmethod
    def get_by_provider_id(self, provider_id: str) -> Optional[Principal]:
        """Return the principal linked to this Spotify user id, if any."""

    @abstractmethod
    def create(self, principal: Principal) -> Principal:
        """Insert a new principal; provider ids must be unique."""

    @abstractmethod
    def update(self, principal: Principal) -> Principal:
        """Replace the stored record that has the same internal id."""


class InMemoryPrincipalDirectory(PrincipalDirectory):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: Dict[str, Principal] = {}
        self._id_by_provider: Dict[str, str] = {}

    def get(self, internal_id: str) -> Optional[Principal]:
        with self._lock:
            return self._by_id.get(internal_id)

    def get_by_provider_id(self, provider_id: str) -> Optional[Principal]:
        with self._lock:
            internal_id = self._id_by_provider.get(provider_id)
            return self._by_id.get(internal_id) if internal_id else None

    def create(self, principal: Principal) -> Principal:
        with self._lock:
            if principal.provider_id in self._id_by_provider:
                raise DuplicatePrincipalError(principal.provider_id)
            if principal.internal_id in self._by_id:
                raise DuplicatePrincipalError(principal.internal_id)
            self._by_id[principal.internal_id] = principal
            self._id_by_provider[principal.provider_id] = principal.internal_id
        return principal

    def update(self, principal: Principal) -> Principal:
        with self._lock:
            current = self._by_id.get(principal.internal_id)
            if current is None:
                raise PrincipalNotFoundError(principal.internal_id)
            if current.provider_id != principal.provider_id:
                raise ValueError("provider_id of a principal cannot change")
            self._by_id[principal.internal_id] = principal
        return principal


class SQLitePrincipalDirectory(PrincipalDirectory):
    """SQLite-backed directory with encrypted token columns."""

    def __init__(self, db_path: str, *, token_cipher: TokenCipherService) -> None:
        self._db_path = Path(db_path)
        self._cipher = token_cipher
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS principals (
                    internal_id TEXT PRIMARY KEY,
                    provider_id TEXT NOT NULL UNIQUE,
                    access_token_encrypted TEXT NOT NULL,
                    refresh_token_encrypted TEXT NOT NULL,
                    token_expiry TEXT NOT NULL,
                    profile_snapshot TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def _to_row(self, principal: Principal) -> tuple:
        return (
            principal.internal_id,
            principal.provider_id,
            self._cipher.encrypt(principal.access_token),
            self._cipher.encrypt(principal.refresh_token),
            principal.token_expiry.isoformat(),
            json.dumps(principal.profile_snapshot)
            if principal.profile_snapshot is not None
            else None,
            principal.created_at.isoformat(),
            principal.updated_at.isoformat(),
        )

    def _from_row(self, row: sqlite3.Row) -> Principal:
        profile = row["profile_snapshot"]
        return Principal(
            internal_id=row["internal_id"],
            provider_id=row["provider_id"],
            access_token=self._cipher.decrypt(row["access_token_encrypted"]),
            refresh_token=self._cipher.decrypt(row["refresh_token_encrypted"]),
            token_expiry=datetime.fromisoformat(row["token_expiry"]),
            profile_snapshot=json.loads(profile) if profile else None,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _fetch_one(self, column: str, value: str) -> Optional[Principal]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT * FROM principals WHERE {column} = ?", (value,)
            ).fetchone()
            if row is None:
                return None
            principal = self._from_row(row)
            self._rotate_legacy_tokens(conn, row)
        return principal

    def _rotate_legacy_tokens(self, conn: sqlite3.Connection, row: sqlite3.Row) -> None:
        """Rewrite token columns still encrypted under a retired secret."""
        columns = ("access_token_encrypted", "refresh_token_encrypted")
        if all(self._cipher.is_current(row[column]) for column in columns):
            return
        # Conditional on the old ciphertext so a concurrent token write wins.
        conn.execute(
            """
            UPDATE principals SET
                access_token_encrypted = ?,
                refresh_token_encrypted = ?
            WHERE internal_id = ?
                AND access_token_encrypted = ?
                AND refresh_token_encrypted = ?
            """,
            (
                self._cipher.rotate(row["access_token_encrypted"]),
                self._cipher.rotate(row["refresh_token_encrypted"]),
                row["internal_id"],
                row["access_token_encrypted"],
                row["refresh_token_encrypted"],
            ),
        )
        logger.info(
            "Re-encrypted tokens for principal %s under the current secret",
            row["internal_id"],
        )

    def get(self, internal_id: str) -> Optional[Principal]:
        return self._fetch_one("internal_id", internal_id)

    def get_by_provider_id(self, provider_id: str) -> Optional[Principal]:
        return self._fetch_one("provider_id", provider_id)

    def create(self, principal: Principal) -> Principal:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO principals (
                        internal_id, provider_id, access_token_encrypted,
                        refresh_token_encrypted, token_expiry, profile_snapshot,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    self._to_row(principal),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicatePrincipalError(principal.provider_id) from exc
        return principal

    def update(self, principal: Principal) -> Principal:
        row = self._to_row(principal)
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE principals SET
                    access_token_encrypted = ?,
                    refresh_token_encrypted = ?,
                    token_expiry = ?,
                    profile_snapshot = ?,
                    updated_at = ?
                WHERE internal_id = ? AND provider_id = ?
                """,
                (row[2], row[3], row[4], row[5], row[7], row[0], row[1]),
            )
        if cursor.rowcount == 0:
            raise PrincipalNotFoundError(principal.internal_id)
        return principal


__all__ = [
    "DuplicatePrincipalError",
    "InMemoryPrincipalDirectory",
    "PrincipalDirectory",
    "PrincipalNotFoundError",
    "SQLitePrincipalDirectory",
]
