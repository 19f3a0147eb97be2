"""Server-side storage for browser sessions, pruned by expiry."""

from __future__ import annotations

import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from gazette.models.session import Session


class SessionStore(ABC):
    """Create, resolve and destroy sessions. Expired sessions resolve to ``None``."""

    def __init__(self, ttl_seconds: int = 24 * 60 * 60) -> None:
        self._ttl = ttl_seconds

    def create(self, principal_id: str) -> Session:
        session = Session.start(principal_id, ttl_seconds=self._ttl)
        self._save(session)
        return session

    def get(self, session_id: str) -> Optional[Session]:
        self._prune()
        session = self._load(session_id)
        if session is None or session.is_expired():
            return None
        return session

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Destroy a session; unknown ids are ignored."""

    @abstractmethod
    def _save(self, session: Session) -> None: ...

    @abstractmethod
    def _load(self, session_id: str) -> Optional[Session]: ...

    @abstractmethod
    def _prune(self) -> None: ...


class InMemorySessionStore(SessionStore):
    def __init__(self, ttl_seconds: int = 24 * 60 * 60) -> None:
        super().__init__(ttl_seconds)
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def _save(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def _load(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def _prune(self) -> None:
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [key for key, s in self._sessions.items() if s.is_expired(now)]
            for key in expired:
                del self._sessions[key]


class SQLiteSessionStore(SessionStore):
    """SQLite-backed session store with TTL pruning."""

    def __init__(self, db_path: str, ttl_seconds: int = 24 * 60 * 60) -> None:
        super().__init__(ttl_seconds)
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    principal_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL
                )
                """
            )

    def delete(self, session_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))

    def _save(self, session: Session) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO sessions (session_id, principal_id, created_at, expires_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(session_id) DO UPDATE SET
                    principal_id = excluded.principal_id,
                    expires_at = excluded.expires_at
                """,
                (
                    session.session_id,
                    session.principal_id,
                    session.created_at.isoformat(),
                    session.expires_at.isoformat(),
                ),
            )

    def _load(self, session_id: str) -> Optional[Session]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        if not row:
            return None
        return Session(
            session_id=row["session_id"],
            principal_id=row["principal_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )

    def _prune(self) -> None:
        threshold = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (threshold,))


__all__ = ["InMemorySessionStore", "SQLiteSessionStore", "SessionStore"]
