"""Service layer exports."""

from .access_guard import AccessGrant, AccessGuard, AccessState
from .login_flow import LoginFlowService
from .newspaper import NewspaperService
from .principal_directory import (
    DuplicatePrincipalError,
    InMemoryPrincipalDirectory,
    PrincipalDirectory,
    PrincipalNotFoundError,
    SQLitePrincipalDirectory,
)
from .session_cookie import CookieSigner
from .session_store import InMemorySessionStore, SessionStore, SQLiteSessionStore
from .token_cipher import TokenCipherService

__all__ = [
    "AccessGrant",
    "AccessGuard",
    "AccessState",
    "CookieSigner",
    "DuplicatePrincipalError",
    "InMemoryPrincipalDirectory",
    "InMemorySessionStore",
    "LoginFlowService",
    "NewspaperService",
    "PrincipalDirectory",
    "PrincipalNotFoundError",
    "SQLitePrincipalDirectory",
    "SQLiteSessionStore",
    "SessionStore",
    "TokenCipherService",
]
