"""Browser session persistence."""

from instaleads.session.base import Platform, SessionStore
from instaleads.session.sqlite_store import SQLiteSessionStore

__all__ = ["Platform", "SessionStore", "SQLiteSessionStore"]
