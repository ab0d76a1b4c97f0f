"""SQLite-backed browser session store."""

import json
import time
from pathlib import Path

import aiosqlite

from instaleads.exceptions import SessionStoreError
from instaleads.session.base import Platform, SessionStore


class SQLiteSessionStore(SessionStore):
    """Local storage-state store using aiosqlite."""

    def __init__(self, db_path: str = ".instaleads_sessions.db", default_ttl: int = 7 * 24 * 3600):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file
            default_ttl: Default TTL in seconds (7 days)
        """
        self.db_path = Path(db_path)
        self.default_ttl = default_ttl
        self._db: aiosqlite.Connection | None = None

    async def _ensure_db(self) -> aiosqlite.Connection:
        if self._db is None:
            try:
                self._db = await aiosqlite.connect(self.db_path)
            except (aiosqlite.Error, OSError) as e:
                raise SessionStoreError(f"Cannot open session store {self.db_path}: {e}") from e
            await self._db.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    platform TEXT PRIMARY KEY,
                    state_json TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    expires_at REAL NOT NULL
                )
            """)
            await self._db.commit()
        return self._db

    async def get(self, platform: Platform) -> dict | None:
        """Stored state, or None on a miss. Expired rows are deleted on read."""
        db = await self._ensure_db()
        now = time.time()

        async with db.execute(
            "SELECT state_json, expires_at FROM sessions WHERE platform = ?",
            (Platform(platform).value,),
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None

        state_json, expires_at = row
        if expires_at <= now:
            await self.invalidate(platform)
            return None

        try:
            return json.loads(state_json)
        except json.JSONDecodeError:
            await self.invalidate(platform)
            return None

    async def set(self, platform: Platform, state: dict, ttl_seconds: int | None = None) -> None:
        db = await self._ensure_db()
        now = time.time()
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl

        await db.execute(
            """
            INSERT OR REPLACE INTO sessions (platform, state_json, created_at, expires_at)
            VALUES (?, ?, ?, ?)
            """,
            (Platform(platform).value, json.dumps(state), now, now + ttl),
        )
        await db.commit()

    async def invalidate(self, platform: Platform) -> None:
        db = await self._ensure_db()
        await db.execute("DELETE FROM sessions WHERE platform = ?", (Platform(platform).value,))
        await db.commit()

    async def clear(self) -> None:
        db = await self._ensure_db()
        await db.execute("DELETE FROM sessions")
        await db.commit()

    async def info(self) -> list[dict]:
        """
        Describe stored sessions.

        Returns:
            One {"platform", "cookies", "age_seconds", "expired"} dict per row
        """
        db = await self._ensure_db()
        now = time.time()
        rows = []

        async with db.execute(
            "SELECT platform, state_json, created_at, expires_at FROM sessions ORDER BY platform"
        ) as cursor:
            async for platform, state_json, created_at, expires_at in cursor:
                try:
                    cookies = len(json.loads(state_json).get("cookies", []))
                except json.JSONDecodeError:
                    cookies = 0
                rows.append({
                    "platform": platform,
                    "cookies": cookies,
                    "age_seconds": now - created_at,
                    "expired": expires_at <= now,
                })

        return rows

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
