"""Key/value cache backed by the cache_entries table.

Values are JSON-serialisable. A failing cache read or write is logged and
treated as a miss, never as a request failure.
"""

import fnmatch
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.system import CacheEntry

logger = logging.getLogger(__name__)


def garden_stats_key(user_id: int) -> str:
    return f"garden-stats:{user_id}"


class CacheService:
    """Cache operations on top of a session. Hit/miss counters are process-wide."""

    hits = 0
    misses = 0

    def __init__(self, session: AsyncSession, default_ttl: Optional[int] = None):
        self.session = session
        self.default_ttl = default_ttl if default_ttl is not None else get_settings().cache_ttl_seconds

    @classmethod
    def reset_counters(cls) -> None:
        cls.hits = 0
        cls.misses = 0

    def _expiry(self, ttl: Optional[int]) -> Optional[datetime]:
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return None
        return datetime.utcnow() + timedelta(seconds=ttl)

    @staticmethod
    def _expired(entry: CacheEntry, now: datetime) -> bool:
        return entry.expires_at is not None and entry.expires_at <= now

    async def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = await self.session.get(CacheEntry, key)
        if entry is not None and self._expired(entry, datetime.utcnow()):
            await self.session.delete(entry)
            await self.session.flush()
            return None
        return entry

    async def get(self, key: str, default: Any = None) -> Any:
        try:
            entry = await self._live_entry(key)
        except SQLAlchemyError as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return default

        if entry is None:
            CacheService.misses += 1
            return default
        CacheService.hits += 1
        return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value. ``ttl`` in seconds; 0 means no expiry."""
        try:
            entry = await self.session.get(CacheEntry, key)
            if entry is None:
                entry = CacheEntry(key=key)
                self.session.add(entry)
            entry.value = value
            entry.expires_at = self._expiry(ttl)
            entry.created_at = datetime.utcnow()
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Cache set error for key {key}: {e}")

    async def delete(self, key: str) -> bool:
        try:
            result = await self.session.execute(delete(CacheEntry).where(CacheEntry.key == key))
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            return False

    async def reset(self) -> int:
        try:
            result = await self.session.execute(delete(CacheEntry))
            logger.info(f"Cache reset, {result.rowcount} entries removed")
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Cache reset error: {e}")
            return 0

    async def exists(self, key: str) -> bool:
        try:
            return await self._live_entry(key) is not None
        except SQLAlchemyError as e:
            logger.error(f"Cache exists error for key {key}: {e}")
            return False

    async def mget(self, keys: list[str]) -> list[Any]:
        return [await self.get(key) for key in keys]

    async def mset(self, values: dict[str, Any], ttl: Optional[int] = None) -> None:
        for key, value in values.items():
            await self.set(key, value, ttl)

    async def keys(self, pattern: str = "*") -> list[str]:
        """Live keys matching a glob pattern."""
        now = datetime.utcnow()
        try:
            result = await self.session.execute(select(CacheEntry).order_by(CacheEntry.key))
            entries = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Cache keys error for pattern {pattern}: {e}")
            return []
        return [
            e.key for e in entries
            if not self._expired(e, now) and fnmatch.fnmatchcase(e.key, pattern)
        ]

    async def delete_pattern(self, pattern: str) -> int:
        keys = await self.keys(pattern)
        if not keys:
            return 0
        try:
            await self.session.execute(delete(CacheEntry).where(CacheEntry.key.in_(keys)))
        except SQLAlchemyError as e:
            logger.error(f"Cache delete pattern error for {pattern}: {e}")
            return 0
        return len(keys)

    async def incr(self, key: str, by: int = 1, ttl: Optional[int] = None) -> int:
        current = await self.get(key, 0)
        value = (current if isinstance(current, (int, float)) else 0) + by
        await self.set(key, value, ttl)
        return value

    async def decr(self, key: str, by: int = 1, ttl: Optional[int] = None) -> int:
        current = await self.get(key, 0)
        value = max(0, (current if isinstance(current, (int, float)) else 0) - by)
        await self.set(key, value, ttl)
        return value

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """Return the cached value, computing and storing it on a miss."""
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await factory()
        await self.set(key, value, ttl)
        return value

    async def stats(self) -> dict:
        now = datetime.utcnow()
        try:
            total = await self.session.scalar(select(func.count()).select_from(CacheEntry))
            expired = await self.session.scalar(
                select(func.count()).select_from(CacheEntry).where(CacheEntry.expires_at <= now)
            )
        except SQLAlchemyError as e:
            logger.error(f"Cache stats error: {e}")
            total, expired = 0, 0

        lookups = CacheService.hits + CacheService.misses
        return {
            "total_keys": total or 0,
            "expired_keys": expired or 0,
            "live_keys": (total or 0) - (expired or 0),
            "hits": CacheService.hits,
            "misses": CacheService.misses,
            "hit_rate": round(CacheService.hits / lookups * 100, 2) if lookups else 0.0,
            "default_ttl": self.default_ttl,
        }
