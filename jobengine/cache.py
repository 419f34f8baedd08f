from __future__ import annotations

from redis.asyncio import Redis

from jobengine.config import settings


class RedisCache:
    """Read-only view of the shared Redis cache used by the audit job.

    Key enumeration uses SCAN rather than KEYS so a large keyspace never
    blocks the server.
    """

    def __init__(self, client: Redis | None = None, *, url: str | None = None, scan_count: int = 500) -> None:
        self._client = client if client is not None else Redis.from_url(url or settings.redis_url, decode_responses=True)
        self._scan_count = scan_count

    async def keys_matching(self, pattern: str) -> list[str]:
        keys: list[str] = []
        async for key in self._client.scan_iter(match=pattern, count=self._scan_count):
            keys.append(key.decode() if isinstance(key, bytes) else key)
        return keys

    async def exists(self, key: str) -> bool:
        return bool(await self._client.exists(key))

    async def close(self) -> None:
        await self._client.aclose()
