from __future__ import annotations

import logging

from jobengine.config import settings
from jobengine.drain import ItemResult, drain
from jobengine.interfaces import Cache

logger = logging.getLogger("jobengine.jobs.blacklist_audit")

JOB_NAME = "cleanup-expired-tokens"


class BlacklistAuditJob:
    """Count blacklisted-token keys that the cache has already expired.

    Redis drops these keys on its own TTL; this pass only observes. It never
    deletes or writes. Every matching key is checked (no batch cap), and a
    failed existence check is counted as a failed item without stopping the
    scan.
    """

    def __init__(self, cache: Cache, *, pattern: str | None = None) -> None:
        self._cache = cache
        self.pattern = pattern or settings.blacklist_key_pattern

    async def __call__(self) -> int:
        expired = 0

        async def select(_limit: int | None):
            return await self._cache.keys_matching(self.pattern)

        async def check(key: str) -> ItemResult:
            nonlocal expired
            if not await self._cache.exists(key):
                expired += 1
            return ItemResult.success()

        summary = await drain(JOB_NAME, select, check, bound=None, identify=lambda key: key)
        if summary.selected:
            logger.info(
                "blacklist.expired pattern=%s checked=%d expired=%d",
                self.pattern,
                summary.processed,
                expired,
                extra={"event": "blacklist.expired", "pattern": self.pattern, "expired": expired},
            )
        return expired
