from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from jobengine.config import settings
from jobengine.drain import DrainSummary, ItemResult, drain
from jobengine.interfaces import RfqFilter, RfqStore

logger = logging.getLogger("jobengine.jobs.rfq_expiry")

JOB_NAME = "cleanup-expired-rfqs"


class RfqExpiryJob:
    """Mark active RFQs whose deadline has passed as ``expired``.

    The RFQ's pending/active quotes are expired along with it.
    """

    def __init__(
        self,
        store: RfqStore,
        *,
        batch_size: int | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self.batch_size = batch_size or settings.drain_batch_size
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def __call__(self) -> DrainSummary:
        overdue = RfqFilter(status="active", expires_before=self._now())
        quotes_expired = 0

        async def select(limit: int | None):
            return await self._store.query(overdue, limit=limit)

        async def expire_one(rfq: Any) -> ItemResult:
            nonlocal quotes_expired
            await self._store.update(rfq.id, {"status": "expired"})
            quotes_expired += await self._store.expire_quotes_for(rfq.id)
            return ItemResult.success()

        summary = await drain(JOB_NAME, select, expire_one, bound=self.batch_size)
        if summary.selected:
            logger.info(
                "rfq.expired rfqs=%d quotes=%d",
                summary.processed,
                quotes_expired,
                extra={"event": "rfq.expired", "rfqs": summary.processed, "quotes": quotes_expired},
            )
        return summary
