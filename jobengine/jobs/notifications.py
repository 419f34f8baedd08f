from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from jobengine.config import settings
from jobengine.drain import DrainSummary, ItemResult, drain
from jobengine.interfaces import DeliveryAdapter, NotificationFilter, NotificationStore

logger = logging.getLogger("jobengine.jobs.notifications")

JOB_NAME = "process-notification-queue"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDispatchJob:
    """Send due pending notifications, oldest first, one batch per tick.

    A notification that fails delivery stays ``pending`` so the next tick
    retries it (at-least-once; receivers must tolerate duplicates). Each
    failure bumps ``attempts`` and records ``last_error``; once ``attempts``
    reaches ``max_attempts`` the notification is parked as ``failed`` and is
    never selected again. ``max_attempts=0`` retries forever.
    """

    def __init__(
        self,
        store: NotificationStore,
        delivery: DeliveryAdapter,
        *,
        batch_size: int | None = None,
        max_attempts: int | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._delivery = delivery
        self.batch_size = batch_size or settings.drain_batch_size
        self.max_attempts = settings.notification_max_attempts if max_attempts is None else max_attempts
        self._now = now or _utcnow

    async def __call__(self) -> DrainSummary:
        due = NotificationFilter(status="pending", scheduled_for_lte=self._now())

        async def select(limit: int | None):
            return await self._store.query(due, limit=limit)

        return await drain(JOB_NAME, select, self.dispatch_one, bound=self.batch_size)

    async def dispatch_one(self, item: Any) -> ItemResult:
        try:
            result = await self._delivery.send(item)
        except Exception as exc:
            # Raised errors count toward attempts like a reported failure.
            result = ItemResult.failure(f"{type(exc).__name__}: {exc}")

        if result.ok:
            await self._store.update(item.id, {"status": "sent", "sent_at": self._now()})
            return result

        attempts = int(getattr(item, "attempts", 0) or 0) + 1
        fields: dict[str, Any] = {"attempts": attempts, "last_error": result.reason}
        if self.max_attempts and attempts >= self.max_attempts:
            fields["status"] = "failed"
            logger.warning(
                "notification.dead_lettered id=%s attempts=%d reason=%s",
                item.id,
                attempts,
                result.reason,
                extra={"event": "notification.dead_lettered", "item_id": str(item.id), "attempts": attempts},
            )

        await self._store.update(item.id, fields)
        return result
