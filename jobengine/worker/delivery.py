from __future__ import annotations

import asyncio
import logging
from typing import Any

from jobengine.config import settings
from jobengine.drain import ItemResult

logger = logging.getLogger("jobengine.worker.delivery")


def delivery_payload(item: Any) -> dict[str, Any]:
    return {
        "notification_id": str(item.id),
        "channel": getattr(item, "channel", None) or "in_app",
        "recipient": getattr(item, "recipient", None),
        "subject": getattr(item, "subject", None),
        "content": getattr(item, "content", None),
        "payload": dict(getattr(item, "payload", None) or {}),
    }


class CeleryDeliveryAdapter:
    """Delivery adapter that hands each notification to the Celery broker.

    Success means the broker accepted the task; channel-specific delivery
    (email, SMS, push) happens in the consuming worker.

    When disabled every send fails with ``delivery disabled``, so the
    notifications stay pending instead of being marked sent without a real
    hand-off.
    """

    def __init__(self, *, app: Any | None = None, task_name: str | None = None, enabled: bool | None = None) -> None:
        self._enabled = settings.celery_enabled if enabled is None else enabled
        self._task_name = task_name or settings.celery_delivery_task
        self._app = app

    def _get_app(self) -> Any:
        if self._app is None:
            # Imported lazily so the engine starts without a broker configured.
            from jobengine.worker.celery_app import celery_app

            self._app = celery_app
        return self._app

    async def send(self, item: Any) -> ItemResult:
        if not self._enabled:
            return ItemResult.failure("delivery disabled")

        payload = delivery_payload(item)
        try:
            # send_task does blocking broker I/O.
            await asyncio.to_thread(self._get_app().send_task, self._task_name, kwargs=payload)
        except Exception as exc:
            return ItemResult.failure(f"{type(exc).__name__}: {exc}")

        logger.debug(
            "delivery.enqueued notification_id=%s task=%s",
            payload["notification_id"],
            self._task_name,
        )
        return ItemResult.success()
