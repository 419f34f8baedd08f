from __future__ import annotations

from celery import Celery

from jobengine.config import settings


def make_celery(broker_url: str | None = None) -> Celery:
    """Create the Celery app used to hand notifications to delivery workers.

    Only the producer side lives here: the engine emits tasks by name with
    ``send_task`` and never imports the consumer's task modules.
    """

    broker = broker_url or settings.celery_broker_url or settings.redis_url
    celery = Celery("jobengine", broker=broker)

    celery.conf.update(
        task_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
    )

    return celery


celery_app = make_celery()
