from __future__ import annotations

from jobengine.config import Settings, settings as default_settings
from jobengine.interfaces import Cache, DeliveryAdapter, NotificationStore, RfqStore
from jobengine.jobs import blacklist_audit, notifications, payment_webhooks, rfq_expiry
from jobengine.scheduler import Scheduler


def build_scheduler(
    *,
    store: NotificationStore,
    cache: Cache,
    delivery: DeliveryAdapter,
    rfq_store: RfqStore,
    settings: Settings | None = None,
    scheduler: Scheduler | None = None,
) -> Scheduler:
    """Register the default job set on a (new) scheduler."""

    cfg = settings or default_settings
    scheduler = scheduler or Scheduler()

    scheduler.register(
        notifications.JOB_NAME,
        cfg.notification_cadence,
        notifications.NotificationDispatchJob(
            store,
            delivery,
            batch_size=cfg.drain_batch_size,
            max_attempts=cfg.notification_max_attempts,
        ),
    )
    scheduler.register(
        blacklist_audit.JOB_NAME,
        cfg.blacklist_audit_cadence,
        blacklist_audit.BlacklistAuditJob(cache, pattern=cfg.blacklist_key_pattern),
    )
    scheduler.register(
        payment_webhooks.JOB_NAME,
        cfg.payment_webhooks_cadence,
        payment_webhooks.process_payment_webhooks,
    )
    scheduler.register(
        rfq_expiry.JOB_NAME,
        cfg.rfq_expiry_cadence,
        rfq_expiry.RfqExpiryJob(rfq_store, batch_size=cfg.drain_batch_size),
    )
    return scheduler
