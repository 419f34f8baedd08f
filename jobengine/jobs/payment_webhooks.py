from __future__ import annotations

import logging

logger = logging.getLogger("jobengine.jobs.payment_webhooks")

JOB_NAME = "process-payment-webhooks"


async def process_payment_webhooks() -> None:
    """Placeholder for payment-gateway webhook intake.

    TODO: drain the gateway's webhook queue once a payment provider is wired in.
    """

    logger.info("payment_webhooks.processed count=0", extra={"event": "payment_webhooks.processed", "count": 0})
