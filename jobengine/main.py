from __future__ import annotations

import asyncio
import logging
import signal

from jobengine.config import settings

logger = logging.getLogger("jobengine.main")


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


async def serve() -> None:
    """Run the default job set until SIGINT/SIGTERM.

    On a signal the scheduler stops issuing ticks and in-flight runs get
    ``settings.shutdown_grace_seconds`` to finish.
    """

    from jobengine.cache import RedisCache
    from jobengine.crud.notification import SqlNotificationStore
    from jobengine.crud.rfq import SqlRfqStore
    from jobengine.jobs.registry import build_scheduler
    from jobengine.worker.delivery import CeleryDeliveryAdapter

    cache = RedisCache()
    scheduler = build_scheduler(
        store=SqlNotificationStore(),
        cache=cache,
        delivery=CeleryDeliveryAdapter(),
        rfq_store=SqlRfqStore(),
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers.
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop.set))

    scheduler.start()
    try:
        await stop.wait()
        logger.info("worker.shutdown grace_seconds=%s", settings.shutdown_grace_seconds)
    finally:
        await scheduler.shutdown(settings.shutdown_grace_seconds)
        await cache.close()


def main() -> None:
    configure_logging()
    asyncio.run(serve())


if __name__ == "__main__":
    main()
