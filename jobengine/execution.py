from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("jobengine.execution")

JobBody = Callable[[], Awaitable[Any]]


@dataclass
class JobRun:
    """Outcome of one tick. Lives only long enough to be logged and reported."""

    job_name: str
    started_at: datetime
    ended_at: datetime | None = None
    outcome: str | None = None  # "success" | "failure"
    error: str | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome == "success"


async def run_job(name: str, body: JobBody) -> JobRun:
    """Run ``body`` once, timing it and containing any failure.

    Exactly one ``job.start`` line is logged, followed by either
    ``job.success`` or ``job.failure``. Exceptions raised by the body are
    logged with their traceback and swallowed here so they never reach the
    scheduler. Cancellation is not an ``Exception`` and still propagates.
    """

    run = JobRun(job_name=name, started_at=datetime.now(timezone.utc))
    logger.info("job.start name=%s", name, extra={"event": "job.start", "job_name": name})

    start = time.perf_counter()
    try:
        await body()
    except Exception as exc:
        run.duration_ms = (time.perf_counter() - start) * 1000
        run.ended_at = datetime.now(timezone.utc)
        run.outcome = "failure"
        run.error = f"{type(exc).__name__}: {exc}"
        logger.error(
            "job.failure name=%s duration_ms=%.2f error=%s",
            name,
            run.duration_ms,
            run.error,
            exc_info=exc,
            extra={
                "event": "job.failure",
                "job_name": name,
                "duration_ms": run.duration_ms,
                "error": run.error,
            },
        )
        return run

    run.duration_ms = (time.perf_counter() - start) * 1000
    run.ended_at = datetime.now(timezone.utc)
    run.outcome = "success"
    logger.info(
        "job.success name=%s duration_ms=%.2f",
        name,
        run.duration_ms,
        extra={"event": "job.success", "job_name": name, "duration_ms": run.duration_ms},
    )
    return run
