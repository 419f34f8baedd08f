from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from jobengine.cadence import Cadence, parse_cadence
from jobengine.exceptions import DuplicateJobError, SchedulerStateError, UnknownJobError
from jobengine.execution import JobBody, JobRun, run_job

logger = logging.getLogger("jobengine.scheduler")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class JobDefinition:
    name: str
    cadence: Cadence
    body: JobBody


@dataclass(frozen=True)
class JobStatus:
    name: str
    cadence: str
    paused: bool
    running: bool
    next_run_at: datetime | None
    last_started_at: datetime | None
    last_outcome: str | None


class Scheduler:
    """Owns the job table and fires each job on its own cadence.

    Every job gets one timer task on the running event loop. When a timer
    fires, the run is started as a separate task through ``run_job`` so a slow
    body never delays the timer of any other job. A tick that arrives while
    the previous run of the same job is still in flight is skipped, not
    queued.

    ``now`` and ``sleep`` are injectable so tests can drive time.
    """

    def __init__(
        self,
        *,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[object]] | None = None,
    ) -> None:
        self._now = now or _utcnow
        self._sleep = sleep or asyncio.sleep

        self._jobs: dict[str, JobDefinition] = {}
        self._paused: set[str] = set()
        self._timers: dict[str, asyncio.Task] = {}
        self._running: dict[str, asyncio.Task] = {}
        self._next_run: dict[str, datetime] = {}
        self._last_run: dict[str, JobRun] = {}
        self._started = False

    # -- registration -----------------------------------------------------

    def register(self, name: str, cadence: str | Cadence, body: JobBody) -> JobDefinition:
        if self._started:
            raise SchedulerStateError("Cannot register jobs while the scheduler is running")
        if name in self._jobs:
            raise DuplicateJobError(name)

        definition = JobDefinition(name=name, cadence=parse_cadence(cadence), body=body)
        self._jobs[name] = definition
        logger.info(
            "scheduler.registered name=%s cadence=%s",
            name,
            definition.cadence,
            extra={"event": "scheduler.registered", "job_name": name, "cadence": str(definition.cadence)},
        )
        return definition

    @property
    def names(self) -> list[str]:
        return list(self._jobs)

    @property
    def started(self) -> bool:
        return self._started

    def _get(self, name: str) -> JobDefinition:
        try:
            return self._jobs[name]
        except KeyError:
            raise UnknownJobError(name) from None

    # -- lifecycle --------------------------------------------------------

    def start(self) -> None:
        """Start a timer for every registered, non-paused job.

        Must be called from inside a running event loop.
        """

        if self._started:
            raise SchedulerStateError("Scheduler already started")
        asyncio.get_running_loop()

        self._started = True
        for name in self._jobs:
            if name not in self._paused:
                self._start_timer(self._jobs[name])

        logger.info(
            "scheduler.started jobs=%d",
            len(self._jobs),
            extra={"event": "scheduler.started", "jobs": len(self._jobs)},
        )

    def stop(self) -> None:
        """Stop issuing ticks. Runs already in flight are left to finish."""

        if not self._started:
            return

        self._started = False
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._next_run.clear()

        logger.info(
            "scheduler.stopped in_flight=%d",
            len(self._running),
            extra={"event": "scheduler.stopped", "in_flight": len(self._running)},
        )

    async def shutdown(self, grace_seconds: float = 30.0) -> None:
        """Stop ticking, then give in-flight runs ``grace_seconds`` to finish.

        Runs still active after the grace period are cancelled.
        """

        self.stop()

        in_flight = list(self._running.values())
        if not in_flight:
            return

        _, pending = await asyncio.wait(in_flight, timeout=grace_seconds)
        if pending:
            logger.warning(
                "scheduler.cancelling_runs count=%d grace_seconds=%s",
                len(pending),
                grace_seconds,
                extra={"event": "scheduler.cancelling_runs", "count": len(pending)},
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    # -- per-job control --------------------------------------------------

    def pause(self, name: str) -> None:
        self._get(name)
        self._paused.add(name)
        timer = self._timers.pop(name, None)
        if timer is not None:
            timer.cancel()
        self._next_run.pop(name, None)
        logger.info("job.paused name=%s", name, extra={"event": "job.paused", "job_name": name})

    def resume(self, name: str) -> None:
        definition = self._get(name)
        self._paused.discard(name)
        if self._started and name not in self._timers:
            self._start_timer(definition)
        logger.info("job.resumed name=%s", name, extra={"event": "job.resumed", "job_name": name})

    async def run_now(self, name: str) -> JobRun | None:
        """Fire ``name`` immediately and wait for the run.

        Returns ``None`` when the job is already running.
        """

        task = self._fire(self._get(name))
        if task is None:
            return None
        return await task

    def is_running(self, name: str) -> bool:
        self._get(name)
        return name in self._running

    def status(self) -> dict[str, JobStatus]:
        out: dict[str, JobStatus] = {}
        for name, definition in self._jobs.items():
            last = self._last_run.get(name)
            out[name] = JobStatus(
                name=name,
                cadence=str(definition.cadence),
                paused=name in self._paused,
                running=name in self._running,
                next_run_at=self._next_run.get(name),
                last_started_at=last.started_at if last else None,
                last_outcome=last.outcome if last else None,
            )
        return out

    # -- internals --------------------------------------------------------

    def _start_timer(self, definition: JobDefinition) -> None:
        self._timers[definition.name] = asyncio.create_task(
            self._timer_loop(definition), name=f"timer:{definition.name}"
        )

    async def _timer_loop(self, definition: JobDefinition) -> None:
        previous: datetime | None = None
        while True:
            now = self._now()
            # Anchor on the previous fire time so an early wake-up cannot
            # compute the same slot twice.
            base = now if previous is None or now > previous else previous
            next_run = definition.cadence.next_after(base)
            self._next_run[definition.name] = next_run

            delay = (next_run - now).total_seconds()
            await self._sleep(max(0.0, delay))

            previous = next_run
            self._fire(definition)

    def _fire(self, definition: JobDefinition) -> asyncio.Task | None:
        name = definition.name
        if name in self._running:
            logger.warning(
                "job.skipped name=%s reason=previous_run_active",
                name,
                extra={"event": "job.skipped", "job_name": name},
            )
            return None

        task = asyncio.create_task(self._execute(definition), name=f"run:{name}")
        self._running[name] = task
        task.add_done_callback(lambda t, n=name: self._release(n, t))
        return task

    def _release(self, name: str, task: asyncio.Task | None) -> None:
        if self._running.get(name) is task:
            del self._running[name]

    async def _execute(self, definition: JobDefinition) -> JobRun:
        try:
            run = await run_job(definition.name, definition.body)
            self._last_run[definition.name] = run
            return run
        finally:
            self._release(definition.name, asyncio.current_task())
