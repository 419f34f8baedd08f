from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger("jobengine.drain")

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 100


@dataclass(frozen=True)
class ItemResult:
    """Outcome of acting on one item: success, or failure with a reason."""

    ok: bool
    reason: str | None = None

    @classmethod
    def success(cls) -> "ItemResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "ItemResult":
        return cls(ok=False, reason=reason)


@dataclass(frozen=True)
class DrainSummary:
    name: str
    selected: int = 0
    processed: int = 0
    failed: int = 0


def _identify(item: Any) -> Any:
    return getattr(item, "id", item)


async def drain(
    name: str,
    select: Callable[[int | None], Awaitable[Sequence[T]]],
    action: Callable[[T], Awaitable[ItemResult]],
    *,
    bound: int | None = DEFAULT_BATCH_SIZE,
    identify: Callable[[T], Any] = _identify,
) -> DrainSummary:
    """Select a bounded batch and act on each item in isolation.

    ``select`` receives the bound and must return items oldest first. Errors
    raised by ``select`` propagate to the caller (a job-level failure).
    ``action`` reports its outcome as an ``ItemResult``; if it raises anyway
    the exception is turned into a failed result, so one bad item can never
    stop the rest of the batch.

    ``bound=None`` means the selection is not capped.
    """

    if bound is not None and bound < 1:
        raise ValueError("bound must be >= 1")

    items = list(await select(bound))
    if bound is not None:
        items = items[:bound]

    if not items:
        logger.info("drain.empty name=%s", name, extra={"event": "drain.empty", "job_name": name})
        return DrainSummary(name=name)

    processed = 0
    failed = 0
    for item in items:
        try:
            result = await action(item)
        except Exception as exc:
            result = ItemResult.failure(f"{type(exc).__name__}: {exc}")

        if result.ok:
            processed += 1
            continue

        failed += 1
        item_id = identify(item)
        logger.warning(
            "drain.item_failed name=%s item=%s reason=%s",
            name,
            item_id,
            result.reason,
            extra={"event": "drain.item_failed", "job_name": name, "item_id": str(item_id), "reason": result.reason},
        )

    summary = DrainSummary(name=name, selected=len(items), processed=processed, failed=failed)
    logger.info(
        "drain.summary name=%s selected=%d processed=%d failed=%d",
        name,
        summary.selected,
        summary.processed,
        summary.failed,
        extra={
            "event": "drain.summary",
            "job_name": name,
            "selected": summary.selected,
            "processed": summary.processed,
            "failed": summary.failed,
        },
    )
    return summary
