"""Narrow interfaces the jobs consume.

Concrete implementations live in ``jobengine.crud`` (SQLAlchemy),
``jobengine.cache`` (Redis) and ``jobengine.worker.delivery`` (Celery); tests
use in-memory fakes.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from jobengine.drain import ItemResult


@dataclass(frozen=True)
class NotificationFilter:
    status: str | None = None
    scheduled_for_lte: datetime | None = None


@dataclass(frozen=True)
class RfqFilter:
    status: str | None = None
    expires_before: datetime | None = None


class NotificationStore(Protocol):
    async def query(self, filter: NotificationFilter, *, limit: int | None) -> Sequence[Any]:
        """Matching notifications, ``created_at`` ascending, at most ``limit``."""

    async def update(self, item_id: Any, fields: Mapping[str, Any]) -> None:
        """Apply ``fields``; raises ``ItemNotFoundError`` for an unknown id."""


class RfqStore(Protocol):
    async def query(self, filter: RfqFilter, *, limit: int | None) -> Sequence[Any]:
        ...

    async def update(self, item_id: Any, fields: Mapping[str, Any]) -> None:
        ...

    async def expire_quotes_for(self, rfq_id: Any) -> int:
        """Expire the RFQ's pending/active quotes; returns the number changed."""


class Cache(Protocol):
    async def keys_matching(self, pattern: str) -> Sequence[str]:
        ...

    async def exists(self, key: str) -> bool:
        ...


class DeliveryAdapter(Protocol):
    async def send(self, item: Any) -> ItemResult:
        ...
