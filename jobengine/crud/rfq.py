from __future__ import annotations

from typing import Any

from sqlalchemy import Select, update

from jobengine.crud.base import SessionStore
from jobengine.interfaces import RfqFilter
from jobengine.models.quote import Quote
from jobengine.models.rfq import Rfq

OPEN_QUOTE_STATUSES = ("pending", "active")


class SqlRfqStore(SessionStore[Rfq, RfqFilter]):
    model = Rfq

    def build_query(self, filter: RfqFilter) -> Select:
        q = self._select()
        if filter.status is not None:
            q = q.where(Rfq.status == filter.status)
        if filter.expires_before is not None:
            q = q.where(Rfq.expires_at < filter.expires_before)
        return q

    async def expire_quotes_for(self, rfq_id: Any) -> int:
        """Mark the RFQ's still-open quotes ``expired``; returns how many changed."""

        stmt = (
            update(Quote)
            .where(Quote.rfq_id == rfq_id)
            .where(Quote.status.in_(OPEN_QUOTE_STATUSES))
            .values(status="expired")
        )
        async with self._sessionmaker() as session:
            r = await session.execute(stmt)
            await session.commit()
            return int(r.rowcount or 0)
