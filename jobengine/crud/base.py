from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobengine.exceptions import ItemNotFoundError


TModel = TypeVar("TModel")
TFilter = TypeVar("TFilter")


async def apply_update(
    session: AsyncSession,
    model: type[TModel],
    *,
    item_id: Any,
    fields: Mapping[str, Any],
) -> TModel:
    """Set ``fields`` on one row. Does NOT commit; callers own the transaction."""

    db_obj = await session.get(model, item_id)
    if db_obj is None:
        raise ItemNotFoundError(item_id)

    for field, value in fields.items():
        if not hasattr(db_obj, field):
            raise AttributeError(f"{model.__name__} has no field {field!r}")
        setattr(db_obj, field, value)

    await session.flush()
    return db_obj


class SessionStore(Generic[TModel, TFilter]):
    """Queue-store adapter over one SQLAlchemy model.

    Notes:
    - Every call opens its own session and commits, so a failed item update
      never poisons the session used for the next item.
    - Subclasses turn their filter dataclass into WHERE clauses.
    """

    model: type[TModel]

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession] | None = None) -> None:
        if sessionmaker is None:
            from jobengine.database import SessionLocal

            sessionmaker = SessionLocal
        self._sessionmaker = sessionmaker

    def build_query(self, filter: TFilter) -> Select:
        raise NotImplementedError

    def ordering(self) -> tuple:
        return (
            getattr(self.model, "created_at").asc(),
            getattr(self.model, "id").asc(),
        )

    async def query(self, filter: TFilter, *, limit: int | None) -> Sequence[TModel]:
        q = self.build_query(filter).order_by(*self.ordering())
        if limit is not None:
            q = q.limit(max(1, limit))

        async with self._sessionmaker() as session:
            r = await session.execute(q)
            return list(r.scalars().all())

    async def update(self, item_id: Any, fields: Mapping[str, Any]) -> None:
        async with self._sessionmaker() as session:
            await apply_update(session, self.model, item_id=item_id, fields=fields)
            await session.commit()

    def _select(self) -> Select:
        return select(self.model)
