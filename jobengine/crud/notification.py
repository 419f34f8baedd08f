from __future__ import annotations

from sqlalchemy import Select, func, or_

from jobengine.crud.base import SessionStore
from jobengine.interfaces import NotificationFilter
from jobengine.models.notification import Notification


class SqlNotificationStore(SessionStore[Notification, NotificationFilter]):
    model = Notification

    def build_query(self, filter: NotificationFilter) -> Select:
        q = self._select()
        if filter.status is not None:
            q = q.where(Notification.status == filter.status)
        if filter.scheduled_for_lte is not None:
            # Unscheduled notifications are due immediately.
            q = q.where(
                or_(
                    Notification.scheduled_for.is_(None),
                    Notification.scheduled_for <= filter.scheduled_for_lte,
                )
            )
        return q

    def ordering(self) -> tuple:
        return (
            func.coalesce(Notification.scheduled_for, Notification.created_at).asc(),
            Notification.created_at.asc(),
            Notification.id.asc(),
        )
