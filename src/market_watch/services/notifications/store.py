"""Durable in-app notifications and the owner read API."""
from sqlalchemy import func, update
from sqlmodel import col, select

from market_watch.db import Notification, SessionFactory
from market_watch.exceptions import NotificationNotFoundError
from market_watch.schemas import NotificationPage, NotificationRead

ALERT_ENTITY = "PriceAlert"


class NotificationStore:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._sessions = session_factory

    def create(
        self,
        recipient_id: str,
        message: str,
        *,
        entity_id: int | None = None,
        entity_type: str | None = ALERT_ENTITY,
        type_: str = "price_alert",
    ) -> NotificationRead:
        row = Notification(
            recipient_id=recipient_id,
            type=type_,
            message=message,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        with self._sessions.session() as session:
            session.add(row)
            session.flush()
            session.refresh(row)
            return NotificationRead.model_validate(row)

    def list_for(
        self,
        recipient_id: str,
        *,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> NotificationPage:
        """Newest first, 1-based pages."""
        page = max(page, 1)
        limit = max(limit, 1)
        conditions = [Notification.recipient_id == recipient_id]
        if unread_only:
            conditions.append(col(Notification.read).is_(False))
        stmt = (
            select(Notification)
            .where(*conditions)
            .order_by(col(Notification.created_at).desc(), col(Notification.id).desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Notification).where(*conditions)
        with self._sessions.session() as session:
            rows = session.exec(stmt).all()
            total = session.exec(count_stmt).one()
            return NotificationPage(
                notifications=[NotificationRead.model_validate(r) for r in rows],
                page=page,
                limit=limit,
                total=total,
            )

    def unread_count(self, recipient_id: str) -> int:
        stmt = select(func.count()).select_from(Notification).where(
            Notification.recipient_id == recipient_id,
            col(Notification.read).is_(False),
        )
        with self._sessions.session() as session:
            return session.exec(stmt).one()

    def mark_read(self, recipient_id: str, notification_id: int) -> NotificationRead:
        with self._sessions.session() as session:
            row = session.get(Notification, notification_id)
            if row is None or row.recipient_id != recipient_id:
                raise NotificationNotFoundError(f"Notification {notification_id} not found")
            row.read = True
            session.add(row)
            session.flush()
            return NotificationRead.model_validate(row)

    def mark_all_read(self, recipient_id: str) -> int:
        stmt = (
            update(Notification)
            .where(col(Notification.recipient_id) == recipient_id, col(Notification.read).is_(False))
            .values(read=True)
        )
        with self._sessions.session() as session:
            return session.execute(stmt).rowcount or 0
