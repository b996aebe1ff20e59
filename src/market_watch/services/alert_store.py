"""Alert Store: persisted price alerts and their lifecycle writes."""
from datetime import datetime
from typing import Literal

from sqlalchemy import delete, func, update
from sqlmodel import Session, col, select

from market_watch.db import (AlertDirection, AssetClass, PriceAlert,
                             SessionFactory)
from market_watch.exceptions import AlertLockedError, AlertNotFoundError
from market_watch.schemas import AlertCreate, AlertRead, AlertStats, AlertUpdate
from market_watch.utils import utcnow

AlertStatus = Literal["all", "active", "paused", "triggered"]


class AlertRepository:
    """SQLModel-backed storage for PriceAlert rows.

    Owner-scoped methods never see other owners' alerts. Engine writes
    (mark_triggered, record_check) are conditional on `triggered = false`, so
    a triggered alert is never touched again and at most one caller wins the
    transition.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._sessions = session_factory

    # ---- Owner operations ----
    def create(
        self, owner_id: str, data: AlertCreate, *, asset_id: str | None = None
    ) -> AlertRead:
        row = PriceAlert(
            owner_id=owner_id,
            asset_class=data.asset_class,
            asset_id=asset_id or data.asset_id,
            asset_name=data.asset_name,
            asset_symbol=data.asset_symbol,
            direction=data.direction,
            target_price=data.target_price,
            last_observed_price=data.current_price,
            notify_email=data.notification_channels.email,
            notify_in_app=data.notification_channels.in_app,
        )
        with self._sessions.session() as session:
            session.add(row)
            session.flush()
            session.refresh(row)
            return AlertRead.from_row(row)

    def get(self, owner_id: str, alert_id: int) -> AlertRead:
        with self._sessions.session() as session:
            return AlertRead.from_row(self._owned(session, owner_id, alert_id))

    def list_for_owner(
        self,
        owner_id: str,
        *,
        status: AlertStatus = "all",
        asset_class: AssetClass | None = None,
        asset_id: str | None = None,
    ) -> list[AlertRead]:
        """Owner's alerts, newest first."""
        stmt = select(PriceAlert).where(PriceAlert.owner_id == owner_id)
        if status == "active":
            stmt = stmt.where(col(PriceAlert.is_active).is_(True), col(PriceAlert.triggered).is_(False))
        elif status == "paused":
            stmt = stmt.where(col(PriceAlert.is_active).is_(False), col(PriceAlert.triggered).is_(False))
        elif status == "triggered":
            stmt = stmt.where(col(PriceAlert.triggered).is_(True))
        if asset_class is not None:
            stmt = stmt.where(PriceAlert.asset_class == asset_class)
        if asset_id is not None:
            stmt = stmt.where(PriceAlert.asset_id == asset_id)
        stmt = stmt.order_by(col(PriceAlert.created_at).desc(), col(PriceAlert.id).desc())
        with self._sessions.session() as session:
            return [AlertRead.from_row(r) for r in session.exec(stmt).all()]

    def find_duplicate(
        self,
        owner_id: str,
        asset_class: AssetClass,
        asset_id: str,
        direction: AlertDirection,
        target_price: float,
        *,
        exclude_id: int | None = None,
    ) -> AlertRead | None:
        """An equivalent alert that is still active and untriggered, if any."""
        stmt = select(PriceAlert).where(
            PriceAlert.owner_id == owner_id,
            PriceAlert.asset_class == asset_class,
            PriceAlert.asset_id == asset_id,
            PriceAlert.direction == direction,
            PriceAlert.target_price == target_price,
            col(PriceAlert.is_active).is_(True),
            col(PriceAlert.triggered).is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(PriceAlert.id != exclude_id)
        with self._sessions.session() as session:
            row = session.exec(stmt).first()
            return AlertRead.from_row(row) if row else None

    def update(self, owner_id: str, alert_id: int, patch: AlertUpdate) -> AlertRead:
        """Apply owner edits. Raises AlertLockedError once the alert has triggered."""
        with self._sessions.session() as session:
            row = self._owned(session, owner_id, alert_id)
            if row.triggered:
                raise AlertLockedError(f"Alert {alert_id} has already triggered")
            if patch.target_price is not None:
                row.target_price = patch.target_price
            if patch.is_active is not None:
                row.is_active = patch.is_active
            if patch.notification_channels is not None:
                channels = patch.notification_channels
                if channels.email is not None:
                    row.notify_email = channels.email
                if channels.in_app is not None:
                    row.notify_in_app = channels.in_app
            row.updated_at = utcnow()
            session.add(row)
            session.flush()
            session.refresh(row)
            return AlertRead.from_row(row)

    def delete(self, owner_id: str, alert_id: int) -> None:
        with self._sessions.session() as session:
            session.delete(self._owned(session, owner_id, alert_id))

    def delete_triggered(self, owner_id: str) -> int:
        """Remove every triggered alert of the owner; untriggered ones are untouched."""
        stmt = delete(PriceAlert).where(
            col(PriceAlert.owner_id) == owner_id,
            col(PriceAlert.triggered).is_(True),
        )
        with self._sessions.session() as session:
            return session.execute(stmt).rowcount or 0

    def stats(self, owner_id: str) -> AlertStats:
        def count(session: Session, *conditions) -> int:
            stmt = select(func.count()).select_from(PriceAlert).where(
                PriceAlert.owner_id == owner_id, *conditions
            )
            return session.exec(stmt).one()

        with self._sessions.session() as session:
            return AlertStats(
                active=count(
                    session,
                    col(PriceAlert.is_active).is_(True),
                    col(PriceAlert.triggered).is_(False),
                ),
                triggered=count(session, col(PriceAlert.triggered).is_(True)),
                total=count(session),
            )

    # ---- Engine operations ----
    def list_pending(self, owner_id: str | None = None) -> list[AlertRead]:
        """Alerts due for evaluation: active and not yet triggered."""
        stmt = select(PriceAlert).where(
            col(PriceAlert.is_active).is_(True),
            col(PriceAlert.triggered).is_(False),
        )
        if owner_id is not None:
            stmt = stmt.where(PriceAlert.owner_id == owner_id)
        stmt = stmt.order_by(col(PriceAlert.id))
        with self._sessions.session() as session:
            return [AlertRead.from_row(r) for r in session.exec(stmt).all()]

    def mark_triggered(self, alert_id: int, price: float, at: datetime) -> AlertRead | None:
        """Flip an alert to triggered. Returns None if it was already triggered or gone."""
        stmt = (
            update(PriceAlert)
            .where(col(PriceAlert.id) == alert_id, col(PriceAlert.triggered).is_(False))
            .values(
                triggered=True,
                triggered_at=at,
                last_observed_price=price,
                last_checked_at=at,
                updated_at=at,
            )
        )
        with self._sessions.session() as session:
            if not session.execute(stmt).rowcount:
                return None
            row = session.get(PriceAlert, alert_id)
            return AlertRead.from_row(row) if row else None

    def record_check(self, alert_id: int, price: float, at: datetime) -> bool:
        """Store the observed price of a non-crossing check. No-op once triggered."""
        stmt = (
            update(PriceAlert)
            .where(col(PriceAlert.id) == alert_id, col(PriceAlert.triggered).is_(False))
            .values(last_observed_price=price, last_checked_at=at)
        )
        with self._sessions.session() as session:
            return bool(session.execute(stmt).rowcount)

    @staticmethod
    def _owned(session: Session, owner_id: str, alert_id: int) -> PriceAlert:
        row = session.get(PriceAlert, alert_id)
        if row is None or row.owner_id != owner_id:
            raise AlertNotFoundError(f"Alert {alert_id} not found")
        return row
