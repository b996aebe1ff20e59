"""Database models for the market watch service.

Only alert and notification state is persisted. Market snapshots live in the
price cache (in-process or Redis) and are never written to the database.
Timestamps are timezone-aware UTC in and out of the database.
"""
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from market_watch.utils import utcnow


class AssetClass(str, Enum):
    """Tracked asset universes; each has its own ingestion cycle."""

    CRYPTO = "crypto"
    EQUITY = "equity"


class AlertDirection(str, Enum):
    """Which side of the target price triggers an alert."""

    ABOVE = "above"
    BELOW = "below"


class PriceAlert(SQLModel, table=True):
    """A user-defined price threshold with its lifecycle state.

    `triggered` is terminal: once set, the engine never evaluates the alert
    again and owner edits are rejected.
    """

    __tablename__ = "price_alert"

    id: int | None = Field(default=None, primary_key=True)
    owner_id: str = Field(index=True)
    asset_class: AssetClass = Field(index=True)
    asset_id: str = Field(index=True)
    asset_name: str
    asset_symbol: str
    direction: AlertDirection
    target_price: float
    last_observed_price: float | None = None
    is_active: bool = Field(default=True, index=True)
    triggered: bool = Field(default=False, index=True)
    triggered_at: datetime | None = None
    notify_email: bool = True
    notify_in_app: bool = True
    last_checked_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Notification(SQLModel, table=True):
    """Durable in-app notification addressed to one owner."""

    id: int | None = Field(default=None, primary_key=True)
    recipient_id: str = Field(index=True)
    type: str = "price_alert"
    message: str
    entity_type: str | None = None  # PriceAlert
    entity_id: int | None = None
    read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
