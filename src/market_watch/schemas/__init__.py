"""Pydantic schemas for API and runtime use. Not persisted to DB."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from market_watch.db import AlertDirection, AssetClass, PriceAlert
from market_watch.utils import utcnow


class CachedAsset(BaseModel):
    """Latest snapshot of one tracked asset, replaced wholesale on each ingestion."""

    model_config = ConfigDict(frozen=True)

    id: str
    asset_class: AssetClass
    name: str
    symbol: str
    price: float = Field(gt=0)
    change_24h_pct: float | None = None
    market_cap: float | None = None
    volume_24h: float | None = None
    image_url: str | None = None
    last_refreshed_at: datetime = Field(default_factory=utcnow)


class CachedSnapshot(BaseModel):
    """What the price cache stores per asset class.

    `fallback` marks a snapshot seeded from the static dataset; its prices are
    served to readers but never used to evaluate alerts.
    """

    assets: list[CachedAsset]
    last_update: datetime
    fallback: bool = False


class MarketSnapshot(BaseModel):
    """Read-path answer: never empty; `cached` is False when served from fallback."""

    data: list[CachedAsset]
    last_update: datetime | None = None
    cached: bool


class MarketOverview(BaseModel):
    crypto: list[CachedAsset]
    equity: list[CachedAsset]
    last_update: datetime | None = None


class MarketHealth(BaseModel):
    status: str = "active"
    last_update: dict[AssetClass, datetime | None]
    data_available: bool
    update_interval_seconds: float


class SnapshotEvent(BaseModel):
    """Broadcast payload for a refreshed asset class."""

    type: Literal["crypto_update", "equity_update"]
    data: list[CachedAsset]
    timestamp: datetime


class NotificationChannels(BaseModel):
    """Per-alert delivery preferences; both flags must be real booleans."""

    model_config = ConfigDict(frozen=True)

    email: StrictBool = True
    in_app: StrictBool = True


class NotificationChannelsPatch(BaseModel):
    email: StrictBool | None = None
    in_app: StrictBool | None = None


class AlertCreate(BaseModel):
    """Input for creating an alert. Owner comes from the auth layer."""

    asset_class: AssetClass
    asset_id: str = Field(min_length=1)
    asset_name: str = Field(min_length=1)
    asset_symbol: str = Field(min_length=1)
    direction: AlertDirection
    target_price: float = Field(gt=0)
    current_price: float | None = Field(default=None, gt=0)
    notification_channels: NotificationChannels = Field(
        default_factory=NotificationChannels
    )


class AlertUpdate(BaseModel):
    """Owner edits; rejected once the alert has triggered."""

    target_price: float | None = Field(default=None, gt=0)
    is_active: StrictBool | None = None
    notification_channels: NotificationChannelsPatch | None = None


class AlertRead(BaseModel):
    """Alert as returned to owners and handed to the notification dispatcher."""

    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: str
    asset_class: AssetClass
    asset_id: str
    asset_name: str
    asset_symbol: str
    direction: AlertDirection
    target_price: float
    last_observed_price: float | None
    is_active: bool
    triggered: bool
    triggered_at: datetime | None
    notification_channels: NotificationChannels
    last_checked_at: datetime | None
    created_at: datetime

    @classmethod
    def from_row(cls, row: PriceAlert) -> "AlertRead":
        return cls(
            id=row.id,
            owner_id=row.owner_id,
            asset_class=row.asset_class,
            asset_id=row.asset_id,
            asset_name=row.asset_name,
            asset_symbol=row.asset_symbol,
            direction=row.direction,
            target_price=row.target_price,
            last_observed_price=row.last_observed_price,
            is_active=row.is_active,
            triggered=row.triggered,
            triggered_at=row.triggered_at,
            notification_channels=NotificationChannels(
                email=row.notify_email, in_app=row.notify_in_app
            ),
            last_checked_at=row.last_checked_at,
            created_at=row.created_at,
        )


class AlertStats(BaseModel):
    active: int
    triggered: int
    total: int


class AlertCheckResult(BaseModel):
    """Outcome of an on-demand evaluation of one owner's alerts."""

    checked: int
    skipped: int
    triggered: list[AlertRead]


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient_id: str
    type: str
    message: str
    entity_type: str | None = None
    entity_id: int | None = None
    read: bool
    created_at: datetime


class NotificationPage(BaseModel):
    notifications: list[NotificationRead]
    page: int
    limit: int
    total: int


__all__ = [
    "AlertCheckResult",
    "AlertCreate",
    "AlertRead",
    "AlertStats",
    "AlertUpdate",
    "CachedAsset",
    "CachedSnapshot",
    "MarketHealth",
    "MarketOverview",
    "MarketSnapshot",
    "NotificationChannels",
    "NotificationChannelsPatch",
    "NotificationPage",
    "NotificationRead",
    "SnapshotEvent",
]
