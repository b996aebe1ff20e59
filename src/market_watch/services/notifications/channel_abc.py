"""Delivery channel interface and the unit of dispatch work."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from market_watch.schemas import AlertRead


@dataclass(frozen=True)
class NotificationJob:
    """One newly triggered alert waiting for delivery."""

    alert: AlertRead
    price: float
    triggered_at: datetime


class NotificationChannelABC(ABC):
    """A way of telling an owner their alert fired."""

    name: str

    @abstractmethod
    def enabled_for(self, alert: AlertRead) -> bool:
        """Whether the alert's stored preferences ask for this channel."""

    @abstractmethod
    async def send(self, job: NotificationJob) -> None:
        """Deliver once. Raise on failure; the dispatcher logs and moves on."""
