"""In-app channel: durable record plus a best-effort push to the owner's session."""
import asyncio
import logging

from market_watch.schemas import AlertRead
from market_watch.services.broadcast import BroadcastHub, owner_topic
from market_watch.services.notifications.channel_abc import (
    NotificationChannelABC, NotificationJob)
from market_watch.services.notifications.store import NotificationStore
from market_watch.services.notifications.templates import in_app_message

logger = logging.getLogger(__name__)


class InAppChannel(NotificationChannelABC):
    name = "in_app"

    def __init__(self, store: NotificationStore, hub: BroadcastHub | None = None) -> None:
        self._store = store
        self._hub = hub

    def enabled_for(self, alert: AlertRead) -> bool:
        return alert.notification_channels.in_app

    async def send(self, job: NotificationJob) -> None:
        alert = job.alert
        record = await asyncio.to_thread(
            self._store.create,
            alert.owner_id,
            in_app_message(alert, job.price),
            entity_id=alert.id,
        )
        if self._hub is None:
            return
        # Record is already durable; a failed push only costs the live update.
        try:
            delivered = self._hub.publish(
                owner_topic(alert.owner_id),
                {"type": "notification", "data": record.model_dump(mode="json")},
            )
            logger.debug("Pushed notification %s to %d sessions", record.id, delivered)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Real-time push for notification %s failed: %s", record.id, exc)
