"""Notification delivery: channels, dispatcher and the owner read API."""
from market_watch.services.notifications.channel_abc import (
    NotificationChannelABC, NotificationJob)
from market_watch.services.notifications.directory import UserDirectory
from market_watch.services.notifications.dispatcher import \
    NotificationDispatcher
from market_watch.services.notifications.email_channel import (
    EmailChannel, MailTransportABC, SmtpTransport)
from market_watch.services.notifications.in_app_channel import InAppChannel
from market_watch.services.notifications.store import NotificationStore

__all__ = [
    "EmailChannel",
    "InAppChannel",
    "MailTransportABC",
    "NotificationChannelABC",
    "NotificationDispatcher",
    "NotificationJob",
    "NotificationStore",
    "SmtpTransport",
    "UserDirectory",
]
