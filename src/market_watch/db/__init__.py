"""Database package: models and session management."""
from market_watch.db.models import (AlertDirection, AssetClass, Notification,
                                    PriceAlert)
from market_watch.db.sessions import SessionFactory, create_db_engine

__all__ = [
    "AlertDirection",
    "AssetClass",
    "Notification",
    "PriceAlert",
    "SessionFactory",
    "create_db_engine",
]
