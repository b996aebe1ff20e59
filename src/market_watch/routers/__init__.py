"""API routers.

Includes routes for:
- /market - Cached crypto and equity snapshots, single assets, search, health
- /alerts - Owner price alerts (CRUD, stats, on-demand check)
- /notifications - In-app notification inbox
- /stream/market, /stream/notifications - WebSocket push
"""
from market_watch.routers.alerts import router as alerts_router
from market_watch.routers.market import router as market_router
from market_watch.routers.notifications import router as notifications_router
from market_watch.routers.stream import router as stream_router

__all__ = [
    "alerts_router",
    "market_router",
    "notifications_router",
    "stream_router",
]
