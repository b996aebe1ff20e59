"""FastAPI dependency injection: app.state holds the container; Depends() resolves from it.

Lifespan (main.py) builds one Container and attaches it to app.state; these
getters are used by Depends(). Tests swap collaborators with
container.<provider>.override(...).
"""
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, WebSocket

from market_watch.container import Container
from market_watch.services import (AlertEvaluationEngine, AlertService,
                                   BroadcastHub, MarketService)
from market_watch.services.notifications import NotificationStore


def _container(request: Request) -> Container:
    return request.app.state.container


def get_market_service(request: Request) -> MarketService:
    return _container(request).market_service()


def get_alert_service(request: Request) -> AlertService:
    return _container(request).alert_service()


def get_alert_engine(request: Request) -> AlertEvaluationEngine:
    return _container(request).alert_engine()


def get_notification_store(request: Request) -> NotificationStore:
    return _container(request).notification_store()


def get_hub_ws(websocket: WebSocket) -> BroadcastHub:
    """Resolve the broadcast hub for WebSocket routes."""
    return websocket.scope["app"].state.container.hub()


def get_owner_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Owner identity as asserted by the upstream auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


# Type aliases for route injection
MarketServiceDep = Annotated[MarketService, Depends(get_market_service)]
AlertServiceDep = Annotated[AlertService, Depends(get_alert_service)]
AlertEngineDep = Annotated[AlertEvaluationEngine, Depends(get_alert_engine)]
NotificationStoreDep = Annotated[NotificationStore, Depends(get_notification_store)]
HubWs = Annotated[BroadcastHub, Depends(get_hub_ws)]
OwnerId = Annotated[str, Depends(get_owner_id)]
