"""WebSocket streams: market snapshot updates and per-owner notifications."""
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from market_watch.db import AssetClass
from market_watch.deps import HubWs
from market_watch.services.broadcast import (BroadcastHub, market_topic,
                                             owner_topic)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/stream", tags=["stream"])


def parse_topics_param(query_params: Any) -> list[str]:
    """Parse comma-separated 'topics' into asset class topics; default is all classes."""
    raw = (query_params.get("topics") or "").strip()
    if not raw:
        return [market_topic(c) for c in AssetClass]
    valid = {c.value for c in AssetClass}
    return [t for t in (p.strip().lower() for p in raw.split(",")) if t in valid]


async def _pump(websocket: WebSocket, hub: BroadcastHub, topics: list[str]) -> None:
    """Forward hub events to one client until it disconnects."""
    subscription = hub.subscribe(topics)
    try:
        while True:
            event = await subscription.get()
            await websocket.send_json(event)
    except WebSocketDisconnect:
        logger.debug("Stream client disconnected")
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Stream error: %s", exc)
        try:
            await websocket.close(code=1011, reason="Stream error")
        except RuntimeError:
            pass
    finally:
        hub.unsubscribe(subscription)
        if subscription.dropped:
            logger.info("Slow stream client dropped %d events", subscription.dropped)


@router.websocket("/market")
async def stream_market(websocket: WebSocket, hub: HubWs) -> None:
    """Snapshot updates for ?topics=crypto,equity (default both). No replay on connect."""
    await websocket.accept()
    topics = parse_topics_param(websocket.query_params)
    if not topics:
        await websocket.close(code=4000, reason="topics must be crypto and/or equity")
        return
    await _pump(websocket, hub, topics)


@router.websocket("/notifications")
async def stream_notifications(websocket: WebSocket, hub: HubWs) -> None:
    """New in-app notifications for ?owner_id=..."""
    await websocket.accept()
    owner_id = (websocket.query_params.get("owner_id") or "").strip()
    if not owner_id:
        await websocket.close(code=4000, reason="owner_id is required")
        return
    await _pump(websocket, hub, [owner_topic(owner_id)])
