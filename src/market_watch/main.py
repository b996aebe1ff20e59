"""Main module for the market watch service."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from market_watch import __version__
from market_watch.config import get_settings
from market_watch.container import Container
from market_watch.routers import (alerts_router, market_router,
                                  notifications_router, stream_router)

logger = logging.getLogger(__name__)


async def _close(name: str, closer) -> None:  # noqa: ANN001
    try:
        await closer()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing %s: %s", name, exc)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Build services, start background work, and shut everything down in reverse."""
    container: Container = fastapi_app.state.container
    settings = container.settings()

    container.session_factory().init_db()
    scheduler = container.scheduler()
    price_cache = container.price_cache()
    price_cache.set_refresher(scheduler.refresh)
    dispatcher = container.dispatcher()
    engine = container.alert_engine()

    # Manual alert checks dispatch too, so workers run without the scheduler.
    dispatcher.start()
    if settings.scheduler_enabled:
        scheduler.start()
        engine.start()
    else:
        logger.info("Background scheduling disabled")

    yield

    await _close("alert engine", engine.stop)
    await _close("dispatcher", dispatcher.stop)
    await _close("scheduler", scheduler.close)
    await _close("price cache", price_cache.close)
    container.session_factory().dispose()


def create_app(container: Container | None = None) -> FastAPI:
    """Build the ASGI app around a container (a fresh one by default)."""
    fastapi_app = FastAPI(
        title="Market Watch",
        description="Cached crypto and equity prices with price alerts",
        version=__version__,
        lifespan=lifespan,
    )
    fastapi_app.state.container = container or Container()

    fastapi_app.include_router(market_router)
    fastapi_app.include_router(alerts_router)
    fastapi_app.include_router(notifications_router)
    fastapi_app.include_router(stream_router)

    @fastapi_app.get("/")
    def health():
        """Return health check status."""
        return {"status": "ok"}

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("market_watch.main:app", host="127.0.0.1", port=8001)
