"""Service layer: ingestion, read path, alert evaluation and notification delivery."""
from market_watch.services.alert_engine import (AlertEvaluationEngine,
                                                EvaluationReport, crosses)
from market_watch.services.alert_service import AlertService
from market_watch.services.alert_store import AlertRepository
from market_watch.services.broadcast import BroadcastHub, Subscription
from market_watch.services.market_service import MarketService
from market_watch.services.periodic import PeriodicTask
from market_watch.services.scheduler import IngestionCycle, IngestionScheduler

__all__ = [
    "AlertEvaluationEngine",
    "AlertRepository",
    "AlertService",
    "BroadcastHub",
    "EvaluationReport",
    "IngestionCycle",
    "IngestionScheduler",
    "MarketService",
    "PeriodicTask",
    "Subscription",
    "crosses",
]
