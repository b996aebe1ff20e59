"""Alert Evaluation Engine: periodic threshold checks against the price cache."""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field

from market_watch.db import AlertDirection, AssetClass
from market_watch.schemas import AlertRead
from market_watch.services.alert_store import AlertRepository
from market_watch.services.market_service import MarketService
from market_watch.services.notifications import (NotificationDispatcher,
                                                 NotificationJob)
from market_watch.services.periodic import PeriodicTask
from market_watch.utils import utcnow

logger = logging.getLogger(__name__)

AssetKey = tuple[AssetClass, str]


def crosses(direction: AlertDirection, target_price: float, price: float) -> bool:
    """Inclusive crossing rule: equal to the target always fires."""
    if direction == AlertDirection.ABOVE:
        return price >= target_price
    return price <= target_price


@dataclass
class EvaluationReport:
    checked: int = 0
    skipped: int = 0
    assets_resolved: int = 0
    triggered: list[AlertRead] = field(default_factory=list)


class AlertEvaluationEngine:
    """Evaluates every active, untriggered alert on a fixed interval.

    Prices are resolved once per distinct (asset class, asset id) per tick.
    The trigger write is conditional on the alert still being untriggered, so
    each crossing is dispatched at most once even if a manual check races a
    scheduled tick.
    """

    def __init__(
        self,
        repository: AlertRepository,
        market: MarketService,
        dispatcher: NotificationDispatcher,
        *,
        interval: float = 300.0,
    ) -> None:
        self._repo = repository
        self._market = market
        self._dispatcher = dispatcher
        self._lock = asyncio.Lock()
        self._task = PeriodicTask("alert-evaluation", interval, self.tick)

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()
        await self._task.wait_idle()

    async def tick(self) -> EvaluationReport | None:
        """One scheduled pass over all pending alerts. Skipped if the last pass is still running."""
        if self._lock.locked():
            logger.info("Alert evaluation still running, skipping tick")
            return None
        async with self._lock:
            alerts = await asyncio.to_thread(self._repo.list_pending)
            if not alerts:
                logger.debug("No active alerts to check")
                return EvaluationReport()
            logger.info("Checking %d active alerts", len(alerts))
            report = await self.evaluate(alerts)
            logger.info(
                "Alert check complete: %d checked, %d triggered, %d skipped",
                report.checked,
                len(report.triggered),
                report.skipped,
            )
            return report

    async def check_owner_alerts(self, owner_id: str) -> EvaluationReport:
        """Evaluate one owner's pending alerts now, with the same rules as a tick."""
        alerts = await asyncio.to_thread(self._repo.list_pending, owner_id)
        return await self.evaluate(alerts)

    async def evaluate(self, alerts: list[AlertRead]) -> EvaluationReport:
        report = EvaluationReport()
        groups: dict[AssetKey, list[AlertRead]] = defaultdict(list)
        for alert in alerts:
            groups[(alert.asset_class, alert.asset_id)].append(alert)

        keys = list(groups)
        prices = await asyncio.gather(
            *[self._resolve(asset_class, asset_id) for asset_class, asset_id in keys]
        )
        for key, price in zip(keys, prices):
            group = groups[key]
            if price is None:
                logger.warning(
                    "Could not resolve price for %s:%s; skipping %d alerts",
                    key[0].value,
                    key[1],
                    len(group),
                )
                report.skipped += len(group)
                continue
            report.assets_resolved += 1
            for alert in group:
                await self._apply(alert, price, report)
        return report

    async def _resolve(self, asset_class: AssetClass, asset_id: str) -> float | None:
        try:
            return await self._market.resolve_price(asset_class, asset_id)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Price lookup for %s:%s failed", asset_class.value, asset_id)
            return None

    async def _apply(self, alert: AlertRead, price: float, report: EvaluationReport) -> None:
        now = utcnow()
        report.checked += 1
        try:
            if not crosses(alert.direction, alert.target_price, price):
                await asyncio.to_thread(self._repo.record_check, alert.id, price, now)
                return
            triggered = await asyncio.to_thread(self._repo.mark_triggered, alert.id, price, now)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to update alert %s", alert.id)
            return
        if triggered is None:
            logger.debug("Alert %s already triggered elsewhere", alert.id)
            return

        logger.info(
            "Alert %s triggered: %s %s %s at %s",
            alert.id,
            alert.asset_symbol,
            alert.direction.value,
            alert.target_price,
            price,
        )
        report.triggered.append(triggered)
        try:
            await self._dispatcher.submit(
                NotificationJob(alert=triggered, price=price, triggered_at=now)
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to queue notifications for alert %s", alert.id)
