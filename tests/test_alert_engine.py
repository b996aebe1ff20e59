import threading

import pytest
from conftest import FakeFetcher, make_asset

from market_watch.db import AlertDirection, AssetClass
from market_watch.exceptions import UpstreamError
from market_watch.services import (AlertEvaluationEngine, AlertService,
                                   BroadcastHub, IngestionCycle,
                                   MarketService, crosses)


class RecordingDispatcher:
    def __init__(self) -> None:
        self.jobs = []

    async def submit(self, job) -> None:
        self.jobs.append(job)


class CountingMarket:
    """Price lookup stub that counts calls per asset."""

    def __init__(self, prices: dict) -> None:
        self.prices = prices
        self.calls: list[tuple[AssetClass, str]] = []

    async def resolve_price(self, asset_class, asset_id):
        self.calls.append((asset_class, asset_id))
        return self.prices.get(asset_id)


def alert_payload(asset_id="x", direction="below", target=50.0, **overrides) -> dict:
    payload = {
        "asset_class": "crypto",
        "asset_id": asset_id,
        "asset_name": asset_id.title(),
        "asset_symbol": asset_id.upper(),
        "direction": direction,
        "target_price": target,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def alerts(repo) -> AlertService:
    return AlertService(repo)


@pytest.mark.parametrize(
    "direction,target,price,expected",
    [
        (AlertDirection.ABOVE, 100.0, 100.0, True),
        (AlertDirection.ABOVE, 100.0, 99.99, False),
        (AlertDirection.ABOVE, 100.0, 100.01, True),
        (AlertDirection.BELOW, 100.0, 100.0, True),
        (AlertDirection.BELOW, 100.0, 100.01, False),
        (AlertDirection.BELOW, 100.0, 99.99, True),
    ],
)
def test_crossing_rule_is_inclusive(direction, target, price, expected):
    assert crosses(direction, target, price) is expected


@pytest.mark.asyncio
async def test_below_alert_triggers_on_crossing(repo, alerts, cache):
    alert = alerts.create("u1", alert_payload("x", "below", 50.0, current_price=51.0))
    fetcher = FakeFetcher(AssetClass.CRYPTO)
    market = MarketService(cache, {AssetClass.CRYPTO: fetcher})
    dispatcher = RecordingDispatcher()
    engine = AlertEvaluationEngine(repo, market, dispatcher)

    await cache.store_snapshot(AssetClass.CRYPTO, [make_asset("x", 51.0)])
    report = await engine.tick()
    assert report.triggered == []
    stored = alerts.get("u1", alert.id)
    assert stored.triggered is False
    assert stored.last_observed_price == 51.0
    assert stored.last_checked_at is not None

    await cache.store_snapshot(AssetClass.CRYPTO, [make_asset("x", 49.99)])
    report = await engine.tick()

    stored = alerts.get("u1", alert.id)
    assert stored.triggered is True
    assert stored.triggered_at is not None
    assert stored.last_observed_price == 49.99
    assert [a.id for a in report.triggered] == [alert.id]
    assert len(dispatcher.jobs) == 1
    job = dispatcher.jobs[0]
    assert job.alert.id == alert.id
    assert job.price == 49.99
    assert fetcher.single_calls == []


@pytest.mark.asyncio
async def test_exact_target_triggers(repo, alerts):
    alert = alerts.create("u1", alert_payload("x", "above", 100.0))
    dispatcher = RecordingDispatcher()
    engine = AlertEvaluationEngine(repo, CountingMarket({"x": 100.00}), dispatcher)

    await engine.tick()

    assert alerts.get("u1", alert.id).triggered is True
    assert len(dispatcher.jobs) == 1


@pytest.mark.asyncio
async def test_price_resolved_once_per_asset(repo, alerts):
    alerts.create("u1", alert_payload("x", "below", 10.0))
    alerts.create("u2", alert_payload("x", "above", 10.0))
    alerts.create("u1", alert_payload("y", "above", 10.0))
    market = CountingMarket({"x": 20.0, "y": 5.0})
    engine = AlertEvaluationEngine(repo, market, RecordingDispatcher())

    report = await engine.tick()

    assert sorted(market.calls) == [(AssetClass.CRYPTO, "x"), (AssetClass.CRYPTO, "y")]
    assert report.checked == 3
    assert report.assets_resolved == 2
    assert len(report.triggered) == 1


@pytest.mark.asyncio
async def test_triggered_alert_is_never_reevaluated(repo, alerts):
    alert = alerts.create("u1", alert_payload("x", "above", 10.0))
    market = CountingMarket({"x": 11.0})
    dispatcher = RecordingDispatcher()
    engine = AlertEvaluationEngine(repo, market, dispatcher)

    await engine.tick()
    first = alerts.get("u1", alert.id)

    market.prices["x"] = 50.0
    await engine.tick()
    await engine.check_owner_alerts("u1")

    # A stale copy of the alert racing the trigger write must not win either.
    report = await engine.evaluate([first.model_copy(update={"triggered": False})])

    after = alerts.get("u1", alert.id)
    assert after == first
    assert after.last_observed_price == 11.0
    assert len(dispatcher.jobs) == 1
    assert report.triggered == []


@pytest.mark.asyncio
async def test_unresolvable_price_skips_without_writes(repo, alerts):
    alert = alerts.create("u1", alert_payload("ghost", "above", 1.0))
    engine = AlertEvaluationEngine(repo, CountingMarket({}), RecordingDispatcher())

    report = await engine.tick()

    assert report.skipped == 1
    stored = alerts.get("u1", alert.id)
    assert stored.last_checked_at is None
    assert stored.triggered is False


@pytest.mark.asyncio
async def test_cache_miss_falls_through_to_direct_fetch(repo, alerts, cache):
    alerts.create("u1", alert_payload("z", "above", 5.0))
    fetcher = FakeFetcher(AssetClass.CRYPTO, singles={"z": make_asset("z", 6.0)})
    market = MarketService(cache, {AssetClass.CRYPTO: fetcher})
    dispatcher = RecordingDispatcher()
    engine = AlertEvaluationEngine(repo, market, dispatcher)

    await engine.tick()

    assert fetcher.single_calls == ["z"]
    assert len(dispatcher.jobs) == 1


@pytest.mark.asyncio
async def test_paused_alerts_are_ignored(repo, alerts):
    alert = alerts.create("u1", alert_payload("x", "above", 1.0))
    alerts.update("u1", alert.id, {"is_active": False})
    market = CountingMarket({"x": 100.0})
    engine = AlertEvaluationEngine(repo, market, RecordingDispatcher())

    report = await engine.tick()

    assert market.calls == []
    assert report.checked == 0
    assert alerts.get("u1", alert.id).triggered is False


@pytest.mark.asyncio
async def test_dispatch_failure_does_not_revert_trigger(repo, alerts):
    class BrokenDispatcher:
        async def submit(self, job):
            raise RuntimeError("queue gone")

    alert = alerts.create("u1", alert_payload("x", "above", 1.0))
    other = alerts.create("u1", alert_payload("y", "above", 1.0))
    engine = AlertEvaluationEngine(repo, CountingMarket({"x": 2.0, "y": 2.0}), BrokenDispatcher())

    report = await engine.tick()

    assert len(report.triggered) == 2
    assert alerts.get("u1", alert.id).triggered is True
    assert alerts.get("u1", other.id).triggered is True


@pytest.mark.asyncio
async def test_check_owner_alerts_only_touches_that_owner(repo, alerts):
    mine = alerts.create("u1", alert_payload("x", "above", 1.0))
    theirs = alerts.create("u2", alert_payload("x", "above", 1.0))
    engine = AlertEvaluationEngine(repo, CountingMarket({"x": 2.0}), RecordingDispatcher())

    report = await engine.check_owner_alerts("u1")

    assert [a.id for a in report.triggered] == [mine.id]
    assert alerts.get("u2", theirs.id).triggered is False


@pytest.mark.asyncio
async def test_repository_calls_run_off_the_event_loop(repo, alerts):
    alerts.create("u1", alert_payload("x", "above", 10.0))
    alerts.create("u1", alert_payload("y", "above", 10.0))
    loop_thread = threading.get_ident()
    calls = []

    class ThreadRecordingRepo:
        def __getattr__(self, name):
            method = getattr(repo, name)

            def call(*args, **kwargs):
                calls.append((name, threading.get_ident()))
                return method(*args, **kwargs)

            return call

    market = CountingMarket({"x": 5.0, "y": 20.0})
    engine = AlertEvaluationEngine(ThreadRecordingRepo(), market, RecordingDispatcher())

    await engine.tick()

    assert sorted(name for name, _ in calls) == ["list_pending", "mark_triggered", "record_check"]
    assert all(thread != loop_thread for _, thread in calls)


@pytest.mark.asyncio
async def test_seeded_fallback_prices_never_trigger(repo, alerts, cache):
    alert = alerts.create("u1", alert_payload("bitcoin", "above", 1.0))
    fetcher = FakeFetcher(AssetClass.CRYPTO, results=[UpstreamError("down")])
    await IngestionCycle(fetcher, cache, BroadcastHub()).run_once()
    assert (await cache.find(AssetClass.CRYPTO, "bitcoin")) is not None

    market = MarketService(cache, {AssetClass.CRYPTO: fetcher})
    dispatcher = RecordingDispatcher()
    engine = AlertEvaluationEngine(repo, market, dispatcher)
    report = await engine.tick()

    assert fetcher.single_calls == ["bitcoin"]
    assert report.skipped == 1
    assert dispatcher.jobs == []
    assert alerts.get("u1", alert.id).triggered is False
