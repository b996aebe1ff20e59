from datetime import timedelta

import pytest

from market_watch.db import AlertDirection, AssetClass
from market_watch.exceptions import (AlertConflictError, AlertLockedError,
                                     AlertNotFoundError, AlertValidationError)
from market_watch.schemas import AlertCreate
from market_watch.services import AlertService
from market_watch.utils import utcnow


def alert_payload(**overrides) -> dict:
    payload = {
        "asset_class": "crypto",
        "asset_id": "bitcoin",
        "asset_name": "Bitcoin",
        "asset_symbol": "BTC",
        "direction": "above",
        "target_price": 50000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def service(repo) -> AlertService:
    return AlertService(repo)


def test_create_defaults(service):
    alert = service.create("u1", alert_payload(current_price=43000))

    assert alert.id is not None
    assert alert.is_active is True
    assert alert.triggered is False
    assert alert.triggered_at is None
    assert alert.last_observed_price == 43000
    assert alert.notification_channels.email is True
    assert alert.notification_channels.in_app is True


def test_timestamps_round_trip_as_aware_utc(service, repo):
    alert = service.create("u1", alert_payload())
    at = utcnow()

    triggered = repo.mark_triggered(alert.id, 50000, at)

    assert alert.created_at.utcoffset() == timedelta(0)
    assert triggered.triggered_at == at
    assert triggered.last_checked_at.utcoffset() == timedelta(0)
    assert service.get("u1", alert.id).triggered_at == at


def test_create_normalizes_asset_ids(service):
    crypto = service.create("u1", alert_payload(asset_id=" Bitcoin "))
    equity = service.create(
        "u1", alert_payload(asset_class="equity", asset_id="aapl", asset_symbol="AAPL")
    )
    assert crypto.asset_id == "bitcoin"
    assert equity.asset_id == "AAPL"


@pytest.mark.parametrize(
    "overrides",
    [
        {"direction": "sideways"},
        {"target_price": 0},
        {"target_price": -5},
        {"asset_class": "bonds"},
        {"asset_id": ""},
        {"notification_channels": {"email": "yes", "in_app": True}},
    ],
)
def test_invalid_input_is_rejected_without_writing(service, repo, overrides):
    with pytest.raises(AlertValidationError):
        service.create("u1", alert_payload(**overrides))
    assert repo.stats("u1").total == 0


def test_blank_asset_id_after_trim_is_rejected(service):
    with pytest.raises(AlertValidationError):
        service.create("u1", alert_payload(asset_id="   "))


def test_duplicate_pending_alert_conflicts(service, repo):
    service.create("u1", alert_payload())

    with pytest.raises(AlertConflictError):
        service.create("u1", alert_payload(asset_id="BITCOIN"))
    assert repo.stats("u1").total == 1

    # Different owner, direction or target is not a duplicate.
    service.create("u2", alert_payload())
    service.create("u1", alert_payload(direction="below"))
    service.create("u1", alert_payload(target_price=51000))


def test_duplicate_allowed_once_first_triggered_or_paused(service, repo):
    first = service.create("u1", alert_payload())
    repo.mark_triggered(first.id, 50001, utcnow())
    service.create("u1", alert_payload())

    second = service.create("u1", alert_payload(target_price=60000))
    service.update("u1", second.id, {"is_active": False})
    service.create("u1", alert_payload(target_price=60000))


def test_resume_into_duplicate_conflicts(service):
    paused = service.create("u1", alert_payload())
    service.update("u1", paused.id, {"is_active": False})
    service.create("u1", alert_payload())

    with pytest.raises(AlertConflictError):
        service.update("u1", paused.id, {"is_active": True})


def test_update_retarget_pause_and_channels(service):
    alert = service.create("u1", alert_payload())

    updated = service.update(
        "u1",
        alert.id,
        {"target_price": 55000, "is_active": False, "notification_channels": {"email": False}},
    )

    assert updated.target_price == 55000
    assert updated.is_active is False
    assert updated.notification_channels.email is False
    assert updated.notification_channels.in_app is True


def test_update_rejected_once_triggered(service, repo):
    alert = service.create("u1", alert_payload())
    repo.mark_triggered(alert.id, 50000, utcnow())

    with pytest.raises(AlertLockedError):
        service.update("u1", alert.id, {"target_price": 1})
    with pytest.raises(AlertLockedError):
        service.update("u1", alert.id, {"is_active": False})

    stored = service.get("u1", alert.id)
    assert stored.target_price == 50000
    assert stored.is_active is True


def test_owner_scoping(service):
    alert = service.create("u1", alert_payload())

    with pytest.raises(AlertNotFoundError):
        service.get("u2", alert.id)
    with pytest.raises(AlertNotFoundError):
        service.delete("u2", alert.id)
    assert service.list_alerts("u2") == []


def test_list_filters(service, repo):
    a = service.create("u1", alert_payload(target_price=1))
    b = service.create("u1", alert_payload(target_price=2))
    c = service.create("u1", alert_payload(asset_class="equity", asset_id="AAPL", asset_symbol="AAPL"))
    service.update("u1", b.id, {"is_active": False})
    repo.mark_triggered(c.id, 10, utcnow())

    assert [x.id for x in service.list_alerts("u1")] == [c.id, b.id, a.id]
    assert [x.id for x in service.list_alerts("u1", status="active")] == [a.id]
    assert [x.id for x in service.list_alerts("u1", status="paused")] == [b.id]
    assert [x.id for x in service.list_alerts("u1", status="triggered")] == [c.id]
    assert [x.id for x in service.list_alerts("u1", asset_class=AssetClass.EQUITY, asset_id="aapl")] == [c.id]
    with pytest.raises(AlertValidationError):
        service.list_alerts("u1", status="bogus")


def test_delete_all_triggered_keeps_pending(service, repo):
    triggered = [service.create("U", alert_payload(target_price=10 + i)) for i in range(3)]
    pending = [service.create("U", alert_payload(target_price=100 + i)) for i in range(2)]
    other = service.create("V", alert_payload(target_price=10))
    for alert in triggered:
        repo.mark_triggered(alert.id, 99, utcnow())
    repo.mark_triggered(other.id, 99, utcnow())
    before = {a.id: a for a in pending}

    assert service.delete_triggered("U") == 3

    remaining = service.list_alerts("U")
    assert {a.id for a in remaining} == set(before)
    for alert in remaining:
        assert alert == before[alert.id]
    assert service.stats("V").triggered == 1


def test_stats(service, repo):
    a = service.create("u1", alert_payload(target_price=1))
    service.create("u1", alert_payload(target_price=2))
    paused = service.create("u1", alert_payload(target_price=3))
    service.update("u1", paused.id, {"is_active": False})
    repo.mark_triggered(a.id, 5, utcnow())

    stats = service.stats("u1")
    assert (stats.active, stats.triggered, stats.total) == (1, 1, 3)


def test_create_accepts_model_instances(service):
    data = AlertCreate(
        asset_class=AssetClass.CRYPTO,
        asset_id="solana",
        asset_name="Solana",
        asset_symbol="SOL",
        direction=AlertDirection.BELOW,
        target_price=90,
    )
    assert service.create("u1", data).direction == AlertDirection.BELOW
