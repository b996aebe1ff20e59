"""Price alert routes, scoped to the calling owner."""
import logging
from typing import Literal

from fastapi import APIRouter, Query, Response, status

from market_watch.db import AssetClass
from market_watch.deps import AlertEngineDep, AlertServiceDep, OwnerId
from market_watch.exceptions import AlertError
from market_watch.providers.core import ErrorMapper
from market_watch.schemas import (AlertCheckResult, AlertCreate, AlertRead,
                                  AlertStats, AlertUpdate)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/alerts", tags=["alerts"])

_errors = ErrorMapper(resource_name="Alert")


@router.get("", response_model=list[AlertRead])
def list_alerts(
    owner_id: OwnerId,
    service: AlertServiceDep,
    alert_status: Literal["all", "active", "paused", "triggered"] = Query(
        default="all", alias="status"
    ),
    asset_class: AssetClass | None = None,
    asset_id: str | None = None,
) -> list[AlertRead]:
    """Owner's alerts, newest first."""
    try:
        return service.list_alerts(
            owner_id, status=alert_status, asset_class=asset_class, asset_id=asset_id
        )
    except AlertError as exc:
        _errors.raise_http(exc)


@router.post("", response_model=AlertRead, status_code=status.HTTP_201_CREATED)
def create_alert(
    payload: AlertCreate, owner_id: OwnerId, service: AlertServiceDep
) -> AlertRead:
    """Create an alert.

    Returns 409 when an equivalent alert (same asset, direction and target) is
    still active and untriggered.
    """
    try:
        return service.create(owner_id, payload)
    except AlertError as exc:
        _errors.raise_http(exc)


@router.get("/stats", response_model=AlertStats)
def alert_stats(owner_id: OwnerId, service: AlertServiceDep) -> AlertStats:
    return service.stats(owner_id)


@router.delete("/triggered")
def delete_triggered_alerts(
    owner_id: OwnerId, service: AlertServiceDep
) -> dict[str, int]:
    """Remove all of the owner's triggered alerts; pending ones are untouched."""
    return {"deleted": service.delete_triggered(owner_id)}


@router.post("/check", response_model=AlertCheckResult)
async def check_alerts(owner_id: OwnerId, engine: AlertEngineDep) -> AlertCheckResult:
    """Evaluate the owner's pending alerts now instead of waiting for the next tick."""
    report = await engine.check_owner_alerts(owner_id)
    return AlertCheckResult(
        checked=report.checked, skipped=report.skipped, triggered=report.triggered
    )


@router.get("/{alert_id}", response_model=AlertRead)
def get_alert(alert_id: int, owner_id: OwnerId, service: AlertServiceDep) -> AlertRead:
    try:
        return service.get(owner_id, alert_id)
    except AlertError as exc:
        _errors.raise_http(exc, resource_id=alert_id)


@router.patch("/{alert_id}", response_model=AlertRead)
def update_alert(
    alert_id: int,
    payload: AlertUpdate,
    owner_id: OwnerId,
    service: AlertServiceDep,
) -> AlertRead:
    """Retarget, pause/resume or change channels. 409 once the alert has triggered."""
    try:
        return service.update(owner_id, alert_id, payload)
    except AlertError as exc:
        _errors.raise_http(exc, resource_id=alert_id)


@router.delete("/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_alert(alert_id: int, owner_id: OwnerId, service: AlertServiceDep) -> Response:
    try:
        service.delete(owner_id, alert_id)
    except AlertError as exc:
        _errors.raise_http(exc, resource_id=alert_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
