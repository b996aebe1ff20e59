"""Owner-facing alert CRUD with validation and duplicate detection."""
import logging
from typing import Any

from pydantic import ValidationError

from market_watch.db import AssetClass
from market_watch.exceptions import AlertConflictError, AlertValidationError
from market_watch.providers.core.utils import (normalize_crypto_id,
                                               normalize_equity_symbol)
from market_watch.schemas import AlertCreate, AlertRead, AlertStats, AlertUpdate
from market_watch.services.alert_store import AlertRepository

logger = logging.getLogger(__name__)

_STATUSES = ("all", "active", "paused", "triggered")


def normalize_asset_id(asset_class: AssetClass, asset_id: str) -> str:
    if asset_class == AssetClass.EQUITY:
        return normalize_equity_symbol(asset_id)
    return normalize_crypto_id(asset_id)


def _validated(model: type, payload: Any) -> Any:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or 'body'}: {e['msg']}" for e in exc.errors()
        )
        raise AlertValidationError(errors) from exc


class AlertService:
    """Validates owner requests before they reach the Alert Store.

    Nothing is written when validation or the duplicate check fails.
    """

    def __init__(self, repository: AlertRepository) -> None:
        self._repo = repository

    def create(self, owner_id: str, payload: AlertCreate | dict) -> AlertRead:
        """Create an alert.

        Raises:
            AlertValidationError: Bad direction, non-positive target, missing fields.
            AlertConflictError: Same owner, asset, direction and target is already pending.
        """
        data: AlertCreate = _validated(AlertCreate, payload)
        asset_id = normalize_asset_id(data.asset_class, data.asset_id)
        if not asset_id:
            raise AlertValidationError("asset_id must not be blank")
        duplicate = self._repo.find_duplicate(
            owner_id, data.asset_class, asset_id, data.direction, data.target_price
        )
        if duplicate is not None:
            raise AlertConflictError(
                f"An active alert for {data.asset_symbol} {data.direction.value} "
                f"{data.target_price} already exists (id {duplicate.id})"
            )
        alert = self._repo.create(owner_id, data, asset_id=asset_id)
        logger.info(
            "Created alert %s for %s: %s %s %s",
            alert.id,
            owner_id,
            alert.asset_id,
            alert.direction.value,
            alert.target_price,
        )
        return alert

    def get(self, owner_id: str, alert_id: int) -> AlertRead:
        return self._repo.get(owner_id, alert_id)

    def list_alerts(
        self,
        owner_id: str,
        *,
        status: str = "all",
        asset_class: AssetClass | None = None,
        asset_id: str | None = None,
    ) -> list[AlertRead]:
        if status not in _STATUSES:
            raise AlertValidationError(f"status must be one of {', '.join(_STATUSES)}")
        if asset_id is not None and asset_class is not None:
            asset_id = normalize_asset_id(asset_class, asset_id)
        return self._repo.list_for_owner(
            owner_id,
            status=status,  # type: ignore[arg-type]
            asset_class=asset_class,
            asset_id=asset_id,
        )

    def update(self, owner_id: str, alert_id: int, payload: AlertUpdate | dict) -> AlertRead:
        """Retarget, pause/resume, or change channels.

        Raises:
            AlertLockedError: The alert has already triggered.
            AlertConflictError: The new target duplicates another pending alert.
        """
        patch: AlertUpdate = _validated(AlertUpdate, payload)
        current = self._repo.get(owner_id, alert_id)
        target = patch.target_price if patch.target_price is not None else current.target_price
        will_be_active = patch.is_active if patch.is_active is not None else current.is_active
        if not current.triggered and will_be_active and (
            target != current.target_price or not current.is_active
        ):
            duplicate = self._repo.find_duplicate(
                owner_id,
                current.asset_class,
                current.asset_id,
                current.direction,
                target,
                exclude_id=alert_id,
            )
            if duplicate is not None:
                raise AlertConflictError(
                    f"An active alert with target {target} already exists (id {duplicate.id})"
                )
        return self._repo.update(owner_id, alert_id, patch)

    def delete(self, owner_id: str, alert_id: int) -> None:
        self._repo.delete(owner_id, alert_id)
        logger.info("Deleted alert %s for %s", alert_id, owner_id)

    def delete_triggered(self, owner_id: str) -> int:
        removed = self._repo.delete_triggered(owner_id)
        logger.info("Deleted %d triggered alerts for %s", removed, owner_id)
        return removed

    def stats(self, owner_id: str) -> AlertStats:
        return self._repo.stats(owner_id)
