"""Domain exceptions raised by fetchers, the alert store and services."""


class MarketWatchError(Exception):
    """Base class for all market watch errors."""


class UpstreamError(MarketWatchError):
    """An upstream pricing API failed or returned an unusable payload."""


class InsufficientDataError(UpstreamError):
    """Upstream answered, but with too few usable entries to publish."""

    def __init__(self, resolved: int, required: int) -> None:
        super().__init__(f"Only {resolved} entries resolved; {required} required")
        self.resolved = resolved
        self.required = required


class AlertError(MarketWatchError):
    """Base class for alert CRUD failures."""


class AlertValidationError(AlertError):
    """Alert input is invalid; nothing was written."""


class AlertConflictError(AlertError):
    """An equivalent active, untriggered alert already exists."""


class AlertNotFoundError(AlertError):
    """No alert with that id belongs to the owner."""


class AlertLockedError(AlertError):
    """The alert has triggered and can no longer be modified."""


class NotificationNotFoundError(MarketWatchError):
    """No notification with that id belongs to the recipient."""
