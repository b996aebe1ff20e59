"""Maps alert and notification exceptions to HTTP responses."""
from dataclasses import dataclass

from fastapi import HTTPException

from market_watch.exceptions import (AlertConflictError, AlertLockedError,
                                     AlertNotFoundError, AlertValidationError,
                                     NotificationNotFoundError)


@dataclass(frozen=True)
class ErrorMapper:
    """Maps exceptions to HTTP (status_code, detail).

    Inject one per router so 404 messages carry the right resource name.
    """

    resource_name: str = "Resource"

    def to_http(
        self,
        exc: Exception,
        resource_id: str | int | None = None,
    ) -> tuple[int, str]:
        """Map an exception to (status_code, detail) for HTTP responses.

        Args:
            exc: The exception raised by a service.
            resource_id: Optional identifier to include in the detail.

        Returns:
            (status_code, detail) suitable for HTTPException(status_code=..., detail=...).
        """
        if isinstance(exc, AlertValidationError):
            return (400, str(exc) or "Invalid input")
        if isinstance(exc, (AlertNotFoundError, NotificationNotFoundError)):
            return (404, self._not_found(resource_id))
        if isinstance(exc, (AlertConflictError, AlertLockedError)):
            return (409, str(exc))
        return (500, "Internal server error")

    def raise_http(
        self,
        exc: Exception,
        resource_id: str | int | None = None,
    ) -> None:
        """Map exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc, resource_id=resource_id)
        raise HTTPException(status_code=status_code, detail=detail) from exc

    def _not_found(self, resource_id: str | int | None) -> str:
        if resource_id is None:
            return f"{self.resource_name} not found"
        return f"{self.resource_name} '{resource_id}' not found"
