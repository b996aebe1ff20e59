"""Owner id -> email address lookup."""
import logging

logger = logging.getLogger(__name__)


class UserDirectory:
    """Resolves where to email an owner.

    User accounts live outside this service; addresses come from a configured
    mapping, and owner ids that already look like email addresses are used
    as-is.
    """

    def __init__(self, emails: dict[str, str] | None = None) -> None:
        self._emails = dict(emails or {})

    def email_for(self, owner_id: str) -> str | None:
        address = self._emails.get(owner_id)
        if address:
            return address
        if "@" in owner_id:
            return owner_id
        logger.debug("No email address known for %s", owner_id)
        return None
