"""Data passed in by callers of the visitor authorization flow."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class Credentials:
    """Portal login for one authorization attempt.

    Args:
        username: Portal user name
        password: Portal password; never logged and masked in ``repr``
    """

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class VisitorDetails:
    """The visitor to pre-authorize.

    Args:
        name: Full name as entered upstream, e.g. "Ada King Lovelace"
        email: Visitor email address
        scheduled_for: Visit time; an aware datetime or an ISO-8601 string.
            Naive values are taken to be UTC.
    """

    name: str
    email: str
    scheduled_for: datetime | str

    def scheduled_at(self) -> datetime:
        """Return ``scheduled_for`` as an aware datetime."""
        value = self.scheduled_for
        if isinstance(value, str):
            value = datetime.fromisoformat(value.strip())
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value
