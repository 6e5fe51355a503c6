"""Clock capability injected into services and validators."""

from datetime import datetime, timezone


class DateTimeProvider:
    """Supplies the current UTC time."""

    @property
    def utc_now(self) -> datetime:
        """Current timezone-aware UTC timestamp."""
        return datetime.now(timezone.utc)
