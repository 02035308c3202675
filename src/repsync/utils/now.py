from datetime import UTC, datetime


class Now:
    @staticmethod
    def as_datetime() -> datetime:
        """Return the current UTC time as a datetime object."""

        return datetime.now(UTC)

    @staticmethod
    def from_milliseconds(value: int | float) -> datetime:
        """Return a UTC datetime for a millisecond epoch timestamp."""

        return datetime.fromtimestamp(value / 1000, UTC)

    @staticmethod
    def to_utc(dt: datetime | None) -> datetime | None:
        """Convert a datetime object to UTC timezone."""

        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)

    @staticmethod
    def to_naive_utc(dt: datetime | None) -> datetime | None:
        """Return a naive UTC datetime suitable for TIMESTAMP columns."""

        utc = Now.to_utc(dt)
        return utc.replace(tzinfo=None) if utc is not None else None
