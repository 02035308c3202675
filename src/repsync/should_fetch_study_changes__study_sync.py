"""Throttle predicate for study synchronisation passes."""

from __future__ import annotations

from datetime import datetime, timedelta


def should_fetch_study_changes(
    last_check: datetime | None,
    now: datetime,
    min_interval_s: int,
) -> bool:
    """Return True when no pass ran within the last ``min_interval_s`` seconds."""
    if last_check is None:
        return True
    return last_check < now - timedelta(seconds=min_interval_s)
