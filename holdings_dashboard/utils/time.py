from __future__ import annotations

from datetime import date, datetime, timezone

import pandas as pd


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    return utc_now().replace(tzinfo=None)


def today_utc() -> date:
    return utc_now().date()


def as_of_date(value) -> str | None:
    """ISO date (YYYY-MM-DD) for a candle timestamp, or None when it is missing."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return value.date().isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10] or None
