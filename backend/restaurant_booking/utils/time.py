from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    """Current UTC time without tzinfo, the form stored in DateTime(timezone=False) columns."""
    return utc_now().replace(tzinfo=None)


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def utc_today(now: datetime | None = None) -> date:
    return to_utc(now or utc_now()).date()
