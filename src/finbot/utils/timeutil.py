# src/finbot/utils/timeutil.py
"""Timestamps are stored as naive UTC; users see them in the operator timezone."""
from datetime import datetime, timezone, tzinfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to the naive UTC form used in the database"""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(moment: datetime, tz: tzinfo) -> datetime:
    """Interpret a stored naive UTC datetime in the given zone"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz)


def local_now(tz: tzinfo) -> datetime:
    return datetime.now(tz)
