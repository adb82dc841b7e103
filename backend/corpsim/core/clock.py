"""Naive-UTC clock shared by the store and the jobs."""

import datetime
from typing import Callable

Clock = Callable[[], datetime.datetime]


def utcnow() -> datetime.datetime:
    # Stored timestamps are naive UTC (SQLite drops tzinfo).
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def bucket_start(moment: datetime.datetime, bucket_seconds: int) -> datetime.datetime:
    """Start of the fixed-width period bucket containing `moment`."""
    epoch = datetime.datetime(1970, 1, 1)
    elapsed = int((moment - epoch).total_seconds())
    return epoch + datetime.timedelta(seconds=elapsed - elapsed % bucket_seconds)
