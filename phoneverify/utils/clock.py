"""
Single source of "now" for the service.

Timestamps are stored as naive UTC datetimes so that values read back from
SQLite compare cleanly with freshly computed ones.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
