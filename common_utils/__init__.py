"""
Common utilities for the Car Rental application
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

# Philippine Standard Time
LOCAL_TZ = ZoneInfo("Asia/Manila")


def utc_now() -> datetime:
    """
    Current UTC time as a naive datetime.

    All timestamps are stored naive in UTC so SQLite and PostgreSQL
    compare them the same way.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_current_local_time() -> datetime:
    """
    Get current time in Philippine Standard Time (UTC+8)

    Returns:
        datetime: Current datetime in the local timezone
    """
    return datetime.now(LOCAL_TZ)
