from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional

# The week query started one hour before "now - 7 days".
DEFAULT_SLACK = timedelta(hours=1)
DEFAULT_RECENT_LIMIT = 7

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _ts(record: Any) -> datetime:
    dt = getattr(record, "occurred_at", None)
    if not isinstance(dt, datetime):
        return _EPOCH
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def newest_first(records: Iterable[Any]) -> List[Any]:
    return sorted(records, key=_ts, reverse=True)


def week_window(records: Iterable[Any], now: Optional[datetime] = None, days: int = 7,
                slack: timedelta = DEFAULT_SLACK) -> List[Any]:
    """Records logged in the last `days` days (plus `slack`), newest first.

    Records after `now` are left out. Records without a usable timestamp
    never fall inside a window.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = now - timedelta(days=days) - slack
    picked = [r for r in records
              if isinstance(getattr(r, "occurred_at", None), datetime) and start <= _ts(r) <= now]
    return newest_first(picked)


def most_recent(records: Iterable[Any], limit: int = DEFAULT_RECENT_LIMIT) -> List[Any]:
    if limit <= 0:
        return []
    return newest_first(records)[:limit]
