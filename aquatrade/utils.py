from __future__ import annotations

import uuid
from datetime import datetime, date, timezone
from typing import Collection


def iso_today() -> str:
    return date.today().isoformat()


def iso_now() -> str:
    # Use UTC ISO timestamps for consistency.
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def new_id(taken: Collection[str] = ()) -> str:
    while True:
        candidate = uuid.uuid4().hex[:12]
        if candidate not in taken:
            return candidate


def parse_ts(value: str) -> datetime:
    """
    Parse a stored timestamp into an aware datetime.
    Accepts a trailing 'Z' and bare dates; naive values are taken as local time.
    """
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def local_date(value: str) -> date:
    # Calendar date in the local time zone (time-of-day ignored).
    return parse_ts(value).astimezone().date()


def as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.astimezone().date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def labels_by_id(records) -> dict[str, str]:
    # Names are not unique; selectors key on id and show the id next to the name.
    return {r.id: f"{r.name} ({r.id})" for r in records}
