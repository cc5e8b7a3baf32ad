# watchbill/time_utils.py
# -----------------------------------------------------------------------------
# Clock-hour and instant helpers shared by the generator, resolver and
# liveness evaluation. Clock hours may wrap past midnight (20:00 -> 08:00).
# -----------------------------------------------------------------------------

from __future__ import annotations
from datetime import date, datetime, timedelta, timezone
import re

from .errors import InvalidInput

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")

# --------------------------- Interval arithmetic -----------------------------

def is_hour_in_interval(hour: int, start: int, end: int) -> bool:
    """
    Half-open [start, end) membership for clock hours.
    start == end is a zero-width interval; start > end wraps past midnight.
    """
    if start == end:
        return False
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end

# ------------------------------- Parsing -------------------------------------

def parse_clock(value: str) -> tuple[int, int]:
    """Parse 'HH:MM' into (hour, minute). '24:00' is accepted as end of day."""
    m = _CLOCK_RE.match(str(value or ""))
    if not m:
        raise InvalidInput(f"Invalid clock time: {value!r}")
    h, mm = int(m.group(1)), int(m.group(2))
    if mm > 59 or h > 24 or (h == 24 and mm != 0):
        raise InvalidInput(f"Invalid clock time: {value!r}")
    return h, mm


def parse_hour(value: str) -> int:
    return parse_clock(value)[0]


def hour_label(hour: int) -> str:
    """18 -> '18:00', 4 -> '04:00'."""
    return f"{int(hour):02d}:00"


def ensure_aware(dt: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_instant(value) -> datetime:
    """Parse an ISO-8601 instant (trailing 'Z' accepted) into an aware datetime."""
    if isinstance(value, datetime):
        return ensure_aware(value)
    s = str(value or "").strip()
    if not s or "T" not in s:
        raise InvalidInput(f"Invalid instant: {value!r}")
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as e:
        raise InvalidInput(f"Invalid instant: {value!r}") from e
    return ensure_aware(dt)


def format_instant(dt: datetime) -> str:
    """
    Aware datetime -> ISO string with a 'Z' suffix for UTC.
    Millisecond precision is the stored wire format; sub-millisecond digits
    are dropped, so a stored instant reads back truncated to the millisecond.
    """
    s = ensure_aware(dt).astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return s.replace("+00:00", "Z")


def clock_label(dt: datetime) -> str:
    """Wall-clock 'HH:MM' of a datetime, as shown next to a check-in."""
    return dt.strftime("%H:%M")

# ------------------------------- Calendar ------------------------------------

def is_weekend(d: date | datetime) -> bool:
    return d.weekday() >= 5  # 5=Saturday, 6=Sunday


def at_clock(now: datetime, hour: int, minute: int = 0) -> datetime:
    """Same calendar day as `now` (and same tz) at HH:MM; hour 24 rolls to next midnight."""
    base = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return base + timedelta(hours=hour, minutes=minute)

# ------------------------------- Durations -----------------------------------

def _total_seconds(value) -> int:
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    return int(value)


def format_duration(value) -> str:
    """timedelta or seconds -> 'Xh Ym Zs'."""
    secs = _total_seconds(value)
    if secs <= 0:
        return "0h 0m 0s"
    h, rem = divmod(secs, 3600)
    m, s = divmod(rem, 60)
    return f"{h}h {m}m {s}s"


def format_countdown(value) -> str:
    """timedelta or seconds -> 'Xh Ym' (no seconds, used while off watch)."""
    secs = max(_total_seconds(value), 0)
    h, rem = divmod(secs, 3600)
    return f"{h}h {rem // 60}m"
