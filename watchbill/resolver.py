# watchbill/resolver.py
# -----------------------------------------------------------------------------
# Finds which slot is on watch at a given moment, and the next slot coming up.
# Recurring ('HH:00') slots compare the local hour only; absolute slots compare
# instants. "No active slot" is an ordinary result (off watch), not an error.
# -----------------------------------------------------------------------------

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from .schemas import AbsoluteSlot, WatchSlot
from .time_utils import at_clock, ensure_aware, parse_clock


def find_active_slot(slots: Iterable[WatchSlot], now: datetime,
                     honor_conditions: bool = False) -> Optional[WatchSlot]:
    """
    First slot (in schedule order) containing `now`, or None.
    Overlapping slots are not rejected here; the earliest in order wins.
    With honor_conditions, weekend-only slots are skipped on weekdays.
    """
    for slot in slots:
        if honor_conditions and not slot.applies_on(now):
            continue
        if slot.contains_instant(now):
            return slot
    return None


def next_occurrence(slot: WatchSlot, now: datetime,
                    honor_conditions: bool = False) -> datetime:
    """
    Start of the slot's next occurrence strictly after `now` (recurring), or its start (absolute).
    With honor_conditions, a weekend-only recurring slot moves on to its next
    Saturday or Sunday occurrence.
    """
    if isinstance(slot, AbsoluteSlot):
        return slot.start
    start = slot.start_on(now)
    if start <= now:
        start += timedelta(days=1)
    if honor_conditions:
        for _ in range(7):
            if slot.applies_on(start):
                break
            start += timedelta(days=1)
    return start


def slot_end_instant(slot: WatchSlot, now: datetime) -> datetime:
    """End of the occurrence of `slot` that contains `now`."""
    if isinstance(slot, AbsoluteSlot):
        return slot.end
    h, m = parse_clock(slot.end)
    end = at_clock(now, h, m)
    if slot.wraps and now.hour >= slot.start_hour:
        # before midnight on an overnight watch
        end += timedelta(days=1)
    return end


def find_next_slot(slots: Sequence[WatchSlot], now: datetime,
                   user_id: Optional[str] = None,
                   honor_conditions: bool = False) -> Optional[WatchSlot]:
    """Earliest slot starting after `now`, optionally only those crewed by `user_id`."""
    now = ensure_aware(now)
    best, best_start = None, None
    for slot in slots:
        if user_id is not None and not slot.has_member(user_id):
            continue
        start = next_occurrence(slot, now, honor_conditions)
        if start <= now:
            continue
        if honor_conditions and not slot.applies_on(start):
            continue
        if best_start is None or start < best_start:
            best, best_start = slot, start
    return best


def time_remaining(slot: WatchSlot, now: datetime) -> Optional[timedelta]:
    """
    Time left on `slot` at `now`; None when `now` is not inside it
    (an absolute slot already over reports zero).
    """
    if isinstance(slot, AbsoluteSlot):
        now = ensure_aware(now)
        if now >= slot.end:
            return timedelta(0)
        if now < slot.start:
            return None
        return slot.end - now
    if not slot.contains_instant(now):
        return None
    return slot_end_instant(slot, now) - now
