# watchbill/schedule_service.py
# -----------------------------------------------------------------------------
# Schedule mutations: check-ins, alert confirmations, per-slot crew
# reassignment, crew removal and settings edits.
# Every function returns a new WatchSchedule; the input is left untouched so a
# caller can hand the result to the store as a whole-schedule write.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from .errors import InvalidInput
from .schemas import CrewAssignment, CrewRef, WatchSchedule, WatchSlot, with_crew
from .slot_generator import normalize_watch_type
from .time_utils import clock_label, ensure_aware

logger = logging.getLogger(__name__)

# ------------------------------ Helpers --------------------------------------

def _map_slot(schedule: WatchSchedule, slot_id: int,
              fn: Callable[[WatchSlot], WatchSlot]) -> WatchSchedule:
    if schedule.slot(slot_id) is None:
        raise InvalidInput(f"Schedule {schedule.id} has no slot {slot_id}")
    slots = [fn(s) if s.id == slot_id else s for s in schedule.slots]
    return replace(schedule, slots=slots)


def _update_member(slot: WatchSlot, user_id: str,
                   fn: Callable[[CrewAssignment], CrewAssignment]) -> WatchSlot:
    if not slot.has_member(user_id):
        raise InvalidInput(f"User {user_id} is not on slot {slot.id}")
    return with_crew(slot, [fn(c) if c.user_id == user_id else c for c in slot.crew])


def _later(current: Optional[datetime], now: datetime) -> datetime:
    # last_active_at never moves backwards
    now = ensure_aware(now)
    if current is not None and ensure_aware(current) > now:
        return ensure_aware(current)
    return now

# ------------------------------ Check-ins ------------------------------------

def check_in(schedule: WatchSchedule, slot_id: int, user_id: str, now: datetime) -> WatchSchedule:
    """Record a check-in: display time 'HH:MM' plus the authoritative instant."""
    def touch(c: CrewAssignment) -> CrewAssignment:
        return replace(c, checked_in_at=clock_label(now),
                       last_active_at=_later(c.last_active_at, now))

    out = _map_slot(schedule, slot_id, lambda s: _update_member(s, user_id, touch))
    logger.info("Check-in: %s on slot %s of schedule %s", user_id, slot_id, schedule.id)
    return out


def confirm_alert(schedule: WatchSchedule, slot_id: int, user_id: str, now: datetime) -> WatchSchedule:
    """Acknowledge an amber/red alert; only the activity instant moves."""
    def touch(c: CrewAssignment) -> CrewAssignment:
        return replace(c, last_active_at=_later(c.last_active_at, now))

    out = _map_slot(schedule, slot_id, lambda s: _update_member(s, user_id, touch))
    logger.info("Alert confirmed: %s on slot %s", user_id, slot_id)
    return out

# ------------------------------ Crew edits -----------------------------------

def reassign_slot(schedule: WatchSchedule, slot_id: int, crew: Sequence[CrewRef]) -> WatchSchedule:
    """
    Replace the crew of one slot. Members who stay keep their check-in state;
    newcomers start with none.
    """
    def reassign(slot: WatchSlot) -> WatchSlot:
        new_crew = []
        for ref in crew:
            existing = slot.member(ref.user_id)
            new_crew.append(existing if existing is not None else CrewAssignment.from_ref(ref))
        return with_crew(slot, new_crew)

    return _map_slot(schedule, slot_id, reassign)


def remove_crew(schedule: WatchSchedule, user_id: str) -> WatchSchedule:
    """Drop a crew member from every slot (e.g. they left the vessel)."""
    slots = [with_crew(s, [c for c in s.crew if c.user_id != user_id]) if s.has_member(user_id) else s
             for s in schedule.slots]
    return replace(schedule, slots=slots)


def update_settings(schedule: WatchSchedule, name: Optional[str] = None,
                    watch_type: Optional[str] = None) -> WatchSchedule:
    changes = {}
    if name is not None:
        name = str(name).strip()
        if not name:
            raise InvalidInput("Schedule name must not be empty")
        changes["name"] = name
    if watch_type is not None:
        changes["watch_type"] = normalize_watch_type(watch_type)
    return replace(schedule, **changes)
