# watchbill/slot_generator.py
# -----------------------------------------------------------------------------
# Builds watch slots with crew rotation.
# Two modes:
#   - fixed 24h cycle ('HH:00' recurring slots, filtered/conditioned by the
#     night window for anchor and dock watches)
#   - date range (absolute slots between two instants, optionally staggered)
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Sequence

from .constants import (
    CONDITION_ALWAYS, CONDITION_WEEKEND_ONLY, DEFAULT_CREW_PER_WATCH,
    DEFAULT_DURATION_HOURS, WATCH_TYPE_ALIASES, WATCH_TYPES,
)
from .errors import InvalidPolicy
from .schemas import (
    AbsoluteSlot, CrewAssignment, CrewRef, DateRangePolicy, RecurringSlot,
    RotationPolicy, WatchSchedule, WatchSlot,
)
from .time_utils import ensure_aware, hour_label, is_hour_in_interval, parse_clock

logger = logging.getLogger(__name__)

# ------------------------------ Validation -----------------------------------

def normalize_watch_type(watch_type: str) -> str:
    wt = str(watch_type or "").strip().lower()
    wt = WATCH_TYPE_ALIASES.get(wt, wt)
    if wt not in WATCH_TYPES:
        raise InvalidPolicy(f"Unknown watch type: {watch_type!r}")
    return wt


def _check_counts(duration_hours, crew_per_watch) -> None:
    if duration_hours is None or duration_hours <= 0:
        raise InvalidPolicy(f"Watch duration must be positive, got {duration_hours!r}")
    if not isinstance(crew_per_watch, int) or crew_per_watch <= 0:
        raise InvalidPolicy(f"Crew per watch must be a positive integer, got {crew_per_watch!r}")


def validate_policy(policy: RotationPolicy) -> int:
    """Check a fixed-cycle policy and return the number of candidate slots."""
    _check_counts(policy.duration_hours, policy.crew_per_watch)
    d = policy.duration_hours
    if int(d) != d or 24 % int(d) != 0:
        raise InvalidPolicy(f"Watch duration {d!r}h does not divide 24 hours evenly")
    for name in ("night_start_hour", "night_end_hour"):
        h = getattr(policy, name)
        if not 0 <= h <= 23:
            raise InvalidPolicy(f"{name} must be within 0..23, got {h!r}")
    normalize_watch_type(policy.watch_type)
    return 24 // int(d)

# --------------------------- Fixed 24h cycle ---------------------------------

def _slot_condition(watch_type: str, is_night: bool) -> Optional[str]:
    """None means the slot is not stood at all (anchor watches by day)."""
    if watch_type == "anchor":
        return CONDITION_ALWAYS if is_night else None
    if watch_type == "dock":
        return CONDITION_ALWAYS if is_night else CONDITION_WEEKEND_ONLY
    return CONDITION_ALWAYS


def generate_schedule(roster: Sequence[CrewRef], policy: RotationPolicy) -> list[RecurringSlot]:
    """
    Generate one recurring 24-hour cycle of watch slots.

    Crew are assigned from a single cursor shared by every emitted slot, so the
    round-robin continues across slots instead of restarting at each one.
    Slot ids are the candidate index within the day (anchor watches leave gaps).
    """
    n_slots = validate_policy(policy)
    if not roster:
        logger.info("Empty roster: no slots generated")
        return []

    watch_type = normalize_watch_type(policy.watch_type)
    d = int(policy.duration_hours)
    slots: list[RecurringSlot] = []
    cursor = 0

    for i in range(n_slots):
        start_h, end_h = i * d, (i + 1) * d
        is_night = is_hour_in_interval(start_h, policy.night_start_hour, policy.night_end_hour)
        condition = _slot_condition(watch_type, is_night)
        if condition is None:
            continue

        crew = []
        for _ in range(policy.crew_per_watch):
            crew.append(CrewAssignment.from_ref(roster[cursor % len(roster)]))
            cursor += 1

        slots.append(RecurringSlot(
            id=i,
            start=hour_label(start_h),
            end=hour_label(end_h),
            crew=crew,
            condition=condition,
        ))

    logger.info("Generated %d %s slots of %dh for %d crew",
                len(slots), watch_type, d, len(roster))
    return slots

# ------------------------------ Date range -----------------------------------

def chunk_hours(duration_hours: float, crew_per_watch: int, is_staggered: bool) -> float:
    """Staggered watches hand over one member every duration/crew hours."""
    if is_staggered and crew_per_watch > 1:
        return duration_hours / crew_per_watch
    return duration_hours


def combine_date_time(day: date, clock: str, tz=timezone.utc) -> datetime:
    """Date picker value + 'HH:MM' -> aware datetime."""
    h, m = parse_clock(clock)
    return datetime.combine(day, time(0, 0), tzinfo=tz) + timedelta(hours=h, minutes=m)


def generate_date_range_schedule(ordered_crew: Sequence[CrewRef],
                                 policy: DateRangePolicy) -> list[AbsoluteSlot]:
    """
    Walk from policy.start to policy.end emitting one absolute slot per chunk.

    Position p of chunk k is held by ordered_crew[(k - p) mod n]: each chunk
    brings one new member on and keeps the previous ones, which gives the
    staggered handover when chunks are shorter than a full watch.
    """
    _check_counts(policy.duration_hours, policy.crew_per_watch)
    if not ordered_crew:
        logger.info("No crew selected: no slots generated")
        return []

    start = ensure_aware(policy.start)
    end = ensure_aware(policy.end)
    step = timedelta(hours=chunk_hours(policy.duration_hours, policy.crew_per_watch,
                                       policy.is_staggered))
    total = len(ordered_crew)

    slots: list[AbsoluteSlot] = []
    current = start
    k = 0
    while current < end:
        chunk_end = current + step
        crew = [CrewAssignment.from_ref(ordered_crew[(k - p) % total])
                for p in range(policy.crew_per_watch)]
        slots.append(AbsoluteSlot(id=k + 1, start=current, end=chunk_end, crew=crew))
        current = chunk_end
        k += 1

    logger.info("Generated %d slots from %s to %s (chunk %s)",
                len(slots), start.isoformat(), end.isoformat(), step)
    return slots

# ------------------------------- Schedules -----------------------------------

def build_schedule(vessel_id: str, name: str, watch_type: str, slots: list[WatchSlot],
                   crew_per_watch: Optional[int] = None, is_staggered: Optional[bool] = None,
                   now: Optional[datetime] = None) -> WatchSchedule:
    """Stamp generator output as a brand new schedule (replaces, never merges)."""
    return WatchSchedule(
        id=str(uuid.uuid4()),
        vessel_id=vessel_id,
        name=name,
        watch_type=normalize_watch_type(watch_type),
        slots=list(slots),
        crew_per_watch=crew_per_watch,
        is_staggered=is_staggered,
        created_at=ensure_aware(now or datetime.now(timezone.utc)),
    )


def infer_policy(schedule: Optional[WatchSchedule]) -> dict:
    """
    Recover generator settings from an existing schedule so it can be
    regenerated: duration, crew per watch, staggering and the ordered crew.
    """
    if schedule is None or not schedule.slots:
        return {"duration_hours": DEFAULT_DURATION_HOURS,
                "crew_per_watch": DEFAULT_CREW_PER_WATCH,
                "is_staggered": True, "crew": []}

    first = schedule.slots[0]
    crew_per_watch = schedule.crew_per_watch or len(first.crew) or DEFAULT_CREW_PER_WATCH
    is_staggered = True if schedule.is_staggered is None else bool(schedule.is_staggered)
    hours = round(first.duration.total_seconds() / 3600)
    if isinstance(first, AbsoluteSlot) and is_staggered and crew_per_watch > 1:
        hours = round(first.duration.total_seconds() * crew_per_watch / 3600)

    seen: dict[str, CrewRef] = {}
    for s in schedule.slots:
        for c in s.crew:
            seen.setdefault(c.user_id, CrewRef(c.user_id, c.user_name))

    return {"duration_hours": hours, "crew_per_watch": crew_per_watch,
            "is_staggered": is_staggered, "crew": list(seen.values())}
