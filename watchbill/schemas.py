# schemas.py
# Defines data structures for crew, watch slots, schedules and policies

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import List, Optional, Union

from .constants import (
    CONDITION_ALWAYS, CONDITION_WEEKEND_ONLY, DEFAULT_CHECK_IN_INTERVAL,
    DEFAULT_NIGHT_END, DEFAULT_NIGHT_START,
)
from .errors import InvalidInput
from .time_utils import (
    at_clock, ensure_aware, format_instant, is_hour_in_interval, is_weekend,
    parse_clock, parse_instant,
)


@dataclass(frozen=True)
class CrewRef:
    user_id: str
    user_name: str


@dataclass
class CrewAssignment:
    user_id: str
    user_name: str
    checked_in_at: Optional[str] = None       # "HH:MM", display only
    last_active_at: Optional[datetime] = None  # authoritative for liveness

    @classmethod
    def from_ref(cls, ref: CrewRef) -> "CrewAssignment":
        return cls(user_id=ref.user_id, user_name=ref.user_name)

    @classmethod
    def from_dict(cls, d: dict) -> "CrewAssignment":
        last = d.get("lastActiveAt")
        return cls(
            user_id=str(d["userId"]),
            user_name=str(d.get("userName", "")),
            checked_in_at=d.get("checkedInAt") or None,
            last_active_at=parse_instant(last) if last else None,
        )

    def to_dict(self) -> dict:
        out = {"userId": self.user_id, "userName": self.user_name}
        if self.checked_in_at:
            out["checkedInAt"] = self.checked_in_at
        if self.last_active_at is not None:
            out["lastActiveAt"] = format_instant(self.last_active_at)
        return out


class _SlotMixin:
    """Crew lookups shared by both slot regimes."""

    def has_member(self, user_id: str) -> bool:
        return any(c.user_id == user_id for c in self.crew)

    def member(self, user_id: str) -> Optional[CrewAssignment]:
        for c in self.crew:
            if c.user_id == user_id:
                return c
        return None

    def applies_on(self, day) -> bool:
        """Weekend-only slots are not stood on weekdays."""
        if self.condition == CONDITION_WEEKEND_ONLY:
            return is_weekend(day)
        return True


@dataclass
class RecurringSlot(_SlotMixin):
    """Clock-regime slot ('HH:00' bounds, repeats daily, may wrap midnight)."""
    id: int
    start: str
    end: str
    crew: List[CrewAssignment] = field(default_factory=list)
    condition: Optional[str] = CONDITION_ALWAYS

    @property
    def start_hour(self) -> int:
        return parse_clock(self.start)[0]

    @property
    def end_hour(self) -> int:
        return parse_clock(self.end)[0]

    @property
    def wraps(self) -> bool:
        return self.start_hour > self.end_hour

    @property
    def duration(self) -> timedelta:
        sh, sm = parse_clock(self.start)
        eh, em = parse_clock(self.end)
        minutes = (eh * 60 + em) - (sh * 60 + sm)
        if minutes <= 0:
            minutes += 24 * 60
        return timedelta(minutes=minutes)

    def contains_instant(self, now: datetime) -> bool:
        # Date-independent: only the local hour of `now` matters.
        return is_hour_in_interval(now.hour, self.start_hour, self.end_hour)

    def start_on(self, now: datetime) -> datetime:
        h, m = parse_clock(self.start)
        return at_clock(now, h, m)

    def to_dict(self) -> dict:
        out = {"id": self.id, "start": self.start, "end": self.end,
               "crew": [c.to_dict() for c in self.crew]}
        if self.condition:
            out["condition"] = self.condition
        return out


@dataclass
class AbsoluteSlot(_SlotMixin):
    """Absolute-regime slot (concrete calendar interval, never wraps)."""
    id: int
    start: datetime
    end: datetime
    crew: List[CrewAssignment] = field(default_factory=list)
    condition: Optional[str] = None

    def __post_init__(self):
        self.start = ensure_aware(self.start)
        self.end = ensure_aware(self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains_instant(self, now: datetime) -> bool:
        now = ensure_aware(now)
        return self.start <= now < self.end

    def to_dict(self) -> dict:
        out = {"id": self.id, "start": format_instant(self.start),
               "end": format_instant(self.end),
               "crew": [c.to_dict() for c in self.crew]}
        if self.condition:
            out["condition"] = self.condition
        return out


WatchSlot = Union[RecurringSlot, AbsoluteSlot]


def slot_from_dict(d: dict) -> WatchSlot:
    """Pick the slot regime from the stored start value ('T' means a full instant)."""
    try:
        sid = int(d["id"])
        start, end = str(d["start"]), str(d["end"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidInput(f"Malformed slot record: {d!r}") from e
    crew = [CrewAssignment.from_dict(c) for c in d.get("crew", []) or []]
    condition = d.get("condition") or None
    if "T" in start:
        return AbsoluteSlot(sid, parse_instant(start), parse_instant(end), crew, condition)
    parse_clock(start)
    parse_clock(end)
    return RecurringSlot(sid, start, end, crew, condition)


def with_crew(slot: WatchSlot, crew: List[CrewAssignment]) -> WatchSlot:
    return replace(slot, crew=list(crew))


@dataclass
class WatchSchedule:
    id: str
    vessel_id: str
    name: str
    watch_type: str
    slots: List[WatchSlot] = field(default_factory=list)
    crew_per_watch: Optional[int] = None
    is_staggered: Optional[bool] = None
    created_at: Optional[datetime] = None

    def slot(self, slot_id: int) -> Optional[WatchSlot]:
        for s in self.slots:
            if s.id == slot_id:
                return s
        return None

    @classmethod
    def from_dict(cls, d: dict) -> "WatchSchedule":
        created = d.get("createdAt")
        return cls(
            id=str(d.get("id", "")),
            vessel_id=str(d.get("vesselId", "")),
            name=str(d.get("name", "")),
            watch_type=str(d.get("watchType", "")),
            slots=[slot_from_dict(s) for s in d.get("slots", []) or []],
            crew_per_watch=d.get("crewPerWatch"),
            is_staggered=d.get("isStaggered"),
            created_at=parse_instant(created) if created else None,
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "vesselId": self.vessel_id,
            "name": self.name,
            "watchType": self.watch_type,
            "slots": [s.to_dict() for s in self.slots],
        }
        if self.crew_per_watch is not None:
            out["crewPerWatch"] = self.crew_per_watch
        if self.is_staggered is not None:
            out["isStaggered"] = self.is_staggered
        if self.created_at is not None:
            out["createdAt"] = format_instant(self.created_at)
        return out


@dataclass
class RotationPolicy:
    duration_hours: float
    crew_per_watch: int
    watch_type: str
    night_start_hour: int = DEFAULT_NIGHT_START
    night_end_hour: int = DEFAULT_NIGHT_END


@dataclass
class DateRangePolicy:
    start: datetime
    end: datetime
    duration_hours: float
    crew_per_watch: int
    is_staggered: bool = False


@dataclass
class LivenessConfig:
    check_in_interval_minutes: int = DEFAULT_CHECK_IN_INTERVAL


@dataclass(frozen=True)
class ReminderEvent:
    id: int
    slot_id: int
    lead_kind: str
    lead_minutes: int
    notify_at: datetime
    title: str
    body: str

    @property
    def payload(self) -> dict:
        return {"id": self.id, "title": self.title, "body": self.body,
                "extra": {"slotId": self.slot_id, "type": self.lead_kind}}


@dataclass
class WatchView:
    """Everything a host needs to render one crew member's watch panel for one tick."""
    state: str
    time_left: str = ""
    current_slot: Optional[WatchSlot] = None
    next_slot: Optional[WatchSlot] = None
    my_next_slot: Optional[WatchSlot] = None
    display_slot: Optional[WatchSlot] = None
    my_assignment: Optional[CrewAssignment] = None
    is_on_watch: bool = False
    is_checked_in: bool = False
    status_message: str = ""
    alarm: Optional[str] = None
