"""Shared fixtures: crew roster, sample slots and a fixed UTC clock."""
from datetime import datetime, timedelta, timezone

import pytest

from watchbill.schemas import (
    AbsoluteSlot, CrewAssignment, CrewRef, RecurringSlot, WatchSchedule,
)


@pytest.fixture
def roster():
    return [
        CrewRef("1", "Alice"),
        CrewRef("2", "Bob"),
        CrewRef("3", "Charlie"),
        CrewRef("4", "Dave"),
    ]


@pytest.fixture
def at():
    """at(h, m=0, s=0, day=19) -> aware UTC datetime on 2026-10-<day> (19th is a Monday)."""
    def _at(h, m=0, s=0, day=19):
        return datetime(2026, 10, day, h, m, s, tzinfo=timezone.utc)
    return _at


@pytest.fixture
def clock_slots():
    return [
        RecurringSlot(1, "08:00", "12:00"),
        RecurringSlot(2, "12:00", "16:00"),
        RecurringSlot(3, "20:00", "08:00"),
    ]


@pytest.fixture
def absolute_schedule(at):
    """Three consecutive 4h watches starting 08:00; Alice stands the first and third."""
    def crew(*pairs):
        return [CrewAssignment(uid, name) for uid, name in pairs]

    start = at(8)
    slots = [
        AbsoluteSlot(1, start, start + timedelta(hours=4), crew(("1", "Alice"), ("2", "Bob"))),
        AbsoluteSlot(2, start + timedelta(hours=4), start + timedelta(hours=8),
                     crew(("3", "Charlie"), ("4", "Dave"))),
        AbsoluteSlot(3, start + timedelta(hours=8), start + timedelta(hours=12),
                     crew(("1", "Alice"), ("2", "Bob"))),
    ]
    return WatchSchedule(id="sched-1", vessel_id="v1", name="Passage", watch_type="underway",
                         slots=slots, crew_per_watch=2, is_staggered=False)
