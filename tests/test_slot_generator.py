"""Fixed-cycle and date-range slot generation."""
from datetime import date, datetime, timedelta, timezone

import pytest

from watchbill.errors import InvalidPolicy
from watchbill.schemas import DateRangePolicy, RotationPolicy
from watchbill.slot_generator import (
    build_schedule, chunk_hours, combine_date_time, generate_date_range_schedule,
    generate_schedule, infer_policy,
)
from watchbill.time_utils import hour_label


def names(slot):
    return [c.user_name for c in slot.crew]


class TestFixedCycle:
    def test_underway_covers_whole_day(self, roster):
        slots = generate_schedule(roster, RotationPolicy(4, 2, "underway"))
        assert len(slots) == 6
        for i, s in enumerate(slots):
            assert s.start == hour_label(4 * i)
            assert s.end == hour_label(4 * (i + 1))
            assert s.condition == "always"
        assert slots[0].start == "00:00"
        assert slots[5].start == "20:00"
        assert slots[5].end == "24:00"

    def test_underway_end_to_end_crew(self, roster):
        slots = generate_schedule(roster, RotationPolicy(4, 2, "underway"))
        assert names(slots[0]) == ["Alice", "Bob"]

    def test_anchor_keeps_night_slots_only(self, roster):
        slots = generate_schedule(roster, RotationPolicy(1, 1, "anchor", 20, 8))
        starts = {s.start_hour for s in slots}
        assert len(slots) == 12
        assert starts == set(range(20, 24)) | set(range(0, 8))
        assert 12 not in starts

    def test_anchor_ids_keep_day_position(self, roster):
        slots = generate_schedule(roster, RotationPolicy(1, 1, "anchor"))
        assert [s.id for s in slots] == list(range(0, 8)) + list(range(20, 24))

    def test_dock_conditions(self, roster):
        slots = generate_schedule(roster, RotationPolicy(4, 1, "dock", 20, 8))
        assert len(slots) == 6
        always = sorted(s.start_hour for s in slots if s.condition == "always")
        weekend = sorted(s.start_hour for s in slots if s.condition == "weekend-only")
        assert always == [0, 4, 20]
        assert weekend == [8, 12, 16]

    def test_rotation_is_global_round_robin(self, roster):
        slots = generate_schedule(roster, RotationPolicy(4, 2, "underway"))
        assert names(slots[0]) == ["Alice", "Bob"]
        assert names(slots[1]) == ["Charlie", "Dave"]
        assert names(slots[2]) == ["Alice", "Bob"]

    def test_rotation_continues_across_slots_with_uneven_roster(self, roster):
        slots = generate_schedule(roster[:3], RotationPolicy(4, 2, "underway"))
        assert names(slots[0]) == ["Alice", "Bob"]
        assert names(slots[1]) == ["Charlie", "Alice"]
        assert names(slots[2]) == ["Bob", "Charlie"]

    def test_rotation_skips_dropped_anchor_slots(self, roster):
        slots = generate_schedule(roster, RotationPolicy(4, 1, "anchor"))
        # only 00, 04 and 20 are stood; the cursor only moves on emitted slots
        assert [s.start for s in slots] == ["00:00", "04:00", "20:00"]
        assert [names(s) for s in slots] == [["Alice"], ["Bob"], ["Charlie"]]

    def test_empty_roster_gives_no_slots(self):
        assert generate_schedule([], RotationPolicy(4, 2, "underway")) == []

    def test_navigation_alias(self, roster):
        assert len(generate_schedule(roster, RotationPolicy(6, 1, "navigation"))) == 4

    @pytest.mark.parametrize("policy", [
        RotationPolicy(5, 1, "underway"),
        RotationPolicy(0, 1, "underway"),
        RotationPolicy(-4, 1, "underway"),
        RotationPolicy(2.5, 1, "underway"),
        RotationPolicy(4, 0, "underway"),
        RotationPolicy(4, 1, "cruise"),
        RotationPolicy(4, 1, "anchor", 24, 8),
    ])
    def test_degenerate_policies_are_rejected(self, roster, policy):
        with pytest.raises(InvalidPolicy):
            generate_schedule(roster, policy)

    def test_degenerate_policy_rejected_even_with_empty_roster(self):
        with pytest.raises(InvalidPolicy):
            generate_schedule([], RotationPolicy(7, 1, "underway"))


class TestDateRange:
    def policy(self, hours=12, duration=4, crew=2, staggered=False):
        start = datetime(2026, 10, 19, 0, tzinfo=timezone.utc)
        return DateRangePolicy(start, start + timedelta(hours=hours), duration, crew, staggered)

    def test_plain_rotation(self, roster):
        slots = generate_date_range_schedule(roster, self.policy())
        assert [s.id for s in slots] == [1, 2, 3]
        assert names(slots[0]) == ["Alice", "Dave"]
        assert names(slots[1]) == ["Bob", "Alice"]
        assert names(slots[2]) == ["Charlie", "Bob"]
        assert slots[0].end == slots[1].start

    def test_staggered_handover(self, roster):
        slots = generate_date_range_schedule(roster, self.policy(staggered=True))
        assert len(slots) == 6
        assert slots[1].start - slots[0].start == timedelta(hours=2)
        for prev, cur in zip(slots, slots[1:]):
            # one member comes on, the previous lead stays on in second position
            assert cur.crew[1].user_id == prev.crew[0].user_id
            assert cur.crew[0].user_id != prev.crew[0].user_id

    def test_chunk_hours(self):
        assert chunk_hours(4, 2, True) == 2
        assert chunk_hours(4, 1, True) == 4
        assert chunk_hours(4, 2, False) == 4

    def test_last_chunk_may_run_past_end(self, roster):
        slots = generate_date_range_schedule(roster, self.policy(hours=10))
        assert len(slots) == 3
        assert slots[-1].end == slots[0].start + timedelta(hours=12)

    def test_no_crew(self):
        assert generate_date_range_schedule([], self.policy()) == []

    def test_empty_range(self, roster):
        assert generate_date_range_schedule(roster, self.policy(hours=0)) == []

    def test_invalid_duration(self, roster):
        with pytest.raises(InvalidPolicy):
            generate_date_range_schedule(roster, self.policy(duration=0))

    def test_combine_date_time(self):
        got = combine_date_time(date(2026, 10, 19), "08:30")
        assert got == datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)


class TestSchedules:
    def test_build_schedule(self, roster, at):
        slots = generate_schedule(roster, RotationPolicy(4, 2, "navigation"))
        sched = build_schedule("v1", "Crossing", "navigation", slots, 2, False, now=at(9))
        assert sched.watch_type == "underway"
        assert sched.vessel_id == "v1"
        assert sched.created_at == at(9)
        assert len(sched.slots) == 6
        assert sched.id

    def test_infer_policy_from_staggered_range(self, roster):
        start = datetime(2026, 10, 19, tzinfo=timezone.utc)
        slots = generate_date_range_schedule(
            roster, DateRangePolicy(start, start + timedelta(days=1), 4, 2, True))
        sched = build_schedule("v1", "x", "underway", slots, crew_per_watch=2, is_staggered=True)
        got = infer_policy(sched)
        assert got["duration_hours"] == 4
        assert got["crew_per_watch"] == 2
        assert got["is_staggered"] is True
        assert [c.user_name for c in got["crew"]] == ["Alice", "Dave", "Bob", "Charlie"]

    def test_infer_policy_from_recurring(self, roster):
        slots = generate_schedule(roster, RotationPolicy(6, 1, "underway"))
        got = infer_policy(build_schedule("v1", "x", "underway", slots))
        assert got["duration_hours"] == 6
        assert got["crew_per_watch"] == 1

    def test_infer_policy_defaults(self):
        got = infer_policy(None)
        assert got["duration_hours"] == 4
        assert got["crew_per_watch"] == 2
        assert got["crew"] == []
