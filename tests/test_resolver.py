"""Active and upcoming slot lookup."""
from datetime import timedelta

from watchbill.schemas import CrewAssignment, RecurringSlot, RotationPolicy
from watchbill.resolver import (
    find_active_slot, find_next_slot, next_occurrence, slot_end_instant, time_remaining,
)
from watchbill.slot_generator import generate_schedule


class TestFindActiveSlot:
    def test_day_slot(self, clock_slots, at):
        assert find_active_slot(clock_slots, at(9)).id == 1

    def test_overnight_slot_before_midnight(self, clock_slots, at):
        assert find_active_slot(clock_slots, at(22)).id == 3

    def test_overnight_slot_after_midnight(self, clock_slots, at):
        assert find_active_slot(clock_slots, at(2)).id == 3

    def test_gap_is_none(self, clock_slots, at):
        assert find_active_slot(clock_slots, at(18)) is None

    def test_boundary_hour_belongs_to_later_slot(self, clock_slots, at):
        assert find_active_slot(clock_slots, at(12)).id == 2
        assert find_active_slot(clock_slots, at(8)).id == 1

    def test_clock_regime_ignores_date(self, clock_slots, at):
        assert find_active_slot(clock_slots, at(9, day=3)).id == 1

    def test_absolute_slots(self, absolute_schedule, at):
        slots = absolute_schedule.slots
        assert find_active_slot(slots, at(11, 59)).id == 1
        assert find_active_slot(slots, at(12)).id == 2
        assert find_active_slot(slots, at(7, 59)) is None
        assert find_active_slot(slots, at(20)) is None
        assert find_active_slot(slots, at(9, day=20)) is None

    def test_overlap_returns_first_in_order(self, at):
        slots = [RecurringSlot(7, "08:00", "16:00"), RecurringSlot(8, "12:00", "20:00")]
        assert find_active_slot(slots, at(13)).id == 7

    def test_empty_sequence(self, at):
        assert find_active_slot([], at(9)) is None

    def test_weekend_only_slots_when_honoring_conditions(self, roster, at):
        slots = generate_schedule(roster, RotationPolicy(4, 1, "dock"))
        monday, saturday = at(10), at(10, day=24)
        assert find_active_slot(slots, monday).id == 2
        assert find_active_slot(slots, monday, honor_conditions=True) is None
        assert find_active_slot(slots, saturday, honor_conditions=True).id == 2
        # night watches are always stood
        assert find_active_slot(slots, at(22), honor_conditions=True).id == 5


class TestUpcoming:
    def test_next_occurrence_rolls_to_tomorrow(self, at):
        slot = RecurringSlot(1, "08:00", "12:00")
        assert next_occurrence(slot, at(9)) == at(8, day=20)
        assert next_occurrence(slot, at(7)) == at(8)
        assert next_occurrence(slot, at(8)) == at(8, day=20)

    def test_find_next_slot_for_user(self, absolute_schedule, at):
        slots = absolute_schedule.slots
        assert find_next_slot(slots, at(9), "1").id == 3
        assert find_next_slot(slots, at(9), "3").id == 2
        assert find_next_slot(slots, at(9)).id == 2
        assert find_next_slot(slots, at(17)) is None

    def test_find_next_recurring(self, at):
        slots = [
            RecurringSlot(0, "00:00", "04:00", [CrewAssignment("1", "Alice")]),
            RecurringSlot(1, "16:00", "20:00", [CrewAssignment("2", "Bob")]),
        ]
        assert find_next_slot(slots, at(10)).id == 1
        assert find_next_slot(slots, at(10), "1").id == 0
        assert find_next_slot(slots, at(10), "9") is None


class TestTimeRemaining:
    def test_overnight(self, clock_slots, at):
        night = clock_slots[2]
        assert time_remaining(night, at(22)) == timedelta(hours=10)
        assert time_remaining(night, at(2, 30)) == timedelta(hours=5, minutes=30)
        assert slot_end_instant(night, at(22)) == at(8, day=20)

    def test_outside_slot(self, clock_slots, at):
        assert time_remaining(clock_slots[0], at(18)) is None

    def test_end_of_day_slot(self, at):
        slot = RecurringSlot(5, "20:00", "24:00")
        assert time_remaining(slot, at(23)) == timedelta(hours=1)

    def test_absolute(self, absolute_schedule, at):
        first = absolute_schedule.slots[0]
        assert time_remaining(first, at(10)) == timedelta(hours=2)
        assert time_remaining(first, at(13)) == timedelta(0)
        assert time_remaining(first, at(7)) is None


class TestWeekendOnlyUpcoming:
    def dock(self, roster):
        # ids 2, 3 and 4 (08:00, 12:00, 16:00) are weekend-only
        return generate_schedule(roster[:1], RotationPolicy(4, 1, "dock"))

    def test_next_occurrence_moves_to_saturday(self, roster, at):
        morning = self.dock(roster)[2]
        assert next_occurrence(morning, at(6)) == at(8)
        assert next_occurrence(morning, at(6), honor_conditions=True) == at(8, day=24)

    def test_next_occurrence_on_the_weekend(self, roster, at):
        morning = self.dock(roster)[2]
        assert next_occurrence(morning, at(6, day=24), honor_conditions=True) == at(8, day=24)
        assert next_occurrence(morning, at(10, day=24), honor_conditions=True) == at(8, day=25)
        # Sunday after the watch: next one is the following Saturday
        assert next_occurrence(morning, at(10, day=25), honor_conditions=True) == at(8, day=31)

    def test_always_slots_are_unaffected(self, roster, at):
        night = self.dock(roster)[5]
        assert next_occurrence(night, at(10), honor_conditions=True) == at(20)

    def test_find_next_slot_skips_weekday_weekend_only(self, roster, at):
        slots = self.dock(roster)
        assert find_next_slot(slots, at(10), "1").id == 3
        assert find_next_slot(slots, at(10), "1", honor_conditions=True).id == 5
        assert find_next_slot(slots, at(6, day=24), "1", honor_conditions=True).id == 2
