# watchbill/liveness.py
# -----------------------------------------------------------------------------
# Check-in liveness for the crew member on watch.
#   green  : checked in within the vessel interval
#   amber  : interval exceeded, still inside the one-minute grace
#   red    : overdue (or never checked in while on watch)
#   normal : not on the active watch, not evaluated
# There is no stored state: every tick recomputes from the last activity.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .constants import (
    AMBER_ALARM_PERIOD, CHECK_IN_ROLLBACK_MINUTES, CUE_GENTLE, CUE_LOUD,
    GRACE_MINUTES, RED_ALARM_PERIOD, STATE_AMBER, STATE_GREEN, STATE_NORMAL,
    STATE_RED, STATUS_MESSAGES,
)
from .errors import InvalidInput
from .resolver import find_active_slot, find_next_slot, next_occurrence, time_remaining
from .schemas import CrewAssignment, LivenessConfig, WatchSchedule, WatchView
from .time_utils import at_clock, ensure_aware, format_countdown, format_duration, parse_clock

logger = logging.getLogger(__name__)

# ------------------------------ Evaluation -----------------------------------

def last_activity_instant(assignment: Optional[CrewAssignment], now: datetime) -> Optional[datetime]:
    """
    Last confirmed activity of a crew member.
    Prefers last_active_at; otherwise rebuilds the 'HH:MM' check-in as today's
    time, moved back a day when it would sit more than an hour after `now`
    (a check-in just before midnight seen just after it).
    """
    if assignment is None:
        return None
    if assignment.last_active_at is not None:
        return ensure_aware(assignment.last_active_at)
    if assignment.checked_in_at:
        h, m = parse_clock(assignment.checked_in_at)
        when = at_clock(now, h, m)
        if when > now + timedelta(minutes=CHECK_IN_ROLLBACK_MINUTES):
            when -= timedelta(days=1)
        return ensure_aware(when)
    return None


def classify(diff_minutes: float, interval_minutes: float) -> str:
    if diff_minutes <= interval_minutes:
        return STATE_GREEN
    if diff_minutes <= interval_minutes + GRACE_MINUTES:
        return STATE_AMBER
    return STATE_RED


def evaluate_liveness(assignment: Optional[CrewAssignment], interval_minutes: int,
                      now: datetime, on_watch: bool = True) -> str:
    """Liveness state of one assignment at `now`."""
    if interval_minutes is None or interval_minutes <= 0:
        raise InvalidInput(f"Check-in interval must be positive, got {interval_minutes!r}")
    if not on_watch or assignment is None:
        return STATE_NORMAL

    last = last_activity_instant(assignment, now)
    if last is None:
        return STATE_RED
    diff_minutes = (ensure_aware(now) - last).total_seconds() / 60
    return classify(diff_minutes, interval_minutes)

# ------------------------------ Escalation -----------------------------------

def alarm_cue(state: str, now: datetime) -> Optional[str]:
    """
    Audible cue due at this tick, if any. Amber beeps gently on every
    15-second boundary, red sounds loudly on every 5-second boundary.
    """
    seconds = math.floor(ensure_aware(now).timestamp())
    if state == STATE_AMBER and seconds % AMBER_ALARM_PERIOD == 0:
        return CUE_GENTLE
    if state == STATE_RED and seconds % RED_ALARM_PERIOD == 0:
        return CUE_LOUD
    return None

# ------------------------------ Watch view -----------------------------------

def evaluate_watch(schedule: Optional[WatchSchedule], user_id: str,
                   config: LivenessConfig, now: datetime,
                   honor_conditions: bool = False) -> WatchView:
    """Compose the on-watch / off-watch panel for `user_id` at `now`."""
    if schedule is None:
        return WatchView(state=STATE_NORMAL)

    slots = schedule.slots
    current = find_active_slot(slots, now, honor_conditions=honor_conditions)
    on_watch = current is not None and current.has_member(user_id)
    my_next = find_next_slot(slots, now, user_id, honor_conditions=honor_conditions)
    next_global = find_next_slot(slots, now, honor_conditions=honor_conditions)

    display = current if on_watch else my_next
    entry = display.member(user_id) if display is not None else None
    checked_in = bool(entry and (entry.checked_in_at or entry.last_active_at))

    if on_watch:
        left = time_remaining(current, now) or timedelta(0)
        time_left = format_duration(left)
        state = evaluate_liveness(entry, config.check_in_interval_minutes, now)
    elif my_next is not None:
        diff = next_occurrence(my_next, ensure_aware(now), honor_conditions) - ensure_aware(now)
        time_left = "Starting..." if diff <= timedelta(0) else format_countdown(diff)
        state = STATE_NORMAL
    else:
        time_left = ""
        state = STATE_NORMAL

    return WatchView(
        state=state,
        time_left=time_left,
        current_slot=current,
        next_slot=next_global,
        my_next_slot=my_next,
        display_slot=display,
        my_assignment=entry,
        is_on_watch=on_watch,
        is_checked_in=checked_in,
        status_message=STATUS_MESSAGES.get(state, ""),
        alarm=alarm_cue(state, now),
    )


class WatchMonitor:
    """
    Per-crew-member tick driver. Owns no timer: the host calls tick() at 1 Hz
    or faster with the current time, and receives alarm cues through `alarm`.
    """

    def __init__(self, schedule_provider: Callable[[], Optional[WatchSchedule]],
                 user_id: str, config: Optional[LivenessConfig] = None,
                 alarm: Optional[Callable[[str], None]] = None,
                 honor_conditions: bool = False):
        self.schedule_provider = schedule_provider
        self.user_id = user_id
        self.config = config or LivenessConfig()
        self.alarm = alarm
        self.honor_conditions = honor_conditions
        self.last_state: Optional[str] = None

    def tick(self, now: Optional[datetime] = None) -> WatchView:
        now = now or datetime.now(timezone.utc)
        view = evaluate_watch(self.schedule_provider(), self.user_id, self.config, now,
                              honor_conditions=self.honor_conditions)

        if view.state != self.last_state:
            logger.info("Watch state for %s: %s -> %s", self.user_id, self.last_state, view.state)
            self.last_state = view.state

        if view.alarm and self.alarm is not None:
            try:
                self.alarm(view.alarm)
            except Exception as e:
                logger.error("Alarm playback failed (%s): %s", view.alarm, e)
        return view
