# watchbill/reminders.py
# -----------------------------------------------------------------------------
# Watch reminders: which one-shot notifications should be armed for a crew
# member's upcoming watches, and the cancel-then-arm pass against a sink.
# Each crew member has two independent lead times (minutes, 0 = disabled).
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from .constants import LEAD_KINDS, REMINDER_TITLE
from .errors import InvalidInput
from .notifications import NotificationSink
from .resolver import next_occurrence
from .schemas import ReminderEvent, WatchSchedule
from .time_utils import ensure_aware

logger = logging.getLogger(__name__)


def notification_id(schedule_id: str, slot_id: int, lead_kind: str) -> int:
    """Stable positive 32-bit id for '<schedule>-<slot>-<kind>' (string hash * 31)."""
    h = 0
    for ch in f"{schedule_id}-{slot_id}-{lead_kind}":
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def compute_reminders(schedule: WatchSchedule, user_id: str, reminder1: int,
                      reminder2: int, now: datetime,
                      honor_conditions: bool = True) -> list[ReminderEvent]:
    """
    Reminder events for every future slot crewed by `user_id`.

    Recurring slots are projected onto their next occurrence; weekend-only
    slots onto their next weekend occurrence unless honor_conditions is off.
    Reminders whose time has already passed are skipped, never fired late.
    """
    leads = list(zip(LEAD_KINDS, (reminder1 or 0, reminder2 or 0)))
    for kind, lead in leads:
        if lead < 0:
            raise InvalidInput(f"Reminder lead time {kind} must not be negative, got {lead!r}")

    now = ensure_aware(now)
    events: list[ReminderEvent] = []
    for slot in schedule.slots:
        if not slot.has_member(user_id):
            continue
        start = next_occurrence(slot, now, honor_conditions)
        if start <= now:
            continue
        if honor_conditions and not slot.applies_on(start):
            continue
        for kind, lead in leads:
            if lead <= 0:
                continue
            notify_at = start - timedelta(minutes=lead)
            if notify_at <= now:
                continue
            events.append(ReminderEvent(
                id=notification_id(schedule.id, slot.id, kind),
                slot_id=slot.id,
                lead_kind=kind,
                lead_minutes=lead,
                notify_at=notify_at,
                title=REMINDER_TITLE,
                body=f"Your watch starts in {lead} minutes.",
            ))
    return events


class ReminderScheduler:
    """Replaces every armed reminder on the sink with the current set."""

    def __init__(self, sink: NotificationSink):
        self.sink = sink

    def schedule_watch_reminders(self, schedule: Optional[WatchSchedule], user_id: str,
                                 reminder1: int, reminder2: int,
                                 now: Optional[datetime] = None,
                                 honor_conditions: bool = True) -> list[ReminderEvent]:
        # Cancel first so a stale reminder never survives a schedule change.
        try:
            self.sink.cancel_all()
        except Exception as e:
            logger.warning("Could not clear pending reminders: %s", e)

        if schedule is None or (not reminder1 and not reminder2):
            return []

        now = now or datetime.now(timezone.utc)
        events = compute_reminders(schedule, user_id, reminder1, reminder2, now,
                                   honor_conditions=honor_conditions)
        armed = 0
        for ev in events:
            try:
                self.sink.arm_one_shot(ev.notify_at, ev.payload)
                armed += 1
            except Exception as e:
                logger.error("Failed to arm reminder %s for slot %s: %s", ev.id, ev.slot_id, e)
        logger.info("Scheduled %d/%d watch reminders for %s", armed, len(events), user_id)
        return events
