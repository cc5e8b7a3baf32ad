# watchbill/notifications.py
# -----------------------------------------------------------------------------
# Notification sink port used by the reminder scheduler, plus two adapters:
#   - MemorySink : keeps armed reminders in a dict (hosts, tests)
#   - LoggingSink: only logs what would be armed
# Delivery itself (push/local notifications) lives outside this package.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def arm_one_shot(self, at: datetime, payload: dict) -> None: ...

    def cancel_all(self) -> None: ...


class MemorySink:
    """Armed reminders keyed by payload id; arming the same id again replaces it."""

    def __init__(self):
        self.armed: dict[int, tuple[datetime, dict]] = {}
        self.cancel_count = 0

    def arm_one_shot(self, at: datetime, payload: dict) -> None:
        self.armed[payload["id"]] = (at, payload)

    def cancel_all(self) -> None:
        self.armed.clear()
        self.cancel_count += 1

    def pending(self) -> list[tuple[datetime, dict]]:
        return sorted(self.armed.values(), key=lambda item: (item[0], item[1]["id"]))


class LoggingSink:
    def arm_one_shot(self, at: datetime, payload: dict) -> None:
        logger.info("Would arm reminder %s at %s: %s", payload.get("id"), at.isoformat(),
                    payload.get("body", ""))

    def cancel_all(self) -> None:
        logger.info("Would cancel all pending reminders")
