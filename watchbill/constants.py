# constants.py
# Controlled vocabularies and engine defaults

# Watch types (storage values). Older clients stored "navigation" for underway.
WATCH_TYPES = ["underway", "anchor", "dock"]
WATCH_TYPE_ALIASES = {"navigation": "underway"}

# Slot conditions
CONDITION_ALWAYS = "always"
CONDITION_WEEKEND_ONLY = "weekend-only"
CONDITIONS = [CONDITION_ALWAYS, CONDITION_WEEKEND_ONLY]

# Liveness states
STATE_NORMAL = "normal"
STATE_GREEN = "green"
STATE_AMBER = "amber"
STATE_RED = "red"
LIVENESS_STATES = [STATE_NORMAL, STATE_GREEN, STATE_AMBER, STATE_RED]

# Alarm cues
CUE_GENTLE = "gentle"
CUE_LOUD = "loud"

# Night window (clock hours)
DEFAULT_NIGHT_START = 20
DEFAULT_NIGHT_END = 8

# Vessel check-in policy
DEFAULT_CHECK_IN_INTERVAL = 15   # minutes
GRACE_MINUTES = 1                # amber window after the interval
CHECK_IN_ROLLBACK_MINUTES = 60   # "HH:MM" check-ins further ahead belong to yesterday

# Escalation cadence (seconds, wall-clock aligned)
AMBER_ALARM_PERIOD = 15
RED_ALARM_PERIOD = 5

# Reminder lead kinds
LEAD_KINDS = ["rem1", "rem2"]
REMINDER_TITLE = "Watch Reminder"

# Generator defaults when re-opening an empty schedule
DEFAULT_DURATION_HOURS = 4
DEFAULT_CREW_PER_WATCH = 2

STATUS_MESSAGES = {
    STATE_GREEN: "You are currently on watch.",
    STATE_AMBER: "Check-in required! Please acknowledge.",
    STATE_RED: "MISSED CHECK-IN! Captain notified.",
}
