"""Watch scheduling and check-in liveness engine for vessel crews."""

from .errors import InvalidInput, InvalidPolicy, WatchbillError
from .liveness import evaluate_liveness, evaluate_watch
from .reminders import compute_reminders
from .resolver import find_active_slot
from .slot_generator import generate_date_range_schedule, generate_schedule
from .time_utils import is_hour_in_interval

__version__ = "0.1.0"
