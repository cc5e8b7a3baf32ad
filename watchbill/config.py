# watchbill/config.py
# -----------------------------------------------------------------------------
# Host configuration for the watchbill engine: dataclasses loaded from a YAML
# file, with the data directory overridable via WATCHBILL_DATA_DIR.
# -----------------------------------------------------------------------------

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .constants import DEFAULT_CHECK_IN_INTERVAL, DEFAULT_NIGHT_END, DEFAULT_NIGHT_START
from .schemas import LivenessConfig


@dataclass
class RotationDefaults:
    """Night window used by anchor and dock watches."""
    night_start_hour: int = DEFAULT_NIGHT_START
    night_end_hour: int = DEFAULT_NIGHT_END


@dataclass
class ReminderDefaults:
    """Lead times (minutes) before a watch; 0 disables a reminder."""
    reminder1_minutes: int = 0
    reminder2_minutes: int = 0


@dataclass
class WatchbillConfig:
    data_dir: str = "data"
    log_level: str = "INFO"
    liveness: LivenessConfig = field(default_factory=LivenessConfig)
    rotation: RotationDefaults = field(default_factory=RotationDefaults)
    reminders: ReminderDefaults = field(default_factory=ReminderDefaults)


def load_config(path: str) -> WatchbillConfig:
    """Load configuration from a YAML file.

    Raises:
        FileNotFoundError: the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(p) as f:
        data = yaml.safe_load(f) or {}

    cfg = WatchbillConfig()
    cfg.data_dir = os.environ.get("WATCHBILL_DATA_DIR", data.get("data_dir", cfg.data_dir))
    cfg.log_level = str(data.get("log_level", cfg.log_level)).upper()

    live = data.get("liveness", {}) or {}
    cfg.liveness.check_in_interval_minutes = int(
        live.get("check_in_interval_minutes", DEFAULT_CHECK_IN_INTERVAL))

    rot = data.get("rotation", {}) or {}
    cfg.rotation.night_start_hour = int(rot.get("night_start_hour", cfg.rotation.night_start_hour))
    cfg.rotation.night_end_hour = int(rot.get("night_end_hour", cfg.rotation.night_end_hour))

    rem = data.get("reminders", {}) or {}
    cfg.reminders.reminder1_minutes = int(rem.get("reminder1_minutes", 0))
    cfg.reminders.reminder2_minutes = int(rem.get("reminder2_minutes", 0))

    return cfg


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
