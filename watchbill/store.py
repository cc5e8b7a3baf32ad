# store.py
# -----------------------------------------------------------------------------
# CSV-backed schedule store (reference persistence collaborator).
# - schedules.csv: one row per crew assignment (slot rows flattened), one
#   active schedule per vessel; replacing a schedule deletes and recreates it.
# - vessels.csv : per-vessel check-in interval.
# Subscribers are told about every change so hosts can re-run the resolver.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import pandas as pd

from .constants import DEFAULT_CHECK_IN_INTERVAL
from .errors import InvalidInput
from .schedule_service import check_in
from .schemas import LivenessConfig, WatchSchedule

logger = logging.getLogger(__name__)

SCHEDULES_FILE = "schedules.csv"
VESSELS_FILE = "vessels.csv"

SCHEDULE_COLS = [
    "vessel_id", "schedule_id", "name", "watch_type", "crew_per_watch",
    "is_staggered", "created_at", "slot_order", "slot_id", "start", "end",
    "condition", "position", "user_id", "user_name", "checked_in_at",
    "last_active_at",
]
VESSEL_COLS = ["vessel_id", "check_in_interval"]

# --------------------------- Generic helpers --------------------------------

def _canon_df(path: Path, columns: list[str]) -> pd.DataFrame:
    """Load CSV and ensure exactly these columns/order."""
    if path.exists():
        df = pd.read_csv(path, dtype=str, encoding="utf-8-sig").fillna("")
    else:
        df = pd.DataFrame(columns=columns)
    for c in columns:
        if c not in df.columns:
            df[c] = ""
    return df[columns]


def _save_df(path: Path, df: pd.DataFrame, columns: list[str]) -> None:
    """Write CSV with exact columns/order (utf-8-sig)."""
    out = df.copy()
    for c in columns:
        if c not in out.columns:
            out[c] = ""
    out = out[columns].fillna("")
    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, index=False, encoding="utf-8-sig")

# ------------------------ Schedule <-> rows ----------------------------------

def schedule_to_rows(schedule: WatchSchedule) -> list[dict]:
    d = schedule.to_dict()
    head = {
        "vessel_id": schedule.vessel_id,
        "schedule_id": schedule.id,
        "name": schedule.name,
        "watch_type": schedule.watch_type,
        "crew_per_watch": "" if schedule.crew_per_watch is None else str(schedule.crew_per_watch),
        "is_staggered": "" if schedule.is_staggered is None else str(bool(schedule.is_staggered)),
        "created_at": d.get("createdAt", ""),
    }
    rows = []
    for order, slot in enumerate(d["slots"]):
        base = dict(head, slot_order=str(order), slot_id=str(slot["id"]),
                    start=slot["start"], end=slot["end"],
                    condition=slot.get("condition", ""))
        if not slot["crew"]:
            rows.append(dict(base, position=""))
        for pos, c in enumerate(slot["crew"]):
            rows.append(dict(base, position=str(pos), user_id=c["userId"],
                             user_name=c["userName"],
                             checked_in_at=c.get("checkedInAt", ""),
                             last_active_at=c.get("lastActiveAt", "")))
    if not rows:
        rows.append(dict(head))
    return rows


def rows_to_schedule(df: pd.DataFrame) -> WatchSchedule:
    first = df.iloc[0]
    record = {
        "id": first["schedule_id"],
        "vesselId": first["vessel_id"],
        "name": first["name"],
        "watchType": first["watch_type"],
        "slots": [],
    }
    if first["crew_per_watch"]:
        record["crewPerWatch"] = int(first["crew_per_watch"])
    if first["is_staggered"]:
        record["isStaggered"] = first["is_staggered"] == "True"
    if first["created_at"]:
        record["createdAt"] = first["created_at"]

    slot_rows = df[df["slot_order"] != ""].copy()
    if not slot_rows.empty:
        slot_rows["__order"] = slot_rows["slot_order"].astype(int)
        slot_rows["__pos"] = pd.to_numeric(slot_rows["position"], errors="coerce").fillna(-1)
        slot_rows = slot_rows.sort_values(["__order", "__pos"])
        for _, grp in slot_rows.groupby("__order", sort=True):
            s = grp.iloc[0]
            crew = []
            for _, r in grp.iterrows():
                if not r["user_id"]:
                    continue
                c = {"userId": r["user_id"], "userName": r["user_name"]}
                if r["checked_in_at"]:
                    c["checkedInAt"] = r["checked_in_at"]
                if r["last_active_at"]:
                    c["lastActiveAt"] = r["last_active_at"]
                crew.append(c)
            slot = {"id": int(s["slot_id"]), "start": s["start"], "end": s["end"], "crew": crew}
            if s["condition"]:
                slot["condition"] = s["condition"]
            record["slots"].append(slot)
    return WatchSchedule.from_dict(record)

# ------------------------------- Store ---------------------------------------

class ScheduleStore:
    """One active schedule per vessel, kept in flat CSV files under data_dir."""

    def __init__(self, data_dir: Path | str = "data"):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._subscribers: list[Callable[[str, str], None]] = []

    @property
    def schedules_path(self) -> Path:
        return self.data_dir / SCHEDULES_FILE

    @property
    def vessels_path(self) -> Path:
        return self.data_dir / VESSELS_FILE

    # ---- change notification ----

    def subscribe(self, callback: Callable[[str, str], None]) -> Callable[[], None]:
        """Register callback(event, vessel_id); returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self, event: str, vessel_id: str) -> None:
        for cb in list(self._subscribers):
            try:
                cb(event, vessel_id)
            except Exception as e:
                logger.error("Schedule subscriber failed on %s/%s: %s", event, vessel_id, e)

    # ---- schedules ----

    def _load(self) -> pd.DataFrame:
        return _canon_df(self.schedules_path, SCHEDULE_COLS)

    def get_schedule(self, vessel_id: str) -> Optional[WatchSchedule]:
        df = self._load()
        rows = df[df["vessel_id"] == str(vessel_id)]
        if rows.empty:
            return None
        return rows_to_schedule(rows.reset_index(drop=True))

    def _write(self, vessel_id: str, schedule: Optional[WatchSchedule]) -> bool:
        df = self._load()
        mask = df["vessel_id"] == str(vessel_id)
        existed = bool(mask.any())
        df = df[~mask]
        if schedule is not None:
            df = pd.concat([df, pd.DataFrame(schedule_to_rows(schedule))], ignore_index=True)
        _save_df(self.schedules_path, df, SCHEDULE_COLS)
        return existed

    def replace_schedule(self, vessel_id: str, schedule: WatchSchedule) -> WatchSchedule:
        """Delete whatever the vessel had and store `schedule` as its only schedule."""
        if schedule.vessel_id != vessel_id:
            schedule = replace(schedule, vessel_id=vessel_id)
        existed = self._write(vessel_id, schedule)
        if existed:
            logger.info("Cleared old schedule for vessel %s", vessel_id)
        logger.info("Stored schedule %s (%d slots) for vessel %s",
                    schedule.id, len(schedule.slots), vessel_id)
        self._notify("insert", vessel_id)
        return schedule

    def save_schedule(self, schedule: WatchSchedule) -> WatchSchedule:
        """Persist an edited schedule (settings, crew reassignment) in place."""
        self._write(schedule.vessel_id, schedule)
        self._notify("update", schedule.vessel_id)
        return schedule

    def delete_schedule(self, vessel_id: str) -> bool:
        existed = self._write(vessel_id, None)
        if existed:
            logger.info("Deleted schedule for vessel %s", vessel_id)
            self._notify("delete", vessel_id)
        return existed

    def update_crew_check_in(self, vessel_id: str, slot_id: int, user_id: str,
                             instant: datetime) -> WatchSchedule:
        schedule = self.get_schedule(vessel_id)
        if schedule is None:
            raise InvalidInput(f"Vessel {vessel_id} has no schedule")
        updated = check_in(schedule, slot_id, user_id, instant)
        self._write(vessel_id, updated)
        self._notify("update", vessel_id)
        return updated

    # ---- vessel settings ----

    def get_liveness_config(self, vessel_id: str) -> LivenessConfig:
        df = _canon_df(self.vessels_path, VESSEL_COLS)
        rows = df[df["vessel_id"] == str(vessel_id)]
        if rows.empty or not rows.iloc[0]["check_in_interval"]:
            return LivenessConfig(DEFAULT_CHECK_IN_INTERVAL)
        return LivenessConfig(int(rows.iloc[0]["check_in_interval"]))

    def set_liveness_config(self, vessel_id: str, config: LivenessConfig) -> None:
        if config.check_in_interval_minutes <= 0:
            raise InvalidInput("Check-in interval must be positive")
        df = _canon_df(self.vessels_path, VESSEL_COLS)
        mask = df["vessel_id"] == str(vessel_id)
        if mask.any():
            df.loc[mask, "check_in_interval"] = str(config.check_in_interval_minutes)
        else:
            df.loc[len(df)] = [str(vessel_id), str(config.check_in_interval_minutes)]
        _save_df(self.vessels_path, df, VESSEL_COLS)
