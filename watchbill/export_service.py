# export_service.py
# -----------------------------------------------------------------------------
# Watch bill exports:
#   1) schedule_matrix : crew x slot grid (who stands which watch)
#   2) duty_counts     : watches and hours per crew member
#   3) export_schedule_excel : one workbook with "Watch Bill", "Matrix" and
#      "Totals" sheets (frozen header, filter, borders, gray weekend-only rows)
#
# Requirements: pandas, openpyxl
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd
from openpyxl.styles import Border, PatternFill, Side
from openpyxl.utils import get_column_letter

from .constants import CONDITION_WEEKEND_ONLY
from .schemas import AbsoluteSlot, WatchSchedule, WatchSlot

logger = logging.getLogger(__name__)

GRAY = PatternFill(start_color="00DDDDDD", end_color="00DDDDDD", fill_type="solid")
THIN = Side(border_style="thin", color="000000")
BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)

# --------------------------- Helpers (formatting) ----------------------------

def _autofit_worksheet(ws):
    """Auto-fit column widths based on content length (capped)."""
    for col_idx, col in enumerate(ws.columns, start=1):
        max_len = 0
        for cell in col:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_len + 2, 60)


def _freeze_and_fit(ws):
    """Freeze header row, add filter, borders and auto-fit columns."""
    ws.freeze_panes = "A2"
    ws.auto_filter.ref = ws.dimensions
    for row in ws.iter_rows(min_row=1, max_row=ws.max_row, max_col=ws.max_column):
        for cell in row:
            cell.border = BORDER
    _autofit_worksheet(ws)


def slot_label(slot: WatchSlot) -> str:
    if isinstance(slot, AbsoluteSlot):
        return f"{slot.start:%Y-%m-%d %H:%M} - {slot.end:%H:%M}"
    return f"{slot.start} - {slot.end}"


def _crew_order(schedule: WatchSchedule) -> list[tuple[str, str]]:
    """Distinct (user_id, user_name) in order of first appearance."""
    seen: dict[str, str] = {}
    for s in schedule.slots:
        for c in s.crew:
            seen.setdefault(c.user_id, c.user_name)
    return list(seen.items())

# ------------------------------ Tables ---------------------------------------

def watch_bill(schedule: WatchSchedule) -> pd.DataFrame:
    rows = []
    for s in schedule.slots:
        rows.append({
            "Slot": s.id,
            "Watch": slot_label(s),
            "Condition": s.condition or "",
            "Crew": ", ".join(c.user_name for c in s.crew),
        })
    return pd.DataFrame(rows, columns=["Slot", "Watch", "Condition", "Crew"])


def schedule_matrix(schedule: WatchSchedule) -> pd.DataFrame:
    """Rows = crew (by name), columns = slot labels, 'X' where the member stands the watch."""
    crew = _crew_order(schedule)
    labels = [slot_label(s) for s in schedule.slots]
    data = {
        label: ["X" if s.has_member(uid) else "" for uid, _ in crew]
        for label, s in zip(labels, schedule.slots)
    }
    df = pd.DataFrame(data, index=[name for _, name in crew], columns=labels)
    df.index.name = "Crew"
    return df


def duty_counts(schedule: WatchSchedule) -> pd.DataFrame:
    """Watches and hours stood per crew member, busiest first."""
    recs = []
    for uid, name in _crew_order(schedule):
        mine = [s for s in schedule.slots if s.has_member(uid)]
        hours = sum(s.duration.total_seconds() for s in mine) / 3600
        recs.append({"User ID": uid, "Name": name, "Watches": len(mine), "Hours": round(hours, 2)})
    df = pd.DataFrame(recs, columns=["User ID", "Name", "Watches", "Hours"])
    if not df.empty:
        df = df.sort_values(["Watches", "Name"], ascending=[False, True]).reset_index(drop=True)
    return df

# ------------------------------ Excel export --------------------------------

def export_schedule_excel(schedule: WatchSchedule, path: Optional[Path | str] = None) -> Path:
    """
    Write the schedule to an .xlsx workbook and return its path
    (default: data/WatchBill_<vessel>.xlsx).
    """
    outfile = Path(path) if path else Path("data") / f"WatchBill_{schedule.vessel_id}.xlsx"
    outfile.parent.mkdir(parents=True, exist_ok=True)

    bill = watch_bill(schedule)
    with pd.ExcelWriter(outfile, engine="openpyxl") as xw:
        bill.to_excel(xw, sheet_name="Watch Bill", index=False)
        ws = xw.book["Watch Bill"]
        _freeze_and_fit(ws)
        # gray rows for watches only stood at weekends
        for r in range(2, ws.max_row + 1):
            if ws.cell(row=r, column=3).value == CONDITION_WEEKEND_ONLY:
                for c in range(1, ws.max_column + 1):
                    ws.cell(row=r, column=c).fill = GRAY

        schedule_matrix(schedule).to_excel(xw, sheet_name="Matrix")
        _freeze_and_fit(xw.book["Matrix"])

        duty_counts(schedule).to_excel(xw, sheet_name="Totals", index=False)
        _freeze_and_fit(xw.book["Totals"])

    logger.info("Exported schedule %s to %s", schedule.id, outfile)
    return outfile
