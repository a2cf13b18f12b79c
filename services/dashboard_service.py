# services/dashboard_service.py
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

import pandas as pd

from core.config import HEATMAP_START, STATS_WINDOW_DAYS
from core.time_utils import FixedOffsetCalendar, date_range, format_long_date, round_half_up
from services.day_state import DailyStats

CELL_PLACEHOLDER = "placeholder"
CELL_FUTURE = "future"
CELL_DAY = "day"


@dataclass(frozen=True)
class RollingStats:
    average: int = 0
    total_completed: int = 0
    best_date: Optional[date] = None
    best_percentage: int = 0
    days_counted: int = 0


@dataclass(frozen=True)
class HeatCell:
    kind: str
    date: Optional[date] = None
    stats: DailyStats = DailyStats()
    level: int = 0
    is_today: bool = False


def heat_level(percentage: int) -> int:
    if percentage <= 0:
        return 0
    if percentage <= 25:
        return 1
    if percentage <= 50:
        return 2
    if percentage <= 75:
        return 3
    return 4


def rolling_stats(store, start: date, end: date) -> RollingStats:
    """Aggregate every day in [start, end]; days without a plan are skipped.

    The best day is the first one with the strictly highest percentage above 0.
    """
    total_completed = 0
    percentages = []
    best_date, best_pct = None, 0
    for d in date_range(start, end):
        s = store.daily_stats(d)
        if s.total <= 0:
            continue
        total_completed += s.completed
        percentages.append(s.percentage)
        if s.percentage > best_pct:
            best_date, best_pct = d, s.percentage
    average = round_half_up(sum(percentages) / len(percentages)) if percentages else 0
    return RollingStats(average=average, total_completed=total_completed,
                        best_date=best_date, best_percentage=best_pct, days_counted=len(percentages))


def last_n_days_stats(store, cal: FixedOffsetCalendar, days: int = STATS_WINDOW_DAYS) -> RollingStats:
    today = cal.today()
    return rolling_stats(store, today - timedelta(days=days), today)


def _sunday_index(d: date) -> int:
    return (d.weekday() + 1) % 7


def heatmap_grid(store, cal: FixedOffsetCalendar, anchor: date = HEATMAP_START) -> List[List[HeatCell]]:
    """Sunday-first week columns from the anchor's week through today's week."""
    today = cal.today()
    days_since = (today - anchor).days + 1
    if days_since <= 0:
        return []
    offset = _sunday_index(anchor)
    weeks = math.ceil((offset + days_since) / 7)
    grid = []
    for w in range(weeks):
        column = []
        for k in range(7):
            d = anchor + timedelta(days=w * 7 + k - offset)
            if d < anchor:
                column.append(HeatCell(kind=CELL_PLACEHOLDER))
            elif d > today:
                column.append(HeatCell(kind=CELL_FUTURE, date=d))
            else:
                s = store.daily_stats(d)
                column.append(HeatCell(kind=CELL_DAY, date=d, stats=s,
                                       level=heat_level(s.percentage), is_today=(d == today)))
        grid.append(column)
    return grid


def month_labels(anchor: date, end: date) -> List[Tuple[int, str]]:
    labels = []
    current_month = anchor.month
    d, week = anchor, 0
    while d <= end:
        if d.month != current_month and d.day <= 7:
            labels.append((week, d.strftime("%b")))
            current_month = d.month
        d += timedelta(days=7)
        week += 1
    return labels


def tile_tooltip(cell: HeatCell) -> str:
    if cell.kind != CELL_DAY:
        return ""
    s = cell.stats
    noun = "activity" if s.total == 1 else "activities"
    return f"{format_long_date(cell.date)} · {s.percentage}% · {s.completed}/{s.total} {noun} completed"


def daily_frame(store, start: date, end: date) -> pd.DataFrame:
    rows = []
    for d in date_range(start, end):
        s = store.daily_stats(d)
        rows.append({"date": d, "total": s.total, "completed": s.completed,
                     "percentage": s.percentage, "level": heat_level(s.percentage)})
    return pd.DataFrame(rows, columns=["date", "total", "completed", "percentage", "level"])
