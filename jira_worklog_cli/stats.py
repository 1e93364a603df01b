"""
Weekly worklog statistics.

group_by_week() buckets records into consecutive 7-day weeks; the *_on_target
helpers compare a week against the configured working hours. Worklogs are
bucketed over all seven days of a week, public holidays only over the first
six (Monday to Saturday for an aligned week).
"""

from datetime import date, timedelta
from typing import Iterable, List, Sequence

import pandas as pd

from .models import Week, WorklogRecord, WorkTargets

STATS_COLS = [
    "Week",
    "Start",
    "End",
    "Work days",
    "Holidays",
    "Total (h)",
    "Average (h)",
]

RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
UL = "\033[4m"
NOCOLOR = "\033[0m"


def group_by_week(from_date: date, to_date: date, worklogs: Sequence[WorklogRecord],
                  holiday_dates: Iterable[date]) -> List[Week]:
    """Split [from_date, to_date] into 7-day buckets starting exactly at from_date.

    No alignment to Mondays is done here; callers wanting ISO weeks pass an
    aligned from_date. Empty weeks are included.
    """
    holidays = list(holiday_dates)
    weeks: List[Week] = []
    start = from_date
    while start <= to_date:
        week_end = start + timedelta(days=6)
        holiday_end = start + timedelta(days=5)
        weeks.append(Week(
            start_date=start,
            public_holiday_count=sum(1 for h in holidays if start <= h <= holiday_end),
            worklogs=[w for w in worklogs if start <= w.date <= week_end],
        ))
        start += timedelta(days=7)
    return weeks


def expected_hours(week: Week, targets: WorkTargets) -> float:
    return targets.working_hours_per_week - targets.working_hours_per_day * week.public_holiday_count


def total_on_target(week: Week, targets: WorkTargets) -> bool:
    return week.total_time() >= expected_hours(week, targets)


def average_on_target(week: Week, targets: WorkTargets) -> bool:
    return week.average() >= targets.working_hours_per_day


def workdays_on_target(week: Week, targets: WorkTargets) -> bool:
    return week.work_days() >= targets.working_days_per_week - week.public_holiday_count


def balance(weeks: Iterable[Week], targets: WorkTargets) -> float:
    """Hours logged above (positive) or below (negative) the targets for all weeks."""
    return sum(w.total_time() - expected_hours(w, targets) for w in weeks)


def weeks_to_frame(weeks: Sequence[Week]) -> pd.DataFrame:
    rows = [{
        "Week": w.number(),
        "Start": w.start_date.isoformat(),
        "End": w.end_date.isoformat(),
        "Work days": w.work_days(),
        "Holidays": w.public_holiday_count,
        "Total (h)": round(w.total_time(), 2),
        "Average (h)": round(w.average(), 2),
    } for w in weeks]
    return pd.DataFrame(rows, columns=STATS_COLS)


def _colored(text: str, on_target: bool, zero: bool) -> str:
    if on_target:
        color = GREEN
    elif zero:
        color = BLUE
    else:
        color = RED
    return f"{color}{text}{NOCOLOR}"


def format_stats(weeks: Sequence[Week], targets: WorkTargets, color: bool = True) -> str:
    """Render the weekly statistics table with a closing balance line."""
    def paint(text, on_target, zero):
        return _colored(text, on_target, zero) if color else text

    header = f"{'Week':<6}{'Start':<12}{'End':<12}{'Work days':>10}{'Holidays':>10}{'Total':>10}{'Average':>10}"
    lines = [f"{UL}{YELLOW}{header}{NOCOLOR}" if color else header]
    for w in weeks:
        days = paint(f"{w.work_days():>10}", workdays_on_target(w, targets), w.work_days() == 0)
        hol = paint(f"{w.public_holiday_count:>10}", False, w.public_holiday_count == 0)
        total = paint(f"{w.total_time():>10.2f}", total_on_target(w, targets), w.total_time() == 0)
        avg = paint(f"{w.average():>10.2f}", average_on_target(w, targets), w.average() == 0)
        lines.append(f"{w.number():<6}{w.start_date.isoformat():<12}{w.end_date.isoformat():<12}"
                     f"{days}{hol}{total}{avg}")

    diff = balance(weeks, targets)
    label = "Surplus" if diff >= 0 else "Deficit"
    value = f"{abs(diff):.2f}"
    if color:
        value = f"{GREEN if diff >= 0 else RED}{value}{NOCOLOR}"
    lines.append("")
    lines.append(f"{label} against {targets.working_hours_per_week:g}h weeks: {value} hours")
    return "\n".join(lines)
