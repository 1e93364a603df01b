"""
Value types shared by the worklog pipeline.

Raw timesheet payloads are validated here, at the deserialization boundary,
so the rest of the code only ever sees well-formed records.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from .errors import RemoteError


@dataclass(frozen=True)
class WorklogRecord:
    """Simplified worklog entry used for display, editing and statistics.

    ``worklog_id`` is the server id of an existing worklog, or None for a
    worklog that has not been created yet.
    """

    worklog_id: Optional[int]
    date: date
    start: str  # "YYYY-MM-DD HH:MM"
    issue_key: str
    summary: str
    comment: str
    time_spent_seconds: int

    @property
    def is_new(self) -> bool:
        return self.worklog_id is None

    @property
    def start_time(self) -> str:
        """Wall clock part (HH:MM) of ``start``."""
        parts = self.start.split(" ")
        return parts[1] if len(parts) == 2 else ""


@dataclass(frozen=True)
class TimesheetEntry:
    entry_id: int
    author: str
    author_full_name: str
    start_epoch_millis: int
    time_spent_seconds: int
    comment: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TimesheetEntry":
        try:
            return cls(
                entry_id=int(data["id"]),
                author=str(data.get("author") or ""),
                author_full_name=str(data.get("authorFullName") or ""),
                start_epoch_millis=int(data["startDate"]),
                time_spent_seconds=int(data.get("timeSpent") or 0),
                comment=str(data.get("comment") or ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteError(f"Unexpected timesheet entry in response: {e}") from e


@dataclass(frozen=True)
class RawTimesheetEntry:
    """One issue of the timesheet gadget response with the user's entries on it."""

    issue_key: str
    issue_summary: str
    entries: List[TimesheetEntry] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RawTimesheetEntry":
        if not isinstance(data, dict) or not isinstance(data.get("key"), str):
            raise RemoteError("Unexpected timesheet item in response: missing issue key")
        entries = data.get("entries") or []
        if not isinstance(entries, list):
            raise RemoteError(f"Unexpected timesheet entries for {data['key']}")
        return cls(
            issue_key=data["key"],
            issue_summary=str(data.get("summary") or ""),
            entries=[TimesheetEntry.from_json(e) for e in entries],
        )


def parse_timesheet_response(payload: Any) -> List[RawTimesheetEntry]:
    """Validate the raw-timesheet.json body and return its issues."""
    if not isinstance(payload, dict):
        raise RemoteError("Unexpected timesheet response: expected a JSON object")
    items = payload.get("worklog", [])
    if not isinstance(items, list):
        raise RemoteError("Unexpected timesheet response: 'worklog' is not a list")
    return [RawTimesheetEntry.from_json(item) for item in items]


@dataclass(frozen=True)
class PublicHoliday:
    date: date
    name: str
    country_code: str


@dataclass(frozen=True)
class WorkTargets:
    working_days_per_week: int = 5
    working_hours_per_day: float = 7.5
    working_hours_per_week: float = 37.5


@dataclass(frozen=True)
class Week:
    start_date: date
    public_holiday_count: int = 0
    worklogs: List[WorklogRecord] = field(default_factory=list)

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=6)

    def number(self) -> int:
        """ISO week number of the first day in the bucket."""
        return self.start_date.isocalendar()[1]

    def work_days(self) -> int:
        return len({w.date for w in self.worklogs})

    def total_time(self) -> float:
        """Logged hours in the week."""
        return sum(w.time_spent_seconds for w in self.worklogs) / 3600

    def average(self) -> float:
        days = self.work_days()
        if days == 0:
            return 0
        return self.total_time() / days
