"""Flatten timesheet gadget entries into sorted WorklogRecords."""

from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, List

from dateutil import tz

from .models import RawTimesheetEntry, WorklogRecord

SUMMARY_WIDTH = 40
COMMENT_WIDTH = 31
ELLIPSIS = ".."


def _truncate(text: str, width: int) -> str:
    if len(text) > width:
        return text[:width] + ELLIPSIS
    return text


def local_start(epoch_millis: int) -> datetime:
    """Convert epoch milliseconds to a local wall clock datetime (minute precision)."""
    dt = datetime.fromtimestamp(epoch_millis / 1000, tz=tz.tzlocal())
    return dt.replace(second=0, microsecond=0, tzinfo=None)


def normalize(raw_entries: Iterable[RawTimesheetEntry], truncate: bool = False) -> List[WorklogRecord]:
    """Turn the per-issue timesheet into a flat list ordered by start time.

    Args:
        raw_entries: Issues with the user's entries, as returned by the timesheet endpoint.
        truncate: Shorten long summaries and comments for fixed width tables.
            The shortened text is what ends up in the records.

    Returns:
        List[WorklogRecord]: Records sorted ascending on their full start timestamp.
    """
    records: List[WorklogRecord] = []
    for issue in raw_entries:
        summary = _truncate(issue.issue_summary, SUMMARY_WIDTH) if truncate else issue.issue_summary
        for entry in issue.entries:
            comment = _truncate(entry.comment, COMMENT_WIDTH) if truncate else entry.comment
            started = local_start(entry.start_epoch_millis)
            records.append(WorklogRecord(
                worklog_id=entry.entry_id,
                date=started.date(),
                start=started.strftime("%Y-%m-%d %H:%M"),
                issue_key=issue.issue_key,
                summary=summary,
                comment=comment,
                time_spent_seconds=entry.time_spent_seconds,
            ))
    # stable: same-minute entries keep their response order
    records.sort(key=lambda r: r.start)
    return records


def copy_as_new(records: Iterable[WorklogRecord], on_date: date) -> List[WorklogRecord]:
    """Re-date records to on_date and mark them as not yet created.

    Used to copy another day's (or another user's) entries into the edit
    buffer so saving creates them in your own worklog.
    """
    copies: List[WorklogRecord] = []
    for r in records:
        start = f"{on_date.isoformat()} {r.start_time}" if r.start_time else on_date.isoformat()
        copies.append(replace(r, worklog_id=None, date=on_date, start=start))
    return copies
