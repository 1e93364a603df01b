"""
Render worklogs as an editable text block and parse the edited block back.

One worklog per line::

    (#123456)  ABC-12          09:30  1h 30m    Reviewed the release notes
    (#new)     ABC-7           13:00  0h 45m    Standup

Everything that does not look like such a line (the help header, summary
lines, blank lines) is ignored by the parser.
"""

import re
from datetime import date
from typing import Iterable, List

from .duration import format_duration, parse_duration
from .models import WorklogRecord

NEW_ID_MARKER = "new"

# Comments are limited to a conservative character set so a multi-field
# line cannot be misread. A line with other characters is skipped.
WORKLOG_LINE_RE = re.compile(
    r"^[ \t]*\(#(?P<id>\d+|new)\)[ \t]+"
    r"(?P<key>[A-Z]{2,9}-\d{1,4})[ \t]+"
    r"(?P<time>(?:[01]\d|2[0-3]):[0-5]\d)[ \t]+"
    r"(?P<duration>\d*\.?\d+h(?:[ \t]?\d{1,2}m)?|\d{1,2}m)"
    r"(?:[ \t]+(?P<comment>[\w \t,.:;!?'\"()\[\]/&+@#%=*<>-]*))?[ \t]*$"
)

HEADER = """\
# Worklog for {date}
#
# Change the time, duration or comment of an entry and save to update it.
# Add a line with (#new) as id to register new work, e.g.
#   (#new)  ABC-123  13:00  1h 30m  What you did
# Lines starting with # are ignored. Removing a line does NOT delete the worklog.
#
# ID         KEY             TIME   DURATION  COMMENT
"""


def _one_line(text: str) -> str:
    return " ".join((text or "").split())


def format_worklog_line(record: WorklogRecord) -> str:
    wid = NEW_ID_MARKER if record.is_new else str(record.worklog_id)
    line = (f"{'(#' + wid + ')':<10} {record.issue_key:<15} {record.start_time:<6} "
            f"{format_duration(record.time_spent_seconds):<9} {_one_line(record.comment)}")
    return line.rstrip()


def render_worklog_block(records: Iterable[WorklogRecord], reference_date: date) -> str:
    """Render records as the text opened in the editor."""
    lines = [HEADER.format(date=reference_date.isoformat())]
    for record in records:
        if record.summary:
            lines.append(f"# {record.issue_key}: {_one_line(record.summary)}")
        lines.append(format_worklog_line(record))
    return "\n".join(lines) + "\n"


def parse_edited_block(reference_date: date, text: bytes) -> List[WorklogRecord]:
    """Read worklog lines back from an edited block.

    Every parsed worklog is dated reference_date. Lines that do not match the
    worklog line layout are skipped.

    Raises:
        InvalidDurationFormat: if a matched duration cannot be converted.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    day = reference_date.isoformat()

    records: List[WorklogRecord] = []
    for line in text.splitlines():
        m = WORKLOG_LINE_RE.match(line)
        if m is None:
            continue
        wid = m.group("id")
        records.append(WorklogRecord(
            worklog_id=None if wid == NEW_ID_MARKER else int(wid),
            date=reference_date,
            start=f"{day} {m.group('time')}",
            issue_key=m.group("key"),
            summary="",
            comment=(m.group("comment") or "").strip(),
            time_spent_seconds=parse_duration(m.group("duration")),
        ))
    return records
