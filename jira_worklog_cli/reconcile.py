"""
Decide which edited worklogs need remote writes, and perform them.

Matching is done on the worklog id alone. Two issues' worklogs sharing an
id is not expected from a JIRA server, and is not guarded against here.
"""

import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dateutil import tz
from tqdm import tqdm

from . import jira_api
from .errors import ReconciliationError, RemoteError
from .models import WorklogRecord

STARTED_FORMAT = "%Y-%m-%dT%H:%M:%S.000+0000"


def _same_comment(a: str, b: str) -> bool:
    return " ".join(a.split()) == " ".join(b.split())


def has_changed(original: WorklogRecord, edited: WorklogRecord) -> bool:
    # the edit buffer shows durations in whole minutes
    return (original.start != edited.start
            or original.time_spent_seconds // 60 != edited.time_spent_seconds // 60
            or not _same_comment(original.comment, edited.comment))


def reconcile(original: Sequence[WorklogRecord],
              edited: Sequence[WorklogRecord]) -> Tuple[List[WorklogRecord], List[WorklogRecord]]:
    """Classify edited records against the originals.

    Returns:
        tuple[list, list]: (updates, creates). New records are creates;
        records whose id matches an original and differ in start, duration
        or comment are updates. Unchanged records and ids that are not among
        the originals produce nothing. Deletions are not supported.
    """
    by_id: Dict[int, WorklogRecord] = {}
    for r in original:
        if not r.is_new:
            by_id.setdefault(r.worklog_id, r)

    updates: List[WorklogRecord] = []
    creates: List[WorklogRecord] = []
    for e in edited:
        if e.is_new:
            creates.append(e)
            continue
        o = by_id.get(e.worklog_id)
        if o is not None and has_changed(o, e):
            updates.append(e)
    return updates, creates


def started_timestamp(start: str) -> str:
    """Convert a local "YYYY-MM-DD HH:MM" start into JIRA's UTC "started" format.

    Raises:
        ReconciliationError: if start is not a date and time pair.
    """
    try:
        local = datetime.strptime((start or "").strip(), "%Y-%m-%d %H:%M")
    except ValueError as e:
        raise ReconciliationError(f"invalid date and time {start!r}") from e
    return local.replace(tzinfo=tz.tzlocal()).astimezone(tz.UTC).strftime(STARTED_FORMAT)


def worklog_payload(record: WorklogRecord) -> Dict[str, Any]:
    return {
        "comment": record.comment,
        "started": started_timestamp(record.start),
        "timeSpentSeconds": int(record.time_spent_seconds),
    }


def _describe(record: WorklogRecord) -> str:
    wid = "new" if record.is_new else str(record.worklog_id)
    return f"worklog id: {wid}, key: {record.issue_key}"


def apply_changes(ctx: jira_api.JiraContext, updates: Sequence[WorklogRecord],
                  creates: Sequence[WorklogRecord], progress: Optional[bool] = None) -> Tuple[int, int]:
    """Send updates first, then creates, one request at a time.

    The first failure aborts the rest of the batch. Nothing already sent is
    rolled back.

    Args:
        ctx: Jira connection context.
        updates: Existing worklogs to overwrite.
        creates: Worklogs to add.
        progress: Show a progress bar; defaults to showing it on a terminal.

    Returns:
        tuple[int, int]: (updated, created) counts.

    Raises:
        ReconciliationError: when a record cannot be turned into a request, or a
            remote call fails. The message names the failing record.
    """
    if progress is None:
        progress = sys.stderr.isatty()
    updated = created = 0
    total = len(updates) + len(creates)
    with tqdm(total=total, desc="Saving worklogs", unit="worklog", disable=not progress or total == 0) as pbar:
        for record in updates:
            try:
                jira_api.update_worklog(ctx, record.issue_key, record.worklog_id, worklog_payload(record))
            except (RemoteError, ReconciliationError) as e:
                raise ReconciliationError(
                    f"Failed to update {_describe(record)} - {e}", updated, created,
                ) from e
            updated += 1
            pbar.update(1)
        for record in creates:
            try:
                jira_api.create_worklog(ctx, record.issue_key, worklog_payload(record))
            except (RemoteError, ReconciliationError) as e:
                raise ReconciliationError(
                    f"Failed to add {_describe(record)} - {e}", updated, created,
                ) from e
            created += 1
            pbar.update(1)
    return updated, created
