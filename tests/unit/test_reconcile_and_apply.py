from datetime import date, datetime, timezone

import pytest

import jira_worklog_cli.reconcile as mod
from jira_worklog_cli.errors import ReconciliationError
from jira_worklog_cli.models import WorklogRecord
from jira_worklog_cli.worklog_block import parse_edited_block, render_worklog_block
from tests.conftest import FakeResponse, make_ctx

DAY = date(2024, 3, 4)


def rec(wid, key="X-1", seconds=3600, start="09:00", comment=""):
    return WorklogRecord(wid, DAY, f"2024-03-04 {start}", key, "", comment, seconds)


def test_changed_duration_is_an_update():
    updates, creates = mod.reconcile([rec(100)], [rec(100, seconds=7200)])
    assert creates == []
    assert len(updates) == 1
    assert updates[0].worklog_id == 100 and updates[0].time_spent_seconds == 7200


def test_new_record_is_a_create():
    updates, creates = mod.reconcile([], [rec(None, key="X-1", seconds=1800)])
    assert updates == []
    assert [(c.issue_key, c.time_spent_seconds) for c in creates] == [("X-1", 1800)]


def test_unchanged_and_unknown_ids_produce_nothing():
    original = [rec(1, comment="same  text"), rec(2)]
    edited = [rec(1, comment="same text"), rec(999, seconds=60)]
    assert mod.reconcile(original, edited) == ([], [])
    # removing a line is not a delete
    assert mod.reconcile(original, []) == ([], [])


def test_start_and_comment_changes_are_updates():
    original = [rec(1), rec(2, comment="a")]
    updates, _ = mod.reconcile(original, [rec(1, start="10:00"), rec(2, comment="b")])
    assert [u.worklog_id for u in updates] == [1, 2]


def test_matching_is_on_id_even_when_key_differs():
    # the id belongs to another issue in the edited buffer; only the id is compared
    updates, creates = mod.reconcile([rec(7, key="AA-1")], [rec(7, key="BB-2", seconds=60)])
    assert creates == []
    assert updates[0].issue_key == "BB-2"


def test_render_parse_reconcile_of_untouched_block_is_empty():
    original = [rec(1, comment="Reviewed, merged"), rec(2, key="QA-7", start="13:30", seconds=2700)]
    edited = parse_edited_block(DAY, render_worklog_block(original, DAY).encode())
    assert mod.reconcile(original, edited) == ([], [])


def test_started_timestamp_is_utc():
    expected = datetime(2024, 3, 4, 9, 30).astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000+0000")
    assert mod.started_timestamp("2024-03-04 09:30") == expected
    with pytest.raises(ReconciliationError):
        mod.started_timestamp("2024-03-04")


def test_worklog_payload():
    p = mod.worklog_payload(rec(None, seconds=1800, comment="c"))
    assert p["comment"] == "c"
    assert p["timeSpentSeconds"] == 1800
    assert p["started"].endswith(".000+0000")


def test_apply_changes_sends_updates_before_creates():
    ctx = make_ctx()
    updated, created = mod.apply_changes(ctx, [rec(5, key="ab-1")], [rec(None, key="CD-2")], progress=False)
    assert (updated, created) == (1, 1)
    calls = ctx.session.calls
    assert calls[0]["method"] == "PUT"
    assert calls[0]["url"] == "https://jira.example.com/rest/api/2/issue/AB-1/worklog/5/"
    assert calls[0]["json"]["id"] == "5"
    assert calls[1]["method"] == "POST"
    assert calls[1]["url"] == "https://jira.example.com/rest/api/2/issue/CD-2/worklog"
    assert "id" not in calls[1]["json"]


def test_apply_changes_aborts_on_first_failure_and_reports_counts():
    ctx = make_ctx(FakeResponse(200), FakeResponse(400, reason="Bad Request"))
    with pytest.raises(ReconciliationError) as ei:
        mod.apply_changes(ctx, [rec(1), rec(2)], [rec(None)], progress=False)
    assert ei.value.updated == 1 and ei.value.created == 0
    assert "worklog id: 2, key: X-1" in str(ei.value)
    assert "400 Bad Request" in str(ei.value)
    # the create was never attempted
    assert len(ctx.session.calls) == 2


def test_apply_changes_nothing_to_do():
    ctx = make_ctx()
    assert mod.apply_changes(ctx, [], []) == (0, 0)
    assert ctx.session.calls == []


def test_sub_minute_durations_survive_an_untouched_edit():
    original = [WorklogRecord(7, DAY, "2024-03-04 09:00", "AB-1", "", "ok", 3630)]
    edited = parse_edited_block(DAY, render_worklog_block(original, DAY).encode())
    assert edited[0].time_spent_seconds == 3600
    assert mod.reconcile(original, edited) == ([], [])
    # a real change of the minutes is still an update
    updates, _ = mod.reconcile(original, [rec(7, key="AB-1", seconds=3660, comment="ok")])
    assert [u.time_spent_seconds for u in updates] == [3660]
