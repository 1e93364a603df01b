from datetime import date, timedelta

import jira_worklog_cli.stats as mod
from jira_worklog_cli.models import Week, WorklogRecord, WorkTargets

MONDAY = date(2024, 3, 4)


def rec(d, seconds=3600, wid=1):
    return WorklogRecord(wid, d, f"{d.isoformat()} 09:00", "X-1", "", "", seconds)


def test_two_weeks_one_worklog_each():
    worklogs = [rec(MONDAY), rec(MONDAY + timedelta(days=7), wid=2)]
    weeks = mod.group_by_week(MONDAY, MONDAY + timedelta(days=13), worklogs, [])
    assert len(weeks) == 2
    assert [len(w.worklogs) for w in weeks] == [1, 1]
    assert [w.work_days() for w in weeks] == [1, 1]
    assert weeks[1].start_date == MONDAY + timedelta(days=7)
    assert weeks[0].end_date == MONDAY + timedelta(days=6)


def test_empty_weeks_are_included_and_no_alignment_is_done():
    wednesday = MONDAY + timedelta(days=2)
    weeks = mod.group_by_week(wednesday, wednesday + timedelta(days=20), [], [])
    assert [w.start_date for w in weeks] == [wednesday + timedelta(days=7 * i) for i in range(3)]
    assert all(w.total_time() == 0 and w.average() == 0 for w in weeks)


def test_holidays_counted_over_first_six_days_only():
    holidays = [MONDAY, MONDAY + timedelta(days=5), MONDAY + timedelta(days=6)]
    weeks = mod.group_by_week(MONDAY, MONDAY + timedelta(days=6), [], holidays)
    assert weeks[0].public_holiday_count == 2


def test_week_metrics():
    w = Week(MONDAY, 0, [rec(MONDAY, 7200), rec(MONDAY, 3600, 2), rec(MONDAY + timedelta(days=1), 5400, 3)])
    assert w.number() == 10
    assert w.work_days() == 2
    assert w.total_time() == 4.5
    assert w.average() == 2.25


def test_targets_account_for_holidays():
    t = WorkTargets()
    full = Week(MONDAY, 1, [rec(MONDAY + timedelta(days=i), 27000, i) for i in range(4)])
    assert mod.expected_hours(full, t) == 30.0
    assert mod.total_on_target(full, t)
    assert mod.average_on_target(full, t)
    assert mod.workdays_on_target(full, t)
    short = Week(MONDAY, 0, [rec(MONDAY, 3600)])
    assert not mod.total_on_target(short, t)
    assert not mod.workdays_on_target(short, t)
    assert mod.balance([full, short], t) == -36.5


def test_weeks_to_frame():
    df = mod.weeks_to_frame([Week(MONDAY, 1, [rec(MONDAY, 5400)])])
    assert list(df.columns) == mod.STATS_COLS
    assert df.iloc[0]["Total (h)"] == 1.5
    assert df.iloc[0]["Holidays"] == 1


def test_format_stats_plain_and_colored():
    weeks = [Week(MONDAY, 0, [rec(MONDAY, 3600)])]
    plain = mod.format_stats(weeks, WorkTargets(), color=False)
    assert "\033[" not in plain
    assert "Deficit against 37.5h weeks: 36.50 hours" in plain
    colored = mod.format_stats(weeks, WorkTargets(), color=True)
    assert mod.RED in colored and mod.NOCOLOR in colored
