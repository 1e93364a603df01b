"""
jira-worklog command line

Commands:
- get myworklog [DATE] [--week]            your worklog for a day or its ISO week
- get myworklog stats FROM TO [--out F]    weekly statistics against your work targets
- edit myworklog [DATE] [--merge-today] [--adopt USER]
- add work [KEY|ALIAS] DURATION [--date D] [--time HH:MM] [--comment C]
- set active KEY / get active / unset active
"""

import argparse
import os
import subprocess
import sys
from datetime import date, datetime
from typing import List, Optional, Sequence

import pandas as pd
import urllib3
from dateutil import tz

from . import jira_api
from .active import get_active_issue, set_active_issue, unset_active_issue, valid_issue_key
from .config import DEFAULT_CONFIG_PATH, Config, read_config
from .dates import (
    holiday_cache_path,
    holiday_dates,
    is_today,
    load_public_holidays,
    parse_date,
    today,
    validate_time,
    week_of,
)
from .duration import format_duration, parse_duration
from .editor import capture_input_from_editor
from .errors import JiraWorklogError, ParseError, ReconciliationError
from .jira_api import JiraContext, make_session, vprint
from .models import PublicHoliday, WorklogRecord
from .reconcile import apply_changes, reconcile, worklog_payload
from .stats import format_stats, group_by_week, weeks_to_frame
from .timesheet import copy_as_new, normalize
from .worklog_block import parse_edited_block, render_worklog_block


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed options; ``handler`` holds the command function.
    """
    p = argparse.ArgumentParser(prog="jira-worklog", description="Register, edit and review your JIRA worklog.")
    p.add_argument("--config", default=DEFAULT_CONFIG_PATH, help=f"Path to config.ini (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--verbose", action="store_true", help="Detailed logging on stderr")
    p.add_argument("--timeout", type=int, default=30, help="Per request timeout in seconds (default=30)")
    p.add_argument("--insecure", action="store_true", help="DISABLE SSL certificate verification (NOT RECOMMENDED)")
    p.add_argument("--no-color", action="store_true", help="Plain output without ANSI colors")
    sub = p.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    get = sub.add_parser("get", help="Display your worklog, statistics or the active issue")
    get_sub = get.add_subparsers(dest="resource", metavar="RESOURCE")
    get_sub.required = True
    mwl = get_sub.add_parser("myworklog", help="Your worklog for a date (default today), or 'stats FROM TO'")
    mwl.add_argument("args", nargs="*", metavar="DATE | stats FROM TO")
    mwl.add_argument("--week", action="store_true", help="Show the entire ISO week of DATE")
    mwl.add_argument("--out", default="", help="With stats: also write the table to this .xlsx file")
    mwl.set_defaults(handler=cmd_get_myworklog)
    ga = get_sub.add_parser("active", help="Display the active issue")
    ga.set_defaults(handler=cmd_get_active)

    edit = sub.add_parser("edit", help="Edit your worklog in $EDITOR")
    edit_sub = edit.add_subparsers(dest="resource", metavar="RESOURCE")
    edit_sub.required = True
    emwl = edit_sub.add_parser("myworklog", help="Edit your worklog for a date (default today)")
    emwl.add_argument("date", nargs="?", default="", metavar="DATE")
    emwl.add_argument("--merge-today", action="store_true",
                      help="Copy DATE's entries into today's worklog as new entries")
    emwl.add_argument("--adopt", default="", metavar="USER",
                      help="Copy USER's entries for DATE into your worklog as new entries")
    emwl.set_defaults(handler=cmd_edit_myworklog)

    add = sub.add_parser("add", help="Register work")
    add_sub = add.add_subparsers(dest="resource", metavar="RESOURCE")
    add_sub.required = True
    work = add_sub.add_parser("work", help="Add work to an issue (active issue by default), e.g. 1h 30m")
    work.add_argument("args", nargs="+", metavar="[KEY] DURATION")
    work.add_argument("-d", "--date", default="", help="Date of the work (default today)")
    work.add_argument("-t", "--time", default="", help="Start time HH:MM (default now)")
    work.add_argument("-c", "--comment", default="", help="Worklog comment")
    work.set_defaults(handler=cmd_add_work)

    set_ = sub.add_parser("set", help="Mark an issue as active")
    set_sub = set_.add_subparsers(dest="resource", metavar="RESOURCE")
    set_sub.required = True
    sa = set_sub.add_parser("active", help="Set the active issue")
    sa.add_argument("key", metavar="KEY")
    sa.set_defaults(handler=cmd_set_active)

    unset = sub.add_parser("unset", help="Clear the active issue")
    unset_sub = unset.add_subparsers(dest="resource", metavar="RESOURCE")
    unset_sub.required = True
    ua = unset_sub.add_parser("active", help="Clear the active issue")
    ua.set_defaults(handler=cmd_unset_active)

    return p.parse_args(argv)


def build_context(cfg: Config, args: argparse.Namespace) -> JiraContext:
    """Create the Jira session for this invocation, honouring --insecure."""
    verify_val = False if args.insecure else cfg.verify_ssl
    if not verify_val and not cfg.ca_bundle:
        sys.stderr.write("WARNING: SSL certificate verification is DISABLED. Use only for testing.\n")
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    ses = make_session(cfg.username, cfg.token, verify=verify_val, ca_bundle=cfg.ca_bundle,
                       http_proxy=cfg.http_proxy, https_proxy=cfg.https_proxy)
    return JiraContext(base_url=cfg.base_url, session=ses, timeout=args.timeout, verbose=args.verbose)


def format_my_worklog(records: Sequence[WorklogRecord]) -> str:
    if not records:
        return "You have not logged any hours on this date"
    lines = [f"{'Date':<12}{'Time':<7}{'Key':<16}{'Summary':<44}{'Comment':<35}Time Spent"]
    total = 0
    for r in records:
        lines.append(f"{r.date.isoformat():<12}{r.start_time:<7}{r.issue_key:<16}"
                     f"{r.summary:<44}{r.comment:<35}"
                     f"{format_duration(r.time_spent_seconds)}")
        total += r.time_spent_seconds
    lines.append(f"{'':<114}Total: {format_duration(total)}")
    return "\n".join(lines)


def cmd_get_myworklog(args: argparse.Namespace, cfg: Config, ctx: JiraContext) -> int:
    if args.args and args.args[0] == "stats":
        return cmd_stats(args, cfg, ctx)
    if len(args.args) > 1:
        raise ParseError("get myworklog takes at most one date")
    d = parse_date(args.args[0]) if args.args else today()
    start, end = week_of(d) if args.week else (d, d)
    vprint(ctx.verbose, f"Worklog range: {start.isoformat()} to {end.isoformat()}", file=sys.stderr)
    records = normalize(jira_api.get_timesheet(ctx, start, end), truncate=True)
    print(format_my_worklog(records))
    return 0


def load_holidays(cfg: Config, first: date, last: date, ctx: JiraContext) -> List[PublicHoliday]:
    """Public holidays for every year touched by [first, last]; empty without a country code."""
    if not cfg.country_code:
        return []
    holidays: List[PublicHoliday] = []
    for year in range(first.year, last.year + 1):
        path = holiday_cache_path(cfg.config_folder, year, cfg.country_code)
        vprint(ctx.verbose, f"Public holidays {year}: {path}", file=sys.stderr)
        holidays.extend(load_public_holidays(path, year, cfg.country_code, timeout=ctx.timeout))
    return holidays


def cmd_stats(args: argparse.Namespace, cfg: Config, ctx: JiraContext) -> int:
    if len(args.args) != 3:
        raise ParseError("usage: get myworklog stats FROM TO")
    from_date, to_date = parse_date(args.args[1]), parse_date(args.args[2])
    if to_date < from_date:
        raise ParseError(f"{to_date.isoformat()} is before {from_date.isoformat()}")
    start, _ = week_of(from_date)
    _, end = week_of(to_date)
    vprint(ctx.verbose, f"Statistics range: {start.isoformat()} to {end.isoformat()}", file=sys.stderr)

    records = normalize(jira_api.get_timesheet(ctx, start, end))
    holidays = load_holidays(cfg, start, end, ctx)
    weeks = group_by_week(start, end, records, holiday_dates(holidays))
    print(format_stats(weeks, cfg.targets, color=not args.no_color))

    if args.out:
        out_path = args.out.strip()
        if not out_path.lower().endswith(".xlsx"):
            out_path += ".xlsx"
        try:
            os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
            with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
                weeks_to_frame(weeks).to_excel(writer, index=False, sheet_name="Statistics")
        except (OSError, ValueError) as e:
            sys.stderr.write(f"ERROR: failed to write Excel file: {e}\n")
            return 1
        print(f"File written: {out_path}")
    return 0


def cmd_edit_myworklog(args: argparse.Namespace, cfg: Config, ctx: JiraContext) -> int:
    d = parse_date(args.date) if args.date else today()
    original = normalize(jira_api.get_timesheet(ctx, d, d))
    reference = d
    buffer = list(original)

    if args.merge_today and not is_today(d):
        reference = today()
        todays = normalize(jira_api.get_timesheet(ctx, reference, reference))
        buffer = todays + copy_as_new(original, reference)
        original = todays
    if args.adopt:
        adopted = normalize(jira_api.get_timesheet(ctx, d, d, target_user=args.adopt))
        buffer += copy_as_new(adopted, reference)

    if not buffer:
        print("There is nothing to edit.")
        return 0

    try:
        edited = capture_input_from_editor(render_worklog_block(buffer, reference), "edit-worklog-")
    except (OSError, ValueError, subprocess.CalledProcessError) as e:
        print(f"Failed to open editor - {e}", file=sys.stderr)
        return 1
    if not edited:
        print("No changes, nothing to save.")
        return 0

    updates, creates = reconcile(original, parse_edited_block(reference, edited))
    if not updates and not creates:
        print("No changes, nothing to save.")
        return 0
    try:
        updated, created = apply_changes(ctx, updates, creates)
    except ReconciliationError as e:
        report_saved(e.updated, e.created)
        raise
    report_saved(updated, created)
    return 0


def report_saved(updated: int, created: int) -> None:
    if updated:
        print(f"Successfully updated {updated} worklog entries")
    if created:
        print(f"Successfully added {created} worklog entries")


def resolve_work_args(tokens: Sequence[str], cfg: Config):
    """Split ``[KEY|ALIAS] DURATION...`` into (key or None, duration text)."""
    first = tokens[0]
    if len(tokens) > 1:
        if first.lower() in cfg.aliases:
            return cfg.aliases[first.lower()], " ".join(tokens[1:])
        if valid_issue_key(first.upper()):
            return first.upper(), " ".join(tokens[1:])
    return None, " ".join(tokens)


def cmd_add_work(args: argparse.Namespace, cfg: Config, ctx: JiraContext) -> int:
    key, duration = resolve_work_args(args.args, cfg)
    if key is None:
        key = get_active_issue(cfg.issue_file)
        if key is None:
            print("Active issue is not set", file=sys.stderr)
            return 1
    seconds = parse_duration(duration)
    d = parse_date(args.date) if args.date else today()
    t = validate_time(args.time) if args.time else datetime.now(tz=tz.tzlocal()).strftime("%H:%M")
    record = WorklogRecord(
        worklog_id=None,
        date=d,
        start=f"{d.isoformat()} {t}",
        issue_key=key,
        summary="",
        comment=args.comment,
        time_spent_seconds=seconds,
    )
    jira_api.create_worklog(ctx, key, worklog_payload(record))
    print(f"Successfully added {format_duration(seconds)} to {key} on {d.isoformat()} {t}")
    return 0


def cmd_set_active(args: argparse.Namespace, cfg: Config, ctx: JiraContext) -> int:
    key = args.key.upper()
    if not valid_issue_key(key):
        print(f"Invalid key {args.key}", file=sys.stderr)
        return 2
    summary = jira_api.get_issue_summary(ctx, key)
    set_active_issue(cfg.issue_file, key)
    print(f"Issue {key} is active: {summary}")
    return 0


def cmd_get_active(args: argparse.Namespace, cfg: Config, ctx: JiraContext) -> int:
    key = get_active_issue(cfg.issue_file)
    if key is None:
        print("Active issue is not set")
        return 1
    print(f"Active Issue: {key} {jira_api.get_issue_summary(ctx, key)}")
    return 0


def cmd_unset_active(args: argparse.Namespace, cfg: Config, ctx: JiraContext) -> int:
    if unset_active_issue(cfg.issue_file):
        print("Active issue unset")
    else:
        print("Active issue is not set")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Program entry point: parse arguments, load config, run the command."""
    args = parse_args(argv)
    cfg = read_config(args.config)
    ctx = build_context(cfg, args)
    try:
        return args.handler(args, cfg, ctx)
    except JiraWorklogError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
