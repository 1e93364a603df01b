"""
Thin REST glue for the JIRA endpoints the worklog commands need.

Every call is blocking and made once: a transport failure or a non-2xx status
raises RemoteError immediately.
"""

import sys
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from .errors import RemoteError
from .models import RawTimesheetEntry, parse_timesheet_response

REST_ISSUE_PATH = "/rest/api/2/issue/"
TIMESHEET_PATH = "/rest/timesheet-gadget/1.0/raw-timesheet.json"


def vprint(verbose: bool, *args, **kwargs):
    """Print arguments only when verbose is True."""
    if verbose:
        print(*args, **kwargs)


def make_session(username: str, token: str, verify: Optional[bool]=True, ca_bundle: Optional[str]="",
                 http_proxy: str="", https_proxy: str="") -> requests.Session:
    """Session shared by the timesheet gadget and the issue/worklog REST calls.

    Both endpoints authenticate with HTTP basic auth and exchange JSON. A
    ca_bundle path takes precedence over the verify flag.

    Args:
        username: Jira user name (the timesheet is read for this user).
        token: Jira password or personal access token.
        verify: Verify the server certificate; False only with --insecure or verify_ssl=false.
        ca_bundle: CA bundle for servers behind a private certificate authority.
        http_proxy: Proxy for http:// base URLs.
        https_proxy: Proxy for https:// base URLs.

    Returns:
        requests.Session: Session to wrap in a JiraContext.
    """
    ses = requests.Session()
    ses.auth = (username, token)
    ses.headers.update({"Accept": "application/json", "Content-Type": "application/json"})
    ses.proxies.update({scheme: url for scheme, url in (("http", http_proxy), ("https", https_proxy)) if url})
    ses.verify = ca_bundle or verify
    return ses


@dataclass(frozen=True)
class JiraContext:
    """Everything a remote call needs, passed explicitly to each of them."""

    base_url: str
    session: Any
    timeout: int = 30
    verbose: bool = False


def describe_status(response: Any) -> str:
    """Human friendly text for an error response."""
    status = getattr(response, "status_code", "N/A")
    reason = getattr(response, "reason", "") or ""
    text = f"{status} {reason}".strip()
    if status == 401:
        return text + ". Please check your credentials"
    if status == 403:
        return text + ". Please check that your account is not blocked by captcha"
    return text


def _request(ctx: JiraContext, method: str, path: str, **kwargs) -> Any:
    url = f"{ctx.base_url}{path}"
    vprint(ctx.verbose, f"{method} {url}", file=sys.stderr)
    try:
        r = ctx.session.request(method, url, timeout=ctx.timeout, **kwargs)
    except requests.exceptions.SSLError as e:
        raise RemoteError(f"SSL error talking to {ctx.base_url}: {e}. "
                          "Try configuring ca_bundle, verify_ssl=false or --insecure.") from e
    except requests.RequestException as e:
        raise RemoteError(f"Request to {url} failed: {e}") from e
    if not 200 <= r.status_code < 300:
        raise RemoteError(describe_status(r), r.status_code)
    return r


def _json(response: Any) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise RemoteError(f"Failed to parse json response: {e}") from e


def get_timesheet(ctx: JiraContext, from_date: date, to_date: date,
                  target_user: Optional[str] = None) -> List[RawTimesheetEntry]:
    """Fetch the timesheet gadget view for a date range (inclusive).

    Args:
        ctx: Jira connection context.
        from_date: First day of the range.
        to_date: Last day of the range.
        target_user: Another user's name, to read their timesheet instead of yours.

    Returns:
        List[RawTimesheetEntry]: One item per issue with logged entries.
    """
    params = {"startDate": from_date.isoformat(), "endDate": to_date.isoformat()}
    if target_user:
        params["targetUser"] = target_user
    r = _request(ctx, "GET", TIMESHEET_PATH, params=params)
    return parse_timesheet_response(_json(r))


def create_worklog(ctx: JiraContext, issue_key: str, payload: Dict[str, Any]) -> None:
    _request(ctx, "POST", f"{REST_ISSUE_PATH}{issue_key.upper()}/worklog", json=payload)


def update_worklog(ctx: JiraContext, issue_key: str, worklog_id: int, payload: Dict[str, Any]) -> None:
    body = dict(payload, id=str(worklog_id))
    _request(ctx, "PUT", f"{REST_ISSUE_PATH}{issue_key.upper()}/worklog/{worklog_id}/", json=body)


def get_issue_summary(ctx: JiraContext, issue_key: str) -> str:
    """Return the summary of an issue, raising RemoteError if it does not exist."""
    r = _request(ctx, "GET", f"{REST_ISSUE_PATH}{issue_key.upper()}", params={"fields": "summary"})
    data = _json(r)
    if not isinstance(data, dict) or not isinstance(data.get("fields"), dict):
        raise RemoteError(f"Unexpected issue response for {issue_key}")
    return str(data["fields"].get("summary") or "")
