"""
Date helpers: ISO week boundaries, date validation and the public holiday cache.

All "current date" questions are answered in the local timezone, the same
clock the worklog start times are rendered in.
"""

import json
import os
import re
import sys
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

import requests
from dateutil import tz
from dateutil.relativedelta import MO, relativedelta

from .errors import CacheError, ParseError
from .models import PublicHoliday

HOLIDAY_SERVICE_URL = "https://date.nager.at/api/v3/publicholidays"

DATE_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def today() -> date:
    return datetime.now(tz=tz.tzlocal()).date()


def is_today(d: date) -> bool:
    """True when d is the current local calendar date."""
    now = today()
    return (d.year, d.month, d.day) == (now.year, now.month, now.day)


def parse_date(s: str) -> date:
    """Parse a YYYY-MM-DD string.

    Raises:
        ParseError: when s is not a valid calendar date on that format.
    """
    s = (s or "").strip()
    if not DATE_RE.match(s):
        raise ParseError(f"Invalid date {s!r}. Date must be on the format yyyy-mm-dd")
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError as e:
        raise ParseError(f"Invalid date {s!r}: {e}") from e


def validate_time(s: str) -> str:
    """Return s when it is a 24h HH:MM time, raise ParseError otherwise."""
    if not TIME_RE.match((s or "").strip()):
        raise ParseError(f"Invalid time {s!r}. Time must be on the format hh:mm")
    return s.strip()


def week_start_end(year: int, iso_week: int) -> Tuple[date, date]:
    """Return the Monday and Sunday of the given ISO-8601 week.

    The calculation anchors on 1 July of the year, which always lies well
    inside the ISO year, moves back to that week's Monday and then shifts by
    the difference in week numbers.
    """
    anchor = date(year, 7, 1) + relativedelta(weekday=MO(-1))
    anchor_week = anchor.isocalendar()[1]
    start = anchor + timedelta(weeks=iso_week - anchor_week)
    return start, start + timedelta(days=6)


def week_of(d: date) -> Tuple[date, date]:
    """Monday/Sunday bounds of the ISO week d falls in."""
    iso_year, iso_week, _ = d.isocalendar()
    return week_start_end(iso_year, iso_week)


def holiday_cache_path(config_folder: str, year: int, country_code: str) -> str:
    return os.path.join(config_folder, f"public-holidays-{year}-{country_code.upper()}.json")


def fetch_public_holidays(year: int, country_code: str, timeout: int = 30,
                          session: Optional[requests.Session] = None) -> bytes:
    """Download the raw holiday list for year/country from the holiday service.

    Raises:
        CacheError: on transport failures and non-2xx responses.
    """
    url = f"{HOLIDAY_SERVICE_URL}/{year}/{country_code.upper()}"
    getter = session.get if session is not None else requests.get
    try:
        r = getter(url, headers={"Accept": "application/json"}, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise CacheError(f"Failed to fetch public holidays from {url} - {e}") from e
    return r.content


def _parse_holidays(data: bytes) -> List[PublicHoliday]:
    try:
        items = json.loads(data)
    except ValueError as e:
        raise CacheError(f"Failed to parse public holidays - {e}") from e
    if not isinstance(items, list):
        raise CacheError("Failed to parse public holidays - expected a JSON list")

    holidays: List[PublicHoliday] = []
    for item in items:
        try:
            holidays.append(PublicHoliday(
                date=datetime.strptime(item["date"], "%Y-%m-%d").date(),
                name=str(item.get("name") or item.get("localName") or ""),
                country_code=str(item.get("countryCode") or ""),
            ))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            print(f"Skipping malformed public holiday entry {item!r} - {e}", file=sys.stderr)
    return holidays


def load_public_holidays(cache_path: str, year: int, country_code: str, timeout: int = 30,
                         session: Optional[requests.Session] = None) -> List[PublicHoliday]:
    """Return the public holidays for year/country, using a file cache.

    When cache_path does not exist the list is fetched and written there
    verbatim. The result is always parsed from the cache file. Every failure
    is printed and degrades to an empty (or partial) list.
    """
    if not os.path.exists(cache_path):
        try:
            data = fetch_public_holidays(year, country_code, timeout=timeout, session=session)
            os.makedirs(os.path.dirname(cache_path) or ".", exist_ok=True)
            with open(cache_path, "wb") as f:
                f.write(data)
        except CacheError as e:
            print(str(e), file=sys.stderr)
        except OSError as e:
            print(f"Failed to write public holidays to cache - {e}", file=sys.stderr)

    try:
        with open(cache_path, "rb") as f:
            data = f.read()
    except OSError as e:
        print(f"Failed to load public holidays - {e}", file=sys.stderr)
        return []

    try:
        return _parse_holidays(data)
    except CacheError as e:
        print(str(e), file=sys.stderr)
        return []


def holiday_dates(holidays: Iterable[PublicHoliday]) -> List[date]:
    return [h.date for h in holidays]
