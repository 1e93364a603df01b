"""Conversion between "1h 30m" style durations and seconds."""

import re

from .errors import InvalidDurationFormat

# Hours may carry a fraction (0.5h); minutes are one or two digits.
DURATION_RE = re.compile(r"(?:(?P<hours>\d*\.?\d+)h)?\s?(?:(?P<minutes>\d{1,2})m)?")


def parse_duration(text: str) -> int:
    """Convert a duration string into whole seconds.

    Accepts ``1h 30m``, ``1h``, ``0.5h`` and ``45m``. Hours must come before
    minutes when both are given.

    Raises:
        InvalidDurationFormat: when neither hours nor minutes can be read.
    """
    m = DURATION_RE.fullmatch((text or "").strip())
    if m is None or (m.group("hours") is None and m.group("minutes") is None):
        raise InvalidDurationFormat(text)
    seconds = 0.0
    if m.group("hours") is not None:
        seconds += float(m.group("hours")) * 3600
    if m.group("minutes") is not None:
        seconds += int(m.group("minutes")) * 60
    return int(seconds)


def format_duration(seconds: int, drop_minutes: bool = False) -> str:
    """Render seconds as ``"<H>h <MM>m"``, or ``"<H>h"`` with drop_minutes."""
    hours, rest = divmod(int(seconds), 3600)
    if drop_minutes:
        return f"{hours}h"
    return f"{hours}h {rest // 60:02d}m"
