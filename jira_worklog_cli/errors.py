"""Error types raised by the worklog pipeline."""

from typing import Optional


class JiraWorklogError(Exception):
    """Base class for every error this package raises on purpose."""


class ParseError(JiraWorklogError):
    """Malformed user input such as a duration, date or time."""


class InvalidDurationFormat(ParseError):
    def __init__(self, text: str):
        super().__init__(f"invalid duration format: {text!r}")
        self.text = text


class ReconciliationError(JiraWorklogError):
    """A worklog selected for update/create could not be saved.

    ``updated`` and ``created`` count the writes that succeeded before the
    batch was aborted.
    """

    def __init__(self, message: str, updated: int = 0, created: int = 0):
        super().__init__(message)
        self.updated = updated
        self.created = created


class RemoteError(JiraWorklogError):
    """Non-2xx response, transport failure or unexpected response shape."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CacheError(JiraWorklogError):
    """Public holiday cache could not be fetched, written or parsed."""
