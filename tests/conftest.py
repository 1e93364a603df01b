import os
import sys
# Ensure project root is importable for tests, regardless of runner CWD
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import types
from typing import Any, Dict, List, Optional

import pytest
import requests

from jira_worklog_cli.jira_api import JiraContext


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Optional[Any] = None,
        text: str = "",
        headers: Optional[Dict[str, str]] = None,
        raise_for_status_exc: Optional[Exception] = None,
        reason: str = "",
        content: bytes = b"",
    ):
        self.status_code = status_code
        self._json_data = json_data
        self.text = text
        self.headers = headers or {}
        self._raise_exc = raise_for_status_exc
        self.reason = reason
        self.content = content

    def json(self):
        if isinstance(self._json_data, Exception):
            raise self._json_data
        return self._json_data

    def raise_for_status(self):
        if self._raise_exc is not None:
            raise self._raise_exc
        if 400 <= self.status_code:
            err = requests.HTTPError(f"HTTP {self.status_code}")
            # attach minimal response info for code under test
            err.response = types.SimpleNamespace(status_code=self.status_code, text=self.text)
            raise err


class FakeSession:
    """Records every request and answers from a queue of responses (or exceptions)."""

    def __init__(self, *responses):
        self.responses: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, "timeout": timeout, **kwargs})
        if not self.responses:
            return FakeResponse(status_code=200, json_data={})
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


def make_http_error(status: int) -> requests.HTTPError:
    err = requests.HTTPError(f"HTTP {status}")
    err.response = types.SimpleNamespace(status_code=status, text=f"{status} error")
    return err


def make_ctx(*responses, verbose: bool = False) -> JiraContext:
    return JiraContext(base_url="https://jira.example.com", session=FakeSession(*responses),
                       timeout=5, verbose=verbose)


@pytest.fixture
def tmp_config_file(tmp_path):
    """Create a minimal valid config.ini and return its path."""
    p = tmp_path / "config.ini"
    p.write_text(
        "[jira]\n"
        "base_url = https://jira.example.com/\n"
        "username = jdoe\n"
        "api_token = token123\n"
        "verify_ssl = true\n",
        encoding="utf-8",
    )
    return p


# Expose utilities for tests
__all__ = ["FakeResponse", "FakeSession", "make_http_error", "make_ctx"]
