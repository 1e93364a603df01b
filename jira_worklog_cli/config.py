"""Configuration loading (config.ini with environment fallbacks)."""

import configparser
import os
import sys
from dataclasses import dataclass, field
from typing import Dict

from .models import WorkTargets

DEFAULT_CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".config", "jira-worklog")
DEFAULT_CONFIG_PATH = os.path.join(DEFAULT_CONFIG_DIR, "config.ini")


@dataclass(frozen=True)
class Config:
    base_url: str
    username: str
    token: str
    config_folder: str
    verify_ssl: bool = True
    ca_bundle: str = ""
    http_proxy: str = ""
    https_proxy: str = ""
    country_code: str = ""
    targets: WorkTargets = field(default_factory=WorkTargets)
    aliases: Dict[str, str] = field(default_factory=dict)

    @property
    def issue_file(self) -> str:
        """Path of the active issue pointer."""
        return os.path.join(self.config_folder, "issue")


def _number(sec: configparser.SectionProxy, key: str, default: float, cast=float):
    raw = sec.get(key, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        print(f"ERROR: [worklog] {key} must be a number, got {raw!r}.", file=sys.stderr)
        sys.exit(2)


def read_config(path: str) -> Config:
    """Read and validate configuration from an INI file.

    The [jira] credentials fall back to JIRA_BASE_URL, JIRA_USERNAME and
    JIRA_API_TOKEN. Exits with status 2 when the file lacks a [jira]
    section or credentials are incomplete.

    Args:
        path: Path to config.ini.

    Returns:
        Config: Immutable configuration passed to every command.
    """
    cp = configparser.ConfigParser()
    cp.read(path, encoding="utf-8")
    if "jira" not in cp:
        print(f"ERROR: {path} must contain a [jira] section.", file=sys.stderr)
        sys.exit(2)
    sec = cp["jira"]
    base_url = (sec.get("base_url", "").strip() or os.environ.get("JIRA_BASE_URL", "")).strip().rstrip("/")
    username = (sec.get("username", "").strip() or os.environ.get("JIRA_USERNAME", "")).strip()
    token    = (sec.get("api_token", "").strip() or os.environ.get("JIRA_API_TOKEN", "")).strip()
    if not (base_url and username and token):
        print("ERROR: base_url, username and api_token are required (config.ini or environment).", file=sys.stderr)
        sys.exit(2)

    wl = cp["worklog"] if "worklog" in cp else cp[cp.default_section]
    defaults = WorkTargets()
    targets = WorkTargets(
        working_days_per_week=_number(wl, "number_of_working_days", defaults.working_days_per_week, int),
        working_hours_per_day=_number(wl, "working_hours_per_day", defaults.working_hours_per_day),
        working_hours_per_week=_number(wl, "working_hours_per_week", defaults.working_hours_per_week),
    )

    aliases = {}
    if "aliases" in cp:
        aliases = {k.lower(): v.strip().upper() for k, v in cp["aliases"].items() if v.strip()}

    return Config(
        base_url=base_url,
        username=username,
        token=token,
        config_folder=os.path.dirname(os.path.abspath(path)),
        verify_ssl=sec.get("verify_ssl", "true").strip().lower() in ("1", "true", "yes", "on"),
        ca_bundle=sec.get("ca_bundle", "").strip(),
        http_proxy=sec.get("http_proxy", "").strip(),
        https_proxy=sec.get("https_proxy", "").strip(),
        country_code=wl.get("country_code", "").strip().upper(),
        targets=targets,
        aliases=aliases,
    )
