"""The locally persisted "active issue" pointer."""

import os
import re
from typing import Optional

ISSUE_KEY_RE = re.compile(r"^[A-Z]{2,9}-\d{1,4}$")


def valid_issue_key(key: str) -> bool:
    return bool(ISSUE_KEY_RE.match(key or ""))


def get_active_issue(path: str) -> Optional[str]:
    """Return the stored key, or None when no issue is active."""
    if not os.path.exists(path):
        return None
    with open(path, encoding="utf-8") as f:
        key = f.read().strip()
    return key or None


def set_active_issue(path: str, key: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(key)
    os.chmod(path, 0o600)


def unset_active_issue(path: str) -> bool:
    """Remove the pointer; False when there was nothing to remove."""
    if not os.path.exists(path):
        return False
    os.remove(path)
    return True
