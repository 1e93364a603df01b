"""
jira_worklog_cli package

Register, edit and review your JIRA worklog from the terminal.
- Provides a package-level main() suitable for console_scripts entrypoints.
"""


def main() -> int:
    """Package entrypoint. Delegates to core.main()."""
    from .core import main as _main
    return _main()
