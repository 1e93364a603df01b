"""Open text in the user's $EDITOR and read it back."""

import os
import shutil
import subprocess
import tempfile

DEFAULT_EDITOR = "vim"


def open_file_in_editor(filename: str) -> None:
    """Run $EDITOR (or vim) on filename and wait for it to exit."""
    editor = os.environ.get("EDITOR") or DEFAULT_EDITOR
    executable = shutil.which(editor)
    if executable is None:
        raise FileNotFoundError(f"Editor {editor!r} not found in PATH")
    subprocess.run([executable, filename], check=True)


def capture_input_from_editor(text: str, prefix: str = "edit-") -> bytes:
    """Let the user edit text and return the saved content.

    Returns b"" when the file was not saved, so callers can tell an untouched
    buffer from an edited one.
    """
    fd, filename = tempfile.mkstemp(prefix=prefix, suffix=".txt")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        before = os.stat(filename).st_mtime_ns
        open_file_in_editor(filename)
        if os.stat(filename).st_mtime_ns == before:
            return b""
        with open(filename, "rb") as f:
            return f.read()
    finally:
        os.remove(filename)
