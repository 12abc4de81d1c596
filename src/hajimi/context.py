# hajimi: Console I/O Context shared by the session, editor bridge and client. Carries the working root and loaded settings so helpers can honour logging options.

import pathlib
import sys
from typing import Any, Dict, Optional


class Context:
    """
    Thin wrapper around console I/O and logging used by Hajimi.

    This abstraction exists to decouple direct stdout/stderr usage from the
    session logic, and lets tests substitute a recording implementation.
    """

    def __init__(self, root: Optional[pathlib.Path] = None, settings: Optional[Dict[str, Any]] = None) -> None:
        """Initialize a console-based context rooted at the working directory."""
        self.root = pathlib.Path(root) if root is not None else pathlib.Path(".").resolve()
        self.settings: Dict[str, Any] = settings or {}

    def send_to_user(self, message: str) -> None:
        """Send a user-facing message to stdout."""
        print(message)

    # hajimi: Streamed reply fragments are written without a newline and flushed immediately.
    def stream_to_user(self, fragment: str) -> None:
        """Write a partial message to stdout without a trailing newline."""
        sys.stdout.write(fragment)
        sys.stdout.flush()

    def log(self, message: str) -> None:
        """Emit a lightweight log line to stdout, prefixed for readability."""
        print(f"[LOG] {message}")

    def error_message(self, message: str) -> None:
        """Print an error message to stderr."""
        print(f"Error: {message}", file=sys.stderr)
