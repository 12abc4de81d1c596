# hajimi: Error taxonomy for the chat session. Everything except InputClosed is recoverable at the command boundary.

import pathlib
from typing import Optional, Union


class HajimiError(Exception):
    """Base class for all Hajimi errors."""


class InputClosed(HajimiError):
    """The interactive input source is exhausted (Ctrl-D). Treated as a graceful quit."""


class UsageError(HajimiError):
    """A command was invoked without a required argument."""


class HistoryParseError(HajimiError):
    """Text could not be parsed into a valid turn sequence."""


class LoadError(HajimiError):
    """A history file could not be loaded (missing, unreadable or malformed)."""

    def __init__(self, path: Union[str, pathlib.Path], reason: str) -> None:
        super().__init__(f"could not load {path}: {reason}")
        self.path = str(path)
        self.reason = reason


class SaveError(HajimiError):
    """A history file could not be written."""

    def __init__(self, path: Union[str, pathlib.Path], reason: str) -> None:
        super().__init__(f"could not save {path}: {reason}")
        self.path = str(path)
        self.reason = reason


class EditorError(HajimiError):
    """The external editor could not be launched, failed, or its output could not be read."""


class StreamError(HajimiError):
    """The remote exchange failed; any partial reply already received is kept."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
