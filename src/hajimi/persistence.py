# hajimi: Save/load of conversation histories. Histories are always compacted before serialization; parsing is strict so a malformed file never replaces a live session.

import json
import pathlib
from typing import Any, Iterable, List, Union

from pydantic import TypeAdapter, ValidationError

from .compactor import compact
from .errors import HistoryParseError, LoadError, SaveError
from .models import Turn

_TURNS = TypeAdapter(List[Turn])


def dumps_history(turns: Iterable[Turn]) -> str:
    """Serialize the compacted turns as pretty-printed JSON with sorted keys."""
    wire = [t.to_wire() for t in compact(turns)]
    return json.dumps(wire, indent=2, ensure_ascii=False, sort_keys=True) + "\n"


def parse_history(text: str) -> List[Turn]:
    """
    Parse serialized history text into turns.

    Raises:
        HistoryParseError: If the text is not JSON, is not a list, or any entry
            fails validation (unknown/missing role, non-list parts, extra keys).
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise HistoryParseError(f"invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e
    if not isinstance(data, list):
        raise HistoryParseError(f"expected a JSON array of turns, got {type(data).__name__}")
    try:
        return _TURNS.validate_python(data)
    except ValidationError as e:
        raise HistoryParseError(f"invalid turn structure: {e}") from e


# hajimi: Atomic write via temp file replace, mirroring the metadata writer; the temp file is removed if the write fails.
def save_history(path: Union[str, pathlib.Path], turns: Iterable[Turn]) -> pathlib.Path:
    """
    Compact and write turns to path atomically.

    Raises:
        SaveError: On any filesystem failure. The turns themselves are never modified.
    """
    p = pathlib.Path(path).expanduser()
    text = dumps_history(turns)
    tmp = p.with_name(p.name + ".tmp")
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w", encoding="utf-8") as f:
            f.write(text)
        tmp.replace(p)
    except OSError as e:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise SaveError(p, e.strerror or str(e)) from e
    return p


def load_history(path: Union[str, pathlib.Path]) -> List[Turn]:
    """
    Read and strictly parse a history file. An empty JSON array is a valid, empty history.

    Raises:
        LoadError: If the file is missing, unreadable, not UTF-8, or malformed.
    """
    p = pathlib.Path(path).expanduser()
    if not p.exists():
        raise LoadError(p, "file not found")
    if not p.is_file():
        raise LoadError(p, "not a regular file")
    try:
        text = p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise LoadError(p, f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise LoadError(p, e.strerror or str(e)) from e
    try:
        return parse_history(text)
    except HistoryParseError as e:
        raise LoadError(p, str(e)) from e
