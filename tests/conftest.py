"""
Shared fixtures: a Context that records output instead of printing, a scripted
line reader, and a fake remote service that replays canned fragments.
"""

from typing import Iterator, List, Optional

import pytest

from hajimi.context import Context
from hajimi.errors import StreamError
from hajimi.models import ModelInfo, Role, TextFragment, Turn


class RecordingContext(Context):
    def __init__(self, root=None, settings=None):
        super().__init__(root, settings=settings)
        self.out: List[str] = []
        self.streamed: List[str] = []
        self.logs: List[str] = []
        self.errors: List[str] = []

    def send_to_user(self, message: str) -> None:
        self.out.append(message)

    def stream_to_user(self, fragment: str) -> None:
        self.streamed.append(fragment)

    def log(self, message: str) -> None:
        self.logs.append(message)

    def error_message(self, message: str) -> None:
        self.errors.append(message)


def scripted(lines: List[str]):
    """Return a read_line callable that serves lines, then raises EOFError."""
    pending = list(lines)
    prompts: List[str] = []

    def _read(prompt: str) -> str:
        prompts.append(prompt)
        if not pending:
            raise EOFError()
        return pending.pop(0)

    _read.prompts = prompts
    return _read


class FakeService:
    """Replays scripted replies; a reply may end with an exception to simulate a broken stream."""

    def __init__(self, replies: Optional[List[list]] = None, models: Optional[List[ModelInfo]] = None):
        self.replies = list(replies or [])
        self.models = models or []
        self.calls: List[tuple] = []

    def stream_reply(self, ctx, model_id: str, turns: List[Turn]) -> Iterator[str]:
        self.calls.append((model_id, [t.model_copy(deep=True) for t in turns]))
        script = self.replies.pop(0) if self.replies else []
        for item in script:
            if isinstance(item, BaseException):
                raise item
            yield item

    def list_models(self, ctx) -> List[ModelInfo]:
        if isinstance(self.models, BaseException):
            raise self.models
        return list(self.models)


def text_turn(role: str, *texts: str) -> Turn:
    return Turn(role=Role(role), parts=[TextFragment(text=t) for t in texts])


@pytest.fixture
def ctx(tmp_path):
    return RecordingContext(tmp_path)


@pytest.fixture
def broken_stream():
    return StreamError("connection reset")
