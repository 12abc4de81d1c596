# hajimi: In-memory conversation log and the Session record that pairs it with the active model id.

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict

from .models import Role, Turn


class TurnSequence:
    """
    Ordered, append-only log of conversation turns.

    Turns are only ever added at the tail. Clearing or replacing the history is
    done by building a new TurnSequence, never by editing this one.
    """

    def __init__(self, turns: Optional[Iterable[Turn]] = None) -> None:
        self._turns: List[Turn] = list(turns or [])

    def append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        return turn

    def last(self) -> Optional[Turn]:
        return self._turns[-1] if self._turns else None

    def to_list(self) -> List[Turn]:
        """Shallow copy of the turns, in conversation order."""
        return list(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TurnSequence):
            return self._turns == other._turns
        if isinstance(other, list):
            return self._turns == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"TurnSequence({self._turns!r})"


class Session(BaseModel):
    """
    Active model id plus conversation history.

    Frozen: switching models, clearing, loading or editing history all build a
    new Session. Appending turns during a chat exchange is the only in-place change.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, protected_namespaces=())

    model_id: str
    history: TurnSequence

    @classmethod
    def new(cls, model_id: str, turns: Optional[Iterable[Turn]] = None) -> "Session":
        return cls(model_id=model_id, history=TurnSequence(turns))


def last_exchange(turns: List[Turn]) -> List[Turn]:
    """
    Return the turns worth echoing after a load: the final user turn followed by
    the final model turn when the history ends with that pair, otherwise just the
    last turn (or nothing for an empty history).
    """
    if len(turns) >= 2 and turns[-2].role == Role.user and turns[-1].role == Role.model:
        return turns[-2:]
    return turns[-1:]
