# hajimi: History compaction. Collapses runs of same-role single-text turns (e.g. streamed chunks recorded one per turn) into paragraph-sized turns before saving, editing or switching models.

from typing import Iterable, List

from .models import TextFragment, Turn


def _mergeable(last: Turn, incoming: Turn) -> bool:
    """True when both turns share a role and each holds exactly one text fragment."""
    if last.role != incoming.role:
        return False
    if len(last.parts) != 1 or len(incoming.parts) != 1:
        return False
    a, b = last.parts[0], incoming.parts[0]
    return type(a) is type(b) and isinstance(a, TextFragment)


def compact(turns: Iterable[Turn]) -> List[Turn]:
    """
    Merge adjacent same-role, single-text-fragment turns.

    Pure and order-preserving: input turns are never modified (the output holds
    copies), non-text and multi-fragment turns pass through unchanged, and
    compact(compact(x)) == compact(x).
    """
    out: List[Turn] = []
    for turn in turns:
        if out and _mergeable(out[-1], turn):
            last = out[-1]
            merged = last.parts[0].text + turn.parts[0].text
            out[-1] = Turn(role=last.role, parts=[TextFragment(text=merged)])
        else:
            out.append(turn.model_copy(deep=True))
    return out
