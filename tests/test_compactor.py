from hajimi.compactor import compact
from hajimi.models import OpaqueFragment, Role, TextFragment, Turn

from conftest import text_turn


def opaque_turn(role: str, raw: dict) -> Turn:
    return Turn(role=Role(role), parts=[OpaqueFragment(raw=raw)])


def test_merges_adjacent_same_role_text_turns():
    turns = [text_turn("user", "a"), text_turn("user", "b")]
    assert compact(turns) == [text_turn("user", "ab")]


def test_merges_streamed_chunks_into_one_turn():
    turns = [text_turn("user", "hi")] + [text_turn("model", c) for c in ("Hel", "lo", ", ", "there")]
    assert compact(turns) == [text_turn("user", "hi"), text_turn("model", "Hello, there")]


def test_does_not_merge_across_roles():
    turns = [text_turn("user", "a"), text_turn("model", "b")]
    assert compact(turns) == turns


def test_multi_fragment_turns_are_never_merged():
    multi = text_turn("user", "a", "b")
    turns = [text_turn("user", "x"), multi, text_turn("user", "y")]
    assert compact(turns) == turns


def test_opaque_fragments_pass_through_and_block_merging():
    blob = {"inlineData": {"mimeType": "image/png", "data": "AAAA"}}
    turns = [text_turn("user", "look"), opaque_turn("user", blob), opaque_turn("user", blob), text_turn("user", "!")]
    out = compact(turns)
    assert out == turns
    assert out[1].parts[0].raw == blob


def test_turn_without_parts_is_kept():
    empty = Turn(role=Role.model, parts=[])
    turns = [text_turn("model", "a"), empty, text_turn("model", "b")]
    assert compact(turns) == turns


def test_empty_input():
    assert compact([]) == []


def test_compact_is_idempotent():
    samples = [
        [],
        [text_turn("user", "a")],
        [text_turn("user", "a"), text_turn("user", "b"), text_turn("model", "c"), text_turn("model", "d")],
        [text_turn("model", "a"), text_turn("model", "b", "c"), text_turn("model", "d"), text_turn("model", "e")],
        [opaque_turn("user", {"functionCall": {"name": "f"}}), text_turn("user", "a"), text_turn("user", "b")],
        [text_turn("user", ""), text_turn("user", ""), text_turn("model", "x")],
    ]
    for turns in samples:
        once = compact(turns)
        assert compact(once) == once


def test_compact_does_not_mutate_input():
    first = text_turn("user", "a")
    turns = [first, text_turn("user", "b")]
    compact(turns)
    assert first.parts[0].text == "a"
    assert len(turns) == 2


def test_output_does_not_alias_input():
    turns = [text_turn("model", "a")]
    out = compact(turns)
    out[0].append_text("b")
    assert turns[0].text == "a"


def test_text_fragment_with_extra_fields_is_not_merged():
    thought = Turn.model_validate({"role": "model", "parts": [{"text": "hmm", "thought": True}]})
    turns = [text_turn("model", "a"), thought, text_turn("model", "b")]
    out = compact(turns)
    assert len(out) == 3
    assert isinstance(out[1].parts[0], OpaqueFragment)
    assert isinstance(out[0].parts[0], TextFragment)
