# hajimi: Centralized Pydantic v2 models for conversation turns. The wire shape mirrors the Generative Language "Content" object ({"role", "parts"}) so saved histories can be replayed verbatim.

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer


class CustomBaseModel(BaseModel):
    """Pydantic base model configured to forbid unknown fields for strict validation."""
    model_config = ConfigDict(extra="forbid")


class Role(str, Enum):
    user = "user"
    model = "model"


class TextFragment(CustomBaseModel):
    """A plain text part: {"text": "..."}."""
    text: str = Field(..., description="Text content of the part")


class OpaqueFragment(BaseModel):
    """
    Any part shape other than plain text (inline data, function calls, thoughts, ...).

    The raw mapping is kept untouched and serialized back verbatim, so unknown
    part kinds survive compaction, save and load without losing fields.
    """
    raw: Dict[str, Any] = Field(default_factory=dict)

    @model_serializer
    def _dump_raw(self) -> Dict[str, Any]:
        return dict(self.raw)


Fragment = Union[TextFragment, OpaqueFragment]


def fragment_from_wire(part: Any) -> Fragment:
    """
    Convert one wire part into a Fragment.

    Only a mapping whose sole key is "text" with a string value is a TextFragment;
    every other mapping is preserved as an OpaqueFragment. Non-mappings are rejected.
    """
    if isinstance(part, (TextFragment, OpaqueFragment)):
        return part
    if not isinstance(part, dict):
        raise ValueError(f"part must be an object, got {type(part).__name__}")
    if set(part.keys()) == {"text"} and isinstance(part["text"], str):
        return TextFragment(text=part["text"])
    return OpaqueFragment(raw=dict(part))


class Turn(CustomBaseModel):
    """One role-tagged entry of the conversation."""

    role: Role = Field(..., description="Who produced the turn")
    parts: List[Fragment] = Field(default_factory=list, description="Ordered content fragments")

    # hajimi: Route raw part mappings through fragment_from_wire so unknown shapes become OpaqueFragment instead of failing union validation.
    @field_validator("parts", mode="before")
    @classmethod
    def _coerce_parts(cls, v: Any) -> List[Fragment]:
        if not isinstance(v, list):
            raise ValueError("parts must be a list")
        return [fragment_from_wire(p) for p in v]

    @classmethod
    def of_text(cls, role: Role, text: str) -> "Turn":
        return cls(role=role, parts=[TextFragment(text=text)])

    @property
    def text(self) -> str:
        """Concatenated text of all text fragments (opaque fragments are skipped)."""
        return "".join(p.text for p in self.parts if isinstance(p, TextFragment))

    def append_text(self, chunk: str) -> None:
        """Grow the turn in place: extend a trailing text fragment or start a new one."""
        if self.parts and isinstance(self.parts[-1], TextFragment):
            self.parts[-1].text += chunk
        else:
            self.parts.append(TextFragment(text=chunk))

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class ModelInfo(BaseModel):
    """One entry returned by the remote model listing."""
    name: str
    display_name: str = ""
    description: str = ""
    methods: List[str] = Field(default_factory=list)

    @property
    def short_name(self) -> str:
        """Model id without the "models/" resource prefix."""
        return self.name.split("/", 1)[1] if self.name.startswith("models/") else self.name

    @classmethod
    def from_api(cls, obj: Dict[str, Any]) -> "ModelInfo":
        return cls(
            name=str(obj.get("name") or ""),
            display_name=str(obj.get("displayName") or ""),
            description=str(obj.get("description") or ""),
            methods=[str(m) for m in (obj.get("supportedGenerationMethods") or [])],
        )


def describe_turn(turn: Optional[Turn]) -> str:
    """Render a turn as '<role>:\\n<text>' for console display."""
    if turn is None:
        return ""
    body = turn.text
    opaque = sum(1 for p in turn.parts if isinstance(p, OpaqueFragment))
    if opaque:
        body = f"{body}\n[{opaque} non-text part(s)]" if body else f"[{opaque} non-text part(s)]"
    return f"{turn.role.value}:\n{body}"
