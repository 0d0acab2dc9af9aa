from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatMessage(BaseModel):
    """One turn of a conversation."""
    role: Literal["system", "user", "assistant"]
    content: str = ""


class ChatIn(BaseModel):
    """Inbound body of POST /api/v1/chat.

    Every field is optional: missing values flow through as empty strings
    and unknown difficulties fall back to the generic prompt instruction.
    """
    model_config = ConfigDict(populate_by_name=True)

    native_language: str = Field(default="", alias="nativeLanguage")
    target_language: str = Field(default="", alias="targetLanguage")
    difficulty: str = ""
    message: str = ""

    @field_validator("native_language", "target_language", "difficulty", "message", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        # null means unset; numbers and other values are interpolated as text
        if v is None:
            return ""
        if isinstance(v, str):
            return v
        return str(v)


class ChatOut(BaseModel):
    data: Dict[str, Any]


class ErrorOut(BaseModel):
    error: str


@dataclass(frozen=True)
class TeacherRequestParams:
    native_language: str
    target_language: str
    difficulty: str
    messages: List[ChatMessage] = field(default_factory=list)
    trace_id: Optional[str] = None
