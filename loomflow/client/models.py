"""Wire models for the chat completion API."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..constants import DEFAULT_TEMPERATURE
from ..usage import Usage

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    role: Role
    content: str


class CompletionRequest(BaseModel):
    """Parameters of one chat completion call."""

    model: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    top_p: Optional[float] = Field(default=None, ge=0, le=1)
    frequency_penalty: Optional[float] = Field(default=None, ge=-2, le=2)
    presence_penalty: Optional[float] = Field(default=None, ge=-2, le=2)
    stream: bool = False

    def to_body(self, model: str, stream: bool) -> Dict[str, Any]:
        """Render the JSON body, omitting unset sampling parameters."""
        body = self.model_dump(exclude_none=True)
        body["model"] = model
        body["stream"] = stream
        return body


class Choice(BaseModel):
    index: int
    message: Message
    finish_reason: Optional[str] = None


class CompletionResponse(BaseModel):
    id: str
    model: str
    created: int
    choices: List[Choice]
    usage: Usage

    @property
    def content(self) -> str:
        """Text of the first choice."""
        return self.choices[0].message.content if self.choices else ""


class Delta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class ChunkChoice(BaseModel):
    index: int
    delta: Delta
    finish_reason: Optional[str] = None


class CompletionChunk(BaseModel):
    """One frame of a streamed completion."""

    id: str
    model: str
    created: int
    choices: List[ChunkChoice]

    @property
    def text(self) -> Optional[str]:
        return self.choices[0].delta.content if self.choices else None
