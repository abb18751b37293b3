"""
Pydantic models for the OpenAI-compatible chat completion wire format.

A Message carries its content either as a plain string (``content``) or as a
list of multipart blocks (``multi_content``). Both travel in the same JSON
field, ``content``, and never coexist on one message.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_serializer, model_validator


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ImageUrl(BaseModel):
    url: str


class ContentPart(BaseModel):
    """One block of multipart content: text or an image reference."""
    type: str
    text: Optional[str] = None
    image_url: Optional[ImageUrl] = None

    @classmethod
    def text_part(cls, text: str) -> "ContentPart":
        return cls(type="text", text=text)

    @classmethod
    def image_part(cls, url: str) -> "ContentPart":
        return cls(type="image_url", image_url=ImageUrl(url=url))


class FunctionCall(BaseModel):
    name: str
    arguments: str = ""  # JSON document, parsed by the tool loop


class ToolCall(BaseModel):
    id: str
    type: str = "function"
    function: FunctionCall


class FunctionDefinition(BaseModel):
    name: str
    description: str
    parameters: dict[str, Any]


class ToolDefinition(BaseModel):
    """Tool schema as sent in the ``tools`` array of a request."""
    type: str
    function: FunctionDefinition


class Message(BaseModel):
    role: Role
    content: Optional[str] = None
    multi_content: Optional[list[ContentPart]] = None
    tool_calls: Optional[list[ToolCall]] = None
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _split_content(cls, data: Any) -> Any:
        # Wire form: a list under "content" is multipart content.
        if isinstance(data, dict) and isinstance(data.get("content"), list):
            if data.get("multi_content") is not None:
                raise ValueError("content and multi_content are mutually exclusive")
            data = dict(data)
            data["multi_content"] = data.pop("content")
        return data

    @model_validator(mode="after")
    def _check_exclusive(self) -> "Message":
        if self.content is not None and self.multi_content is not None:
            raise ValueError("content and multi_content are mutually exclusive")
        return self

    @model_serializer(mode="wrap")
    def _serialize(self, handler) -> dict[str, Any]:
        data = handler(self)
        multi = data.pop("multi_content", None)
        if multi is not None:
            data["content"] = multi
        return data

    @property
    def text(self) -> str:
        """String content, or the concatenated text blocks of multipart content."""
        if self.content is not None:
            return self.content
        if self.multi_content:
            return "".join(p.text or "" for p in self.multi_content if p.type == "text")
        return ""

    # ── Constructors ──

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str,
                  tool_calls: Optional[list[ToolCall]] = None) -> "Message":
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tool_calls)

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: str) -> "Message":
        return cls(role=Role.TOOL, content=content,
                   tool_call_id=tool_call_id, name=name)

    @classmethod
    def user_with_image(cls, text: str, image_b64: str,
                        mime: str = "image/jpeg") -> "Message":
        """Two-block user message: the text, then the image as a data URL."""
        return cls(role=Role.USER, multi_content=[
            ContentPart.text_part(text),
            ContentPart.image_part(f"data:{mime};base64,{image_b64}"),
        ])


class CompletionRequest(BaseModel):
    model: str
    messages: list[Message]
    tools: Optional[list[ToolDefinition]] = None
    temperature: float
    top_p: Optional[float] = None
    stream: Optional[bool] = None

    def to_payload(self) -> dict[str, Any]:
        """JSON body for POST /chat/completions; unset fields are omitted."""
        return self.model_dump(mode="json", exclude_none=True)


# ── Responses ──

class CompletionChoice(BaseModel):
    index: int = 0
    message: Message


class CompletionResponse(BaseModel):
    id: str = ""
    created: int = 0
    model: str = ""
    choices: list[CompletionChoice]


class StreamDelta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class StreamChoice(BaseModel):
    index: int = 0
    delta: StreamDelta = Field(default_factory=StreamDelta)


class CompletionStreamResponse(BaseModel):
    id: str = ""
    created: int = 0
    model: str = ""
    choices: list[StreamChoice]
