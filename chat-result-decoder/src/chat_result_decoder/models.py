from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .decoding import first_present
from .tiering import FinishReason, ServiceTier


class WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Wire-form JSON object: wire field names, absent optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FunctionCall(WireModel):
    name: str
    # JSON-encoded, exactly as the model produced it; may be invalid JSON.
    arguments: str


class ToolCall(WireModel):
    id: str
    type: str = "function"
    function: FunctionCall


class URLCitation(WireModel):
    start_index: int
    end_index: int
    title: str
    url: str


class Annotation(WireModel):
    type: str = "url_citation"
    url_citation: URLCitation


class Audio(WireModel):
    id: str
    data: str
    expires_at: int
    transcript: str


class Message(WireModel):
    role: str
    content: str | None = None
    refusal: str | None = None
    annotations: tuple[Annotation, ...] | None = None
    audio: Audio | None = None
    tool_calls: tuple[ToolCall, ...] | None = None

    raw_reasoning: str | None = Field(default=None, alias="reasoning")
    reasoning_content: str | None = None

    @property
    def reasoning(self) -> str | None:
        """Model reasoning from whichever provider-specific field carried it (see decoding.FIELD_ALIASES)."""
        return first_present(self.raw_reasoning, self.reasoning_content)


class TopLogprob(WireModel):
    token: str
    bytes: tuple[int, ...] | None = None
    logprob: float


class TokenLogprob(WireModel):
    token: str
    bytes: tuple[int, ...] | None = None
    logprob: float
    top_logprobs: tuple[TopLogprob, ...] = ()


class ChoiceLogprobs(WireModel):
    content: tuple[TokenLogprob, ...] | None = None
    refusal: tuple[TokenLogprob, ...] | None = None


class Choice(WireModel):
    index: int
    message: Message
    finish_reason: str
    logprobs: ChoiceLogprobs | None = None

    @property
    def known_finish_reason(self) -> FinishReason | None:
        try:
            return FinishReason(self.finish_reason)
        except ValueError:
            return None


class PromptTokensDetails(WireModel):
    audio_tokens: int = 0
    cached_tokens: int = 0


class Usage(WireModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    prompt_tokens_details: PromptTokensDetails | None = None


class ChatCompletionResult(WireModel):
    id: str
    object: str
    created: int
    model: str
    choices: tuple[Choice, ...]
    service_tier: ServiceTier | str | None = None
    # Documented as required, but some backends omit it.
    system_fingerprint: str | None = None
    usage: Usage | None = None
    # Perplexity
    citations: tuple[str, ...] | None = None
