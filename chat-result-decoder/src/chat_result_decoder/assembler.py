from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from .decoding import (
    DEFAULT_PARSING_OPTIONS,
    FIELD_ALIASES,
    DecodeContext,
    ParsingOptions,
    as_int,
    as_object,
    as_string,
    decode_float,
    decode_int,
    decode_list,
    decode_object,
    decode_open_enum,
    decode_optional_list,
    decode_optional_object,
    decode_optional_string,
    decode_string,
    decode_tolerant,
    load_document,
)
from .message_params import decode_tool_call
from .models import (
    Annotation,
    Audio,
    ChatCompletionResult,
    Choice,
    ChoiceLogprobs,
    Message,
    PromptTokensDetails,
    TokenLogprob,
    TopLogprob,
    URLCitation,
    Usage,
)
from .tiering import ServiceTier

log = structlog.get_logger()


def _url_citation(value: Any, ctx: DecodeContext) -> URLCitation:
    data = as_object(value, ctx)
    return URLCitation(
        start_index=decode_int(data, "start_index", ctx),
        end_index=decode_int(data, "end_index", ctx),
        title=decode_string(data, "title", ctx),
        url=decode_string(data, "url", ctx),
    )


def _annotation(value: Any, ctx: DecodeContext) -> Annotation:
    data = as_object(value, ctx)
    return Annotation(
        type=decode_string(data, "type", ctx, default="url_citation"),
        url_citation=decode_object(data, "url_citation", ctx, _url_citation),
    )


def _audio(value: Any, ctx: DecodeContext) -> Audio:
    data = as_object(value, ctx)
    return Audio(
        id=decode_string(data, "id", ctx),
        data=decode_string(data, "data", ctx),
        expires_at=decode_int(data, "expires_at", ctx),
        transcript=decode_string(data, "transcript", ctx),
    )


def _reasoning_candidates(data: Mapping[str, Any], ctx: DecodeContext) -> dict[str, str | None]:
    return {key: decode_optional_string(data, key, ctx) for key in FIELD_ALIASES["reasoning"]}


def _message(value: Any, ctx: DecodeContext) -> Message:
    data = as_object(value, ctx)
    reasoning = _reasoning_candidates(data, ctx)
    return Message(
        role=decode_string(data, "role", ctx),
        content=decode_optional_string(data, "content", ctx),
        refusal=decode_optional_string(data, "refusal", ctx),
        annotations=decode_optional_list(data, "annotations", ctx, _annotation),
        audio=decode_optional_object(data, "audio", ctx, _audio),
        tool_calls=decode_optional_list(data, "tool_calls", ctx, decode_tool_call),
        raw_reasoning=reasoning["reasoning"],
        reasoning_content=reasoning["reasoning_content"],
    )


def _token_bytes(data: Mapping[str, Any], ctx: DecodeContext) -> tuple[int, ...] | None:
    return decode_optional_list(data, "bytes", ctx, as_int)


def _top_logprob(value: Any, ctx: DecodeContext) -> TopLogprob:
    data = as_object(value, ctx)
    return TopLogprob(
        token=decode_string(data, "token", ctx),
        bytes=_token_bytes(data, ctx),
        logprob=decode_float(data, "logprob", ctx),
    )


def _token_logprob(value: Any, ctx: DecodeContext) -> TokenLogprob:
    data = as_object(value, ctx)
    return TokenLogprob(
        token=decode_string(data, "token", ctx),
        bytes=_token_bytes(data, ctx),
        logprob=decode_float(data, "logprob", ctx),
        top_logprobs=decode_list(data, "top_logprobs", ctx, _top_logprob),
    )


def _logprobs(value: Any, ctx: DecodeContext) -> ChoiceLogprobs:
    data = as_object(value, ctx)
    return ChoiceLogprobs(
        content=decode_optional_list(data, "content", ctx, _token_logprob),
        refusal=decode_optional_list(data, "refusal", ctx, _token_logprob),
    )


def _choice(value: Any, ctx: DecodeContext) -> Choice:
    data = as_object(value, ctx)
    return Choice(
        index=decode_int(data, "index", ctx, default=0),
        logprobs=decode_optional_object(data, "logprobs", ctx, _logprobs),
        message=decode_object(data, "message", ctx, _message),
        finish_reason=decode_string(data, "finish_reason", ctx),
    )


def _prompt_tokens_details(value: Any, ctx: DecodeContext) -> PromptTokensDetails:
    data = as_object(value, ctx)
    return PromptTokensDetails(
        audio_tokens=decode_int(data, "audio_tokens", ctx, default=0),
        cached_tokens=decode_int(data, "cached_tokens", ctx, default=0),
    )


def _usage(value: Any, ctx: DecodeContext) -> Usage:
    data = as_object(value, ctx)
    return Usage(
        completion_tokens=decode_int(data, "completion_tokens", ctx),
        prompt_tokens=decode_int(data, "prompt_tokens", ctx),
        total_tokens=decode_int(data, "total_tokens", ctx),
        prompt_tokens_details=decode_optional_object(data, "prompt_tokens_details", ctx, _prompt_tokens_details),
    )


def chat_completion_result_from_document(doc: Mapping[str, Any], ctx: DecodeContext) -> ChatCompletionResult:
    return ChatCompletionResult(
        id=decode_string(doc, "id", ctx),
        object=decode_string(doc, "object", ctx),
        created=decode_int(doc, "created", ctx, default=0),
        model=decode_string(doc, "model", ctx),
        choices=decode_list(doc, "choices", ctx, _choice),
        service_tier=decode_open_enum(doc, "service_tier", ctx, ServiceTier),
        system_fingerprint=decode_optional_string(doc, "system_fingerprint", ctx),
        # Tolerant: see decoding.TOLERANT_SUBTREES.
        usage=decode_tolerant(doc, "usage", ctx, _usage),
        citations=decode_optional_list(doc, "citations", ctx, as_string),
    )


def decode_chat_completion_result(
    raw: bytes | bytearray | str | Mapping[str, Any],
    options: ParsingOptions | None = None,
) -> ChatCompletionResult:
    """
    Decode one chat-completion response body into a ChatCompletionResult.

    `raw` is the body as bytes/str, or an already parsed JSON object. Either a
    complete result is returned or a DecodeError is raised carrying the path of
    the field that failed; unknown extra fields are ignored.
    """
    ctx = DecodeContext(options=DEFAULT_PARSING_OPTIONS if options is None else options)
    result = chat_completion_result_from_document(load_document(raw), ctx)
    log.debug("chat_result_decoded", id=result.id, model=result.model, choices=len(result.choices))
    return result
