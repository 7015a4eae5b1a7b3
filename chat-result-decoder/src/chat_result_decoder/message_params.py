"""
Role-tagged chat message parameters and their polymorphic decoder.

Decoding reads the discriminant (`role`, or `type` for content parts) on its
own first, then decodes the whole payload as the selected variant. The variant
sets are closed: an unrecognized tag raises UnknownDiscriminantError instead of
falling back to some other variant.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Literal, TypeVar, Union

from pydantic import Field

from .decoding import (
    DEFAULT_PARSING_OPTIONS,
    DecodeContext,
    ParsingOptions,
    as_list,
    as_object,
    decode_object,
    decode_one_of,
    decode_optional_list,
    decode_optional_object,
    decode_optional_string,
    decode_string,
    load_document,
    strict_string,
)
from .errors import TypeMismatchError, UnknownDiscriminantError
from .models import FunctionCall, ToolCall, WireModel

E = TypeVar("E", bound=Enum)


class Role(str, Enum):
    SYSTEM = "system"
    DEVELOPER = "developer"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ContentPartType(str, Enum):
    TEXT = "text"
    IMAGE_URL = "image_url"
    INPUT_AUDIO = "input_audio"
    FILE = "file"


# -- content parts ------------------------------------------------------------


class TextContentPart(WireModel):
    type: Literal["text"] = "text"
    text: str


class ImageURL(WireModel):
    url: str
    detail: str | None = None


class ImageContentPart(WireModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageURL


class InputAudio(WireModel):
    data: str
    format: str


class AudioContentPart(WireModel):
    type: Literal["input_audio"] = "input_audio"
    input_audio: InputAudio


class FileReference(WireModel):
    file_data: str | None = None
    file_id: str | None = None
    filename: str | None = None


class FileContentPart(WireModel):
    type: Literal["file"] = "file"
    file: FileReference


UserContentPart = Annotated[
    Union[TextContentPart, ImageContentPart, AudioContentPart, FileContentPart],
    Field(discriminator="type"),
]


# -- message variants ---------------------------------------------------------


class SystemMessageParam(WireModel):
    role: Literal["system"] = "system"
    content: str | tuple[TextContentPart, ...]
    name: str | None = None


class DeveloperMessageParam(WireModel):
    role: Literal["developer"] = "developer"
    content: str | tuple[TextContentPart, ...]
    name: str | None = None


class UserMessageParam(WireModel):
    role: Literal["user"] = "user"
    content: str | tuple[UserContentPart, ...]
    name: str | None = None


class AssistantAudioReference(WireModel):
    id: str


class AssistantMessageParam(WireModel):
    role: Literal["assistant"] = "assistant"
    content: str | tuple[TextContentPart, ...] | None = None
    name: str | None = None
    refusal: str | None = None
    audio: AssistantAudioReference | None = None
    tool_calls: tuple[ToolCall, ...] | None = None


class ToolMessageParam(WireModel):
    role: Literal["tool"] = "tool"
    content: str | tuple[TextContentPart, ...]
    tool_call_id: str


MessageParam = Union[
    SystemMessageParam,
    DeveloperMessageParam,
    UserMessageParam,
    AssistantMessageParam,
    ToolMessageParam,
]


# -- discriminant dispatch ----------------------------------------------------


def read_discriminant(payload: Mapping[str, Any], key: str, enum_cls: type[E], ctx: DecodeContext) -> E:
    """Decode only the tag field; never coerced or filled."""
    field_ctx = ctx.child(key)
    value = strict_string(payload.get(key), field_ctx)
    try:
        return enum_cls(value)
    except ValueError:
        raise UnknownDiscriminantError(key, value, [m.value for m in enum_cls], path=field_ctx.path) from None


def _text_fields(payload: Mapping[str, Any], ctx: DecodeContext) -> TextContentPart:
    return TextContentPart(text=decode_string(payload, "text", ctx))


def _text_part(value: Any, ctx: DecodeContext) -> TextContentPart:
    payload = as_object(value, ctx)
    part_type = read_discriminant(payload, "type", ContentPartType, ctx)
    if part_type is not ContentPartType.TEXT:
        raise TypeMismatchError("text content part", f"{part_type.value} content part", path=ctx.child("type").path)
    return _text_fields(payload, ctx)


def _image_url(value: Any, ctx: DecodeContext) -> ImageURL:
    payload = as_object(value, ctx)
    return ImageURL(url=decode_string(payload, "url", ctx), detail=decode_optional_string(payload, "detail", ctx))


def _input_audio(value: Any, ctx: DecodeContext) -> InputAudio:
    payload = as_object(value, ctx)
    return InputAudio(data=decode_string(payload, "data", ctx), format=decode_string(payload, "format", ctx))


def _file_reference(value: Any, ctx: DecodeContext) -> FileReference:
    payload = as_object(value, ctx)
    return FileReference(
        file_data=decode_optional_string(payload, "file_data", ctx),
        file_id=decode_optional_string(payload, "file_id", ctx),
        filename=decode_optional_string(payload, "filename", ctx),
    )


def _image_part(payload: Mapping[str, Any], ctx: DecodeContext) -> ImageContentPart:
    return ImageContentPart(image_url=decode_object(payload, "image_url", ctx, _image_url))


def _audio_part(payload: Mapping[str, Any], ctx: DecodeContext) -> AudioContentPart:
    return AudioContentPart(input_audio=decode_object(payload, "input_audio", ctx, _input_audio))


def _file_part(payload: Mapping[str, Any], ctx: DecodeContext) -> FileContentPart:
    return FileContentPart(file=decode_object(payload, "file", ctx, _file_reference))


CONTENT_PART_VARIANTS: Mapping[ContentPartType, Callable[[Mapping[str, Any], DecodeContext], WireModel]] = (
    MappingProxyType(
        {
            ContentPartType.TEXT: _text_fields,
            ContentPartType.IMAGE_URL: _image_part,
            ContentPartType.INPUT_AUDIO: _audio_part,
            ContentPartType.FILE: _file_part,
        }
    )
)


def decode_content_part(value: Any, ctx: DecodeContext) -> WireModel:
    payload = as_object(value, ctx)
    part_type = read_discriminant(payload, "type", ContentPartType, ctx)
    return CONTENT_PART_VARIANTS[part_type](payload, ctx)


# Multi-shape content: plain string first, then a list of parts.
# Reordering changes which variant ambiguous input decodes to.
CONTENT_SHAPE_ORDER = ("string", "parts")


def _content(value: Any, ctx: DecodeContext, part: Callable[[Any, DecodeContext], Any]) -> str | tuple[Any, ...]:
    def parts_shape(v: Any, c: DecodeContext) -> tuple[Any, ...]:
        return as_list(v, c, part)

    shapes = {"string": strict_string, "parts": parts_shape}
    return decode_one_of(value, [(name, shapes[name]) for name in CONTENT_SHAPE_ORDER], ctx).value


def decode_user_content(value: Any, ctx: DecodeContext) -> str | tuple[Any, ...]:
    return _content(value, ctx, decode_content_part)


def decode_text_content(value: Any, ctx: DecodeContext) -> str | tuple[TextContentPart, ...]:
    return _content(value, ctx, _text_part)


def _function_call(value: Any, ctx: DecodeContext) -> FunctionCall:
    payload = as_object(value, ctx)
    return FunctionCall(name=decode_string(payload, "name", ctx), arguments=decode_string(payload, "arguments", ctx))


def decode_tool_call(value: Any, ctx: DecodeContext) -> ToolCall:
    payload = as_object(value, ctx)
    return ToolCall(
        id=decode_string(payload, "id", ctx),
        type=decode_string(payload, "type", ctx, default="function"),
        function=decode_object(payload, "function", ctx, _function_call),
    )


def _assistant_audio(value: Any, ctx: DecodeContext) -> AssistantAudioReference:
    return AssistantAudioReference(id=decode_string(as_object(value, ctx), "id", ctx))


def _system(payload: Mapping[str, Any], ctx: DecodeContext) -> SystemMessageParam:
    return SystemMessageParam(
        content=decode_object(payload, "content", ctx, decode_text_content),
        name=decode_optional_string(payload, "name", ctx),
    )


def _developer(payload: Mapping[str, Any], ctx: DecodeContext) -> DeveloperMessageParam:
    return DeveloperMessageParam(
        content=decode_object(payload, "content", ctx, decode_text_content),
        name=decode_optional_string(payload, "name", ctx),
    )


def _user(payload: Mapping[str, Any], ctx: DecodeContext) -> UserMessageParam:
    return UserMessageParam(
        content=decode_object(payload, "content", ctx, decode_user_content),
        name=decode_optional_string(payload, "name", ctx),
    )


def _assistant(payload: Mapping[str, Any], ctx: DecodeContext) -> AssistantMessageParam:
    content = payload.get("content")
    return AssistantMessageParam(
        content=None if content is None else decode_text_content(content, ctx.child("content")),
        name=decode_optional_string(payload, "name", ctx),
        refusal=decode_optional_string(payload, "refusal", ctx),
        audio=decode_optional_object(payload, "audio", ctx, _assistant_audio),
        tool_calls=decode_optional_list(payload, "tool_calls", ctx, decode_tool_call),
    )


def _tool(payload: Mapping[str, Any], ctx: DecodeContext) -> ToolMessageParam:
    return ToolMessageParam(
        content=decode_object(payload, "content", ctx, decode_text_content),
        tool_call_id=decode_string(payload, "tool_call_id", ctx),
    )


MESSAGE_PARAM_VARIANTS: Mapping[Role, Callable[[Mapping[str, Any], DecodeContext], MessageParam]] = MappingProxyType(
    {
        Role.SYSTEM: _system,
        Role.DEVELOPER: _developer,
        Role.USER: _user,
        Role.ASSISTANT: _assistant,
        Role.TOOL: _tool,
    }
)


def message_param_from_value(value: Any, ctx: DecodeContext) -> MessageParam:
    payload = as_object(value, ctx)
    role = read_discriminant(payload, "role", Role, ctx)
    return MESSAGE_PARAM_VARIANTS[role](payload, ctx)


def decode_message_param(
    raw: bytes | bytearray | str | Mapping[str, Any],
    options: ParsingOptions | None = None,
) -> MessageParam:
    ctx = DecodeContext(options=DEFAULT_PARSING_OPTIONS if options is None else options)
    return message_param_from_value(load_document(raw), ctx)
