import json

import pytest

from chat_result_decoder import ParsingOptions
from chat_result_decoder.errors import (
    MissingFieldError,
    NoShapeMatchedError,
    TypeMismatchError,
    UnknownDiscriminantError,
)
from chat_result_decoder.message_params import (
    CONTENT_SHAPE_ORDER,
    MESSAGE_PARAM_VARIANTS,
    AssistantMessageParam,
    DeveloperMessageParam,
    FileContentPart,
    ImageContentPart,
    Role,
    SystemMessageParam,
    TextContentPart,
    ToolMessageParam,
    UserMessageParam,
    decode_message_param,
)


def test_variant_table_covers_every_role():
    assert set(MESSAGE_PARAM_VARIANTS) == set(Role)


@pytest.mark.parametrize(
    ("payload", "expected_type"),
    [
        ({"role": "system", "content": "be brief"}, SystemMessageParam),
        ({"role": "developer", "content": "be brief"}, DeveloperMessageParam),
        ({"role": "user", "content": "hi"}, UserMessageParam),
        ({"role": "assistant", "content": "hello"}, AssistantMessageParam),
        ({"role": "tool", "content": "42", "tool_call_id": "call_1"}, ToolMessageParam),
    ],
)
def test_dispatches_on_role(payload, expected_type):
    assert type(decode_message_param(payload)) is expected_type


def test_tool_message_decodes_full_payload():
    param = decode_message_param('{"role": "tool", "content": "42", "tool_call_id": "call_1"}')
    assert isinstance(param, ToolMessageParam)
    assert param.content == "42"
    assert param.tool_call_id == "call_1"


def test_unknown_role_is_a_hard_failure():
    with pytest.raises(UnknownDiscriminantError) as ei:
        decode_message_param({"role": "carrier-pigeon", "content": "coo"}, ParsingOptions.RELAXED)
    err = ei.value
    assert err.value == "carrier-pigeon"
    assert err.field == "role"
    assert err.known == ("system", "developer", "user", "assistant", "tool")
    assert err.path == ("role",)


def test_role_is_never_coerced_or_filled():
    with pytest.raises(MissingFieldError):
        decode_message_param({"content": "hi"}, ParsingOptions.RELAXED)
    with pytest.raises(TypeMismatchError):
        decode_message_param({"role": 5, "content": "hi"}, ParsingOptions.RELAXED)


def test_variant_schema_applies_after_dispatch():
    with pytest.raises(MissingFieldError) as ei:
        decode_message_param({"role": "tool", "content": "42"})
    assert ei.value.path == ("tool_call_id",)


def test_user_content_string_shape():
    param = decode_message_param({"role": "user", "content": "hi"})
    assert param.content == "hi"


def test_user_content_parts_shape():
    param = decode_message_param(
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "what is this?"},
                {"type": "image_url", "image_url": {"url": "https://example.com/cat.png", "detail": "low"}},
                {"type": "file", "file": {"file_id": "file-1"}},
            ],
        }
    )
    assert isinstance(param.content, tuple)
    text, image, file = param.content
    assert text == TextContentPart(text="what is this?")
    assert isinstance(image, ImageContentPart)
    assert image.image_url.url == "https://example.com/cat.png"
    assert image.image_url.detail == "low"
    assert isinstance(file, FileContentPart)
    assert file.file.file_id == "file-1"
    assert file.file.file_data is None


def test_empty_parts_list_is_a_valid_parts_shape():
    assert decode_message_param({"role": "user", "content": []}).content == ()


@pytest.mark.parametrize("content", [42, {"text": "hi"}, True])
def test_user_content_of_other_type_exhausts_both_shapes(content):
    with pytest.raises(NoShapeMatchedError) as ei:
        decode_message_param({"role": "user", "content": content}, ParsingOptions.RELAXED)
    assert ei.value.shapes == CONTENT_SHAPE_ORDER == ("string", "parts")
    assert ei.value.path == ("content",)


def test_unknown_part_type_is_reported_inside_shape_failure():
    with pytest.raises(NoShapeMatchedError) as ei:
        decode_message_param({"role": "user", "content": [{"type": "hologram"}]})
    shape, err = ei.value.attempts[1]
    assert shape == "parts"
    assert isinstance(err, UnknownDiscriminantError)
    assert err.path == ("content", 0, "type")


def test_system_content_accepts_only_text_parts():
    param = decode_message_param({"role": "system", "content": [{"type": "text", "text": "a"}]})
    assert param.content == (TextContentPart(text="a"),)
    with pytest.raises(NoShapeMatchedError):
        decode_message_param(
            {"role": "system", "content": [{"type": "image_url", "image_url": {"url": "https://x"}}]}
        )


def test_missing_content_is_reported_as_missing():
    with pytest.raises(MissingFieldError) as ei:
        decode_message_param({"role": "user"})
    assert ei.value.path == ("content",)


def test_assistant_message_with_tool_calls_and_no_content():
    param = decode_message_param(
        {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {"id": "call_1", "type": "function", "function": {"name": "lookup", "arguments": '{"q": "x"}'}}
            ],
            "audio": {"id": "audio_1"},
        }
    )
    assert isinstance(param, AssistantMessageParam)
    assert param.content is None
    assert param.tool_calls[0].function.name == "lookup"
    assert json.loads(param.tool_calls[0].function.arguments) == {"q": "x"}
    assert param.audio.id == "audio_1"


def test_tool_call_type_defaults_to_function():
    param = decode_message_param(
        {"role": "assistant", "tool_calls": [{"id": "c", "function": {"name": "f", "arguments": "{}"}}]}
    )
    assert param.tool_calls[0].type == "function"


@pytest.mark.parametrize(
    "payload",
    [
        {"role": "system", "content": "be brief", "name": "ops"},
        {"role": "developer", "content": [{"type": "text", "text": "rules"}]},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "listen"},
                {"type": "input_audio", "input_audio": {"data": "UklGRg==", "format": "wav"}},
            ],
        },
        {
            "role": "assistant",
            "refusal": "no",
            "tool_calls": [{"id": "c", "type": "function", "function": {"name": "f", "arguments": "{}"}}],
        },
        {"role": "tool", "content": "ok", "tool_call_id": "c"},
    ],
)
def test_wire_form_round_trips(payload):
    param = decode_message_param(payload)
    assert param.to_wire() == payload
    assert decode_message_param(param.to_wire()) == param
