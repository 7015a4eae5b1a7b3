from .assembler import decode_chat_completion_result
from .config import DecoderConfig
from .decoder import ChatResultDecoder
from .decoding import ParsingOptions
from .errors import (
    DecodeError,
    MalformedDocumentError,
    MissingFieldError,
    NoShapeMatchedError,
    TypeMismatchError,
    UnknownDiscriminantError,
)
from .message_params import (
    AssistantMessageParam,
    DeveloperMessageParam,
    MessageParam,
    Role,
    SystemMessageParam,
    ToolMessageParam,
    UserMessageParam,
    decode_message_param,
)
from .models import (
    Annotation,
    Audio,
    ChatCompletionResult,
    Choice,
    ChoiceLogprobs,
    Message,
    ToolCall,
    URLCitation,
    Usage,
)
from .tiering import FinishReason, ServiceTier

__all__ = [
    "Annotation",
    "AssistantMessageParam",
    "Audio",
    "ChatCompletionResult",
    "ChatResultDecoder",
    "Choice",
    "ChoiceLogprobs",
    "DecodeError",
    "DecoderConfig",
    "DeveloperMessageParam",
    "FinishReason",
    "MalformedDocumentError",
    "Message",
    "MessageParam",
    "MissingFieldError",
    "NoShapeMatchedError",
    "ParsingOptions",
    "Role",
    "ServiceTier",
    "SystemMessageParam",
    "ToolCall",
    "ToolMessageParam",
    "TypeMismatchError",
    "URLCitation",
    "UnknownDiscriminantError",
    "Usage",
    "UserMessageParam",
    "decode_chat_completion_result",
    "decode_message_param",
]
