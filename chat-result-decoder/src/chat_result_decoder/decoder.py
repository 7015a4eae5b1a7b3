from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import structlog

from .assembler import decode_chat_completion_result
from .config import DecoderConfig
from .decoding import ParsingOptions
from .errors import DecodeError
from .logging import configure_logging
from .message_params import MessageParam, decode_message_param
from .metrics import errors_total, latency_seconds, maybe_start_metrics, results_total
from .models import ChatCompletionResult

log = structlog.get_logger()

T = TypeVar("T")

RawDocument = bytes | bytearray | str | Mapping[str, Any]


class ChatResultDecoder:
    """
    Configured entry point for decoding chat-completion payloads.

    Holds one option set for every call; each call is timed and counted.
    Stateless beyond the config, so one instance can be shared across threads.
    """

    def __init__(self, cfg: DecoderConfig | None = None, *, configure_observability: bool = False):
        self.cfg = cfg or DecoderConfig()
        if configure_observability:
            configure_logging(
                level=self.cfg.log_level,
                fmt=self.cfg.log_format,
                preview_chars=self.cfg.log_value_preview_chars,
            )
            maybe_start_metrics(enable=self.cfg.enable_metrics, bind=self.cfg.metrics_bind, port=self.cfg.metrics_port)

    @property
    def options(self) -> ParsingOptions:
        return self.cfg.parsing_options

    def decode(self, raw: RawDocument) -> ChatCompletionResult:
        return self._run("chat_completion", decode_chat_completion_result, raw)

    def decode_message_param(self, raw: RawDocument) -> MessageParam:
        return self._run("message_param", decode_message_param, raw)

    def _run(self, kind: str, fn: Callable[[RawDocument, ParsingOptions], T], raw: RawDocument) -> T:
        try:
            with latency_seconds.labels(kind=kind).time():
                out = fn(raw, self.options)
        except DecodeError as e:
            results_total.labels(kind=kind, status="error").inc()
            errors_total.labels(type=type(e).__name__).inc()
            log.warning(
                "chat_result_decode_failed",
                kind=kind,
                path=e.dotted_path,
                error_type=type(e).__name__,
                error=e.reason,
            )
            raise
        results_total.labels(kind=kind, status="success").inc()
        return out
