from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any, TypeAlias, cast

import structlog

ProcessorReturn: TypeAlias = Mapping[str, Any] | str | bytes | bytearray | tuple[Any, ...]
Processor: TypeAlias = Callable[[Any, str, MutableMapping[str, Any]], ProcessorReturn]

# Keys the renderer needs intact.
_KEEP_KEYS = {"event", "timestamp", "level", "path"}


def _truncate_str(value: str, *, limit: int) -> str:
    if len(value) <= limit:
        return value
    return f"{value[:limit]}...[+{len(value) - limit} chars]"


def _truncate_obj(obj: Any, *, limit: int) -> Any:
    if isinstance(obj, str):
        return _truncate_str(obj, limit=limit)
    if isinstance(obj, list):
        return [_truncate_obj(v, limit=limit) for v in obj]
    if isinstance(obj, tuple):
        return tuple(_truncate_obj(v, limit=limit) for v in obj)
    if isinstance(obj, dict):
        return {k: _truncate_obj(v, limit=limit) for k, v in obj.items()}
    return obj


def _make_truncation_processor(*, limit: int) -> Processor:
    def _processor(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> ProcessorReturn:
        return {
            k: v if k in _KEEP_KEYS else _truncate_obj(v, limit=limit)
            for k, v in event_dict.items()
        }

    return _processor


def configure_logging(level: str = "INFO", fmt: str = "json", *, preview_chars: int | None = 80) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))

    processors: list[Processor] = [
        cast(Processor, structlog.contextvars.merge_contextvars),
        cast(Processor, structlog.processors.add_log_level),
        cast(Processor, structlog.processors.TimeStamper(fmt="iso")),
    ]

    # Raw payload values (base64 audio, long completions) end up in decode events.
    if preview_chars:
        processors.append(_make_truncation_processor(limit=preview_chars))

    if fmt == "json":
        processors.append(cast(Processor, structlog.processors.JSONRenderer()))
    else:
        processors.append(cast(Processor, structlog.dev.ConsoleRenderer()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=True,
    )
