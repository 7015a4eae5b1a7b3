from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

from .decoding import ParsingOptions


class DecoderConfig(BaseModel):
    # Leniency
    parsing_options: ParsingOptions = Field(
        default_factory=lambda: ParsingOptions.parse(
            os.getenv("CHAT_DECODER_PARSING_OPTIONS", "coerce_primitives")
        )
    )

    # Observability
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = Field(default_factory=lambda: os.getenv("LOG_FORMAT", "json"))
    log_value_preview_chars: int = Field(
        default_factory=lambda: int(os.getenv("LOG_VALUE_PREVIEW_CHARS", "80"))
    )
    enable_metrics: bool = Field(
        default_factory=lambda: os.getenv("ENABLE_METRICS", "false").lower() == "true"
    )
    metrics_bind: str = Field(default_factory=lambda: os.getenv("METRICS_BIND", "127.0.0.1"))
    metrics_port: int = Field(default_factory=lambda: int(os.getenv("METRICS_PORT", "9109")))

    @field_validator("parsing_options", mode="before")
    @classmethod
    def _parse_options(cls, v: object) -> object:
        if isinstance(v, str):
            return ParsingOptions.parse(v)
        return v

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'.")
        return v

    @field_validator("log_value_preview_chars")
    @classmethod
    def _validate_preview_chars(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("log_value_preview_chars must be > 0.")
        return v
