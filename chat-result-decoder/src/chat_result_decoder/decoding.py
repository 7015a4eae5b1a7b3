"""
Lenient decoding primitives shared by the result and message-parameter decoders.

Everything here is a pure function of (raw value, DecodeContext). The context
carries the caller's ParsingOptions and the field path used in error messages;
it is extended with `ctx.child(key)` on the way down and never mutated.

Container-level helpers (`decode_string(container, key, ctx)`) take the parent
context and the key. Value-level helpers (`as_string(value, ctx)`) take a
context that already points at the value.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum, Flag
from typing import Any, Generic, TypeVar

import structlog
from pydantic import ValidationError

from .errors import (
    DecodeError,
    FieldPath,
    MalformedDocumentError,
    MissingFieldError,
    NoShapeMatchedError,
    TypeMismatchError,
    format_path,
)
from .metrics import leniency_resolutions_total, tolerated_subtrees_total

log = structlog.get_logger()

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


class ParsingOptions(Flag):
    NONE = 0
    FILL_REQUIRED_FIELD_IF_KEY_NOT_FOUND = 1
    FILL_REQUIRED_FIELD_IF_VALUE_SHAPE_MISMATCH = 2
    COERCE_PRIMITIVES = 4
    RELAXED = 7

    @classmethod
    def parse(cls, value: str | None) -> "ParsingOptions":
        """Parse a comma separated list of option names, e.g. "coerce_primitives,fill_required_field_if_key_not_found"."""
        out = cls.NONE
        for name in (v.strip() for v in (value or "").split(",")):
            if not name:
                continue
            try:
                out |= cls[name.upper()]
            except KeyError:
                raise ValueError(f"Unknown parsing option: {name!r}") from None
        return out


DEFAULT_PARSING_OPTIONS = ParsingOptions.COERCE_PRIMITIVES


@dataclass(frozen=True)
class DecodeContext:
    options: ParsingOptions = DEFAULT_PARSING_OPTIONS
    path: FieldPath = ()

    def child(self, key: str | int) -> "DecodeContext":
        return DecodeContext(options=self.options, path=self.path + (key,))

    def allows(self, option: ParsingOptions) -> bool:
        return bool(self.options & option)


ValueDecoder = Callable[[Any, DecodeContext], T]


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING: Any = _Missing()


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _note_leniency(ctx: DecodeContext, kind: str, value: Any) -> None:
    leniency_resolutions_total.labels(kind=kind).inc()
    raw = value if value is None or isinstance(value, (str, int, float, bool)) else json_type_name(value)
    log.debug("decode_leniency_applied", path=format_path(ctx.path), kind=kind, raw=raw)


def load_document(raw: bytes | bytearray | str | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(raw, (bytes, bytearray, str)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MalformedDocumentError(f"not valid JSON ({e})") from e
        except RecursionError as e:
            raise MalformedDocumentError("document is nested too deeply") from e
    if not isinstance(raw, Mapping):
        raise MalformedDocumentError(f"top-level value must be an object, got {json_type_name(raw)}")
    return raw


# -- primitives ---------------------------------------------------------------


# `native` and `coerce` return the converted value, or MISSING when the raw value does not convert.
@dataclass(frozen=True)
class _Primitive(Generic[T]):
    expected: str
    zero: T
    native: Callable[[Any], Any]
    coerce: Callable[[Any], Any]


def _native_str(value: Any) -> Any:
    return value if isinstance(value, str) else MISSING


def _coerce_str(value: Any) -> Any:
    if isinstance(value, bool):
        return MISSING
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else repr(value)
    return MISSING


def _native_int(value: Any) -> Any:
    return value if isinstance(value, int) and not isinstance(value, bool) else MISSING


def _coerce_int(value: Any) -> Any:
    if isinstance(value, bool):
        return MISSING
    if isinstance(value, float):
        return int(value) if value.is_integer() else MISSING
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            as_float = float(text)
        except ValueError:
            return MISSING
        return int(as_float) if math.isfinite(as_float) and as_float.is_integer() else MISSING
    return MISSING


def _native_float(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return MISSING
    try:
        return float(value)
    except OverflowError:
        return MISSING


def _coerce_float(value: Any) -> Any:
    if isinstance(value, str):
        try:
            out = float(value.strip())
        except ValueError:
            return MISSING
        return out if math.isfinite(out) else MISSING
    return MISSING


def _native_bool(value: Any) -> Any:
    return value if isinstance(value, bool) else MISSING


def _coerce_bool(value: Any) -> Any:
    if isinstance(value, str):
        return {"true": True, "false": False}.get(value.strip().lower(), MISSING)
    if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
        return bool(value)
    return MISSING


STRING = _Primitive("string", "", _native_str, _coerce_str)
INT = _Primitive("integer", 0, _native_int, _coerce_int)
FLOAT = _Primitive("number", 0.0, _native_float, _coerce_float)
BOOL = _Primitive("boolean", False, _native_bool, _coerce_bool)


def _decode_primitive(value: Any, ctx: DecodeContext, kind: _Primitive[T], default: Any) -> T:
    if value is None:
        if default is not MISSING:
            _note_leniency(ctx, "default_applied", value)
            return default
        if ctx.allows(ParsingOptions.FILL_REQUIRED_FIELD_IF_KEY_NOT_FOUND):
            _note_leniency(ctx, "missing_filled", value)
            return kind.zero
        raise MissingFieldError(path=ctx.path)

    out = kind.native(value)
    if out is not MISSING:
        return out
    if ctx.allows(ParsingOptions.COERCE_PRIMITIVES):
        out = kind.coerce(value)
        if out is not MISSING:
            _note_leniency(ctx, "coerced", value)
            return out
    if ctx.allows(ParsingOptions.FILL_REQUIRED_FIELD_IF_VALUE_SHAPE_MISMATCH):
        _note_leniency(ctx, "mismatch_filled", value)
        return kind.zero if default is MISSING else default
    raise TypeMismatchError(kind.expected, json_type_name(value), path=ctx.path)


def _decode_optional_primitive(value: Any, ctx: DecodeContext, kind: _Primitive[T]) -> T | None:
    if value is None:
        return None
    out = kind.native(value)
    if out is not MISSING:
        return out
    if ctx.allows(ParsingOptions.COERCE_PRIMITIVES):
        out = kind.coerce(value)
        if out is not MISSING:
            _note_leniency(ctx, "coerced", value)
            return out
    if ctx.allows(ParsingOptions.FILL_REQUIRED_FIELD_IF_VALUE_SHAPE_MISMATCH):
        _note_leniency(ctx, "mismatch_dropped", value)
        return None
    raise TypeMismatchError(kind.expected, json_type_name(value), path=ctx.path)


def as_string(value: Any, ctx: DecodeContext, *, default: Any = MISSING) -> str:
    return _decode_primitive(value, ctx, STRING, default)


def as_int(value: Any, ctx: DecodeContext, *, default: Any = MISSING) -> int:
    return _decode_primitive(value, ctx, INT, default)


def as_float(value: Any, ctx: DecodeContext, *, default: Any = MISSING) -> float:
    return _decode_primitive(value, ctx, FLOAT, default)


def as_bool(value: Any, ctx: DecodeContext, *, default: Any = MISSING) -> bool:
    return _decode_primitive(value, ctx, BOOL, default)


def decode_string(container: Mapping[str, Any], key: str, ctx: DecodeContext, *, default: Any = MISSING) -> str:
    return as_string(container.get(key), ctx.child(key), default=default)


def decode_int(container: Mapping[str, Any], key: str, ctx: DecodeContext, *, default: Any = MISSING) -> int:
    return as_int(container.get(key), ctx.child(key), default=default)


def decode_float(container: Mapping[str, Any], key: str, ctx: DecodeContext, *, default: Any = MISSING) -> float:
    return as_float(container.get(key), ctx.child(key), default=default)


def decode_bool(container: Mapping[str, Any], key: str, ctx: DecodeContext, *, default: Any = MISSING) -> bool:
    return as_bool(container.get(key), ctx.child(key), default=default)


def decode_optional_string(container: Mapping[str, Any], key: str, ctx: DecodeContext) -> str | None:
    return _decode_optional_primitive(container.get(key), ctx.child(key), STRING)


def decode_optional_int(container: Mapping[str, Any], key: str, ctx: DecodeContext) -> int | None:
    return _decode_optional_primitive(container.get(key), ctx.child(key), INT)


def strict_string(value: Any, ctx: DecodeContext) -> str:
    """String with no leniency at all; shape candidates and discriminants use this."""
    if value is None:
        raise MissingFieldError(path=ctx.path)
    if not isinstance(value, str):
        raise TypeMismatchError("string", json_type_name(value), path=ctx.path)
    return value


def decode_open_enum(container: Mapping[str, Any], key: str, ctx: DecodeContext, enum_cls: type[E]) -> E | str | None:
    """Optional string enum that keeps unrecognized values as plain strings."""
    value = decode_optional_string(container, key, ctx)
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        _note_leniency(ctx.child(key), "unknown_enum_value", value)
        return value


# -- structure ----------------------------------------------------------------


def as_object(value: Any, ctx: DecodeContext) -> Mapping[str, Any]:
    if value is None:
        raise MissingFieldError(path=ctx.path)
    if not isinstance(value, Mapping):
        raise TypeMismatchError("object", json_type_name(value), path=ctx.path)
    return value


def as_list(value: Any, ctx: DecodeContext, item: ValueDecoder[T]) -> tuple[T, ...]:
    if value is None:
        raise MissingFieldError(path=ctx.path)
    if not isinstance(value, list):
        raise TypeMismatchError("array", json_type_name(value), path=ctx.path)
    return tuple(item(v, ctx.child(i)) for i, v in enumerate(value))


def decode_object(container: Mapping[str, Any], key: str, ctx: DecodeContext, decode_fn: ValueDecoder[T]) -> T:
    field_ctx = ctx.child(key)
    value = container.get(key)
    if value is None:
        raise MissingFieldError(path=field_ctx.path)
    return decode_fn(value, field_ctx)


def decode_optional_object(
    container: Mapping[str, Any], key: str, ctx: DecodeContext, decode_fn: ValueDecoder[T]
) -> T | None:
    value = container.get(key)
    if value is None:
        return None
    return decode_fn(value, ctx.child(key))


def decode_list(container: Mapping[str, Any], key: str, ctx: DecodeContext, item: ValueDecoder[T]) -> tuple[T, ...]:
    return as_list(container.get(key), ctx.child(key), item)


def decode_optional_list(
    container: Mapping[str, Any], key: str, ctx: DecodeContext, item: ValueDecoder[T]
) -> tuple[T, ...] | None:
    value = container.get(key)
    if value is None:
        return None
    return as_list(value, ctx.child(key), item)


# -- multi-shape --------------------------------------------------------------


@dataclass(frozen=True)
class ShapeMatch(Generic[T]):
    shape: str
    value: T


def decode_one_of(value: Any, candidates: Sequence[tuple[str, ValueDecoder[Any]]], ctx: DecodeContext) -> ShapeMatch[Any]:
    """
    Try each (shape, decoder) against the same raw value, in order; first success wins.

    Candidates must be strict about their own top-level JSON type: a candidate
    that coerces or zero-fills would swallow values meant for the next one.
    The order is part of the behavior of every call site.
    """
    attempts: list[tuple[str, DecodeError]] = []
    for shape, decode_fn in candidates:
        try:
            return ShapeMatch(shape=shape, value=decode_fn(value, ctx))
        except DecodeError as e:
            attempts.append((shape, e))
    raise NoShapeMatchedError(attempts, path=ctx.path)


# -- tolerant subtrees --------------------------------------------------------

# Optional subtrees seen non-conforming in the wild; a failure inside one of
# these decodes as absent. `usage`: some providers send partial objects or
# placeholders, e.g. alongside a refusal.
TOLERANT_SUBTREES = frozenset({"usage"})


def decode_tolerant(
    container: Mapping[str, Any], key: str, ctx: DecodeContext, decode_fn: ValueDecoder[T]
) -> T | None:
    if key not in TOLERANT_SUBTREES:
        raise ValueError(f"{key!r} is not an allow-listed tolerant subtree.")
    value = container.get(key)
    if value is None:
        return None
    field_ctx = ctx.child(key)
    try:
        return decode_fn(value, field_ctx)
    except (DecodeError, ValidationError) as e:
        tolerated_subtrees_total.labels(field=key).inc()
        log.info("decode_subtree_tolerated", path=format_path(field_ctx.path), error=str(e))
        return None


# -- cross-provider aliases ---------------------------------------------------

# Logical field -> wire names, highest priority first.
#   reasoning: `reasoning` (Gemini OpenAI-compat, OpenRouter), `reasoning_content` (DeepSeek)
FIELD_ALIASES: Mapping[str, tuple[str, ...]] = {
    "reasoning": ("reasoning", "reasoning_content"),
}


def first_present(*candidates: T | None) -> T | None:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
