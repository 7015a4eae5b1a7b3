from __future__ import annotations

from collections.abc import Sequence

FieldPath = tuple[str | int, ...]


def format_path(path: Sequence[str | int]) -> str:
    out = ""
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else part
    return out or "<root>"


class DecodeError(Exception):
    """Base error for a chat-completion payload that could not be decoded."""

    def __init__(self, reason: str, *, path: Sequence[str | int] = ()):
        self.path: FieldPath = tuple(path)
        self.reason = reason
        super().__init__(f"{format_path(self.path)}: {reason}")

    @property
    def dotted_path(self) -> str:
        return format_path(self.path)


class MalformedDocumentError(DecodeError):
    """Input is not JSON, or its top level is not an object."""


class MissingFieldError(DecodeError):
    def __init__(self, *, path: Sequence[str | int]):
        super().__init__("required field is missing", path=path)


class TypeMismatchError(DecodeError):
    def __init__(self, expected: str, actual: str, *, path: Sequence[str | int]):
        super().__init__(f"expected {expected}, got {actual}", path=path)
        self.expected = expected
        self.actual = actual


class UnknownDiscriminantError(DecodeError):
    """Tag value outside a closed variant set; signals a new message kind, not a format quirk."""

    def __init__(self, field: str, value: object, known: Sequence[str], *, path: Sequence[str | int]):
        super().__init__(
            f"unknown {field} {value!r} (known: {', '.join(known)})",
            path=path,
        )
        self.field = field
        self.value = value
        self.known = tuple(known)


class NoShapeMatchedError(DecodeError):
    def __init__(self, attempts: Sequence[tuple[str, DecodeError]], *, path: Sequence[str | int]):
        self.attempts = tuple(attempts)
        detail = "; ".join(f"{shape}: {err.reason}" for shape, err in self.attempts)
        super().__init__(f"value matched none of the accepted shapes ({detail})", path=path)

    @property
    def shapes(self) -> tuple[str, ...]:
        return tuple(shape for shape, _ in self.attempts)
