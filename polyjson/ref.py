"""Mutable reference cells used as pointer-like decode destinations."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from .utils.format import format_type

T = TypeVar('T')


class Ref(Generic[T]):
    """A mutable cell holding a value of a declared type.

    Decoding into a `Ref` replaces `value`, which makes it usable as a
    destination for immutable types (`Ref(float)`) and for a bare interface
    (`Ref(Any)`). Resolvers return a `Ref` for registered types whose instances
    cannot be filled in place.
    """

    __slots__ = ('type', 'value')

    def __init__(self, type: Any = Any, value: T | None = None) -> None:
        self.type = type
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ref):
            return NotImplemented
        return self.type == other.type and self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f'Ref({format_type(self.type)}, {self.value!r})'
