from __future__ import annotations

import contextlib
from collections.abc import Iterator


class PolyJSONError(Exception):
    """Base class for all polyjson exceptions.

    `path` collects positional context (`.field`, `['key']`, `<TypeID>`) as the
    error propagates out of the traversal, outermost segment first.
    """

    def __init__(self, msg: str = '') -> None:
        super().__init__(msg)
        self.msg = msg
        self.path: list[str] = []

    @property
    def location(self) -> str:
        return '$' + ''.join(self.path)

    def __str__(self) -> str:
        if not self.path:
            return self.msg
        return f'{self.location}: {self.msg}'


class EncodeError(PolyJSONError):
    """Raised when a value cannot be encoded."""


class DecodeError(PolyJSONError):
    """Raised when JSON data cannot be decoded into the destination."""


class DestinationError(DecodeError):
    """Raised when a decode destination is not mutable or cannot be allocated."""


class KeyCodecError(PolyJSONError):
    """Raised for map keys that are not of string kind."""


class ResolverError(PolyJSONError):
    """Raised when the type resolver fails in either direction."""


class MalformedWrapperError(DecodeError):
    """Raised when a type-tag wrapper does not have exactly one key."""


class AssignmentError(DecodeError):
    """Raised when a resolved instance does not satisfy the declared type."""


class RegistryError(PolyJSONError):
    """Raised when attempting to register a conflicting type or identifier."""


class UnknownTypeError(RegistryError, LookupError):
    """Raised for lookups of unregistered types or identifiers."""


@contextlib.contextmanager
def context(segment: str) -> Iterator[None]:
    """Prepend `segment` to the path of any polyjson error raised inside."""
    try:
        yield
    except PolyJSONError as exc:
        exc.path.insert(0, segment)
        raise


def field_segment(name: str) -> str:
    return f'.{name}'


def key_segment(key: str | int) -> str:
    return f'[{key!r}]'


def type_segment(type_id: str) -> str:
    return f'<{type_id}>'
