"""Conversion of map keys to and from their JSON string form.

Only string-kind keys are supported in either direction.
"""

from __future__ import annotations

from typing import Any

from . import errors, kinds
from .utils.format import format_type, type_name


def stringify(key: Any) -> str:
    if isinstance(key, str):
        # str subclasses (StrEnum included) are written as their raw content
        return str.__str__(key)
    raise errors.KeyCodecError(f'unable to stringify map key {key!r} ({type_name(key)})')


def unstringify(key_type: Any, s: str) -> Any:
    # Annotated[str, ...] and NewType('X', str) are plain strings at runtime
    base = kinds.unwrap(key_type)
    if base is Any or base is object or base is str:
        return s
    if isinstance(base, type) and issubclass(base, str):
        try:
            return base(s)
        except ValueError as exc:
            raise errors.KeyCodecError(
                f'unable to unstringify map key ({format_type(key_type)}) value {s!r}: {exc}'
            ) from exc
    raise errors.KeyCodecError(f'unable to unstringify map key ({format_type(key_type)}) value {s!r}')
