from __future__ import annotations

from typing import Any


def format_type(tp: Any) -> str:
    """Return a readable name for a class or type hint."""
    if isinstance(tp, type):
        return tp.__qualname__
    return repr(tp).replace('typing.', '')


def type_name(value: Any) -> str:
    return format_type(type(value))


def elide(value: str, width: int = 100) -> str:
    return value if len(value) <= width else f'{value[: width - 3]}...'
