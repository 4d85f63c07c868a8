"""Encoding of value graphs into JSON with type tags at interface slots."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import msgspec

from . import errors, keys, kinds
from .kinds import Kind
from .ref import Ref
from .registry import TypeIdentifier
from .utils.format import type_name

_WALKED_SEQUENCES = (list, tuple)


def encode(
    obj: Any, resolver: TypeIdentifier, *, type: Any = None, order: str | None = None
) -> bytes:
    """Serialize `obj` to JSON, keeping the concrete type of polymorphic values.

    Any struct field or map entry whose declared type is an interface (`Any`,
    an abstract class, a protocol or a union) is written as

        {TypeID: {...content...}}

    where `TypeID` comes from `resolver.type_id_of`. For example, with
    `Holder` declaring `field: Any`, `Holder(field=Point(1, 2))` might encode
    to `{"field": {"geo.Point": {"x": 1, "y": 2}}}`.

    `obj` itself is never tagged, and neither are elements of lists and tuples
    nor anything nested inside them, although their struct fields are still
    renamed and skipped. Pass `type` to declare the type of `obj` (e.g. the
    value type of a mapping).
    """
    return Encoder(resolver, order=order).encode(obj, type)


class Encoder:
    """Single-use traversal state for one `encode` call."""

    def __init__(self, resolver: TypeIdentifier, order: str | None = None) -> None:
        self._resolver = resolver
        self._json = msgspec.json.Encoder(order=order)

    def encode(self, obj: Any, type: Any = None) -> bytes:
        tree = self._value(obj, Any if type is None else type)
        return self._json.encode(tree)

    def _value(self, value: Any, tp: Any, tagged: bool = True) -> Any:
        """Encode `value` declared as `tp`.

        With `tagged` false no interface slot below this point is wrapped,
        which is how sequence elements are written.
        """
        if value is None:
            return None
        if isinstance(value, Ref):
            return self._value(value.value, value.type, tagged)
        if isinstance(value, Mapping):
            return self._map(value, tp, tagged)
        if kinds.is_struct(value):
            return self._struct(value, tagged)
        if type(value) in _WALKED_SEQUENCES:
            return self._sequence(value)
        # scalars and other collections are left to msgspec entirely
        return self._plain(value)

    def _map(self, value: Mapping[Any, Any], tp: Any, tagged: bool) -> dict[str, Any]:
        value_type = _map_value_type(tp)
        out = {}
        for key, item in value.items():
            name = keys.stringify(key)
            with errors.context(errors.key_segment(name)):
                out[name] = self._field(item, value_type, tagged)
        return out

    def _struct(self, value: Any, tagged: bool) -> dict[str, Any]:
        out = {}
        for spec in kinds.fields(type(value)):
            with errors.context(errors.field_segment(spec.wire_name)):
                out[spec.wire_name] = self._field(getattr(value, spec.name), spec.type, tagged)
        return out

    def _sequence(self, value: list[Any] | tuple[Any, ...]) -> list[Any]:
        out = []
        for index, item in enumerate(value):
            with errors.context(errors.key_segment(index)):
                out.append(self._value(item, Any, tagged=False))
        return out

    def _field(self, value: Any, declared: Any, tagged: bool) -> Any:
        if tagged:
            return self._slot(value, declared)
        return self._value(value, declared, tagged=False)

    def _slot(self, value: Any, declared: Any) -> Any:
        """Encode a field or map entry, tagging it if `declared` is an interface."""
        if value is None or kinds.of(declared).kind is not Kind.INTERFACE:
            return self._value(value, declared)

        try:
            type_id = self._resolver.type_id_of(value)
        except Exception as exc:
            raise errors.ResolverError(
                f'unable to get type id of {type_name(value)}: {exc}'
            ) from exc

        with errors.context(errors.type_segment(type_id)):
            return {type_id: self._value(value, declared)}

    def _plain(self, value: Any) -> msgspec.Raw:
        try:
            return msgspec.Raw(self._json.encode(value))
        except (msgspec.EncodeError, TypeError) as exc:
            raise errors.EncodeError(f'unable to encode {type_name(value)}: {exc}') from exc


def _map_value_type(tp: Any) -> Any:
    info = kinds.of(tp)
    while info.kind is Kind.POINTER:
        info = kinds.of(info.elem)
    return info.value if info.kind is Kind.MAP else Any
