"""Decoding of JSON into value graphs, resolving tagged interface slots."""

from __future__ import annotations

import collections.abc
import functools
import typing
from collections.abc import MutableMapping
from typing import Any

import msgspec

from . import errors, keys, kinds
from .kinds import Kind, TypeInfo
from .ref import Ref
from .registry import TypeFactory
from .utils.format import elide, format_type, type_name

_NULL = b'null'
_OBJECT = msgspec.json.Decoder(dict[str, msgspec.Raw])
_ARRAY = msgspec.json.Decoder(list[msgspec.Raw])
_DEFAULT_MAP = dict[str, Any]
_SEQUENCE_BUILDERS = {
    list: list,
    tuple: tuple,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
}


def decode(data: bytes | str, dst: Any, resolver: TypeFactory, *, type: Any = None) -> None:
    """Deserialize JSON written by `encode` into `dst`, in place.

    `dst` must be mutable: a `Ref`, a non-frozen dataclass or msgspec Struct
    instance, or a mutable mapping. Every interface-typed slot met on the way
    must hold a `{TypeID: content}` wrapper (or `null`); the instance is
    allocated through `resolver.new_by_type_id` and filled from `content`.

    Mappings are cleared before they are filled. Unknown struct keys are
    ignored. `type` declares the type of a mapping destination and defaults to
    `dict[str, Any]`.

    On error `dst` may be partially modified and should be discarded.
    """
    Decoder(resolver).decode(data, dst, type)


def load(data: bytes | str, type: Any, resolver: TypeFactory) -> Any:
    """Decode JSON into a new value of the declared `type`."""
    ref: Ref[Any] = Ref(type)
    decode(data, ref, resolver)
    return ref.value


class Decoder:
    """Single-use traversal state for one `decode` call."""

    def __init__(self, resolver: TypeFactory) -> None:
        self._resolver = resolver

    def decode(self, data: bytes | str, dst: Any, type: Any = None) -> None:
        try:
            raw = msgspec.json.decode(data, type=msgspec.Raw)
        except msgspec.DecodeError as exc:
            raise errors.DecodeError(f'invalid JSON: {exc}') from exc
        self._into(raw, dst, type)

    def _into(self, raw: msgspec.Raw, dst: Any, tp: Any = None) -> None:
        """Decode into the destination handle `dst`."""
        if isinstance(dst, Ref):
            if kinds.of(dst.type).kind is Kind.INTERFACE:
                # bare interface: no tag is expected at this level
                if _is_mutable(dst.value):
                    self._into(raw, dst.value)
                else:
                    dst.value = self._plain(raw, Any)
            else:
                dst.value = self._value(raw, dst.type, dst.value)
        elif kinds.is_struct(dst):
            if kinds.is_frozen(type(dst)):
                raise errors.DestinationError(
                    f'expected a mutable destination, but got frozen {type_name(dst)}'
                )
            self._struct(raw, dst)
        elif isinstance(dst, MutableMapping):
            info = kinds.of(_DEFAULT_MAP if tp is None else tp)
            if info.kind is not Kind.MAP:
                raise errors.DestinationError(
                    f'expected a mapping type for {type_name(dst)}, but got {format_type(tp)}'
                )
            self._map(raw, dst, info)
        else:
            raise errors.DestinationError(
                f'expected a mutable destination, but got {type_name(dst)} instead'
            )

    def _value(self, raw: msgspec.Raw, tp: Any, current: Any, tagged: bool = True) -> Any:
        """Decode a field or map entry declared as `tp` and return its new value.

        Mutable containers already held in the slot (`current`) are filled in
        place and returned. With `tagged` false, interface slots hold plain
        JSON rather than a wrapper, as they do inside sequence elements.
        """
        info = kinds.of(tp)

        if info.kind is Kind.POINTER:
            if _is_null(raw):
                return None
            if info.origin is not None and issubclass(info.origin, Ref):
                ref = current if isinstance(current, Ref) else Ref(info.elem)
                ref.value = self._value(raw, info.elem, ref.value, tagged)
                return ref
            return self._value(raw, info.elem, current, tagged)

        if info.kind is Kind.INTERFACE:
            if _is_null(raw):
                return None
            if not tagged:
                return self._plain(raw, Any)
            return self._resolve(raw, tp)

        return self._content(raw, info, current, tagged)

    def _content(
        self, raw: msgspec.Raw, info: TypeInfo, current: Any, tagged: bool = True
    ) -> Any:
        if info.kind is Kind.MAP:
            if not isinstance(current, MutableMapping):
                current = kinds.zero(info.type)
            self._map(raw, current, info, tagged)
            return current

        if info.kind is Kind.STRUCT:
            if _is_null(raw):
                return current
            if not isinstance(current, info.origin):
                current = kinds.zero(info.type)
            return self._struct(raw, current, tagged)

        if info.kind is Kind.SEQUENCE and info.origin in _SEQUENCE_BUILDERS:
            return self._sequence(raw, info)

        return self._plain(raw, info.type)

    def _resolve(self, raw: msgspec.Raw, tp: Any) -> Any:
        """Materialize the concrete value behind a `{TypeID: content}` wrapper."""
        try:
            entries = _OBJECT.decode(raw)
        except msgspec.ValidationError as exc:
            raise errors.MalformedWrapperError(
                f'expected a type-tagged object, but got {elide(bytes(raw).decode())}'
            ) from exc
        if len(entries) != 1:
            raise errors.MalformedWrapperError(f'expected exactly one value, but got {len(entries)}')

        ((type_id, content),) = entries.items()
        with errors.context(errors.type_segment(type_id)):
            try:
                instance = self._resolver.new_by_type_id(type_id)
            except Exception as exc:
                raise errors.ResolverError(
                    f'unable to construct an instance for type id {type_id!r}: {exc}'
                ) from exc

            if isinstance(instance, Ref):
                self._into(content, instance)
            else:
                # frozen structs are rebuilt rather than filled, so go through a cell
                holder = Ref(type(instance), instance)
                self._into(content, holder)
                instance = holder.value
            return _assign(instance, tp)

    def _map(
        self,
        raw: msgspec.Raw,
        target: MutableMapping[Any, Any],
        info: TypeInfo,
        tagged: bool = True,
    ) -> None:
        # decoding replaces the contents, it never merges
        target.clear()
        entries = self._object(raw, target)
        if entries is None:
            return

        for name, item in entries.items():
            with errors.context(errors.key_segment(name)):
                key = keys.unstringify(info.key, name)
                target[key] = self._value(item, info.value, None, tagged)

    def _struct(self, raw: msgspec.Raw, obj: Any, tagged: bool = True) -> Any:
        entries = self._object(raw, obj)
        if entries is None:
            return obj

        cls = type(obj)
        table = kinds.wire_fields(cls)
        frozen = kinds.is_frozen(cls)
        changes = {}
        for name, item in entries.items():
            spec = table.get(name)
            if spec is None:
                continue
            with errors.context(errors.field_segment(name)):
                current = getattr(obj, spec.name, None)
                if frozen and _is_mutable(current):
                    # the frozen original may share this container, so never fill it
                    current = None
                value = self._value(item, spec.type, current, tagged)
            if frozen:
                changes[spec.name] = value
            else:
                setattr(obj, spec.name, value)

        return kinds.replace(obj, changes) if changes else obj

    def _sequence(self, raw: msgspec.Raw, info: TypeInfo) -> Any:
        try:
            items = _ARRAY.decode(raw)
        except msgspec.ValidationError as exc:
            raise errors.DecodeError(
                f'expected a JSON array for {format_type(info.type)}: {exc}'
            ) from exc

        out = []
        for index, (item, item_type) in enumerate(zip(items, _item_types(info.type, len(items)))):
            with errors.context(errors.key_segment(index)):
                out.append(self._value(item, item_type, None, tagged=False))
        return _SEQUENCE_BUILDERS[info.origin](out)

    def _object(self, raw: msgspec.Raw, target: Any) -> dict[str, msgspec.Raw] | None:
        if _is_null(raw):
            return None
        try:
            return _OBJECT.decode(raw)
        except msgspec.ValidationError as exc:
            raise errors.DecodeError(
                f'expected a JSON object for {type_name(target)}: {exc}'
            ) from exc

    def _plain(self, raw: msgspec.Raw, tp: Any) -> Any:
        try:
            return _decoder_for(tp).decode(raw)
        except (msgspec.ValidationError, msgspec.DecodeError, TypeError) as exc:
            raise errors.DecodeError(f'unable to decode {format_type(tp)}: {exc}') from exc


def _assign(instance: Any, tp: Any) -> Any:
    # a Ref stands in for a pointer: prefer the value it holds, then the Ref itself
    candidates = (instance.value, instance) if isinstance(instance, Ref) else (instance,)
    for candidate in candidates:
        if kinds.satisfies(candidate, tp):
            return candidate
    raise errors.AssignmentError(
        f'internal error: do not know how to assign {type_name(candidates[0])} to {format_type(tp)}'
    )


def _item_types(tp: Any, count: int) -> list[Any]:
    args = typing.get_args(kinds.unwrap(tp))
    if not args:
        return [Any] * count
    if len(args) == 2 and args[1] is Ellipsis:
        return [args[0]] * count
    if typing.get_origin(kinds.unwrap(tp)) is tuple:
        if len(args) != count:
            raise errors.DecodeError(
                f'expected {len(args)} elements for {format_type(tp)}, but got {count}'
            )
        return list(args)
    return [args[0]] * count


def _is_null(raw: msgspec.Raw) -> bool:
    return bytes(raw).strip() == _NULL


def _is_mutable(value: Any) -> bool:
    if isinstance(value, (Ref, MutableMapping)):
        return True
    return kinds.is_struct(value) and not kinds.is_frozen(type(value))


@functools.lru_cache(maxsize=64)
def _cached_decoder(tp: Any) -> msgspec.json.Decoder:
    return msgspec.json.Decoder(tp)


def _decoder_for(tp: Any) -> msgspec.json.Decoder:
    """Return a typed decoder for `tp`, caching only when `tp` is hashable."""
    try:
        hash(tp)
    except TypeError:
        return msgspec.json.Decoder(tp)
    return _cached_decoder(tp)
