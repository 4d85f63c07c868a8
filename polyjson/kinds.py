"""Classification of type hints into traversal kinds, plus struct field tables."""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import functools
import inspect
import types
import typing
from types import MappingProxyType
from typing import Any, Literal, TypeVar, Union

import msgspec
import msgspec.structs

from . import errors
from .ref import Ref
from .utils.format import format_type

METADATA_KEY = 'polyjson'

_NONE_TYPE = type(None)
_SEQUENCE_BASES = (list, tuple, set, frozenset, collections.abc.Sequence, collections.abc.Set)
_NON_SEQUENCES = (str, bytes, bytearray, memoryview)


class Kind(enum.Enum):
    INTERFACE = 'interface'
    POINTER = 'pointer'
    MAP = 'map'
    STRUCT = 'struct'
    SEQUENCE = 'sequence'
    SCALAR = 'scalar'


class TypeInfo(msgspec.Struct, frozen=True):
    """A classified type hint.

    `origin` is the runtime class behind the hint (`dict` for `dict[str, int]`).
    `elem` is the pointee of a POINTER; `key` and `value` are the declared key
    and value types of a MAP.
    """

    kind: Kind
    type: Any
    origin: Any = None
    elem: Any = None
    key: Any = None
    value: Any = None


class FieldOptions(msgspec.Struct, frozen=True):
    name: str | None = None
    skip: bool = False


class FieldSpec(msgspec.Struct, frozen=True):
    """Description of a single struct field as seen on the wire."""

    name: str
    wire_name: str
    type: Any


def field(*, name: str | None = None, skip: bool = False, **kwargs: Any) -> Any:
    """`dataclasses.field` that also records a wire-name override or skip marker."""
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[METADATA_KEY] = FieldOptions(name, skip)
    return dataclasses.field(metadata=metadata, **kwargs)


def unwrap(tp: Any) -> Any:
    """Strip `Annotated` metadata and `NewType` aliases off the hint `tp`."""
    while True:
        if typing.get_origin(tp) is typing.Annotated:
            tp = typing.get_args(tp)[0]
        elif hasattr(tp, '__supertype__'):
            tp = tp.__supertype__
        else:
            return tp


def _is_union(tp: Any) -> bool:
    return typing.get_origin(tp) in (Union, types.UnionType)


def _is_protocol(cls: type) -> bool:
    return bool(getattr(cls, '_is_protocol', False))


def is_struct_type(cls: Any) -> bool:
    if not isinstance(cls, type):
        return False
    return issubclass(cls, msgspec.Struct) or dataclasses.is_dataclass(cls)


def is_struct(value: Any) -> bool:
    return is_struct_type(type(value))


def is_frozen(cls: type) -> bool:
    if issubclass(cls, msgspec.Struct):
        return bool(cls.__struct_config__.frozen)
    params = getattr(cls, '__dataclass_params__', None)
    return bool(params is not None and params.frozen)


def of(tp: Any) -> TypeInfo:
    """Classify the declared type `tp`."""
    tp = unwrap(tp)
    if tp is None:
        tp = _NONE_TYPE

    if tp is Any or tp is object or isinstance(tp, TypeVar):
        return TypeInfo(Kind.INTERFACE, tp)

    if _is_union(tp):
        members = [arg for arg in typing.get_args(tp) if arg is not _NONE_TYPE]
        if len(members) == 1:
            elem = members[0]
            if of(elem).kind is Kind.INTERFACE:
                # an interface slot is nullable already
                return TypeInfo(Kind.INTERFACE, tp)
            return TypeInfo(Kind.POINTER, tp, elem=elem)
        return TypeInfo(Kind.INTERFACE, tp)

    origin = typing.get_origin(tp)
    cls = tp if origin is None else origin
    if not isinstance(cls, type):
        return TypeInfo(Kind.SCALAR, tp, origin=cls)

    args = typing.get_args(tp)
    if issubclass(cls, Ref):
        return TypeInfo(Kind.POINTER, tp, origin=cls, elem=args[0] if args else Any)
    if issubclass(cls, collections.abc.Mapping):
        key, value = args if len(args) == 2 else (Any, Any)
        return TypeInfo(Kind.MAP, tp, origin=cls, key=key, value=value)
    if issubclass(cls, _SEQUENCE_BASES) and not issubclass(cls, _NON_SEQUENCES):
        return TypeInfo(Kind.SEQUENCE, tp, origin=cls)
    if _is_protocol(cls) or inspect.isabstract(cls):
        return TypeInfo(Kind.INTERFACE, tp, origin=cls)
    if is_struct_type(cls):
        return TypeInfo(Kind.STRUCT, tp, origin=cls)
    return TypeInfo(Kind.SCALAR, tp, origin=cls)


def satisfies(value: Any, tp: Any) -> bool:
    """Return whether `value` may be stored in a slot declared as `tp`."""
    tp = unwrap(tp)
    if tp is Any or tp is object or isinstance(tp, TypeVar):
        return True
    if tp is None or tp is _NONE_TYPE:
        return value is None
    if _is_union(tp):
        return any(satisfies(value, arg) for arg in typing.get_args(tp))

    origin = typing.get_origin(tp)
    if origin is Literal:
        return value in typing.get_args(tp)
    cls = tp if origin is None else origin
    if not isinstance(cls, type):
        return False
    if _is_protocol(cls) and not getattr(cls, '_is_runtime_protocol', False):
        # structural check is impossible without @runtime_checkable
        return True
    return isinstance(value, cls)


def zero(tp: Any) -> Any:
    """Allocate the zero value of the declared type `tp`."""
    info = of(tp)
    cls = info.origin

    if info.kind in (Kind.INTERFACE, Kind.POINTER):
        return None
    if info.kind is Kind.MAP:
        if issubclass(cls, collections.abc.MutableMapping) and not inspect.isabstract(cls):
            return cls()
        return {}
    if info.kind is Kind.SEQUENCE:
        return list() if inspect.isabstract(cls) else cls()
    if info.kind is Kind.STRUCT:
        return _new_struct(cls)

    if cls is Literal:
        return typing.get_args(info.type)[0]
    if cls is _NONE_TYPE:
        return None
    if isinstance(cls, type) and issubclass(cls, enum.Enum):
        return next(iter(cls))
    try:
        return cls()
    except (TypeError, ValueError) as exc:
        raise errors.DestinationError(
            f'unable to allocate a zero value of {format_type(tp)}'
        ) from exc


def _new_struct(cls: type) -> Any:
    kwargs: dict[str, Any] = {}
    if issubclass(cls, msgspec.Struct):
        for info in msgspec.structs.fields(cls):
            if info.required:
                kwargs[info.name] = _placeholder(info.type)
    else:
        hints = typing.get_type_hints(cls)
        for f in dataclasses.fields(cls):
            missing = f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
            if f.init and missing:
                kwargs[f.name] = _placeholder(hints.get(f.name, Any))

    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as exc:
        raise errors.DestinationError(
            f'unable to allocate a zero value of {format_type(cls)}: {exc}'
        ) from exc


def _placeholder(tp: Any) -> Any:
    # scalars without a no-argument constructor (datetime, UUID) are held as None
    # until decoding fills them in
    if of(tp).kind is Kind.SCALAR:
        try:
            return zero(tp)
        except errors.DestinationError:
            return None
    return zero(tp)


def replace(obj: Any, changes: dict[str, Any]) -> Any:
    """Return a copy of the frozen struct `obj` with `changes` applied."""
    try:
        if isinstance(obj, msgspec.Struct):
            return msgspec.structs.replace(obj, **changes)
        return dataclasses.replace(obj, **changes)
    except (TypeError, ValueError) as exc:
        raise errors.DestinationError(
            f'unable to rebuild frozen {format_type(type(obj))}: {exc}'
        ) from exc


@functools.lru_cache(maxsize=None)
def fields(cls: type) -> tuple[FieldSpec, ...]:
    """Return the wire-visible fields of the struct type `cls`.

    Fields whose names start with `_` and fields marked `skip` are left out.
    """
    specs = []
    if issubclass(cls, msgspec.Struct):
        for info in msgspec.structs.fields(cls):
            if info.name.startswith('_'):
                continue
            specs.append(FieldSpec(info.name, info.encode_name, info.type))
        return tuple(specs)

    hints = typing.get_type_hints(cls, include_extras=True)
    for f in dataclasses.fields(cls):
        if f.name.startswith('_'):
            continue
        options = f.metadata.get(METADATA_KEY) or FieldOptions()
        if options.skip:
            continue
        specs.append(FieldSpec(f.name, options.name or f.name, hints.get(f.name, Any)))
    return tuple(specs)


@functools.lru_cache(maxsize=None)
def wire_fields(cls: type) -> MappingProxyType[str, FieldSpec]:
    """Return the fields of `cls` indexed by wire name."""
    return MappingProxyType({spec.wire_name: spec for spec in fields(cls)})
