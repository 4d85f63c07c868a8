"""Type resolvers that couple concrete types with wire identifiers."""

from __future__ import annotations

from threading import Lock
from typing import Any, Protocol, TypeVar

from . import errors, kinds, logs
from .ref import Ref
from .utils.format import format_type

log = logs.get(__name__)

TypeID = str

T = TypeVar('T')


class TypeIdentifier(Protocol):
    def type_id_of(self, sample: Any) -> TypeID:
        """Return the identifier of the concrete type of `sample`."""
        ...


class TypeFactory(Protocol):
    def new_by_type_id(self, type_id: TypeID) -> Any:
        """Return a fresh zero-valued instance of the type bound to `type_id`.

        Types that cannot be filled in place (scalars, sequences) are returned
        as a `Ref` to their zero value.
        """
        ...


class Resolver(TypeIdentifier, TypeFactory, Protocol):
    """Bidirectional lookup between types and identifiers."""


def type_id_for(cls: type) -> TypeID:
    """Derive the default identifier of `cls` from its module and qualified name."""
    if cls.__module__ == 'builtins':
        return cls.__qualname__
    return f'{cls.__module__}.{cls.__qualname__}'


class TypeRegistry:
    """Keeps a bidirectional registry of types by identifier.

    Registration is serialized by a lock and swaps in new dicts, so lookups in
    both directions can run concurrently without locking.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._types: dict[TypeID, type] = {}
        self._ids: dict[type, TypeID] = {}

    def register(self, cls: type[T], type_id: TypeID | None = None) -> type[T]:
        """Bind `cls` to `type_id` (derived from the class name by default)."""
        if not isinstance(cls, type):
            raise errors.RegistryError(f'expected a class, but got {cls!r} instead')
        if kinds.of(cls).kind is kinds.Kind.INTERFACE:
            raise errors.RegistryError(f'unable to register interface type {format_type(cls)}')
        type_id = type_id or type_id_for(cls)

        with self._lock:
            bound_cls = self._types.get(type_id)
            bound_id = self._ids.get(cls)
            if bound_cls is cls and bound_id == type_id:
                return cls
            if bound_cls is not None:
                raise errors.RegistryError(
                    f'type id {type_id!r} is already bound to {format_type(bound_cls)}'
                )
            if bound_id is not None:
                raise errors.RegistryError(f'{format_type(cls)} is already registered as {bound_id!r}')

            self._types = {**self._types, type_id: cls}
            self._ids = {**self._ids, cls: type_id}

        log.debug('registered: %s -> %s', type_id, format_type(cls))
        return cls

    def type_id_of(self, sample: Any) -> TypeID:
        cls = type(sample)
        try:
            return self._ids[cls]
        except KeyError:
            raise errors.UnknownTypeError(f'{format_type(cls)} is not registered') from None

    def new_by_type_id(self, type_id: TypeID) -> Any:
        try:
            cls = self._types[type_id]
        except KeyError:
            raise errors.UnknownTypeError(f'unknown type id {type_id!r}') from None

        if kinds.of(cls).kind in (kinds.Kind.STRUCT, kinds.Kind.MAP):
            return kinds.zero(cls)
        # scalars and sequences are replaced wholesale when decoded, so the cell starts empty
        return Ref(cls)

    def type_ids(self) -> tuple[TypeID, ...]:
        """Return all registered identifiers in registration order."""
        return tuple(self._types)

    def __contains__(self, item: object) -> bool:
        return item in self._types or item in self._ids

    def __len__(self) -> int:
        return len(self._types)


_default = TypeRegistry()


def type_registry() -> TypeRegistry:
    """Return the default registry used by `register_type`."""
    return _default


def register_type(
    cls: type[T] | None = None, *, type_id: TypeID | None = None
) -> Any:
    """Register `cls` with the default registry.

    Usable directly, as a bare decorator, or as `@register_type(type_id=...)`.
    """
    if cls is None:

        def decorator(cls: type[T]) -> type[T]:
            return _default.register(cls, type_id)

        return decorator
    return _default.register(cls, type_id)
