"""Codec that binds a type resolver and encoding options."""

from __future__ import annotations

from typing import Any

from . import logs
from .decoder import Decoder
from .encoder import Encoder
from .ref import Ref
from .registry import Resolver
from .utils.format import elide

DEFAULT_ORDER: str | None = None

log = logs.get(__name__)


class Codec:
    """Encodes and decodes polymorphic value graphs with a fixed resolver.

    `order` is passed on to msgspec: `None` keeps insertion order, while
    `'deterministic'` and `'sorted'` write object keys (and sets) sorted.
    """

    def __init__(self, resolver: Resolver, order: str | None = None) -> None:
        self.resolver = resolver
        self.order = DEFAULT_ORDER if order is None else order

    def encode(self, obj: Any, type: Any = None) -> bytes:
        """Serialize `obj` into JSON bytes."""
        if log.isEnabledFor(logs.DEBUG):
            log.debug('encode: %s', elide(repr(obj)))
        return Encoder(self.resolver, order=self.order).encode(obj, type)

    def decode(self, data: bytes | str, dst: Any, type: Any = None) -> None:
        """Deserialize JSON into the mutable destination `dst`."""
        if log.isEnabledFor(logs.DEBUG):
            log.debug('decode: %s', elide(repr(data)))
        Decoder(self.resolver).decode(data, dst, type)

    def load(self, data: bytes | str, type: Any) -> Any:
        """Deserialize JSON into a new value of the declared `type`."""
        ref: Ref[Any] = Ref(type)
        self.decode(data, ref)
        return ref.value
