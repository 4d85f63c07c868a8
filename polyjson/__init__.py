"""JSON codec that keeps the concrete type of values in polymorphic slots."""

from . import errors
from .codec import Codec
from .decoder import decode, load
from .encoder import encode
from .errors import PolyJSONError
from .kinds import Kind, field
from .ref import Ref
from .registry import (
    Resolver,
    TypeFactory,
    TypeID,
    TypeIdentifier,
    TypeRegistry,
    register_type,
    type_registry,
)

__all__ = [
    'Codec',
    'Kind',
    'PolyJSONError',
    'Ref',
    'Resolver',
    'TypeFactory',
    'TypeID',
    'TypeIdentifier',
    'TypeRegistry',
    'decode',
    'encode',
    'errors',
    'field',
    'load',
    'register_type',
    'type_registry',
]
