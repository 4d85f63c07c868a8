import datetime
from collections.abc import Mapping, Sequence
from typing import Annotated, Any, NewType, Optional, Union

import pytest

from models import (
    MAMA,
    AutoBitRateCalculator,
    Circle,
    Color,
    Event,
    FrozenPoint,
    Greeter,
    Hello,
    MovingAverager,
    Point,
    Renamed,
    Square,
)
from polyjson import Ref, errors, kinds
from polyjson.kinds import FieldSpec, Kind


@pytest.mark.parametrize(
    'tp, kind',
    [
        (Any, Kind.INTERFACE),
        (object, Kind.INTERFACE),
        (MovingAverager, Kind.INTERFACE),
        (Greeter, Kind.INTERFACE),
        (Circle | Square, Kind.INTERFACE),
        (Union[Circle, Square, None], Kind.INTERFACE),
        (Optional[MovingAverager], Kind.INTERFACE),
        (Optional[Point], Kind.POINTER),
        (Point | None, Kind.POINTER),
        (Ref[int], Kind.POINTER),
        (dict, Kind.MAP),
        (dict[str, int], Kind.MAP),
        (Mapping[str, Any], Kind.MAP),
        (list, Kind.SEQUENCE),
        (list[int], Kind.SEQUENCE),
        (tuple[int, ...], Kind.SEQUENCE),
        (Sequence[int], Kind.SEQUENCE),
        (frozenset[str], Kind.SEQUENCE),
        (Point, Kind.STRUCT),
        (MAMA, Kind.STRUCT),
        (Hello, Kind.STRUCT),
        (int, Kind.SCALAR),
        (str, Kind.SCALAR),
        (bytes, Kind.SCALAR),
        (Color, Kind.SCALAR),
        (datetime.datetime, Kind.SCALAR),
        (Annotated[int, 'meta'], Kind.SCALAR),
        (NewType('Points', list[int]), Kind.SEQUENCE),
    ],
)
def test_kind_of(tp, kind):
    assert kinds.of(tp).kind is kind


def test_map_types():
    info = kinds.of(dict[Color, Point])
    assert info.key is Color
    assert info.value is Point

    info = kinds.of(dict)
    assert info.key is Any
    assert info.value is Any


def test_pointer_elem():
    assert kinds.of(Optional[Point]).elem is Point
    assert kinds.of(Ref[int]).elem is int


@pytest.mark.parametrize(
    'tp, expected',
    [
        (int, 0),
        (float, 0.0),
        (str, ''),
        (bool, False),
        (Any, None),
        (Optional[Point], None),
        (dict[str, int], {}),
        (Mapping[str, int], {}),
        (list[int], []),
        (tuple[int, ...], ()),
        (Sequence[int], []),
        (Color, Color.RED),
        (Point, Point(0, 0)),
        (FrozenPoint, FrozenPoint(0, 0)),
        (AutoBitRateCalculator, AutoBitRateCalculator(0.0, None, 0)),
    ],
)
def test_zero(tp, expected):
    assert kinds.zero(tp) == expected


def test_zero_returns_fresh_instances():
    assert kinds.zero(Point) is not kinds.zero(Point)
    assert kinds.zero(dict[str, int]) is not kinds.zero(dict[str, int])


def test_zero_unallocatable():
    with pytest.raises(errors.DestinationError):
        kinds.zero(datetime.datetime)


def test_zero_struct_with_unallocatable_field():
    assert kinds.zero(Event) == Event(None)


@pytest.mark.parametrize(
    'value, tp, expected',
    [
        (MAMA(), MovingAverager, True),
        (Point(), MovingAverager, False),
        (None, Optional[MovingAverager], True),
        (Circle(), Circle | Square, True),
        (Point(), Circle | Square, False),
        (Hello(), Greeter, True),
        (Point(), Greeter, False),
        (Point(), Any, True),
        (1, object, True),
    ],
)
def test_satisfies(value, tp, expected):
    assert kinds.satisfies(value, tp) is expected


def test_fields():
    assert kinds.fields(Renamed) == (FieldSpec('value', 'v', int),)
    assert kinds.fields(Point) == (FieldSpec('x', 'x', int), FieldSpec('y', 'y', int))
    assert list(kinds.wire_fields(Renamed)) == ['v']


def test_is_frozen():
    assert kinds.is_frozen(FrozenPoint)
    assert not kinds.is_frozen(Point)
    assert not kinds.is_frozen(MAMA)
