import datetime
import uuid

import pytest

from models import (
    MAMA,
    SMA,
    Circle,
    FrozenPoint,
    Hello,
    Holder,
    Point,
    Square,
)
from polyjson import TypeRegistry


@pytest.fixture
def registry():
    reg = TypeRegistry()
    reg.register(MAMA, 'TypeX')
    for cls in (SMA, Holder, Point, FrozenPoint, Circle, Square, Hello):
        reg.register(cls)
    for cls in (int, float, str, list, dict, datetime.datetime, uuid.UUID):
        reg.register(cls)
    return reg
