from typing import Annotated, Any, NewType

import pytest

from models import Color
from polyjson import errors, keys

UserId = NewType('UserId', str)
ColorKey = NewType('ColorKey', Color)


@pytest.mark.parametrize(
    'key, expected',
    [
        ('a', 'a'),
        ('', ''),
        (Color.GREEN, 'green'),
    ],
)
def test_stringify(key, expected):
    assert keys.stringify(key) == expected


@pytest.mark.parametrize('key', [1, 2.5, b'a', None, ('a',)])
def test_stringify_non_string(key):
    with pytest.raises(errors.KeyCodecError) as exc_info:
        keys.stringify(key)
    assert type(key).__name__ in str(exc_info.value)


@pytest.mark.parametrize(
    'key_type, s, expected',
    [
        (str, 'a', 'a'),
        (Any, 'a', 'a'),
        (Color, 'red', Color.RED),
        (Annotated[str, 'meta'], 'a', 'a'),
        (UserId, 'u1', 'u1'),
        (Annotated[UserId, 'meta'], 'u1', 'u1'),
        (ColorKey, 'green', Color.GREEN),
    ],
)
def test_unstringify(key_type, s, expected):
    assert keys.unstringify(key_type, s) == expected


@pytest.mark.parametrize(
    'key_type, s',
    [
        (int, '1'),
        (float, '1.5'),
        (Color, 'blue'),
        (NewType('Count', int), '1'),
        (Annotated[int, 'meta'], '1'),
    ],
)
def test_unstringify_invalid(key_type, s):
    with pytest.raises(errors.KeyCodecError):
        keys.unstringify(key_type, s)
