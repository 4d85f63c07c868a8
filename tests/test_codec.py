import logging

from models import MAMA, AutoBitRateCalculator, Holder
from polyjson import Codec


def test_codec(registry):
    codec = Codec(registry)
    calc = AutoBitRateCalculator(0.7, MAMA(0.3, 0.05), 100)

    data = codec.encode(calc)
    assert codec.load(data, AutoBitRateCalculator) == calc

    holder = Holder()
    codec.decode(b'{"Field":{"TypeX":{}}}', holder)
    assert holder.Field == MAMA()


def test_codec_order(registry):
    value = {'b': 1, 'a': 2}
    assert Codec(registry).encode(value, dict[str, int]) == b'{"b":1,"a":2}'
    assert Codec(registry, order='sorted').encode(value, dict[str, int]) == b'{"a":2,"b":1}'


def test_codec_logging(registry, caplog):
    caplog.set_level(logging.DEBUG, logger='polyjson')
    codec = Codec(registry)
    codec.decode(codec.encode(Holder(1)), Holder())

    assert 'encode: Holder(Field=1)' in caplog.text
    assert 'decode: ' in caplog.text
