import binascii
from typing import Any
from typing import Mapping
from typing import Type

import pytest

from ihexmap.utils import chop
from ihexmap.utils import hexlify
from ihexmap.utils import parse_int
from ihexmap.utils import unhexlify

PARSE_INT_PASS: Mapping[Any, int] = {
    None: None,

    '123': 123,
    ' 123 ': 123,
    '\t123\t': 123,
    '+123': 123,
    '-123': -123,
    ' - 123 ': -123,

    '0': 0,
    '0x08004000': 0x08004000,
    '0XDEADBEEF': 0xDEADBEEF,
    'DEADBEEFh': 0xDEADBEEF,

    '0b101100111000': 0b101100111000,

    '01234567': 0o1234567,
    '0o1234567': 0o1234567,

    '1k': 2**10,
    '64K': 2**16,
    '1 M': 2**20,
    '1KiB': 2**10,
    '1 mib': 2**20,
    '1 KB': 10**3,
    '1gb': 10**9,

    123: 123,
    135.7: 135,
}

PARSE_INT_FAIL: Mapping[Any, Type[BaseException]] = {
    Ellipsis: TypeError,
    'x': ValueError,
    '0b1h': ValueError,
    '0o1h': ValueError,
    '1 tb': ValueError,
    (1,): TypeError,
}


def test_chop():
    with pytest.raises(ValueError, match='non-positive window'):
        next(chop(b'ABDEFG', -1))
    with pytest.raises(ValueError, match='non-positive window'):
        next(chop(b'ABDEFG', 0))


def test_chop_doctest():
    assert list(chop(b'ABCDEFG', 2)) == [b'AB', b'CD', b'EF', b'G']
    assert b':'.join(chop(b'ABCDEFG', 3)) == b'ABC:DEF:G'
    assert list(chop(b'', 2)) == []


def test_chop_list():
    assert list(chop([1, 2, 3, 4, 5], 4)) == [[1, 2, 3, 4], [5]]


def test_hexlify_doctest():
    assert hexlify(b'\xAA\xBB\xCC') == 'AABBCC'
    assert hexlify(b'\xAA\xBB\xCC', upper=False) == 'aabbcc'
    assert hexlify(b'') == ''


def test_parse_int_doctest():
    assert parse_int('0x08004000') == 134234112
    assert parse_int('64k') == 65536
    assert parse_int(None) is None
    assert parse_int(123) == 123


def test_parse_int_fail():
    for value_in, raised_exception in PARSE_INT_FAIL.items():
        with pytest.raises(raised_exception):
            parse_int(value_in)


def test_parse_int_pass():
    for value_in, value_out in PARSE_INT_PASS.items():
        assert parse_int(value_in) == value_out


def test_unhexlify_doctest():
    assert unhexlify('AABBCC') == b'\xaa\xbb\xcc'
    assert unhexlify(b'aabbcc') == b'\xaa\xbb\xcc'
    assert unhexlify('') == b''


def test_unhexlify_raises():
    with pytest.raises(binascii.Error):
        unhexlify('ABC')
    with pytest.raises(ValueError):
        unhexlify('GG')
