# Copyright (c) 2025-2026, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Intel HEX rows.

A *row* is a single record line of an Intel HEX file, like
``:0400000000010203F6``.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
import re
from typing import IO
from typing import Any
from typing import Iterable
from typing import Mapping
from typing import MutableMapping
from typing import Optional
from typing import Type
from typing import TypeVar

from .base import AnyBytes
from .base import AnyLine
from .base import ChecksumError
from .base import DecodeError
from .base import RowSizeError
from .utils import hexlify
from .utils import unhexlify

MAX_ROW_SIZE: int = 0xFF
r"""Maximum payload size of a row, in bytes."""

MAX_OFFSET: int = 0xFFFF
r"""Maximum window-relative offset of a row."""

_Row = TypeVar('_Row', bound='Row')


class RowKind(enum.IntEnum):
    r"""Intel HEX record kind."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 2
    r"""Extended Segment Address."""

    START_SEGMENT_ADDRESS = 3
    r"""Start Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    START_LINEAR_ADDRESS = 5
    r"""Start Linear Address."""

    def is_data(self) -> bool:

        return self == self.DATA

    def is_eof(self) -> bool:
        r"""Tells whether this is an End Of File record kind.

        Returns:
            bool: This is an End Of File record kind.

        Examples:
            >>> from ihexmap import RowKind
            >>> RowKind.END_OF_FILE.is_eof()
            True
            >>> RowKind.DATA.is_eof()
            False
        """

        return self == self.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record kind.

        Returns:
            bool: This is an Extended Address record kind.

        Examples:
            >>> from ihexmap import RowKind
            >>> RowKind.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> RowKind.EXTENDED_SEGMENT_ADDRESS.is_extension()
            True
            >>> RowKind.DATA.is_extension()
            False
        """

        return ((self == self.EXTENDED_SEGMENT_ADDRESS) or
                (self == self.EXTENDED_LINEAR_ADDRESS))

    def is_start(self) -> bool:
        r"""Tells whether this is a Start Address record kind.

        Returns:
            bool: This is a Start Address record kind.

        Examples:
            >>> from ihexmap import RowKind
            >>> RowKind.START_LINEAR_ADDRESS.is_start()
            True
            >>> RowKind.START_SEGMENT_ADDRESS.is_start()
            True
            >>> RowKind.DATA.is_start()
            False
        """

        return ((self == self.START_SEGMENT_ADDRESS) or
                (self == self.START_LINEAR_ADDRESS))


def checksum(data: Iterable[int]) -> int:
    r"""Computes the Intel HEX checksum.

    It is the two's complement of the byte-wise sum, truncated to 8 bits.

    Args:
        data (bytes):
            Byte values to sum up.

    Returns:
        int: Checksum byte value.

    Examples:
        >>> from ihexmap.records import checksum
        >>> checksum(b'\x04\x00\x00\x00\x00\x01\x02\x03')
        246
        >>> checksum(b'')
        0
    """

    return ((sum(data) ^ 0xFF) + 1) & 0xFF


class Row:
    r"""Intel HEX row.

    Rows are immutable: every field is fixed at construction, and the
    checksum is either computed from the other fields or verified against
    them.

    Args:
        kind (:class:`RowKind`):
            Record kind.

        offset (int):
            Window-relative address, within ``0x0000``-``0xFFFF``.

        data (bytes):
            Payload, up to 255 bytes.

        checksum (int):
            Expected checksum; if ``None``, it is computed.

    Raises:
        RowSizeError: Payload too long.
        ChecksumError: `checksum` does not match the fields.
        ValueError: Invalid kind or offset.
    """

    __slots__ = ('_kind', '_offset', '_data', '_checksum')

    LINE_REGEX = re.compile(
        r'^:'
        r'(?P<count>[0-9A-Fa-f]{2})'
        r'(?P<offset>[0-9A-Fa-f]{4})'
        r'(?P<kind>[0-9A-Fa-f]{2})'
        r'(?P<data>(?:[0-9A-Fa-f]{2})*)'
        r'(?P<checksum>[0-9A-Fa-f]{2})$'
    )
    r"""Line parser regex."""

    DATA_SIZES: Mapping[RowKind, int] = {
        RowKind.END_OF_FILE: 0,
        RowKind.EXTENDED_SEGMENT_ADDRESS: 2,
        RowKind.START_SEGMENT_ADDRESS: 4,
        RowKind.EXTENDED_LINEAR_ADDRESS: 2,
        RowKind.START_LINEAR_ADDRESS: 4,
    }
    r"""Payload size required by parsed non-data rows."""

    def __init__(
        self,
        kind: RowKind,
        offset: int = 0,
        data: AnyBytes = b'',
        checksum: Optional[int] = None,
    ):

        kind = RowKind(kind)

        offset = offset.__index__()
        if not 0 <= offset <= MAX_OFFSET:
            raise ValueError('offset overflow')

        data = bytes(data)
        if len(data) > MAX_ROW_SIZE:
            raise RowSizeError(f'too many bytes ({len(data)}) in row')

        self._kind: RowKind = kind
        self._offset: int = offset
        self._data: bytes = data
        self._checksum: int = self.compute_checksum()

        if checksum is not None and checksum != self._checksum:
            raise ChecksumError(f'wrong checksum: 0x{checksum:02X}, '
                                f'expected 0x{self._checksum:02X}')

    def __bytes__(self) -> bytes:

        return self.to_bytestr(end=b'')

    def __eq__(self, other: Any) -> bool:

        if not isinstance(other, Row):
            return NotImplemented

        return (self._kind == other._kind and
                self._offset == other._offset and
                self._data == other._data)

    def __hash__(self) -> int:

        return hash((self._kind, self._offset, self._data))

    def __repr__(self) -> str:

        meta = self.get_meta()
        text = f'<{self.__class__!s} @0x{id(self):08X} '
        text += ' '.join(f'{key!s}:={value!r}' for key, value in meta.items())
        text += '>'
        return text

    def __str__(self) -> str:
        r"""Serializes the row into a string.

        Returns:
            str: Canonical Intel HEX line, without line terminator.

        See Also:
            :meth:`to_str`

        Examples:
            >>> from ihexmap import Row
            >>> str(Row.create_end_of_file())
            ':00000001FF'
        """

        return self.to_str()

    @property
    def checksum(self) -> int:
        r"""int: Checksum byte."""

        return self._checksum

    @property
    def count(self) -> int:
        r"""int: Byte count field, i.e. payload size."""

        return len(self._data)

    @property
    def data(self) -> bytes:
        r"""bytes: Payload."""

        return self._data

    @property
    def kind(self) -> RowKind:
        r""":class:`RowKind`: Record kind."""

        return self._kind

    @property
    def offset(self) -> int:
        r"""int: Window-relative address."""

        return self._offset

    def compute_checksum(self) -> int:
        r"""Computes the checksum field value.

        The sum covers the byte count, the kind code, both offset bytes and
        the payload.

        Returns:
            int: Computed checksum.

        Examples:
            >>> from ihexmap import Row, RowKind
            >>> row = Row(RowKind.DATA, 0x0030, b'\x02\x33\x7A')
            >>> hex(row.compute_checksum())
            '0x1e'
        """

        offset = self._offset
        header = (len(self._data), offset >> 8, offset & 0xFF, int(self._kind))
        return checksum(header + tuple(self._data))

    @classmethod
    def create_data(
        cls: Type[_Row],
        offset: int,
        data: AnyBytes,
    ) -> _Row:
        r"""Creates a Data row.

        Args:
            offset (int):
                Window-relative address.

            data (bytes):
                Payload.

        Returns:
            :class:`Row`: Data row object.

        Examples:
            >>> from ihexmap import Row
            >>> str(Row.create_data(0x1234, b'abc'))
            ':0312340061626391'
        """

        return cls.from_bytes(data, offset, RowKind.DATA)

    @classmethod
    def create_end_of_file(cls: Type[_Row]) -> _Row:
        r"""Creates an End Of File row.

        Returns:
            :class:`Row`: End Of File row object.

        Examples:
            >>> from ihexmap import Row
            >>> str(Row.create_end_of_file())
            ':00000001FF'
        """

        return cls.from_bytes(b'', 0, RowKind.END_OF_FILE)

    @classmethod
    def create_extended_linear_address(
        cls: Type[_Row],
        extension: int,
    ) -> _Row:
        r"""Creates an Extended Linear Address row.

        Args:
            extension (int):
                Window index, i.e. bits 31:16 of the address.

        Returns:
            :class:`Row`: Extended Linear Address row object.

        Examples:
            >>> from ihexmap import Row
            >>> str(Row.create_extended_linear_address(0x1234))
            ':020000041234B4'
        """

        extension = extension.__index__()
        if not 0 <= extension <= 0xFFFF:
            raise ValueError('extension overflow')

        data = extension.to_bytes(2, byteorder='big')
        return cls.from_bytes(data, 0, RowKind.EXTENDED_LINEAR_ADDRESS)

    def data_to_int(self, byteorder: str = 'big') -> int:
        r"""Interprets the payload as an unsigned integer.

        Args:
            byteorder (str):
                Byte order, ``'big'`` or ``'little'``.

        Returns:
            int: Payload value.

        Examples:
            >>> from ihexmap import Row
            >>> Row.create_extended_linear_address(0x0800).data_to_int()
            2048
        """

        return int.from_bytes(self._data, byteorder=byteorder)

    @classmethod
    def from_bytes(
        cls: Type[_Row],
        data: AnyBytes,
        offset: int,
        kind: RowKind,
    ) -> _Row:
        r"""Builds a row from its payload.

        The checksum is always computed, so the resulting row is consistent
        by construction.
        An empty payload is allowed, as needed by End Of File rows.

        Args:
            data (bytes):
                Payload, up to 255 bytes.

            offset (int):
                Window-relative address.

            kind (:class:`RowKind`):
                Record kind.

        Returns:
            :class:`Row`: Row object.

        Raises:
            RowSizeError: Payload too long.

        Examples:
            >>> from ihexmap import Row, RowKind
            >>> row = Row.from_bytes(b'\x00\x01\x02\x03', 0, RowKind.DATA)
            >>> str(row)
            ':0400000000010203F6'
        """

        return cls(kind, offset=offset, data=data)

    def get_meta(self) -> MutableMapping[str, Any]:
        r"""Gets row meta information.

        Returns:
            dict: Field values, by name.
        """

        return {
            'kind': self._kind,
            'offset': self._offset,
            'count': self.count,
            'data': self._data,
            'checksum': self._checksum,
        }

    @classmethod
    def parse(cls: Type[_Row], line: AnyLine) -> _Row:
        r"""Parses a row from a line of text.

        Surrounding whitespace is ignored.

        Args:
            line (str):
                Line to parse; byte strings are decoded as ASCII.

        Returns:
            :class:`Row`: Parsed row object.

        Raises:
            DecodeError: Malformed line.
            ChecksumError: Checksum mismatch.

        Examples:
            >>> from ihexmap import Row
            >>> row = Row.parse(':0400000000010203F6\r\n')
            >>> row.kind, row.offset, row.data
            (<RowKind.DATA: 0>, 0, b'\x00\x01\x02\x03')
        """

        if not isinstance(line, str):
            try:
                line = bytes(line).decode('ascii')
            except UnicodeDecodeError:
                raise DecodeError('non-ASCII characters', line=repr(line)) from None

        line = line.strip()

        if not line.startswith(':'):
            raise DecodeError(f'invalid row start: {line[:1]!r}', line=line)

        match = cls.LINE_REGEX.match(line)
        if not match:
            raise DecodeError('syntax error', line=line)

        groups = match.groupdict()
        count = int(groups['count'], 16)
        offset = int(groups['offset'], 16)
        code = int(groups['kind'], 16)
        data = unhexlify(groups['data'])
        parsed_checksum = int(groups['checksum'], 16)

        try:
            kind = RowKind(code)
        except ValueError:
            raise DecodeError(f'unknown record kind: 0x{code:02X}', line=line) from None

        if count != len(data):
            raise DecodeError(f'byte count mismatch: 0x{count:02X}, '
                              f'found 0x{len(data):02X}', line=line)

        required_size = cls.DATA_SIZES.get(kind)
        if required_size is not None and required_size != count:
            raise DecodeError(f'unexpected data size for {kind.name}: {count}', line=line)

        try:
            row = cls(kind, offset=offset, data=data, checksum=parsed_checksum)
        except ChecksumError as exc:
            raise ChecksumError(exc.message, line=line) from None
        return row

    def serialize(self, stream: IO, end: bytes = b'\n') -> 'Row':
        r"""Serializes the row onto a byte stream.

        Args:
            stream (bytes IO):
                Stream to write onto.

            end (bytes):
                Line terminator.

        Returns:
            :class:`Row`: *self*.
        """

        stream.write(self.to_bytestr(end=end))
        return self

    def to_binary(self) -> bytes:
        r"""Raw payload bytes.

        Empty payload rows, like End Of File, contribute no bytes.

        Returns:
            bytes: Payload.

        Examples:
            >>> from ihexmap import Row
            >>> Row.create_end_of_file().to_binary()
            b''
        """

        return self._data

    def to_bytestr(self, end: bytes = b'\n') -> bytes:
        r"""Serializes the row into ASCII bytes.

        Args:
            end (bytes):
                Line terminator.

        Returns:
            bytes: Serialized line.

        Examples:
            >>> from ihexmap import Row
            >>> Row.create_end_of_file().to_bytestr(end=b'\r\n')
            b':00000001FF\r\n'
        """

        return self.to_str().encode('ascii') + end

    def to_str(self) -> str:

        return (f':{self.count:02X}{self._offset:04X}{int(self._kind):02X}'
                f'{hexlify(self._data)}{self._checksum:02X}')

    def to_tokens(self, end: str = '\n') -> Mapping[str, str]:
        r"""Splits the serialized row into field tokens.

        Args:
            end (str):
                Line terminator.

        Returns:
            dict: Token string, by field name.

        See Also:
            :func:`ihexmap.base.colorize_tokens`

        Examples:
            >>> from ihexmap import Row
            >>> Row.create_end_of_file().to_tokens()['checksum']
            'FF'
        """

        return {
            'begin': ':',
            'count': f'{self.count:02X}',
            'address': f'{self._offset:04X}',
            'tag': f'{int(self._kind):02X}',
            'data': hexlify(self._data),
            'checksum': f'{self._checksum:02X}',
            'end': end,
        }
