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

r"""Intel HEX memory images.

An image is an ordered sequence of *address groups*, each one made of an
*Extended Linear Address* row, setting bits 31:16 of the addresses, and of
the rows addressed within that 64 KiB window.
"""

import io
import logging
import sys
from typing import IO
from typing import Iterable
from typing import Iterator
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Tuple
from typing import Union

from bytesparse import Memory
from deprecated import deprecated

from .base import AnyBytes
from .base import AnyLine
from .base import AnyPath
from .base import DecodeError
from .records import MAX_ROW_SIZE
from .records import Row
from .records import RowKind
from .utils import chop

ADDRESS_SPACE_SIZE: int = 0x10000
r"""Size of a window addressable by a 16-bit offset."""

ROW_CHUNK_SIZE: int = 16
r"""Default payload size of data rows built from binary data."""

WORD_SIZE: int = 4
r"""Size of an addressed word, in bytes."""

DEFAULT_ADDRESS_ROW: Row = Row.from_bytes(b'\x00\x00', 0, RowKind.EXTENDED_LINEAR_ADDRESS)
r"""Address row of the implicit group at address zero.

Used for inputs, like those targeting 16-bit address spaces, which never
state an Extended Linear Address row."""

logger = logging.getLogger(__name__)


class AddressedByte(NamedTuple):
    r"""Byte value at some address."""

    address: int
    data: int


class AddressedWord(NamedTuple):
    r"""Big-endian 32-bit word value at some address."""

    address: int
    data: int


class AddressGroup:
    r"""Rows addressed within a 64 KiB window.

    Args:
        address_row (:class:`ihexmap.records.Row`):
            Extended Linear Address row setting the window base.

        rows (list of :class:`ihexmap.records.Row`):
            Initial rows addressed within the window.

        implicit (bool):
            The address row was not stated by the source, so it is not
            serialized.

    Examples:
        >>> from ihexmap import AddressGroup, Row
        >>> group = AddressGroup(Row.create_extended_linear_address(0x0800))
        >>> group.append(Row.create_data(0x4000, b'abc'))
        >>> hex(group.base_offset)
        '0x8000000'
        >>> group.to_byte_list()[0]
        AddressedByte(address=134234112, data=97)
    """

    def __init__(
        self,
        address_row: Row,
        rows: Optional[Iterable[Row]] = None,
        implicit: bool = False,
    ):

        if address_row.kind != RowKind.EXTENDED_LINEAR_ADDRESS:
            raise ValueError('extended linear address row required')
        if address_row.count != 2:
            raise ValueError('extension data size overflow')

        self.address_row: Row = address_row
        self.rows: List[Row] = list(rows or ())
        self.implicit: bool = implicit

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, AddressGroup):
            return NotImplemented

        return (self.base_offset == other.base_offset and
                self.rows == other.rows)

    def __iter__(self) -> Iterator[Row]:

        return iter(self.rows)

    def __len__(self) -> int:

        return len(self.rows)

    def __repr__(self) -> str:

        return (f'<{self.__class__!s} @0x{id(self):08X} '
                f'base_offset:=0x{self.base_offset:08X} rows:={len(self.rows)}>')

    def __str__(self) -> str:

        return '\n'.join(self.to_lines())

    def append(self, row: Row) -> None:
        r"""Appends a row to the window.

        Args:
            row (:class:`ihexmap.records.Row`):
                Row to append; rows keep their insertion order.
        """

        self.rows.append(row)

    @property
    def base_offset(self) -> int:
        r"""int: Window base address, as bits 31:16."""

        data = self.address_row.data
        return (data[0] << 24) | (data[1] << 16)

    def data_rows(self) -> Iterator[Row]:
        r"""Iterates over Data rows only.

        Yields:
            :class:`ihexmap.records.Row`: Data row.
        """

        for row in self.rows:
            if row.kind == RowKind.DATA:
                yield row

    def iter_bytes(self) -> Iterator[AddressedByte]:
        r"""Iterates over addressed bytes.

        For each Data row, the address of its first byte is the window base
        or-ed with the row offset; each following byte increments it.

        Yields:
            :class:`AddressedByte`: Addressed byte.
        """

        base_offset = self.base_offset

        for row in self.data_rows():
            address = row.offset
            for value in row.data:
                yield AddressedByte(base_offset | address, value)
                address += 1

    def to_binary(self) -> bytes:
        r"""Concatenates the payload of all the Data rows.

        Gaps between rows are not filled.

        Returns:
            bytes: Binary data.
        """

        return b''.join(row.to_binary() for row in self.data_rows())

    def to_byte_list(self) -> List[AddressedByte]:
        r"""Flattens the window into addressed bytes.

        Rows other than Data are skipped.

        Returns:
            list of :class:`AddressedByte`: Addressed bytes, in row order.
        """

        return list(self.iter_bytes())

    def to_lines(self) -> List[str]:
        r"""Serializes the window into Intel HEX lines.

        The address row comes first, unless :attr:`implicit`.

        Returns:
            list of str: Serialized rows.
        """

        lines = [] if self.implicit else [self.address_row.to_str()]
        lines.extend(row.to_str() for row in self.rows)
        return lines


class HexImage:
    r"""Intel HEX memory image.

    Args:
        groups (list of :class:`AddressGroup`):
            Initial address groups.

    Examples:
        >>> from ihexmap import HexImage
        >>> image = HexImage.from_bytes(b'\x00\x01\x02\x03', 0x08004000)
        >>> print(image.to_hex_text(), end='')
        :020000040800F2
        :0440000000010203B6
        :00000001FF
        >>> image.to_word_list()
        [AddressedWord(address=134234112, data=66051)]
    """

    def __init__(self, groups: Optional[Iterable[AddressGroup]] = None):

        self.groups: List[AddressGroup] = list(groups or ())

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, HexImage):
            return NotImplemented

        return self.groups == other.groups

    def __iter__(self) -> Iterator[AddressGroup]:

        return iter(self.groups)

    def __len__(self) -> int:

        return len(self.groups)

    def __repr__(self) -> str:

        return f'<{self.__class__!s} @0x{id(self):08X} groups:={len(self.groups)}>'

    def __str__(self) -> str:

        return self.to_hex_text()

    def append(self, group: AddressGroup) -> None:
        r"""Appends an address group.

        Args:
            group (:class:`AddressGroup`):
                Group to append; it becomes the current one.
        """

        self.groups.append(group)

    def append_row(self, row: Row) -> None:
        r"""Appends a row to the current address group.

        If there is no group yet, an implicit one at address zero is opened
        first.

        Args:
            row (:class:`ihexmap.records.Row`):
                Row to append.
        """

        if not self.groups:
            logger.debug('opening default address group')
            self.append(AddressGroup(DEFAULT_ADDRESS_ROW, implicit=True))

        self.groups[-1].append(row)

    def _open_window(self, extension: int) -> None:

        if extension > 0xFFFF:
            raise ValueError('address overflow')

        logger.debug('opening address group 0x%04X', extension)
        address_row = Row.create_extended_linear_address(extension)
        self.append(AddressGroup(address_row))

    @classmethod
    def from_bytes(
        cls,
        data: AnyBytes,
        address: int = 0,
        row_size: int = ROW_CHUNK_SIZE,
    ) -> 'HexImage':
        r"""Builds an image from a flat binary buffer.

        The buffer is split into Data rows of `row_size` bytes each (the last
        one may be shorter), starting at `address`.
        Whenever the data reaches the end of the current 64 KiB window, a new
        address group is opened with the next window index.
        The image is terminated by an End Of File row.

        Args:
            data (bytes):
                Binary data.

            address (int):
                32-bit base address of the first byte.

            row_size (int):
                Maximum payload size of each Data row.

        Returns:
            :class:`HexImage`: Built image.

        Raises:
            ValueError: Invalid address or row size, or data beyond the
                32-bit address space.

        Examples:
            >>> from ihexmap import HexImage
            >>> image = HexImage.from_bytes(b'abcd', 0x0001FFFE)
            >>> print(image.to_hex_text(), end='')
            :020000040001F9
            :02FFFE0061623E
            :020000040002F8
            :02000000636437
            :00000001FF
        """

        address = address.__index__()
        if not 0 <= address <= 0xFFFFFFFF:
            raise ValueError('address overflow')

        row_size = row_size.__index__()
        if not 0 < row_size <= MAX_ROW_SIZE:
            raise ValueError('invalid row size')

        data = memoryview(data).cast('B')
        size = len(data)
        offset = address & 0xFFFF
        extension = address >> 16
        start = 0

        image = cls()
        image._open_window(extension)

        while start < size:
            remaining_space = ADDRESS_SPACE_SIZE - offset

            if remaining_space == 0:
                extension += 1
                image._open_window(extension)
                offset = 0
                continue

            endex = min(start + remaining_space, size)

            for chunk in chop(data[start:endex], row_size):
                image.append_row(Row.from_bytes(chunk, offset, RowKind.DATA))
                offset += len(chunk)

            start = endex

        image.append_row(Row.create_end_of_file())
        logger.debug('built %d address groups from %d bytes at 0x%08X',
                     len(image.groups), size, address)
        return image

    @classmethod
    def from_lines(cls, lines: Iterable[AnyLine]) -> 'HexImage':
        r"""Builds an image from Intel HEX lines.

        Each Extended Linear Address row opens a new address group; any other
        row is appended to the current group.
        Rows preceding the first Extended Linear Address row fall into an
        implicit group at address zero.
        Blank lines are skipped.

        Args:
            lines (list of str):
                Lines to parse.

        Returns:
            :class:`HexImage`: Parsed image.

        Raises:
            DecodeError: Malformed line; the whole image is rejected.

        Examples:
            >>> from ihexmap import HexImage
            >>> image = HexImage.from_lines([':0400000000010203F6', ':00000001FF'])
            >>> image.to_binary()
            b'\x00\x01\x02\x03'
        """

        image = cls()

        for lineno, line in enumerate(lines, 1):
            if isinstance(line, memoryview):
                line = bytes(line)
            if not line.strip():
                continue

            try:
                row = Row.parse(line)
            except DecodeError as exc:
                exc.lineno = lineno
                raise

            if row.kind == RowKind.EXTENDED_LINEAR_ADDRESS:
                logger.debug('opening address group 0x%04X', row.data_to_int())
                image.append(AddressGroup(row))
            else:
                image.append_row(row)

        return image

    @classmethod
    def load(cls, in_path_or_stream: Optional[Union[AnyPath, IO]]) -> 'HexImage':
        r"""Loads an image from an Intel HEX file.

        Args:
            in_path_or_stream (str or IO):
                Path of the file within the filesystem, or input stream.
                If ``None``, ``sys.stdin.buffer`` is used.

        Returns:
            :class:`HexImage`: Loaded image.

        See Also:
            :meth:`parse`
        """

        if in_path_or_stream is None:
            in_path_or_stream = sys.stdin.buffer

        if isinstance(in_path_or_stream, io.IOBase):
            return cls.parse(in_path_or_stream)
        else:
            logger.debug('loading hex file %s', in_path_or_stream)
            with open(in_path_or_stream, 'rb') as stream:
                return cls.parse(stream)

    @classmethod
    def load_binary(
        cls,
        in_path_or_stream: Optional[Union[AnyPath, IO]],
        address: int = 0,
        row_size: int = ROW_CHUNK_SIZE,
    ) -> 'HexImage':
        r"""Loads an image from a flat binary file.

        Args:
            in_path_or_stream (str or IO):
                Path of the file within the filesystem, or input byte stream.
                If ``None``, ``sys.stdin.buffer`` is used.

            address (int):
                32-bit base address of the first byte.

            row_size (int):
                Maximum payload size of each Data row.

        Returns:
            :class:`HexImage`: Loaded image.

        See Also:
            :meth:`from_bytes`
        """

        if in_path_or_stream is None:
            in_path_or_stream = sys.stdin.buffer

        if isinstance(in_path_or_stream, io.IOBase):
            data = in_path_or_stream.read()
        else:
            logger.debug('loading binary file %s', in_path_or_stream)
            with open(in_path_or_stream, 'rb') as stream:
                data = stream.read()

        return cls.from_bytes(data, address=address, row_size=row_size)

    @classmethod
    def parse(cls, stream: Union[AnyLine, IO]) -> 'HexImage':
        r"""Parses an image from a text buffer or stream.

        Args:
            stream (str, bytes or IO):
                Text or byte buffer, or a stream yielding lines.

        Returns:
            :class:`HexImage`: Parsed image.

        See Also:
            :meth:`from_lines`
        """

        if isinstance(stream, str):
            lines = stream.splitlines()
        elif isinstance(stream, (bytes, bytearray, memoryview)):
            lines = bytes(stream).splitlines()
        else:
            lines = stream

        return cls.from_lines(lines)

    def save_binary(self, out_path_or_stream: Optional[Union[AnyPath, IO]]) -> 'HexImage':
        r"""Saves the binary projection.

        Args:
            out_path_or_stream (str or IO):
                Path of the file within the filesystem, or output byte stream.
                If ``None``, ``sys.stdout.buffer`` is used.

        Returns:
            :class:`HexImage`: *self*.

        See Also:
            :meth:`to_binary`
        """

        if out_path_or_stream is None:
            out_path_or_stream = sys.stdout.buffer

        data = self.to_binary()

        if isinstance(out_path_or_stream, io.IOBase):
            out_path_or_stream.write(data)
        else:
            logger.debug('saving binary file %s', out_path_or_stream)
            with open(out_path_or_stream, 'wb') as stream:
                stream.write(data)
        return self

    def save_hex(self, out_path_or_stream: Optional[Union[AnyPath, IO]]) -> 'HexImage':
        r"""Saves the Intel HEX serialization.

        Args:
            out_path_or_stream (str or IO):
                Path of the file within the filesystem, or output byte stream.
                If ``None``, ``sys.stdout.buffer`` is used.

        Returns:
            :class:`HexImage`: *self*.

        See Also:
            :meth:`serialize`
        """

        if out_path_or_stream is None:
            out_path_or_stream = sys.stdout.buffer

        if isinstance(out_path_or_stream, io.IOBase):
            return self.serialize(out_path_or_stream)
        else:
            logger.debug('saving hex file %s', out_path_or_stream)
            with open(out_path_or_stream, 'wb') as stream:
                return self.serialize(stream)

    def serialize(self, stream: IO, end: bytes = b'\n') -> 'HexImage':
        r"""Serializes the rows onto a byte stream.

        Args:
            stream (bytes IO):
                Stream to serialize rows onto.

            end (bytes):
                Line terminator.

        Returns:
            :class:`HexImage`: *self*.
        """

        for line in self.to_lines():
            stream.write(line.encode('ascii') + end)
        return self

    def to_binary(self) -> bytes:
        r"""Concatenates the payload of all the Data rows.

        Groups and rows are taken in order, without any address-based
        reordering or gap filling.

        Returns:
            bytes: Binary data.

        Examples:
            >>> from ihexmap import HexImage
            >>> HexImage.from_bytes(b'abc', 0x1234).to_binary()
            b'abc'
        """

        return b''.join(group.to_binary() for group in self.groups)

    def to_byte_list(self) -> List[AddressedByte]:
        r"""Flattens the image into addressed bytes.

        Returns:
            list of :class:`AddressedByte`: Addressed bytes, in group order.
        """

        return [item for group in self.groups for item in group.iter_bytes()]

    def to_hex_text(self) -> str:
        r"""Serializes the image into Intel HEX text.

        Returns:
            str: One row per line, with trailing newline.
        """

        lines = self.to_lines()
        return '\n'.join(lines) + '\n' if lines else ''

    def to_lines(self) -> List[str]:
        r"""Serializes the image into Intel HEX lines.

        Returns:
            list of str: Serialized rows, without line terminators.
        """

        return [line for group in self.groups for line in group.to_lines()]

    def get_spans(self) -> List[Tuple[int, int]]:
        r"""List of memory block spans.

        Each span is a couple of ``(start, stop)`` addresses
        (as per :class:`slice` or :func:`range`).

        Returns:
            list of couples: List of memory block boundaries.

        See Also:
            :meth:`bytesparse.base.ImmutableMemory.intervals`

        Examples:
            >>> from ihexmap import HexImage
            >>> HexImage.from_bytes(b'abc', 0x1234).get_spans()
            [(4660, 4663)]
        """

        return list(self.to_memory().intervals())

    def to_memory(self) -> Memory:
        r"""Projects the Data rows onto a sparse memory.

        Later rows overwrite earlier ones at the same addresses.

        Returns:
            :class:`bytesparse.Memory`: Sparse memory.

        Examples:
            >>> from ihexmap import HexImage
            >>> image = HexImage.from_bytes(b'abc', 0x1234)
            >>> memory = image.to_memory()
            >>> list(memory.intervals())
            [(4660, 4663)]
            >>> memory.to_bytes()
            b'abc'
        """

        memory = Memory()

        for group in self.groups:
            base_offset = group.base_offset
            for row in group.data_rows():
                memory.write(base_offset | row.offset, row.data)

        return memory

    def to_word_list(self) -> List[AddressedWord]:
        r"""Flattens the image into addressed 32-bit words.

        Consecutive addressed bytes are grouped by four, the first byte being
        the most significant one; the word address is that of its first byte.
        A trailing group of less than four bytes is still emitted, with the
        missing least significant bytes set to zero.

        Returns:
            list of :class:`AddressedWord`: Addressed words.

        Examples:
            >>> from ihexmap import HexImage
            >>> image = HexImage.from_bytes(b'\x11\x22\x33\x44\x55', 0x100)
            >>> [(hex(a), hex(w)) for a, w in image.to_word_list()]
            [('0x100', '0x11223344'), ('0x104', '0x55000000')]
        """

        words = []

        for chunk in chop(self.to_byte_list(), WORD_SIZE):
            value = 0
            for index, item in enumerate(chunk):
                value |= item.data << (8 * (WORD_SIZE - 1 - index))
            words.append(AddressedWord(chunk[0].address, value))

        return words

    @deprecated(reason='Use to_word_list() instead')
    def to_u32_list(self) -> List[AddressedWord]:

        return self.to_word_list()
