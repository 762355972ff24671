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

r"""Base types, errors and helpers."""

import logging
import os
from typing import IO
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import Union

import colorama

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
AnyPath: TypeAlias = Union[bytes, bytearray, str, os.PathLike]
AnyLine: TypeAlias = Union[str, bytes, bytearray, memoryview]

logger = logging.getLogger(__name__)

FILE_EXT: Mapping[str, Sequence[str]] = {
    'ihex': [
        # General purpose:
        '.hex', '.mcs', '.int', '.ihex', '.ihe', '.ihx',
        # Platform specific:
        '.h80', '.h86', '.a43', '.a90', '.eep',
    ],
    'binary': [
        '.bin', '.dat', '.raw', '.img', '.rom',
    ],
}
r"""File extensions of the supported formats.

This is an ordered mapping, where the first item has top priority."""

FORMAT_NAMES: Sequence[str] = list(FILE_EXT.keys())
r"""Supported format names."""

TOKEN_COLOR_CODES: Mapping[str, str] = {
    '':         colorama.Style.RESET_ALL,
    '<':        colorama.Style.RESET_ALL,
    '>':        colorama.Style.RESET_ALL,
    'address':  colorama.Fore.RED,
    'begin':    colorama.Fore.YELLOW,
    'checksum': colorama.Fore.MAGENTA,
    'count':    colorama.Fore.BLUE,
    'data':     colorama.Fore.CYAN,
    'dataalt':  colorama.Fore.LIGHTCYAN_EX,
    'end':      colorama.Style.RESET_ALL,
    'tag':      colorama.Fore.GREEN,
}
r"""ANSI color codes for each possible token type."""


class DecodeError(ValueError):
    r"""Malformed Intel HEX line.

    Args:
        message (str):
            Error description.

        line (str):
            Offending line, if known.

        lineno (int):
            1-based line number within the parsed input, if known.
    """

    def __init__(
        self,
        message: str,
        line: Optional[str] = None,
        lineno: Optional[int] = None,
    ):

        super().__init__(message)
        self.message: str = message
        self.line: Optional[str] = line
        self.lineno: Optional[int] = lineno

    def __str__(self) -> str:

        if self.lineno is None:
            return self.message
        return f'line {self.lineno}: {self.message}'


class ChecksumError(DecodeError):
    r"""Parsed checksum disagrees with the computed one."""


class RowSizeError(ValueError):
    r"""Row payload longer than 255 bytes."""


def colorize_tokens(
    tokens: Mapping[str, str],
    altdata: bool = True,
) -> Mapping[str, str]:
    r"""Prepends ANSI color codes to row field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    The retrieved code is prepended to the token.
    All the modified tokens are then collected and returned.

    Args:
        tokens (dict):
            A mapping of each token key name to token string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).
            If false, only the ``data`` code is prepended.

    Returns:
        dict: `tokens` with prepended ANSI color codes.

    Examples:
        >>> from ihexmap.base import colorize_tokens
        >>> from ihexmap import Row
        >>> tokens = Row.create_end_of_file().to_tokens()
        >>> colorize_tokens(tokens)['tag']
        '\x1b[32m01'
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if value:
            code = codes.get(key, codes[''])

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                parts = []

                for i in range(0, len(value), 2):
                    parts.append(altcode if i & 2 else code)
                    parts.append(value[i:(i + 2)])

                colorized[key] = ''.join(parts)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized


def guess_format_name(file_path: str) -> str:
    r"""Guesses the file format name.

    It analyzes the file extension by `file_path` against all the formats
    listed by :data:`FILE_EXT`.
    The first format to match the extension is returned.

    Args:
        file_path (str):
            File path to analyze.

    Returns:
        str: Format name within :data:`FILE_EXT`.

    Raises:
        ValueError: Cannot guess file format.

    Examples:
        >>> from ihexmap import guess_format_name
        >>> guess_format_name('firmware.hex')
        'ihex'
        >>> guess_format_name('firmware.bin')
        'binary'
    """

    file_ext = os.path.splitext(str(file_path))[1].lower()

    for name, extensions in FILE_EXT.items():
        if file_ext in extensions:
            return name

    raise ValueError(f'extension not found: {file_ext!r}')


def load(
    in_path_or_stream: Union[AnyPath, IO],
    in_format: Optional[str] = None,
    address: int = 0,
) -> 'HexImage':
    r"""Loads an image.

    This is a simple helper function to load either an Intel HEX file or
    a flat binary file into a :class:`ihexmap.image.HexImage`.

    Args:
        in_path_or_stream (str):
            Input file path or stream.

        in_format (str):
            Name of the input format, within :data:`FILE_EXT`.
            If ``None``, it is guessed via :func:`guess_format_name`;
            streams default to ``ihex``.

        address (int):
            Base load address of *binary* input; ignored for ``ihex``.

    Returns:
        :class:`ihexmap.image.HexImage`: The loaded image.

    Examples:
        >>> from ihexmap import load
        >>> image = load('firmware.hex')
        >>> image = load('firmware.bin', address=0x08004000)
    """

    from .image import HexImage

    if in_format is None:
        if isinstance(in_path_or_stream, (str, bytes, bytearray, os.PathLike)):
            in_format = guess_format_name(os.fsdecode(in_path_or_stream))
        else:
            in_format = 'ihex'

    if in_format == 'ihex':
        return HexImage.load(in_path_or_stream)
    elif in_format == 'binary':
        return HexImage.load_binary(in_path_or_stream, address=address)
    else:
        raise ValueError(f'unknown format: {in_format!r}')


def convert(
    in_path: AnyPath,
    out_path: AnyPath,
    in_format: Optional[str] = None,
    out_format: Optional[str] = None,
    address: int = 0,
) -> 'HexImage':
    r"""Converts a file into the other format.

    Args:
        in_path (str):
            Input file path.

        out_path (str):
            Output file path.

        in_format (str):
            Name of the input format; guessed if ``None``.

        out_format (str):
            Name of the output format; guessed if ``None``.

        address (int):
            Base load address of *binary* input.

    Returns:
        :class:`ihexmap.image.HexImage`: The image used internally.

    Examples:
        >>> from ihexmap import convert
        >>> image = convert('firmware.bin', 'firmware.hex', address=0x08004000)
    """

    if out_format is None:
        out_format = guess_format_name(os.fsdecode(out_path))

    image = load(in_path, in_format=in_format, address=address)
    logger.debug('converting %s -> %s as %s', in_path, out_path, out_format)

    if out_format == 'ihex':
        image.save_hex(out_path)
    elif out_format == 'binary':
        image.save_binary(out_path)
    else:
        raise ValueError(f'unknown format: {out_format!r}')

    return image
