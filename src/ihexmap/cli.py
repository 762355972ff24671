"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m ihexmap` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``ihexmap.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``ihexmap.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import logging
from typing import Optional

import click

from .__init__ import __version__
from .base import FORMAT_NAMES
from .base import DecodeError
from .base import RowSizeError
from .base import colorize_tokens
from .base import guess_format_name
from .base import load
from .image import ROW_CHUNK_SIZE
from .image import HexImage
from .records import MAX_ROW_SIZE
from .utils import parse_int

logger = logging.getLogger(__name__)


class AddressParamType(click.ParamType):
    name = 'address'

    def convert(self, value, param, ctx):
        try:
            address = parse_int(value)
            if not 0 <= address <= 0xFFFFFFFF:
                raise ValueError()
            return address
        except ValueError:
            self.fail(f'invalid address: {value!r}', param, ctx)


ADDRESS = AddressParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)

FORMAT_CHOICE = click.Choice(list(FORMAT_NAMES))


# ----------------------------------------------------------------------------

def guess_input_format(
    input_path: Optional[str],
    input_format: Optional[str] = None,
) -> str:

    if input_format:
        return input_format
    elif input_path is None or input_path == '-':
        raise click.UsageError('standard input requires input format')
    else:
        try:
            return guess_format_name(input_path)
        except ValueError as exc:
            raise click.UsageError(str(exc))


def load_image(
    input_path: str,
    input_format: Optional[str] = None,
    address: int = 0,
) -> HexImage:

    input_format = guess_input_format(input_path, input_format)
    if input_path == '-':
        input_path = click.get_binary_stream('stdin')

    try:
        return load(input_path, in_format=input_format, address=address)
    except DecodeError as exc:
        raise click.ClickException(f'invalid hex input: {exc}')
    except RowSizeError as exc:
        raise click.ClickException(f'row too large: {exc}')
    except ValueError as exc:
        raise click.ClickException(str(exc))


def output_stream_or_path(output_path: str):

    if output_path == '-':
        return click.get_binary_stream('stdout')
    return output_path


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ============================================================================

@click.group()
@click.option('--version', is_flag=True, is_eager=True, expose_value=False,
              callback=print_version, help="""
    Prints the package version number.
""")
@click.option('-v', '--verbose', is_flag=True, help="""
    Logs debug messages onto standard error.
""")
def main(verbose: bool) -> None:
    """
    A set of command line utilities to handle Intel HEX and binary images.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s: %(message)s',
    )


# ----------------------------------------------------------------------------

@main.command()
@click.option('-a', '--address', type=ADDRESS, default='0', show_default=True, help="""
    Base address of the first byte.
""")
@click.option('-w', '--width', type=click.IntRange(1, MAX_ROW_SIZE),
              default=ROW_CHUNK_SIZE, show_default=True, help="""
    Sets the length of the record data field, in bytes.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT)
def bin2hex(
    address: int,
    width: int,
    infile: str,
    outfile: str,
) -> None:
    r"""Converts a binary file to Intel HEX.

    ``INFILE`` is the path of the input binary file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output Intel HEX file.
    Set to ``-`` to write to standard output.
    """

    if infile == '-':
        infile = click.get_binary_stream('stdin')

    try:
        image = HexImage.load_binary(infile, address=address, row_size=width)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    image.save_hex(output_stream_or_path(outfile))


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the format of the left file.
""")
@click.option('-I', '--other-format', type=FORMAT_CHOICE, help="""
    Forces the format of the right file.
""")
@click.option('-a', '--address', type=ADDRESS, default='0', show_default=True, help="""
    Base address of the left file, if binary.
""")
@click.option('-A', '--other-address', type=ADDRESS, default='0', show_default=True, help="""
    Base address of the right file, if binary.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('otherfile', type=FILE_PATH_IN)
@click.pass_context
def diff(
    ctx: click.Context,
    input_format: Optional[str],
    other_format: Optional[str],
    address: int,
    other_address: int,
    infile: str,
    otherfile: str,
) -> None:
    r"""Compares the memory contents of two files.

    Each differing address is printed as ``ADDRESS: LEFT RIGHT``, with
    ``--`` marking a missing byte.
    The exit status is 1 when any differences are found.

    ``INFILE`` and ``OTHERFILE`` are the paths of the files to compare,
    either Intel HEX or binary.
    """

    left = load_image(infile, input_format, address).to_memory()
    right = load_image(otherfile, other_format, other_address).to_memory()

    addresses = set()
    for memory in (left, right):
        for start, endex in memory.intervals():
            addresses.update(range(start, endex))

    differences = 0
    for cursor in sorted(addresses):
        left_value = left.peek(cursor)
        right_value = right.peek(cursor)

        if left_value != right_value:
            left_text = '--' if left_value is None else f'{left_value:02X}'
            right_text = '--' if right_value is None else f'{right_value:02X}'
            click.echo(f'{cursor:08X}: {left_text} {right_text}')
            differences += 1

    if differences:
        logger.debug('%d differences found', differences)
        ctx.exit(1)


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT)
def hex2bin(
    infile: str,
    outfile: str,
) -> None:
    r"""Converts an Intel HEX file to binary.

    Data rows are concatenated in file order; gaps are not filled.

    ``INFILE`` is the path of the input Intel HEX file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output binary file.
    Set to ``-`` to write to standard output.
    """

    image = load_image(infile, 'ihex')
    image.save_binary(output_stream_or_path(outfile))


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the input file format.
    Required for the standard input.
""")
@click.option('-a', '--address', type=ADDRESS, default='0', show_default=True, help="""
    Base address of binary input.
""")
@click.argument('infile', type=FILE_PATH_IN)
def info(
    input_format: Optional[str],
    address: int,
    infile: str,
) -> None:
    r"""Prints a summary of the memory image.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input; input format required.
    """

    image = load_image(infile, input_format, address)
    rows = sum(len(group) for group in image)

    click.echo(f'groups: {len(image)}')
    click.echo(f'rows: {rows}')
    click.echo(f'bytes: {len(image.to_binary())}')

    for start, endex in image.get_spans():
        click.echo(f'span: {start:08X} {endex:08X}')


# ----------------------------------------------------------------------------

@main.command()
@click.option('--color/--no-color', default=None, help="""
    Colorizes the row fields; by default only on terminals.
""")
@click.argument('infile', type=FILE_PATH_IN)
def view(
    color: Optional[bool],
    infile: str,
) -> None:
    r"""Prints the rows of an Intel HEX file.

    ``INFILE`` is the path of the input Intel HEX file.
    Set to ``-`` to read from standard input.
    """

    image = load_image(infile, 'ihex')

    for group in image:
        rows = list(group)
        if not group.implicit:
            rows.insert(0, group.address_row)

        for row in rows:
            tokens = row.to_tokens(end='')
            if color is not False:
                tokens = colorize_tokens(tokens)
            click.echo(''.join(tokens.values()), color=color)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the input file format.
    Required for the standard input.
""")
@click.option('-a', '--address', type=ADDRESS, default='0', show_default=True, help="""
    Base address of binary input.
""")
@click.argument('infile', type=FILE_PATH_IN)
def words(
    input_format: Optional[str],
    address: int,
    infile: str,
) -> None:
    r"""Prints the addressed 32-bit words of a file.

    Each line is ``ADDRESS: WORD``, with big-endian words.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input; input format required.
    """

    image = load_image(infile, input_format, address)

    for word in image.to_word_list():
        click.echo(f'{word.address:08X}: {word.data:08X}')
