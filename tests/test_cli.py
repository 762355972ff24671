from pathlib import Path
from typing import cast as _cast

import pytest
from click.core import Command
from click.testing import CliRunner

from ihexmap import __version__ as _version
from ihexmap.__main__ import main as _main
from ihexmap.cli import *

main = _cast(Command, main)  # suppress warnings

SIMPLE_HEX = (
    ':020000040800F2\n'
    ':0440000000010203B6\n'
    ':00000001FF\n'
)

CROSSING_HEX = (
    ':020000040001F9\n'
    ':02FFFE0061623E\n'
    ':020000040002F8\n'
    ':02000000636437\n'
    ':00000001FF\n'
)


@pytest.fixture
def tmppath(tmpdir):
    return Path(str(tmpdir))


def read_text(path):
    path = str(path)
    with open(path, 'rt') as file:
        data = file.read()
    data = data.replace('\r\n', '\n').replace('\r', '\n')  # normalize
    return data


# ============================================================================

def test_main():
    try:
        _main('__main__')
    except SystemExit:
        pass


# ============================================================================

class TestAddressParamType:

    def test_convert(self):
        assert ADDRESS.convert('0x08004000', None, None) == 0x08004000
        assert ADDRESS.convert('64k', None, None) == 0x10000

    def test_convert_fail(self):
        for value in ('-1', '0x100000000', 'xyz'):
            with pytest.raises(click.BadParameter, match='invalid address'):
                ADDRESS.convert(value, None, None)


def test_guess_input_format():
    assert guess_input_format('a.hex') == 'ihex'
    assert guess_input_format('a.bin') == 'binary'
    assert guess_input_format('a.xyz', 'binary') == 'binary'
    assert guess_input_format('-', 'ihex') == 'ihex'

    with pytest.raises(click.UsageError, match='standard input requires input format'):
        guess_input_format('-')

    with pytest.raises(click.UsageError, match='extension not found'):
        guess_input_format('a.xyz')


# ============================================================================

def test_help():
    runner = CliRunner()
    result = runner.invoke(main, ['--help'])
    assert result.exit_code == 0
    for command in ('bin2hex', 'diff', 'hex2bin', 'info', 'view', 'words'):
        assert command in result.output


def test_version():
    runner = CliRunner()
    result = runner.invoke(main, ['--version'])
    assert result.exit_code == 0
    assert result.output.strip() == str(_version)


def test_bin2hex(tmppath):
    in_path = tmppath / 'firmware.bin'
    out_path = tmppath / 'firmware.hex'
    in_path.write_bytes(b'\x00\x01\x02\x03')

    runner = CliRunner()
    args = ['bin2hex', '-a', '0x08004000', str(in_path), str(out_path)]
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    assert read_text(out_path) == SIMPLE_HEX


def test_bin2hex_width(tmppath):
    in_path = tmppath / 'firmware.bin'
    out_path = tmppath / 'firmware.hex'
    in_path.write_bytes(b'abcd')

    runner = CliRunner()
    args = ['bin2hex', '--address', '0x0001FFFE', '--width', '1', str(in_path), str(out_path)]
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    lines = read_text(out_path).splitlines()
    assert len(lines) == 2 + 4 + 1
    assert lines[0] == ':020000040001F9'


def test_bin2hex_width_fail(tmppath):
    in_path = tmppath / 'firmware.bin'
    in_path.write_bytes(b'abcd')

    runner = CliRunner()
    args = ['bin2hex', '-w', '256', str(in_path), str(tmppath / 'out.hex')]
    result = runner.invoke(main, args)
    assert result.exit_code == 2


def test_bin2hex_overflow(tmppath):
    in_path = tmppath / 'firmware.bin'
    in_path.write_bytes(b'ab')

    runner = CliRunner()
    args = ['bin2hex', '-a', '0xFFFFFFFF', str(in_path), str(tmppath / 'out.hex')]
    result = runner.invoke(main, args)
    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert 'Error: address overflow' in result.output


def test_bin2hex_stdio():
    runner = CliRunner()
    args = ['bin2hex', '-a', '0x0001FFFE', '-', '-']
    result = runner.invoke(main, args, input=b'abcd')
    assert result.exit_code == 0, result.output
    assert result.output == CROSSING_HEX


def test_hex2bin(tmppath):
    in_path = tmppath / 'firmware.hex'
    out_path = tmppath / 'firmware.bin'
    in_path.write_text(CROSSING_HEX)

    runner = CliRunner()
    result = runner.invoke(main, ['hex2bin', str(in_path), str(out_path)])
    assert result.exit_code == 0, result.output
    assert out_path.read_bytes() == b'abcd'


def test_hex2bin_stdio():
    runner = CliRunner()
    result = runner.invoke(main, ['hex2bin', '-', '-'], input=SIMPLE_HEX)
    assert result.exit_code == 0, result.output
    assert result.stdout_bytes == b'\x00\x01\x02\x03'


def test_hex2bin_invalid(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text(':020000040800F2\n:0440000000010203B7\n')

    runner = CliRunner()
    result = runner.invoke(main, ['hex2bin', str(in_path), str(tmppath / 'out.bin')])
    assert result.exit_code == 1
    assert 'invalid hex input: line 2: wrong checksum' in result.output


def test_words(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text(SIMPLE_HEX)

    runner = CliRunner()
    result = runner.invoke(main, ['words', str(in_path)])
    assert result.exit_code == 0, result.output
    assert result.output == '08004000: 00010203\n'


def test_words_binary(tmppath):
    in_path = tmppath / 'firmware.bin'
    in_path.write_bytes(bytes(range(8)))

    runner = CliRunner()
    result = runner.invoke(main, ['words', '-a', '0x100', str(in_path)])
    assert result.exit_code == 0, result.output
    assert result.output == '00000100: 00010203\n00000104: 04050607\n'


def test_words_stdin_requires_format():
    runner = CliRunner()
    result = runner.invoke(main, ['words', '-'], input=SIMPLE_HEX)
    assert result.exit_code == 2
    assert 'standard input requires input format' in result.output


def test_words_stdin():
    runner = CliRunner()
    result = runner.invoke(main, ['words', '-i', 'ihex', '-'], input=SIMPLE_HEX)
    assert result.exit_code == 0, result.output
    assert result.output == '08004000: 00010203\n'


def test_info(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text(CROSSING_HEX)

    runner = CliRunner()
    result = runner.invoke(main, ['info', str(in_path)])
    assert result.exit_code == 0, result.output
    assert result.output == (
        'groups: 2\n'
        'rows: 3\n'
        'bytes: 4\n'
        'span: 0001FFFE 00020002\n'
    )


def test_view(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text(SIMPLE_HEX.lower())

    runner = CliRunner()
    result = runner.invoke(main, ['view', '--no-color', str(in_path)])
    assert result.exit_code == 0, result.output
    assert result.output == SIMPLE_HEX


def test_view_color(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text(SIMPLE_HEX)

    runner = CliRunner()
    result = runner.invoke(main, ['view', '--color', str(in_path)])
    assert result.exit_code == 0, result.output
    assert '\x1b[' in result.output
    assert click.unstyle(result.output) == SIMPLE_HEX


def test_diff_same(tmppath):
    hex_path = tmppath / 'firmware.hex'
    bin_path = tmppath / 'firmware.bin'
    hex_path.write_text(SIMPLE_HEX)
    bin_path.write_bytes(b'\x00\x01\x02\x03')

    runner = CliRunner()
    args = ['diff', '-A', '0x08004000', str(hex_path), str(bin_path)]
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    assert result.output == ''


def test_diff_different(tmppath):
    hex_path = tmppath / 'firmware.hex'
    bin_path = tmppath / 'firmware.bin'
    hex_path.write_text(SIMPLE_HEX)
    bin_path.write_bytes(b'\x00\x01\xFF')

    runner = CliRunner()
    args = ['diff', '-A', '0x08004000', str(hex_path), str(bin_path)]
    result = runner.invoke(main, args)
    assert result.exit_code == 1
    assert result.output == (
        '08004002: 02 FF\n'
        '08004003: 03 --\n'
    )


def test_verbose(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text(SIMPLE_HEX)

    runner = CliRunner()
    result = runner.invoke(main, ['-v', 'words', str(in_path)])
    assert result.exit_code == 0, result.output
    assert '08004000: 00010203' in result.output
