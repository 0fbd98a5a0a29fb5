import os
from pathlib import Path
from typing import cast as _cast

import pytest
from click.core import Command
from click.testing import CliRunner

from hex2dfu import __version__ as _version
from hex2dfu.__main__ import main as _main
from hex2dfu.cli import EXIT_FAILURE
from hex2dfu.cli import EXIT_INVALID
from hex2dfu.cli import main

main = _cast(Command, main)  # suppress warnings


@pytest.fixture
def tmppath(tmpdir):
    return Path(str(tmpdir))


@pytest.fixture(scope='module')
def datadir(request):
    dir_path, _ = os.path.splitext(request.module.__file__)
    assert os.path.isdir(str(dir_path))
    return dir_path


@pytest.fixture
def datapath(datadir):
    return Path(str(datadir))


def test_main():
    try:
        _main('__main__')
    except SystemExit:
        pass


def test_help():
    runner = CliRunner()
    result = runner.invoke(main, ['--help'])
    assert result.exit_code == 0
    assert result.output.strip().startswith('Usage:')


def test_version():
    runner = CliRunner()
    result = runner.invoke(main, ['--version'])
    assert result.exit_code == 0
    assert result.output.strip() == str(_version)

    result = runner.invoke(main, ['-v'])
    assert result.exit_code == 0
    assert result.output.strip() == str(_version)


def test_missing_args(datapath):
    runner = CliRunner()
    result = runner.invoke(main, [])
    assert result.exit_code == 2

    result = runner.invoke(main, [str(datapath / 'empty.hex')])
    assert result.exit_code == 2


def test_missing_input(tmppath):
    runner = CliRunner()
    path_in = str(tmppath / 'missing.hex')
    path_out = str(tmppath / 'missing.dfu')
    result = runner.invoke(main, [path_in, path_out])
    assert result.exit_code == 2
    assert not os.path.exists(path_out)


def test_bad_output(tmppath, datapath):
    runner = CliRunner()
    path_in = str(datapath / 'empty.hex')
    path_out = str(tmppath / 'missing' / 'empty.dfu')
    result = runner.invoke(main, [path_in, path_out])
    assert result.exit_code == EXIT_FAILURE
    assert f'ERROR: unable to open output file {path_out}' in result.output


def test_by_filename(tmppath, datapath):
    for name in ('empty', 'minimal', 'app'):
        path_in = str(datapath / f'{name}.hex')
        path_out = tmppath / f'{name}.dfu'
        path_ref = datapath / f'{name}.dfu'

        runner = CliRunner()
        result = runner.invoke(main, [path_in, str(path_out)], catch_exceptions=False)
        assert result.exit_code == 0
        assert result.output == ''
        assert path_out.read_bytes() == path_ref.read_bytes(), name


def test_idempotent(tmppath, datapath):
    path_in = str(datapath / 'app.hex')
    path_out1 = tmppath / 'first.dfu'
    path_out2 = tmppath / 'second.dfu'
    runner = CliRunner()
    runner.invoke(main, [path_in, str(path_out1)], catch_exceptions=False)
    runner.invoke(main, [path_in, str(path_out2)], catch_exceptions=False)
    assert path_out1.read_bytes() == path_out2.read_bytes()


def test_out_of_bounds(tmppath, datapath):
    path_in = str(datapath / 'bootloader.hex')
    path_out = tmppath / 'bootloader.dfu'
    runner = CliRunner()
    result = runner.invoke(main, [path_in, str(path_out)])
    assert result.exit_code == 0
    assert 'ERROR: supplied input file is faulty and used out-of-bounds addresses' in result.output
    assert not path_out.exists()


def test_overlap(tmppath, datapath):
    path_in = str(datapath / 'overlap.hex')
    path_out = tmppath / 'overlap.dfu'
    runner = CliRunner()
    result = runner.invoke(main, [path_in, str(path_out)])
    assert result.exit_code == 0
    assert 'ERROR: CRC address was occupied; app is in conflict with bootloader' in result.output
    assert not path_out.exists()


def test_strict(tmppath, datapath):
    runner = CliRunner()
    for name in ('bootloader', 'overlap'):
        path_in = str(datapath / f'{name}.hex')
        path_out = tmppath / f'{name}.dfu'
        result = runner.invoke(main, ['--strict', path_in, str(path_out)])
        assert result.exit_code == EXIT_INVALID
        assert result.output.startswith('ERROR: ')
        assert not path_out.exists()


def test_strict_valid(tmppath, datapath):
    path_in = str(datapath / 'minimal.hex')
    path_out = tmppath / 'minimal.dfu'
    runner = CliRunner()
    result = runner.invoke(main, ['--strict', path_in, str(path_out)])
    assert result.exit_code == 0
    assert path_out.read_bytes() == (datapath / 'minimal.dfu').read_bytes()


def test_stdin_stdout(datapath):
    data_in = (datapath / 'minimal.hex').read_bytes()
    runner = CliRunner()
    result = runner.invoke(main, ['-', '-'], input=data_in, catch_exceptions=False)
    assert result.exit_code == 0
    assert result.stdout_bytes == (datapath / 'minimal.dfu').read_bytes()
