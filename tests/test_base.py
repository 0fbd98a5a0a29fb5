import io
import os
from pathlib import Path

import pytest

from hex2dfu import ChecksumOverlapError
from hex2dfu import OutOfBoundsError
from hex2dfu.base import build
from hex2dfu.base import convert

ERASED = b'\xFF\x3F' * (16384 // 2)


@pytest.fixture
def tmppath(tmpdir):
    return Path(str(tmpdir))


@pytest.fixture(scope='module')
def datadir(request):
    dir_path = os.path.join(os.path.dirname(request.module.__file__), 'test_cli')
    assert os.path.isdir(str(dir_path))
    return dir_path


@pytest.fixture
def datapath(datadir):
    return Path(str(datadir))


def test_build_empty():
    file = build(io.BytesIO(b':00000001FF\r\n'))
    data = file.to_bytes()
    assert len(data) == 16400
    assert data[:0x3EFE] == ERASED[:0x3EFE]
    assert data[0x3EFE:0x3F00] == b'\x86\x0B'
    assert data[0x3F00:16384] == ERASED[0x3F00:]
    assert data[16384:] == b'\xFF\xFF\x01\x00\x34\x12\x00\x01UFD\x10\x50\x22\xDB\x14'


def test_build_no_records():
    assert build(io.BytesIO(b'')).to_bytes() == build(io.BytesIO(b':00000001FF\n')).to_bytes()
    assert build(io.BytesIO(b'\r\n\r\n')).to_bytes() == build(io.BytesIO(b'')).to_bytes()


def test_build_ids():
    file = build(io.BytesIO(b''), product=0x0002, vendor=0x04D8)
    assert file.to_bytes()[16386:16390] == b'\x02\x00\xD8\x04'


@pytest.mark.parametrize('line', [
    b':01000000FF00\n',
    b':0103FF00FFFE\n',
    b':0180000000FF\n',
])
def test_build_out_of_bounds(line):
    with pytest.raises(OutOfBoundsError):
        build(io.BytesIO(line))


@pytest.mark.parametrize('line', [
    b':01040000FFFC\n',
    b':017FFF00FF82\n',
])
def test_build_in_bounds(line):
    assert len(build(io.BytesIO(line)).to_bytes()) == 16400


def test_build_overlap():
    with pytest.raises(ChecksumOverlapError):
        build(io.BytesIO(b':023EFE000000C2\n'))


def test_build_out_of_bounds_first():
    stream = io.BytesIO(b':023EFE000000C2\n'
                        b':01000000FF00\n')
    with pytest.raises(OutOfBoundsError):
        build(stream)


def test_build_extension_gating():
    stream = io.BytesIO(b':020000040001F9\n'
                        b':02040000AABB92\n'
                        b':020000040000FA\n'
                        b':02040200CCDD4E\n')
    data = build(stream).to_bytes()
    assert data[0x400:0x404] == b'\xFF\x3F\xCC\xDD'


def test_build_reference(datapath):
    for name in ('empty', 'minimal', 'app'):
        file = build(str(datapath / f'{name}.hex'))
        ans_ref = (datapath / f'{name}.dfu').read_bytes()
        assert file.to_bytes() == ans_ref, name


def test_build_beyond_memory(datapath):
    stream = io.BytesIO(b':025000001234B8\n')
    ans_ref = (datapath / 'empty.dfu').read_bytes()
    assert build(stream).to_bytes() == ans_ref


def test_convert(tmppath, datapath):
    path_out = tmppath / 'minimal.dfu'
    file = convert(str(datapath / 'minimal.hex'), str(path_out))
    ans_out = path_out.read_bytes()
    assert ans_out == file.to_bytes()
    assert ans_out == (datapath / 'minimal.dfu').read_bytes()


def test_convert_idempotent(tmppath, datapath):
    path_in = str(datapath / 'minimal.hex')
    path_out1 = tmppath / 'first.dfu'
    path_out2 = tmppath / 'second.dfu'
    convert(path_in, str(path_out1))
    convert(path_in, str(path_out2))
    assert path_out1.read_bytes() == path_out2.read_bytes()


@pytest.mark.parametrize('name', ['bootloader', 'overlap'])
def test_convert_invalid(tmppath, datapath, name):
    path_out = tmppath / f'{name}.dfu'
    with pytest.raises((OutOfBoundsError, ChecksumOverlapError)):
        convert(str(datapath / f'{name}.hex'), str(path_out))
    assert not path_out.exists()


def test_convert_streams():
    stream_out = io.BytesIO()
    convert(io.BytesIO(b':040400008A01002845\n'), stream_out)
    assert stream_out.getvalue()[0x400:0x404] == b'\x8A\x01\x00\x28'
    assert stream_out.getvalue()[0x3EFE:0x3F00] == b'\xB4\x14'
