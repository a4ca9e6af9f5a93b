"""A module for testing the ByteSources that supply byte ranges to the EDF
decoders.

Typical usage example:
    !pytest test_sources.py::<TEST_NAME>
"""

import pytest

from edfview.file_io.errors import TruncatedDataError
from edfview.file_io.sources import BufferSource, FileSource, MappedSource


@pytest.fixture(scope='module')
def data_path(tmp_path_factory):
    """Writes 64 known bytes to a temporary file."""

    fp = tmp_path_factory.mktemp('sources').joinpath('bytes.bin')
    fp.write_bytes(bytes(range(64)))
    return fp


def test_exact_reads(opener, data_path):
    """Test that every source kind returns exactly the requested range."""

    with opener(data_path) as source:
        assert source.size == 64
        assert source.read(0, 4) == bytes([0, 1, 2, 3])
        assert source.read(60, 4) == bytes([60, 61, 62, 63])
        assert source.read(10, 0) == b''

def test_reads_are_positioned(opener, data_path):
    """Test that reads do not depend on the position of earlier reads."""

    with opener(data_path) as source:
        first = source.read(32, 8)
        source.read(0, 2)
        assert source.read(32, 8) == first

def test_truncated_read(opener, data_path):
    """Test that a read past the end raises with the shortfall recorded."""

    with opener(data_path) as source:
        with pytest.raises(TruncatedDataError) as info:
            source.read(60, 8)
    assert info.value.offset == 60
    assert info.value.length == 8
    assert info.value.available == 4

def test_read_beyond_end(opener, data_path):
    """Test that a read starting after the end is truncated not empty."""

    with opener(data_path) as source:
        with pytest.raises(TruncatedDataError) as info:
            source.read(100, 1)
    assert info.value.available == 0

def test_truncated_is_eoferror():
    """Test that callers catching EOFError also catch truncation."""

    with pytest.raises(EOFError):
        BufferSource(b'abc').read(0, 4)

def test_negative_arguments():
    """Test that negative offsets and lengths are rejected."""

    source = BufferSource(b'abcdef')
    with pytest.raises(ValueError):
        source.read(-1, 2)
    with pytest.raises(ValueError):
        source.read(0, -2)

def test_missing_file(tmp_path):
    """Test that failures to open a file propagate as OSError."""

    with pytest.raises(OSError):
        FileSource(tmp_path.joinpath('missing.edf'))

def test_closed_file_source(data_path):
    """Test that a closed FileSource refuses further reads."""

    source = FileSource(data_path)
    source.close()
    with pytest.raises(ValueError):
        source.read(0, 1)
    # closing twice is harmless
    source.close()

def test_empty_mapped_file(tmp_path):
    """Test that an empty file can be mapped and reports truncation."""

    fp = tmp_path.joinpath('empty.edf')
    fp.write_bytes(b'')
    with MappedSource(fp) as source:
        assert source.size == 0
        with pytest.raises(TruncatedDataError):
            source.read(0, 1)

def test_buffer_copies_input():
    """Test that a BufferSource is unaffected by changes to its input."""

    data = bytearray(b'abcd')
    source = BufferSource(data)
    data[0:1] = b'z'
    assert source.read(0, 1) == b'a'
