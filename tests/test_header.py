"""
This module tests the 100 byte header shared by .shp and .shx files.
"""

# std lib imports
import io
from struct import pack, unpack

# third party imports
import pytest

# our imports
from shapestore import NULL, POLYGON, Envelope, ShapefileException, ShapefileHeader


def test_defaults():
    header = ShapefileHeader()
    assert header.file_type == NULL
    assert header.file_length == 100
    assert header.envelope is None
    assert header.file_code == 9994
    assert header.version == 1000


def test_to_bytes_layout():
    """
    Assert the byte order of every header field: file code and length are
    big endian, the rest little endian, and the length is in 16-bit words.
    """
    data = ShapefileHeader(POLYGON, 236, Envelope(1, 2, 3, 4)).to_bytes()
    assert len(data) == 100
    assert unpack(">i", data[0:4]) == (9994,)
    assert data[4:24] == b"\0" * 20
    assert unpack(">i", data[24:28]) == (118,)
    assert unpack("<2i", data[28:36]) == (1000, POLYGON)
    assert unpack("<4d", data[36:68]) == (1, 2, 3, 4)
    assert data[68:100] == pack("<4d", 0, 0, 0, 0)


def test_empty_envelope_is_written_as_zeros():
    data = ShapefileHeader(POLYGON).to_bytes()
    assert unpack("<4d", data[36:68]) == (0, 0, 0, 0)


def test_roundtrip():
    header = ShapefileHeader(POLYGON, 236, Envelope(-1.5, 2, 3, 4.25))
    assert ShapefileHeader.from_bytes(header.to_bytes()) == header


def test_empty_file_has_no_envelope():
    """
    Assert that the bounding box of a file without records is ignored
    on read.
    """
    data = ShapefileHeader(POLYGON, 100, Envelope(1, 2, 3, 4)).to_bytes()
    assert ShapefileHeader.from_bytes(data).envelope is None


def test_truncated_header():
    with pytest.raises(ShapefileException):
        ShapefileHeader.from_bytes(b"\0" * 60)


def test_read_and_write_seek_to_start():
    f = io.BytesIO(b"x" * 150)
    header = ShapefileHeader(POLYGON, 150, Envelope(0, 0, 1, 1))
    f.seek(120)
    header.write(f)
    assert f.getvalue()[100:] == b"x" * 50
    f.seek(130)
    assert ShapefileHeader.read(f) == header


def test_copy_is_independent():
    header = ShapefileHeader(POLYGON, 200, Envelope(0, 0, 1, 1))
    copied = header.copy()
    assert copied == header
    copied.file_length = 300
    assert header.file_length == 200
