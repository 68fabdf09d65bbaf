"""
This module tests the .shx index store.
"""

# std lib imports
import os

# third party imports
import pytest

# our imports
from shapestore import (
    POINT,
    POLYGON,
    Envelope,
    IndexOutOfRangeError,
    NotOpenError,
    ShapefileException,
    ShapefileHeader,
    Shp,
    Shx,
    ShxRecord,
)


def shx_path_of(shp_path):
    return os.path.splitext(shp_path)[0] + ".shx"


def test_read_slots(points_path):
    with Shx(shx_path_of(points_path)) as shx:
        assert shx.count() == 3
        assert shx.get(1) == ShxRecord(1, 100, 10)
        # the null shape has a content of 4 bytes
        assert shx.get(2) == ShxRecord(2, 128, 2)
        assert shx.get(3) == ShxRecord(3, 140, 10)


def test_header_mirrors_shp(points_path):
    """
    Assert that the index header holds the shape type and bounding box of
    the .shp file, with its own file length.
    """
    with Shx(shx_path_of(points_path)) as shx:
        assert shx.header.file_type == POINT
        assert shx.header.envelope == Envelope(1, 1, 3, 3)
        assert shx.header.file_length == 124
    assert os.path.getsize(shx_path_of(points_path)) == 124


@pytest.mark.parametrize("id", [0, 4, -1])
def test_id_out_of_range(points_path, id):
    with Shx(shx_path_of(points_path)) as shx:
        with pytest.raises(IndexOutOfRangeError):
            shx.get(id)
        with pytest.raises(IndexError):
            shx.get(id)


def test_not_opened(points_path):
    shx = Shx(shx_path_of(points_path))
    assert not shx.is_opened
    with pytest.raises(NotOpenError):
        shx.count()
    with shx:
        assert shx.is_opened
    with pytest.raises(NotOpenError):
        shx.get(1)


def test_invalid_mode(points_path):
    with pytest.raises(ValueError):
        Shx(shx_path_of(points_path), "wb")


def test_iterator_window(points_path):
    with Shx(shx_path_of(points_path)) as shx:
        assert list(shx.iterator()) == [shx.get(1), shx.get(2), shx.get(3)]
        assert list(shx.iterator(start=1, limit=1)) == [ShxRecord(2, 128, 2)]
        assert list(shx.iterator(start=2, limit=10)) == [ShxRecord(3, 140, 10)]
        assert list(shx.iterator(start=5)) == []
        assert list(shx.iterator(limit=0)) == []


def test_iterator_bad_window(points_path):
    with Shx(shx_path_of(points_path)) as shx:
        with pytest.raises(IndexOutOfRangeError):
            shx.iterator(start=-1)
        with pytest.raises(ValueError):
            shx.iterator(limit=-1)


def test_records(points_path):
    with Shx(shx_path_of(points_path)) as shx:
        assert [record.id for record in shx.records()] == [1, 2, 3]
        assert [record.id for record in shx.records(start=1)] == [2, 3]


def test_records_by_envelope_requires_reader(points_path):
    with Shx(shx_path_of(points_path)) as shx:
        with pytest.raises(ShapefileException):
            shx.records(envelope=Envelope(0, 0, 1, 1))


def test_records_by_envelope(points_path):
    """
    Assert that index slots are filtered by the envelope of the geometry
    they point at, and that null shapes never match.
    """
    with Shp(points_path) as shp:
        records = shp.shx.records(envelope=Envelope(2.5, 2.5, 4, 4))
        assert records == [ShxRecord(3, 140, 10)]
        records = shp.shx.records(envelope=Envelope(0, 0, 10, 10))
        assert [record.id for record in records] == [1, 3]


def test_read_only_store_rejects_writes(points_path):
    with Shx(shx_path_of(points_path)) as shx:
        assert not shx.writable
        with pytest.raises(ShapefileException):
            shx.remove(1)
        with pytest.raises(ShapefileException):
            shx.push(200, 10)


def test_remove_zeroes_length(points_path):
    with Shx(shx_path_of(points_path), "r+b") as shx:
        shx.remove(1)
        assert shx.get(1) == ShxRecord(1, 100, 0)
    with Shx(shx_path_of(points_path)) as shx:
        assert shx.get(1) == ShxRecord(1, 100, 0)
        assert shx.count() == 3


def test_push_and_update(points_path):
    path = shx_path_of(points_path)
    with Shx(path, "r+b") as shx:
        assert shx.push(200, 10) == ShxRecord(4, 200, 10)
        assert shx.count() == 4
        shx.update(ShxRecord(1, 300, 6))
        assert shx.get(1) == ShxRecord(1, 300, 6)
    assert os.path.getsize(path) == 132
    with Shx(path) as shx:
        assert shx.header.file_length == 132
        assert shx.get(4) == ShxRecord(4, 200, 10)


def test_write_header_keeps_own_length(points_path):
    with Shx(shx_path_of(points_path), "r+b") as shx:
        shx.write_header(ShapefileHeader(POLYGON, 5000, Envelope(0, 0, 9, 9)))
        assert shx.header.file_type == POLYGON
        assert shx.header.file_length == 124
    with Shx(shx_path_of(points_path)) as shx:
        assert shx.header.envelope == Envelope(0, 0, 9, 9)
        assert shx.count() == 3


def test_close_closes_iterators(points_path):
    shx = Shx(shx_path_of(points_path))
    shx.open()
    iterator = shx.iterator()
    assert next(iterator) == ShxRecord(1, 100, 10)
    shx.close()
    assert iterator.closed
    with pytest.raises(NotOpenError):
        iterator.advance()
