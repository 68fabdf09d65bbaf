"""
This module tests the encoding and decoding of geometry records.
"""

# std lib imports
import io
from struct import pack

# third party imports
import pytest

# our imports
from shapestore import (
    NULL,
    POINT,
    POINTZ,
    POLYGON,
    Envelope,
    MultiPointParser,
    PointParser,
    PolygonParser,
    PolyLineParser,
    ShapeDecodeError,
    ShapefileException,
    ShapeTypeMismatchError,
    ShxRecord,
    create_parser,
    encode_record,
    parts,
    read_record,
    vertices,
)

SQUARE = [[0, 0], [0, 2], [2, 2], [2, 0], [0, 0]]


def roundtrip(parser, coordinates):
    return parser.read_geometry(io.BytesIO(parser.get_bytes(coordinates)))


def test_vertices_flattens_and_drops_extra_dimensions():
    assert vertices([1, 2, 3]) == [(1, 2)]
    assert vertices([[[0, 0], [1, 1, 9]], [[2, 2]]]) == [(0, 0), (1, 1), (2, 2)]
    assert vertices([]) == []


def test_parts_splits_innermost_lists():
    assert parts([1, 2]) == [[(1, 2)]]
    assert parts([[0, 0], [1, 1]]) == [[(0, 0), (1, 1)]]
    assert parts([[[0, 0], [1, 1]], [[2, 2], [3, 3]]]) == [
        [(0, 0), (1, 1)],
        [(2, 2), (3, 3)],
    ]
    assert parts([]) == []


def test_parts_keeps_empty_parts():
    assert parts([[[0, 0], [1, 1]], []]) == [[(0, 0), (1, 1)], []]


def test_point_bytes():
    """
    Assert that a point is written as its type tag and one x, y pair,
    without a bounding box.
    """
    assert PointParser().get_bytes([1.5, 2.5]) == pack("<i2d", POINT, 1.5, 2.5)


def test_point_roundtrip():
    geometry = roundtrip(PointParser(), [1.5, 2.5])
    assert geometry.shape_type == POINT
    assert geometry.coordinates == [1.5, 2.5]
    assert geometry.envelope() == Envelope(1.5, 2.5, 1.5, 2.5)


def test_empty_point_is_rejected():
    with pytest.raises(ShapefileException):
        PointParser().get_bytes([])


def test_multipoint_bytes():
    expected = pack("<i4di4d", 8, 0, 0, 2, 1, 2, 0, 0, 2, 1)
    assert MultiPointParser().get_bytes([[0, 0], [2, 1]]) == expected


def test_multipoint_roundtrip():
    geometry = roundtrip(MultiPointParser(), [[0, 0], [2, 1], [-1, 4]])
    assert geometry.coordinates == [[0, 0], [2, 1], [-1, 4]]
    assert geometry.envelope() == Envelope(-1, 0, 2, 4)


def test_empty_multipoint():
    """
    Assert that a multipoint without points is written with a zero
    bounding box and reads back empty.
    """
    parser = MultiPointParser()
    assert parser.get_bytes([]) == pack("<i4di", 8, 0, 0, 0, 0, 0)
    assert roundtrip(parser, []).coordinates == []


def test_polyline_single_part_is_flat():
    geometry = roundtrip(PolyLineParser(), [[0, 0], [1, 1], [2, 0]])
    assert geometry.coordinates == [[0, 0], [1, 1], [2, 0]]


def test_polyline_parts():
    lines = [[[0, 0], [1, 1]], [[5, 5], [6, 6], [7, 5]]]
    geometry = roundtrip(PolyLineParser(), lines)
    assert geometry.coordinates == lines
    assert geometry.envelope() == Envelope(0, 0, 7, 6)


def test_polyline_part_layout():
    """
    Assert the parts header: number of parts, number of points and the
    index of the first point of every part.
    """
    data = PolyLineParser().get_bytes([[[0, 0], [1, 1]], [[5, 5], [6, 6], [7, 5]]])
    # tag and bounding box come first
    assert pack("<2i", 2, 5) == data[36:44]
    assert pack("<2i", 0, 2) == data[44:52]
    assert len(data) == 52 + 5 * 16


def test_polygon_rings():
    triangle = [[5, 5], [5, 6], [6, 6], [5, 5]]
    geometry = roundtrip(PolygonParser(), [SQUARE, triangle])
    assert geometry.coordinates == [SQUARE, triangle]


def test_polygon_rings_are_closed():
    geometry = roundtrip(PolygonParser(), [[[0, 0], [0, 1], [1, 1]]])
    assert geometry.coordinates == [[[0, 0], [0, 1], [1, 1], [0, 0]]]


def test_envelope_of():
    assert PointParser().envelope_of([1, 2]) == Envelope(1, 2, 1, 2)
    assert PolygonParser().envelope_of([SQUARE]) == Envelope(0, 0, 2, 2)
    assert MultiPointParser().envelope_of([]) is None


def test_null_record_reads_as_none():
    assert PolygonParser().read(io.BytesIO(pack("<i", NULL))) is None


def test_wrong_shape_type_tag():
    data = PointParser().get_bytes([1, 1])
    with pytest.raises(ShapeTypeMismatchError):
        PolygonParser().read(io.BytesIO(data))


def test_truncated_envelope():
    data = PolyLineParser().get_bytes([[0, 0], [1, 1]])
    with pytest.raises(ShapeDecodeError):
        PolyLineParser().read(io.BytesIO(data[:20]))


def test_decode_is_lazy():
    """
    Assert that the envelope of a record is available without decoding
    the coordinates, and that a truncated payload only fails on decode.
    """
    data = PolyLineParser().get_bytes([[0, 0], [1, 1]])
    record = PolyLineParser().read(io.BytesIO(data[:40]))
    assert record.envelope == Envelope(0, 0, 1, 1)
    with pytest.raises(ShapeDecodeError):
        record.decode()


def test_decode_is_cached():
    parser = MultiPointParser()
    record = parser.read(io.BytesIO(parser.get_bytes([[0, 0], [1, 1]])))
    assert record.shape_type == parser.expected_type
    assert record.decode() is record.decode()


def test_create_parser():
    assert isinstance(create_parser(POINT), PointParser)
    assert isinstance(create_parser(POLYGON), PolygonParser)
    assert create_parser(NULL) is None
    assert create_parser(POINTZ) is None
    assert create_parser(999) is None


def test_encode_record():
    expected = pack(">2i", 7, 10) + pack("<i2d", POINT, 1, 2)
    assert encode_record(7, PointParser(), [1, 2]) == expected


def test_encode_null_record():
    assert encode_record(3, PointParser(), None) == pack(">2i", 3, 2) + pack("<i", 0)
    assert encode_record(3, None, None) == pack(">2i", 3, 2) + pack("<i", 0)


def test_read_record():
    f = io.BytesIO(b"\0" * 100 + encode_record(1, PointParser(), [1, 2]))
    record = read_record(f, ShxRecord(1, 100, 10), PointParser())
    assert record.id == 1
    geometry = record.decode()
    assert geometry.id == 1
    assert geometry.coordinates == [1, 2]


def test_read_record_length_mismatch():
    """
    Assert that a record whose length disagrees with its index slot
    is not decoded.
    """
    f = io.BytesIO(b"\0" * 100 + encode_record(1, PointParser(), [1, 2]))
    with pytest.raises(ShapeDecodeError):
        read_record(f, ShxRecord(1, 100, 12), PointParser())


def test_read_record_beyond_end():
    f = io.BytesIO(b"\0" * 100 + encode_record(1, PointParser(), [1, 2]))
    with pytest.raises(ShapeDecodeError):
        read_record(f, ShxRecord(1, 500, 10), PointParser())
    # content cut short
    f = io.BytesIO(b"\0" * 100 + encode_record(1, PointParser(), [1, 2])[:-4])
    with pytest.raises(ShapeDecodeError):
        read_record(f, ShxRecord(1, 100, 10), PointParser())
