from __future__ import annotations

import io
from struct import error, pack, unpack
from typing import Any, ClassVar, NamedTuple

from .constants import (
    MULTIPOINT,
    NULL,
    POINT,
    POLYGON,
    POLYLINE,
    RECORD_PREFIX_SIZE,
    SHAPETYPE_LOOKUP,
)
from .envelope import Envelope, is_point, iter_points
from .exceptions import ShapeDecodeError, ShapefileException, ShapeTypeMismatchError
from .geometry import Geometry
from .helpers import pack_2_int32_be, unpack_2_int32_be
from .types import (
    Coordinates,
    Point2D,
    ReadableBinStream,
    ReadSeekableBinStream,
    WriteableBinStream,
)


def vertices(coordinates: Coordinates) -> list[Point2D]:
    """Flattens nested coordinates of any depth into (x, y) pairs.
    Any z or m values are ignored."""
    return [(point[0], point[1]) for point in iter_points(coordinates)]


def parts(coordinates: Coordinates) -> list[list[Point2D]]:
    """Splits nested coordinates into parts, a part being an innermost
    list of vertices. Empty lists nested inside a container are kept
    as empty parts."""
    if is_point(coordinates):
        return [vertices(coordinates)]
    if len(coordinates) == 0:
        return []
    if is_point(coordinates[0]):
        return [vertices(coordinates)]

    result: list[list[Point2D]] = []
    for child in coordinates:
        if len(child) == 0:
            result.append([])
        else:
            result.extend(parts(child))
    return result


class GeomRecord:
    """The cheaply decoded head of a geometry record. The envelope is read
    up front, the coordinates only when decode() is called, so that records
    can be filtered by envelope without paying for a full decode."""

    __slots__ = ("parser", "envelope", "id", "_b_io", "_geometry")

    def __init__(
        self, parser: GeomParser, envelope: Envelope, b_io: ReadableBinStream
    ):
        self.parser = parser
        self.envelope = envelope
        self._b_io = b_io
        self.id: int | None = None
        self._geometry: Geometry | None = None

    @property
    def shape_type(self) -> int:
        return self.parser.expected_type

    def decode(self) -> Geometry:
        if self._geometry is None:
            try:
                coordinates = self.parser._read_coordinates(self._b_io, self.envelope)
            except error as e:
                raise ShapeDecodeError(
                    f"Truncated {self.parser.expected_type_name} record."
                ) from e
            self._geometry = Geometry(
                self.parser.expected_type,
                coordinates,
                id=self.id,
                envelope=self.envelope,
            )
        return self._geometry


class GeomParser:
    """Converts the content of a geometry record (the shape type tag and its
    payload, without the record number and length prefix) to and from
    geometries. One subclass per supported shape type."""

    expected_type: ClassVar[int] = NULL

    @property
    def expected_type_name(self) -> str:
        return SHAPETYPE_LOOKUP[self.expected_type].lower()

    def read(self, b_io: ReadableBinStream) -> GeomRecord | None:
        """Reads the shape type tag and the envelope of a record.
        Returns None for a null shape, whose content ends after the tag."""
        try:
            (shapeType,) = unpack("<i", b_io.read(4))
        except error as e:
            raise ShapeDecodeError("Record content lacks a shape type.") from e

        if shapeType == NULL:
            return None

        if shapeType != self.expected_type:
            raise ShapeTypeMismatchError(f"Not a {self.expected_type_name} record")

        try:
            envelope = self._read_envelope(b_io)
        except error as e:
            raise ShapeDecodeError(
                f"Truncated {self.expected_type_name} record."
            ) from e
        return GeomRecord(self, envelope, b_io)

    def read_geometry(self, b_io: ReadableBinStream) -> Geometry | None:
        record = self.read(b_io)
        return None if record is None else record.decode()

    def write(self, coordinates: Coordinates, b_io: WriteableBinStream) -> int:
        """Writes the shape type tag and the payload. Returns the number of
        bytes written."""
        n = b_io.write(pack("<i", self.expected_type))
        n += self._write(coordinates, b_io)
        return n

    def envelope_of(self, coordinates: Coordinates) -> Envelope | None:
        """The envelope the encoded coordinates will have, None if empty."""
        return Envelope.from_points(vertices(coordinates))

    def get_bytes(self, coordinates: Coordinates) -> bytes:
        b_io = io.BytesIO()
        self.write(coordinates, b_io)
        return b_io.getvalue()

    @staticmethod
    def _read_envelope(b_io: ReadableBinStream) -> Envelope:
        return Envelope(*unpack("<4d", b_io.read(32)))

    @staticmethod
    def _write_envelope(b_io: WriteableBinStream, points: list[Point2D]) -> int:
        # An empty geometry has no meaningful extent, zeros as in empty headers
        envelope = Envelope.from_points(points) or Envelope(0, 0, 0, 0)
        try:
            return b_io.write(pack("<4d", *envelope))
        except error:
            raise ShapefileException(
                f"Failed to write bounding box. Expected floats. Got: {envelope}"
            )

    @staticmethod
    def _read_points(b_io: ReadableBinStream, nPoints: int) -> list[list[float]]:
        flat = unpack(f"<{2 * nPoints}d", b_io.read(16 * nPoints))
        return [[flat[i], flat[i + 1]] for i in range(0, len(flat), 2)]

    @staticmethod
    def _write_points(b_io: WriteableBinStream, points: list[Point2D]) -> int:
        x_ys: list[float] = []
        for point in points:
            x_ys.extend(point)
        try:
            return b_io.write(pack(f"<{len(x_ys)}d", *x_ys))
        except error:
            raise ShapefileException("Failed to write points. Expected floats.")

    def _read_coordinates(
        self, b_io: ReadableBinStream, envelope: Envelope
    ) -> Coordinates:
        raise NotImplementedError

    def _write(self, coordinates: Coordinates, b_io: WriteableBinStream) -> int:
        raise NotImplementedError


class PointParser(GeomParser):
    # A point has no bounding box of its own, the point is its envelope
    expected_type = POINT

    @staticmethod
    def _read_envelope(b_io: ReadableBinStream) -> Envelope:
        x, y = unpack("<2d", b_io.read(16))
        return Envelope(x, y, x, y)

    def _read_coordinates(
        self, b_io: ReadableBinStream, envelope: Envelope
    ) -> Coordinates:
        return [envelope.minx, envelope.miny]

    def envelope_of(self, coordinates: Coordinates) -> Envelope | None:
        return Envelope.from_points(vertices(coordinates)[:1])

    def _write(self, coordinates: Coordinates, b_io: WriteableBinStream) -> int:
        points = vertices(coordinates)
        if not points:
            raise ShapefileException("A point requires one x, y coordinate pair.")
        return self._write_points(b_io, points[:1])


class MultiPointParser(GeomParser):
    expected_type = MULTIPOINT

    def _read_coordinates(
        self, b_io: ReadableBinStream, envelope: Envelope
    ) -> Coordinates:
        (nPoints,) = unpack("<i", b_io.read(4))
        return self._read_points(b_io, nPoints)

    def _write(self, coordinates: Coordinates, b_io: WriteableBinStream) -> int:
        points = vertices(coordinates)
        n = self._write_envelope(b_io, points)
        n += b_io.write(pack("<i", len(points)))
        n += self._write_points(b_io, points)
        return n


class _PartsParser(GeomParser):
    """Shared layout of polylines and polygons: envelope, number of parts,
    number of points, the index of the first point of every part, then
    all the points."""

    def _read_parts(self, b_io: ReadableBinStream) -> list[list[list[float]]]:
        nParts, nPoints = unpack("<2i", b_io.read(8))
        starts = list(unpack(f"<{nParts}i", b_io.read(nParts * 4)))
        points = self._read_points(b_io, nPoints)
        ends = starts[1:] + [nPoints]
        return [points[start:end] for start, end in zip(starts, ends)]

    def _prepare_parts(self, geom_parts: list[list[Point2D]]) -> list[list[Point2D]]:
        return geom_parts

    def _write(self, coordinates: Coordinates, b_io: WriteableBinStream) -> int:
        geom_parts = self._prepare_parts(parts(coordinates))
        points: list[Point2D] = []
        starts: list[int] = []
        for part in geom_parts:
            starts.append(len(points))
            points.extend(part)

        n = self._write_envelope(b_io, points)
        n += b_io.write(pack("<2i", len(geom_parts), len(points)))
        n += b_io.write(pack(f"<{len(starts)}i", *starts))
        n += self._write_points(b_io, points)
        return n


class PolyLineParser(_PartsParser):
    expected_type = POLYLINE

    def _read_coordinates(
        self, b_io: ReadableBinStream, envelope: Envelope
    ) -> Coordinates:
        lines = self._read_parts(b_io)
        if len(lines) == 1:
            return lines[0]
        return lines


class PolygonParser(_PartsParser):
    # Rings are kept as independent parts, winding order is not inspected
    expected_type = POLYGON

    def _prepare_parts(self, geom_parts: list[list[Point2D]]) -> list[list[Point2D]]:
        # Close any open rings
        for ring in geom_parts:
            if ring and ring[0] != ring[-1]:
                ring.append(ring[0])
        return geom_parts

    def _read_coordinates(
        self, b_io: ReadableBinStream, envelope: Envelope
    ) -> Coordinates:
        return self._read_parts(b_io)


PARSER_CLASS_FROM_SHAPETYPE: dict[int, type[GeomParser]] = {
    POINT: PointParser,
    MULTIPOINT: MultiPointParser,
    POLYLINE: PolyLineParser,
    POLYGON: PolygonParser,
}


def create_parser(shape_type: Any) -> GeomParser | None:
    """Returns the parser for a shape type code, or None for the null
    shape type and for shape types without a parser."""
    parser_class = PARSER_CLASS_FROM_SHAPETYPE.get(shape_type)
    if parser_class is None:
        return None
    return parser_class()


class ShxRecord(NamedTuple):
    """An index slot: the byte offset of a geometry record in the .shp file
    and the length of its content in 16-bit words. A length of 0 marks a
    removed record."""

    id: int
    offset: int
    length: int


def read_record(
    f: ReadSeekableBinStream, index: ShxRecord, parser: GeomParser
) -> GeomRecord | None:
    """Reads the geometry record an index slot points at. Returns None for
    a null shape. The whole record is read into memory, so the file
    position can move on before the record is decoded."""
    f.seek(index.offset)
    prefix = f.read(RECORD_PREFIX_SIZE)
    if len(prefix) != RECORD_PREFIX_SIZE:
        raise ShapeDecodeError(f"Record #{index.id} lies beyond the end of the file.")

    (__recNum, recLength) = unpack_2_int32_be(prefix)
    if recLength != index.length:
        raise ShapeDecodeError(
            f"Record #{index.id} declares {recLength} words of content, "
            f"its index slot {index.length}."
        )

    # Convert from num of 16 bit words, to 8 bit bytes
    recLength_bytes = 2 * recLength
    content = f.read(recLength_bytes)
    if len(content) != recLength_bytes:
        raise ShapeDecodeError(
            f"Record #{index.id} is truncated: {len(content)} of {recLength_bytes} bytes present."
        )

    record = parser.read(io.BytesIO(content))
    if record is not None:
        record.id = index.id
    return record


def encode_record(
    id: int, parser: GeomParser | None, coordinates: Coordinates | None
) -> bytes:
    """Builds a full geometry record: record number, content length in
    words, then the content. Missing coordinates make a null shape."""
    if coordinates is None or parser is None:
        content = pack("<i", NULL)
    else:
        content = parser.get_bytes(coordinates)
    return pack_2_int32_be(id, len(content) // 2) + content
