from __future__ import annotations

import errno
import logging
import os
from struct import pack
from typing import IO, Any
from weakref import WeakSet

from .base import FileStore
from .codec import GeomParser, ShxRecord, create_parser, encode_record, read_record
from .constants import NULL, SHAPETYPE_LOOKUP, VERBOSE
from .envelope import Envelope
from .exceptions import (
    ShapefileException,
    ShapeTypeMismatchError,
    UnsupportedShapeTypeError,
)
from .geometry import Geometry
from .header import ShapefileHeader
from .helpers import constituent_path, fsdecode_if_pathlike
from .iterators import ShpIterator
from .shx import Shx
from .types import Coordinates, FileModeT, PathT, ProgressCallback

logger = logging.getLogger(__name__)


class Shp(FileStore):
    """The .shp geometry file, together with its .shx index.

    The two are opened and closed as a unit. Records are addressed by their
    1-based id through the index. Geometries are only ever appended: updating
    a record appends the new geometry and points the index slot at it, the
    old bytes are left behind unreferenced.
    """

    def __init__(self, path: PathT, mode: FileModeT = "rb"):
        super().__init__(path, mode)
        self._header: ShapefileHeader | None = None
        self._parser: GeomParser | None = None
        self._shx: Shx | None = None
        self._iterators: WeakSet[ShpIterator] = WeakSet()

    def _on_open(self, f: IO[bytes]) -> None:
        header = ShapefileHeader.read(f)
        parser = create_parser(header.file_type)
        if parser is None and header.file_type != NULL and VERBOSE:
            logger.warning(
                "Shape type %s of %s is not supported, its records read as no geometry.",
                SHAPETYPE_LOOKUP.get(header.file_type, header.file_type),
                self.path,
            )

        shx_path = constituent_path(self.path, "shx")
        if not os.path.exists(shx_path):
            raise FileNotFoundError(
                errno.ENOENT, "Shapefile index (.shx) not found", shx_path
            )
        shx = Shx(shx_path, self.mode, envelope_reader=self._read_envelope)
        shx.open()
        try:
            # A missing envelope is written as zeros, which a lone point at
            # (0, 0) also produces
            if (
                header.envelope == Envelope(0, 0, 0, 0)
                and parser is not None
                and not self._holds_geometry(f, shx, parser)
            ):
                header.envelope = None
                shx.header.envelope = None
        except BaseException:
            shx.close()
            raise

        self._header = header
        self._parser = parser
        self._shx = shx

    @staticmethod
    def _holds_geometry(f: IO[bytes], shx: Shx, parser: GeomParser) -> bool:
        """Tests whether any index slot points at a non null geometry."""
        with shx.iterator() as slots:
            for slot in slots:
                if slot.length > 0 and read_record(f, slot, parser) is not None:
                    return True
        return False

    def _on_close(self) -> None:
        for iterator in list(self._iterators):
            iterator.close()
        self._iterators.clear()
        if self._shx is not None:
            self._shx.close()
        self._shx = None
        self._header = None
        self._parser = None

    @property
    def header(self) -> ShapefileHeader:
        self._check_is_opened()
        assert self._header is not None
        return self._header

    @property
    def shx(self) -> Shx:
        self._check_is_opened()
        assert self._shx is not None
        return self._shx

    @property
    def parser(self) -> GeomParser | None:
        self._check_is_opened()
        return self._parser

    def envelope(self) -> Envelope | None:
        return self.header.envelope

    def count(self) -> int:
        return self.shx.count()

    def shape_type(self) -> int:
        return self.header.file_type

    @property
    def shape_type_name(self) -> str:
        shape_type = self.shape_type()
        return SHAPETYPE_LOOKUP.get(shape_type, str(shape_type))

    def get(self, id: int) -> Geometry | None:
        """Returns the geometry with the given 1-based id, or None if its
        record was removed or holds a null shape."""
        f = self._check_is_opened()
        index_record = self.shx.get(id)
        if index_record.length == 0 or self._parser is None:
            return None
        record = read_record(f, index_record, self._parser)
        return None if record is None else record.decode()

    def _read_envelope(self, index_record: ShxRecord) -> Envelope | None:
        f = self._check_is_opened()
        if index_record.length == 0 or self._parser is None:
            return None
        record = read_record(f, index_record, self._parser)
        return None if record is None else record.envelope

    def iterator(
        self,
        start: int = 0,
        limit: int | None = None,
        envelope: Envelope | None = None,
    ) -> ShpIterator:
        """Returns a lazy iterator over the geometries from position start
        (0-based) on, visiting at most limit index slots."""
        index = self.shx.iterator(start, limit)
        iterator = ShpIterator(self.path, index, self._parser, envelope)
        self._iterators.add(iterator)
        return iterator

    def records(
        self,
        start: int = 0,
        limit: int | None = None,
        envelope: Envelope | None = None,
        progress: ProgressCallback | None = None,
    ) -> list[Geometry]:
        """Reads the geometries of iterator() into a list. progress is called
        with (current, total) after every index slot visited."""
        geometries = []
        with self.iterator(start, limit, envelope) as iterator:
            total = iterator.stop - iterator.start
            current = 0
            while True:
                try:
                    geometry = iterator.advance()
                except StopIteration:
                    break
                current += 1
                if geometry is not None:
                    geometries.append(geometry)
                if progress is not None:
                    progress(current, total)
        return geometries

    def _coordinates_of(self, geometry: Any) -> Coordinates | None:
        """Accepts a Geometry, a GeoJSON geometry (or any object with the
        __geo_interface__), raw coordinates, or None for a null shape."""
        if geometry is None:
            return None

        if not isinstance(geometry, Geometry) and (
            hasattr(geometry, "__geo_interface__")
            or (isinstance(geometry, dict) and "type" in geometry)
        ):
            geometry = Geometry.from_geo_interface(geometry)

        if isinstance(geometry, Geometry):
            if geometry.shape_type == NULL:
                return None
            if geometry.shape_type != self.shape_type():
                raise ShapeTypeMismatchError(
                    f"Cannot write a {geometry.shape_type_name} geometry "
                    f"into a {self.shape_type_name} shapefile."
                )
            return geometry.coordinates

        return geometry

    def _append(self, id: int, coordinates: Coordinates | None) -> ShxRecord:
        """Appends a record at the end of the file, then writes the grown
        header to the .shp and mirrors it into the .shx. The index slot
        itself is left to the caller."""
        f = self._check_is_writable()
        header = self.header
        if coordinates is not None and self._parser is None:
            raise UnsupportedShapeTypeError(
                f"Cannot encode geometries into a {self.shape_type_name} shapefile."
            )

        record = encode_record(id, self._parser, coordinates)
        offset = header.file_length
        f.seek(offset)
        f.write(record)

        header.file_length += len(record)
        if coordinates is not None:
            assert self._parser is not None
            header.envelope = Envelope.union(
                header.envelope, self._parser.envelope_of(coordinates)
            )
        header.write(f)
        f.flush()
        self.shx.write_header(header)

        # content length in 16-bit words, without the 8 byte prefix
        return ShxRecord(id, offset, (len(record) - 8) // 2)

    def push(self, geometry: Any) -> int:
        """Appends a geometry and returns its id. None appends a null shape."""
        self._check_is_writable()
        coordinates = self._coordinates_of(geometry)
        id = self.count() + 1
        record = self._append(id, coordinates)
        self.shx.push(record.offset, record.length)
        logger.debug("Pushed geometry #%d to %s", id, self.path)
        return id

    def update_at(self, id: int, geometry: Any) -> None:
        self._check_is_writable()
        self.shx.get(id)
        coordinates = self._coordinates_of(geometry)
        record = self._append(id, coordinates)
        self.shx.update(record)
        logger.debug("Updated geometry #%d of %s", id, self.path)

    def remove_at(self, id: int) -> None:
        """Zeroes the content length of the record and of its index slot.
        Removing a removed record does nothing."""
        f = self._check_is_writable()
        index_record = self.shx.get(id)
        if index_record.length == 0:
            return
        f.seek(index_record.offset + 4)
        f.write(pack(">i", 0))
        f.flush()
        self.shx.remove(id)
        logger.debug("Removed geometry #%d of %s", id, self.path)

    @classmethod
    def create_empty(cls, path: PathT, shape_type: int) -> Shp:
        """Writes a header only .shp file and its .shx twin. Returns the
        store, not yet opened, in read/write mode."""
        if shape_type not in SHAPETYPE_LOOKUP:
            raise ShapefileException(f"Unknown shape type: {shape_type}")
        path = fsdecode_if_pathlike(path)
        header_bytes = ShapefileHeader(shape_type).to_bytes()
        base_name, __ = os.path.splitext(path)
        for file_path in (path, f"{base_name}.shx"):
            with open(file_path, "wb") as f:
                f.write(header_bytes)
        logger.debug("Created empty %s shapefile %s", SHAPETYPE_LOOKUP[shape_type], path)
        return cls(path, "r+b")
