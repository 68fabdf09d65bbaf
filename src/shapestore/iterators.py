"""
Lazy traversal of the records of a shapefile.

Every iterator steps over record positions, one step per index slot or
attribute row, and reads through its own file handle so that several
iterators can run over the same file side by side. ``advance()`` returns the
value of the next step, or None for a step that produced nothing (a removed
or null geometry, a geometry outside the envelope filter), and raises
StopIteration once every position was visited. Plain iteration skips those
empty steps.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from struct import error, unpack
from types import TracebackType
from typing import IO, Generic

from .codec import GeomParser, ShxRecord, read_record
from .constants import HEADER_SIZE, SHX_RECORD_SIZE
from .dbase import DbfHeader, DbfRecord, DbfRowFormat
from .envelope import Envelope
from .exceptions import NotOpenError, RecordCountMismatchError, ShapeDecodeError
from .geometry import Feature, Geometry
from .types import T


class RecordIterator(Generic[T]):
    """Base of the record iterators. The file is opened on the first step
    and released once exhausted or closed."""

    def __init__(self, path: str, start: int, stop: int):
        self.path = path
        self.start = start
        self.stop = stop
        self._position = start
        self._file: IO[bytes] | None = None
        self._exhausted = False
        self._closed = False

    @property
    def started(self) -> bool:
        return self._position > self.start or self._exhausted

    @property
    def closed(self) -> bool:
        return self._closed

    def _stream(self) -> IO[bytes]:
        if self._file is None:
            self._file = open(self.path, "rb")
        return self._file

    def _release(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _check_not_closed(self) -> None:
        if self._closed:
            raise NotOpenError(f"{type(self).__name__} over {self.path} is closed.")

    def advance(self) -> T | None:
        self._check_not_closed()
        if self._exhausted or self._position >= self.stop:
            self._exhausted = True
            self._release()
            raise StopIteration
        position = self._position
        self._position += 1
        return self._read(self._stream(), position)

    def _read(self, f: IO[bytes], position: int) -> T | None:
        raise NotImplementedError

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        while True:
            value = self.advance()
            if value is not None:
                return value

    def close(self) -> None:
        self._release()
        self._closed = True

    def __enter__(self) -> RecordIterator[T]:
        return self

    def __exit__(
        self,
        exc_type: BaseException | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        self.close()
        return None


class ShxIterator(RecordIterator[ShxRecord]):
    """Yields every index slot, removed ones (length 0) included."""

    def _read(self, f: IO[bytes], position: int) -> ShxRecord:
        f.seek(HEADER_SIZE + position * SHX_RECORD_SIZE)
        try:
            offsetWords, length = unpack(">2i", f.read(SHX_RECORD_SIZE))
        except error as e:
            raise ShapeDecodeError(f"Index slot #{position + 1} is truncated.") from e
        return ShxRecord(position + 1, offsetWords * 2, length)


class ShpIterator(RecordIterator[Geometry]):
    """Walks the geometries in index order. Removed slots, null shapes and
    geometries whose envelope is disjoint from the envelope filter are
    empty steps. The envelope is tested before the coordinates are decoded."""

    def __init__(
        self,
        path: str,
        index: ShxIterator,
        parser: GeomParser | None,
        envelope: Envelope | None = None,
    ):
        super().__init__(path, index.start, index.stop)
        self.index = index
        self.parser = parser
        self._envelope = envelope

    @property
    def envelope(self) -> Envelope | None:
        return self._envelope

    @envelope.setter
    def envelope(self, envelope: Envelope | None) -> None:
        self._envelope = envelope

    def advance(self) -> Geometry | None:
        self._check_not_closed()
        try:
            index_record = self.index.advance()
        except StopIteration:
            self._exhausted = True
            self._release()
            raise
        self._position += 1

        if index_record.length == 0 or self.parser is None:
            return None
        record = read_record(self._stream(), index_record, self.parser)
        if record is None or Envelope.disjoined(self._envelope, record.envelope):
            return None
        return record.decode()

    def close(self) -> None:
        self.index.close()
        super().close()


class DbfIterator(RecordIterator[DbfRecord]):
    """Walks the rows of an attribute table, deleted rows included (with
    their deleted flag set)."""

    def __init__(
        self,
        path: str,
        header: DbfHeader,
        fields: Iterable[str] | None = None,
        start: int = 0,
        stop: int | None = None,
        encoding: str = "utf-8",
        encoding_errors: str = "strict",
    ):
        super().__init__(
            path, start, header.record_count if stop is None else stop
        )
        self.header = header
        self.encoding = encoding
        self.encoding_errors = encoding_errors
        self._format = DbfRowFormat(header, fields)

    @property
    def fields(self) -> list[str]:
        return self._format.field_names

    @fields.setter
    def fields(self, fields: Iterable[str] | None) -> None:
        self._format = DbfRowFormat(self.header, fields)

    def _read(self, f: IO[bytes], position: int) -> DbfRecord:
        f.seek(self.header.record_offset(position))
        return self._format.decode(
            f.read(self._format.size),
            position,
            self.encoding,
            self.encoding_errors,
        )


class FeatureIterator:
    """Joins a geometry iterator and an attribute iterator step by step.
    Both must run out on the same step. Steps without a geometry are
    skipped, the attribute values of the others become the properties
    of the yielded Feature."""

    def __init__(self, shp_iterator: ShpIterator, dbf_iterator: DbfIterator):
        self.shp_iterator = shp_iterator
        self.dbf_iterator = dbf_iterator

    @property
    def fields(self) -> list[str]:
        return self.dbf_iterator.fields

    @fields.setter
    def fields(self, fields: Iterable[str] | None) -> None:
        self.dbf_iterator.fields = fields

    @property
    def envelope(self) -> Envelope | None:
        return self.shp_iterator.envelope

    @envelope.setter
    def envelope(self, envelope: Envelope | None) -> None:
        self.shp_iterator.envelope = envelope

    def advance(self) -> Feature | None:
        geometry_done = attributes_done = False
        try:
            geometry = self.shp_iterator.advance()
        except StopIteration:
            geometry_done = True
        try:
            record = self.dbf_iterator.advance()
        except StopIteration:
            attributes_done = True

        if geometry_done and attributes_done:
            raise StopIteration
        if geometry_done or attributes_done:
            raise RecordCountMismatchError("Record count not matched")

        if geometry is None:
            return None
        return Feature(geometry, record.as_dict() if record is not None else {})

    def __iter__(self) -> Iterator[Feature]:
        return self

    def __next__(self) -> Feature:
        while True:
            feature = self.advance()
            if feature is not None:
                return feature

    def close(self) -> None:
        self.shp_iterator.close()
        self.dbf_iterator.close()

    def __enter__(self) -> FeatureIterator:
        return self

    def __exit__(
        self,
        exc_type: BaseException | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        self.close()
        return None
