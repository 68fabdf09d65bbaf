from __future__ import annotations

import logging
from struct import pack
from typing import IO, Callable
from weakref import WeakSet

from .base import FileStore
from .codec import ShxRecord
from .constants import HEADER_SIZE, SHX_RECORD_SIZE
from .envelope import Envelope
from .exceptions import IndexOutOfRangeError, ShapefileException
from .header import ShapefileHeader
from .helpers import clip_range, pack_2_int32_be, unpack_2_int32_be
from .iterators import ShxIterator
from .types import FileModeT, PathT

logger = logging.getLogger(__name__)

EnvelopeReader = Callable[[ShxRecord], "Envelope | None"]


class Shx(FileStore):
    """The .shx index: a header mirroring the .shp header followed by one
    8 byte slot per geometry record, holding its offset and content length
    (both in 16-bit words on disk). Ids are 1-based.

    envelope_reader is given by the paired Shp so that records() can filter
    index slots by the envelope of the geometry they point at.
    """

    def __init__(
        self,
        path: PathT,
        mode: FileModeT = "rb",
        envelope_reader: EnvelopeReader | None = None,
    ):
        super().__init__(path, mode)
        self.envelope_reader = envelope_reader
        self._header: ShapefileHeader | None = None
        self._iterators: WeakSet[ShxIterator] = WeakSet()

    def _on_open(self, f: IO[bytes]) -> None:
        self._header = ShapefileHeader.read(f)

    def _on_close(self) -> None:
        for iterator in list(self._iterators):
            iterator.close()
        self._iterators.clear()
        self._header = None

    @property
    def header(self) -> ShapefileHeader:
        self._check_is_opened()
        assert self._header is not None
        return self._header

    def count(self) -> int:
        return (self.header.file_length - HEADER_SIZE) // SHX_RECORD_SIZE

    def _check_id(self, id: int) -> None:
        count = self.count()
        if not 1 <= id <= count:
            raise IndexOutOfRangeError(
                f"Record id {id} out of range. Valid ids are 1 to {count}."
            )

    @staticmethod
    def _slot_offset(id: int) -> int:
        return HEADER_SIZE + (id - 1) * SHX_RECORD_SIZE

    def get(self, id: int) -> ShxRecord:
        f = self._check_is_opened()
        self._check_id(id)
        f.seek(self._slot_offset(id))
        offsetWords, length = unpack_2_int32_be(f.read(SHX_RECORD_SIZE))
        return ShxRecord(id, offsetWords * 2, length)

    def iterator(self, start: int = 0, limit: int | None = None) -> ShxIterator:
        self._check_is_opened()
        start, stop = clip_range(start, limit, self.count())
        iterator = ShxIterator(self.path, start, stop)
        self._iterators.add(iterator)
        return iterator

    def records(
        self,
        start: int = 0,
        limit: int | None = None,
        envelope: Envelope | None = None,
    ) -> list[ShxRecord]:
        """Returns the index slots from position start on, at most limit of
        them. With an envelope, only the slots whose geometry envelope
        overlaps it are kept; removed slots never match an envelope."""
        self._check_is_opened()
        if envelope is not None and self.envelope_reader is None:
            raise ShapefileException(
                "Filtering index records by envelope requires an envelope reader."
            )

        records = []
        with self.iterator(start, limit) as iterator:
            for record in iterator:
                if envelope is not None:
                    if record.length == 0:
                        continue
                    record_envelope = self.envelope_reader(record)  # type: ignore[misc]
                    if record_envelope is None or Envelope.disjoined(
                        envelope, record_envelope
                    ):
                        continue
                records.append(record)
        return records

    def remove(self, id: int) -> None:
        """Marks the slot as removed by zeroing its length. The offset and
        the geometry bytes are left in place."""
        f = self._check_is_writable()
        self._check_id(id)
        f.seek(self._slot_offset(id) + 4)
        f.write(pack(">i", 0))
        f.flush()
        logger.debug("Removed index record #%d of %s", id, self.path)

    def update(self, record: ShxRecord) -> None:
        f = self._check_is_writable()
        self._check_id(record.id)
        f.seek(self._slot_offset(record.id))
        f.write(pack_2_int32_be(record.offset // 2, record.length))
        f.flush()
        logger.debug("Updated index record %s of %s", record, self.path)

    def push(self, offset: int, length: int) -> ShxRecord:
        """Appends a slot and writes the new file length to the header."""
        f = self._check_is_writable()
        header = self.header
        record = ShxRecord(self.count() + 1, offset, length)
        f.seek(header.file_length)
        f.write(pack_2_int32_be(offset // 2, length))
        header.file_length += SHX_RECORD_SIZE
        header.write(f)
        f.flush()
        logger.debug("Pushed index record %s to %s", record, self.path)
        return record

    def write_header(self, header: ShapefileHeader) -> None:
        """Mirrors the geometry file header (shape type, envelope) into the
        index header. The index keeps its own file length."""
        f = self._check_is_writable()
        mirrored = header.copy()
        mirrored.file_length = self.header.file_length
        mirrored.write(f)
        f.flush()
        self._header = mirrored
