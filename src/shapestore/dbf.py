from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import IO, Any, Union
from weakref import WeakSet

from .base import FileStore
from .constants import ACTIVE_FLAG, DELETED_FLAG, VERBOSE
from .dbase import DbfField, DbfHeader, DbfRecord, DbfRowFormat
from .exceptions import IndexOutOfRangeError, RecordEditedError, ShapefileException
from .helpers import clip_range, fsdecode_if_pathlike
from .iterators import DbfIterator
from .types import FileModeT, PathT, RecordValue

logger = logging.getLogger(__name__)

# A row to push: a mapping of field names to values, the values in field
# order, or a record read before
RowT = Union[Mapping[str, RecordValue], Iterable[RecordValue], DbfRecord]


def field_from_definition(definition: Any) -> DbfField:
    """Accepts a DbfField, a (name, type, size, decimal) sequence or a dict
    with those keys."""
    if isinstance(definition, DbfField):
        return definition
    if isinstance(definition, Mapping):
        return DbfField.from_unchecked(**definition)
    return DbfField.from_unchecked(*definition)


class Dbf(FileStore):
    """The .dbf attribute table. Rows are addressed by their 0-based id.

    New rows are staged by push_row() and written by flush(). Rows closed
    over without a flush are lost. Deleting a row only flags it, the row
    stays readable with its deleted flag set and can be recovered.
    """

    def __init__(
        self,
        path: PathT,
        mode: FileModeT = "rb",
        encoding: str = "utf-8",
        encoding_errors: str = "strict",
    ):
        super().__init__(path, mode)
        self.encoding = encoding
        self.encoding_errors = encoding_errors
        self._header: DbfHeader | None = None
        self._staged: list[bytes] = []
        # rows updated while flagged as deleted during this session
        self._edited_deleted: set[int] = set()
        self._iterators: WeakSet[DbfIterator] = WeakSet()

    def _on_open(self, f: IO[bytes]) -> None:
        self._header = DbfHeader.read(f, self.encoding, self.encoding_errors)

    def _on_close(self) -> None:
        if self._staged and VERBOSE:
            logger.warning(
                "Closing %s discards %d staged rows that were not flushed.",
                self.path,
                len(self._staged),
            )
        self._staged = []
        self._edited_deleted.clear()
        for iterator in list(self._iterators):
            iterator.close()
        self._iterators.clear()
        self._header = None

    @property
    def header(self) -> DbfHeader:
        self._check_is_opened()
        assert self._header is not None
        return self._header

    def fields(self, detail: bool = False) -> list[str] | list[DbfField]:
        if detail:
            return list(self.header.fields)
        return self.header.field_names

    def count(self) -> int:
        return self.header.record_count

    @property
    def staged_count(self) -> int:
        return len(self._staged)

    def _check_id(self, id: int) -> None:
        count = self.count()
        if not 0 <= id < count:
            raise IndexOutOfRangeError(
                f"Record id {id} out of range. Valid ids are 0 to {count - 1}."
            )

    def _read_row(self, f: IO[bytes], id: int, row_format: DbfRowFormat) -> DbfRecord:
        f.seek(self.header.record_offset(id))
        return row_format.decode(
            f.read(row_format.size), id, self.encoding, self.encoding_errors
        )

    def get(self, id: int, fields: Iterable[str] | None = None) -> DbfRecord:
        """Returns the row with the given 0-based id. To only read some of
        the fields, specify the 'fields' arg as a list of field names."""
        f = self._check_is_opened()
        self._check_id(id)
        return self._read_row(f, id, DbfRowFormat(self.header, fields))

    def iterator(
        self,
        fields: Iterable[str] | None = None,
        start: int = 0,
        limit: int | None = None,
    ) -> DbfIterator:
        header = self.header
        start, stop = clip_range(start, limit, header.record_count)
        iterator = DbfIterator(
            self.path,
            header,
            fields,
            start,
            stop,
            self.encoding,
            self.encoding_errors,
        )
        self._iterators.add(iterator)
        return iterator

    def records(
        self,
        fields: Iterable[str] | None = None,
        start: int = 0,
        limit: int | None = None,
    ) -> list[DbfRecord]:
        with self.iterator(fields, start, limit) as iterator:
            return list(iterator)

    def _row_values(self, row: RowT) -> dict[str, RecordValue]:
        names = self.header.field_names
        if isinstance(row, DbfRecord):
            row = row.values
        if isinstance(row, Mapping):
            # only registered fields are kept
            return {name: row[name] for name in names if name in row}
        if isinstance(row, (str, bytes)):
            raise ShapefileException(
                f"Rows must be mappings or sequences of values, not: {row!r}"
            )
        return dict(zip(names, row))

    def _encode_row(self, row: RowT) -> bytes:
        return self.header.encode_row(
            self._row_values(row), self.encoding, self.encoding_errors
        )

    def push_row(self, row: RowT) -> None:
        """Stages a row, given as a mapping of field names to values or as
        the values in field order. Missing values are written as missing.
        The row is encoded right away, so invalid values fail here."""
        self._check_is_writable()
        self._staged.append(self._encode_row(row))

    def push_rows(self, rows: Iterable[RowT]) -> None:
        self._check_is_writable()
        encoded = [self._encode_row(row) for row in rows]
        self._staged.extend(encoded)

    def flush(self) -> int:
        """Appends the staged rows and rewrites the header. Returns the
        number of rows written."""
        f = self._check_is_writable()
        if not self._staged:
            return 0
        header = self.header
        f.seek(header.record_offset(header.record_count))
        f.write(b"".join(self._staged))
        flushed = len(self._staged)
        header.record_count += flushed
        header.touch()
        header.write(f, self.encoding, self.encoding_errors)
        f.flush()
        self._staged = []
        logger.debug("Flushed %d rows to %s", flushed, self.path)
        return flushed

    def discard_staged(self) -> int:
        """Drops the staged rows without writing them. Returns their number."""
        discarded = len(self._staged)
        self._staged = []
        return discarded

    def _write_flag(self, id: int, flag: bytes) -> None:
        f = self._check_is_writable()
        self._check_id(id)
        f.seek(self.header.record_offset(id))
        f.write(flag)
        f.flush()

    def remove_at(self, id: int) -> None:
        self._write_flag(id, DELETED_FLAG)
        logger.debug("Removed row #%d of %s", id, self.path)

    def recover_at(self, id: int) -> None:
        self._check_is_writable()
        if id in self._edited_deleted:
            raise RecordEditedError(
                f"Row #{id} of {self.path} was updated while deleted and cannot be recovered."
            )
        self._write_flag(id, ACTIVE_FLAG)
        logger.debug("Recovered row #%d of %s", id, self.path)

    def update(self, record: DbfRecord) -> None:
        """Rewrites the row record.id in place. Fields missing from the
        record keep their stored values, the deleted flag is kept as is."""
        f = self._check_is_writable()
        if record.id is None:
            raise ShapefileException("Cannot update a record without an id.")
        self._check_id(record.id)
        header = self.header
        current = self._read_row(f, record.id, DbfRowFormat(header))
        values = dict(current.values)
        values.update(self._row_values(record))
        row = header.encode_row(
            values, self.encoding, self.encoding_errors, deleted=current.deleted
        )
        f.seek(header.record_offset(record.id))
        f.write(row)
        f.flush()
        if current.deleted:
            self._edited_deleted.add(record.id)
        logger.debug("Updated row #%d of %s", record.id, self.path)

    @classmethod
    def create_empty(
        cls,
        path: PathT,
        fields: Iterable[Any],
        encoding: str = "utf-8",
        encoding_errors: str = "strict",
    ) -> Dbf:
        """Writes a header only .dbf file. Returns the store, not yet opened,
        in read/write mode."""
        header = DbfHeader([field_from_definition(field) for field in fields])
        header_bytes = header.to_bytes(encoding, encoding_errors)
        path = fsdecode_if_pathlike(path)
        with open(path, "wb") as f:
            f.write(header_bytes)
        logger.debug("Created empty dbf %s", path)
        return cls(path, "r+b", encoding, encoding_errors)
