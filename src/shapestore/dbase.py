from __future__ import annotations

import time
from collections.abc import Iterable, Iterator, Mapping
from datetime import date
from struct import Struct, error, pack, unpack
from typing import IO, NamedTuple, cast

from .constants import (
    ACTIVE_FLAG,
    DBF_FIELD_DESCRIPTOR_SIZE,
    DBF_FIELD_NAME_SIZE,
    DBF_FILE_TYPE,
    DBF_HEADER_SIZE,
    DBF_HEADER_TERMINATOR,
    DBF_MAX_FIELDS,
    DELETED_FLAG,
    MISSING,
)
from .exceptions import ShapefileException
from .types import FIELD_TYPE_ALIASES, FieldType, FieldTypeT, RecordValue


class DbfField(NamedTuple):
    name: str
    field_type: FieldTypeT
    size: int
    decimal: int = 0

    @classmethod
    def from_unchecked(
        cls,
        name: str,
        field_type: str | bytes | FieldTypeT = "C",
        size: int = 50,
        decimal: int = 0,
    ) -> DbfField:
        try:
            type_ = FIELD_TYPE_ALIASES[field_type]
        except KeyError:
            raise ShapefileException(
                f"field_type must be in {FieldType.__members__}. Got: {field_type=}. "
            )

        name = str(name)
        if not name or len(name) > DBF_FIELD_NAME_SIZE:
            raise ShapefileException(
                f"Field names must be 1 to {DBF_FIELD_NAME_SIZE} characters long. Got: {name!r}"
            )

        if type_ is FieldType.D:
            size = 8
            decimal = 0
        elif type_ is FieldType.L:
            size = 1
            decimal = 0

        size, decimal = int(size), int(decimal)
        # Character sizes are stored in 16 bits, the others in a single byte
        max_size = 0xFFFF if type_ is FieldType.C else 0xFF
        if not 1 <= size <= max_size:
            raise ShapefileException(
                f"Size of {type_} field '{name}' must be between 1 and {max_size}. Got: {size}"
            )
        if not 0 <= decimal <= 0xFF:
            raise ShapefileException(
                f"Decimal places of field '{name}' must be between 0 and 255. Got: {decimal}"
            )
        return cls(name=name, field_type=type_, size=size, decimal=decimal)

    def decode(
        self, value: bytes, encoding: str = "utf-8", errors: str = "strict"
    ) -> RecordValue:
        """Converts the raw bytes of this field's slot in a row to a value."""
        typ = self.field_type
        if typ is FieldType.N or typ is FieldType.F:
            # numeric or float: number stored as a string, right justified, and padded with blanks to the width of the field.
            value = value.split(b"\0")[0]
            value = value.replace(b"*", b"").strip()  # QGIS NULL is all '*' chars
            if value == b"":
                return None
            if self.decimal:
                try:
                    return float(value)
                except ValueError:
                    return None
            try:
                # forcing a large int to float and back to int
                # would lose information
                return int(value)
            except ValueError:
                try:
                    return int(float(value))
                except ValueError:
                    return None

        if typ is FieldType.D:
            # date: 8 bytes - date stored as a string in the format YYYYMMDD.
            if not value.replace(b"\x00", b"").replace(b" ", b"").replace(b"0", b""):
                # no official null value, but all null-chars, spaces or 0s (QGIS null)
                return None
            try:
                return date(int(value[:4]), int(value[4:6]), int(value[6:8]))
            except (TypeError, ValueError):
                # not a valid date, hand back the text
                return value.decode("ascii", "replace").strip()

        if typ is FieldType.L:
            # logical: 1 byte - T or F, '?' or space when not set
            if value in (b"", b" ", b"?"):
                return None
            if value in b"YyTt1":
                return True
            if value in b"NnFf0":
                return False
            return None

        # C and M
        return value.decode(encoding, errors).strip().rstrip("\x00")

    def encode(
        self, value: RecordValue, encoding: str = "utf-8", errors: str = "strict"
    ) -> bytes:
        """Converts a value to exactly size bytes."""
        size = self.size
        str_val: str | None = None
        typ = self.field_type

        if typ is FieldType.N or typ is FieldType.F:
            if value in MISSING:
                str_val = "*" * size  # QGIS NULL
            elif not self.decimal:
                try:
                    num_val = int(cast(int, value))
                except ValueError:
                    # probably a float given as a string
                    num_val = int(float(cast(float, value)))
                # caps the size if exceeds the field size
                str_val = format(num_val, "d")[:size].rjust(size)
            else:
                f_val = float(cast(float, value))
                str_val = format(f_val, f".{self.decimal}f")[:size].rjust(size)
        elif typ is FieldType.D:
            if isinstance(value, date):
                str_val = f"{value.year:04d}{value.month:02d}{value.day:02d}"
            elif isinstance(value, (list, tuple)) and len(value) == 3:
                str_val = f"{value[0]:04d}{value[1]:02d}{value[2]:02d}"
            elif value in MISSING:
                str_val = "0" * 8  # QGIS NULL for date type
            elif isinstance(value, str) and len(value) == 8:
                str_val = value
            else:
                raise ShapefileException(
                    "Date values must be either a datetime.date object, a list, a YYYYMMDD string, or a missing value."
                )
        elif typ is FieldType.L:
            if value is True or value == 1:
                str_val = "T"
            elif value is False or value == 0:
                str_val = "F"
            else:
                str_val = "?"

        if str_val is None:
            # C and M: padded and truncated to the length of the field
            text = "" if value in MISSING else str(value)
            encoded = text.encode(encoding, errors)[:size].ljust(size)
        else:
            # Numeric, logical and date values are ascii
            encoded = str_val.encode("ascii", errors)

        if len(encoded) != size:
            raise ShapefileException(
                f"Unable to pack incorrect sized {value=}"
                f" (encoded as {len(encoded)}B) into field '{self.name}' ({size}B)."
            )
        return encoded

    def __repr__(self) -> str:
        return f'DbfField(name="{self.name}", field_type=FieldType.{self.field_type}, size={self.size}, decimal={self.decimal})'


class DbfRecord:
    """A row of the attribute table. Values can be retrieved by field name.
    The id is the 0-based row number the record was read from."""

    def __init__(
        self,
        id: int | None,
        values: dict[str, RecordValue],
        deleted: bool = False,
    ):
        self.id = id
        self.values = values
        self.deleted = deleted

    def __getitem__(self, name: str) -> RecordValue:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def as_dict(self, date_strings: bool = False) -> dict[str, RecordValue]:
        dct = dict(self.values)
        if date_strings:
            for k, v in dct.items():
                if isinstance(v, date):
                    dct[k] = f"{v.year:04d}{v.month:02d}{v.day:02d}"
        return dct

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DbfRecord):
            return NotImplemented
        return (
            self.id == other.id
            and self.values == other.values
            and self.deleted == other.deleted
        )

    def __repr__(self) -> str:
        flag = " (deleted)" if self.deleted else ""
        return f"Record #{self.id}{flag}: {self.values}"


class DbfHeader:
    """The dBase III header: a 32 byte block, one 32 byte descriptor per
    field and a terminator byte.

    Borrows heavily from ActiveState Python Cookbook Recipe 362715
    by Raymond Hettinger, as does the record layout below.
    """

    def __init__(
        self,
        fields: list[DbfField],
        record_count: int = 0,
        file_type: int = DBF_FILE_TYPE,
        year: int | None = None,
        month: int | None = None,
        day: int | None = None,
        header_length: int | None = None,
        record_length: int | None = None,
    ):
        self.fields = list(fields)
        self.record_count = record_count
        self.file_type = file_type
        if year is None or month is None or day is None:
            year, month, day = time.localtime()[:3]
        self.year = year
        self.month = month
        self.day = day
        self.header_length = (
            header_length
            if header_length is not None
            else len(self.fields) * DBF_FIELD_DESCRIPTOR_SIZE + DBF_HEADER_SIZE + 1
        )
        self.record_length = (
            record_length
            if record_length is not None
            else sum(field.size for field in self.fields) + 1
        )

    @property
    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]

    def field(self, name: str) -> DbfField:
        for field in self.fields:
            if field.name == name:
                return field
        raise ValueError(f'"{name}" is not a valid field name')

    def touch(self) -> None:
        """Sets the date of last update to today."""
        self.year, self.month, self.day = time.localtime()[:3]

    def record_offset(self, id: int) -> int:
        return self.header_length + self.record_length * id

    @classmethod
    def read(
        cls, f: IO[bytes], encoding: str = "utf-8", errors: str = "strict"
    ) -> DbfHeader:
        f.seek(0)
        try:
            file_type, year, month, day, record_count, header_length, record_length = (
                unpack("<BBBBLHH20x", f.read(DBF_HEADER_SIZE))
            )
        except error as e:
            raise ShapefileException(
                "Shapefile dbf header is truncated. (likely corrupt?)"
            ) from e

        fields: list[DbfField] = []
        numFields = (header_length - DBF_HEADER_SIZE - 1) // DBF_FIELD_DESCRIPTOR_SIZE
        for __field in range(numFields):
            encoded_name, encoded_type_char, size, decimal = unpack(
                "<11sc4xBB14x", f.read(DBF_FIELD_DESCRIPTOR_SIZE)
            )
            name = encoded_name.split(b"\x00")[0].decode(encoding, errors).strip()
            try:
                field_type = FIELD_TYPE_ALIASES[encoded_type_char]
            except KeyError:
                raise ShapefileException(
                    f"Unsupported dbf field type {encoded_type_char!r} for field '{name}'."
                )
            if field_type is FieldType.C:
                # character field sizes are a 16 bit little endian number
                size, decimal = size + (decimal << 8), 0
            fields.append(DbfField(name, field_type, size, decimal))

        terminator = f.read(1)
        if terminator != DBF_HEADER_TERMINATOR:
            raise ShapefileException(
                "Shapefile dbf header lacks expected terminator. (likely corrupt?)"
            )

        return cls(
            fields,
            record_count=record_count,
            file_type=file_type,
            year=year + 1900,
            month=month,
            day=day,
            header_length=header_length,
            record_length=record_length,
        )

    def to_bytes(self, encoding: str = "utf-8", errors: str = "strict") -> bytes:
        if not self.fields:
            raise ShapefileException(
                "Shapefile dbf file must contain at least one field."
            )
        if len(self.fields) > DBF_MAX_FIELDS or self.header_length >= 65535:
            raise ShapefileException(
                "Shapefile dbf header length exceeds maximum length."
            )
        chunks = [
            pack(
                "<BBBBLHH20x",
                self.file_type,
                self.year - 1900,
                self.month,
                self.day,
                self.record_count,
                self.header_length,
                self.record_length,
            )
        ]
        # Field descriptors
        for field in self.fields:
            encoded_name = field.name.encode(encoding, errors).replace(b" ", b"_")
            encoded_name = encoded_name[:DBF_FIELD_NAME_SIZE].ljust(
                DBF_FIELD_NAME_SIZE, b"\x00"
            )
            encodedFieldType = field.field_type.encode("ascii")
            if field.field_type is FieldType.C:
                fld = pack("<11sc4xH14x", encoded_name, encodedFieldType, field.size)
            else:
                fld = pack(
                    "<11sc4xBB14x",
                    encoded_name,
                    encodedFieldType,
                    field.size,
                    field.decimal,
                )
            chunks.append(fld)
        chunks.append(DBF_HEADER_TERMINATOR)
        return b"".join(chunks)

    def write(
        self, f: IO[bytes], encoding: str = "utf-8", errors: str = "strict"
    ) -> None:
        f.seek(0)
        f.write(self.to_bytes(encoding, errors))

    def encode_row(
        self,
        values: Mapping[str, RecordValue],
        encoding: str = "utf-8",
        errors: str = "strict",
        deleted: bool = False,
    ) -> bytes:
        """Encodes a full fixed width row. Fields missing from values are
        written as missing values."""
        chunks = [DELETED_FLAG if deleted else ACTIVE_FLAG]
        for field in self.fields:
            chunks.append(field.encode(values.get(field.name), encoding, errors))
        row = b"".join(chunks)
        # rows of files written elsewhere may carry trailing padding
        return row.ljust(self.record_length, b" ")

    def __repr__(self) -> str:
        return (
            f"DbfHeader({self.record_count} records, fields={self.field_names}, "
            f"updated={self.year:04d}-{self.month:02d}-{self.day:02d})"
        )


class DbfRowFormat:
    """Calculates the struct layout of a row. Optional 'fields' specifies
    which field names to unpack, the others are skipped as pad bytes. The
    deletion flag is always unpacked first."""

    def __init__(self, header: DbfHeader, fields: Iterable[str] | None = None):
        if fields is not None:
            unique_fields = set(fields)
            # make sure the given fieldnames exist
            for name in unique_fields:
                header.field(name)
            self.fields = [f for f in header.fields if f.name in unique_fields]
        else:
            self.fields = list(header.fields)

        selected = {f.name for f in self.fields}
        structcodes = ["1s"]
        for field in header.fields:
            code = "s" if field.name in selected else "x"
            structcodes.append(f"{field.size}{code}")
        fmt = "<" + "".join(structcodes)
        fmtSize = Struct(fmt).size
        # pad up to the record length of the header
        if fmtSize < header.record_length:
            fmt += f"{header.record_length - fmtSize}x"
        self._struct = Struct(fmt)

    @property
    def size(self) -> int:
        return self._struct.size

    @property
    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]

    def decode(
        self,
        buf: bytes,
        id: int | None = None,
        encoding: str = "utf-8",
        errors: str = "strict",
    ) -> DbfRecord:
        try:
            recordContents = self._struct.unpack(buf)
        except error as e:
            raise ShapefileException(f"Truncated dbf record #{id}.") from e

        deleted = recordContents[0] == DELETED_FLAG
        values = {
            field.name: field.decode(raw, encoding, errors)
            for field, raw in zip(self.fields, recordContents[1:])
        }
        return DbfRecord(id, values, deleted)
