from __future__ import annotations

from datetime import date
from os import PathLike
from typing import (
    Any,
    Callable,
    Final,
    Literal,
    Protocol,
    Sequence,
    TypeVar,
    Union,
)

## Custom type variables

T = TypeVar("T")
Point2D = tuple[float, float]
PointT = Sequence[float]
PointsT = list[PointT]

# Arbitrarily nested sequences of (x, y) vertices, e.g. [x, y], [[x, y], ...]
# or [[[x, y], ...], ...]
Coordinates = Sequence[Any]


class WriteableBinStream(Protocol):
    def write(self, b: bytes) -> int: ...


class ReadableBinStream(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class ReadSeekableBinStream(Protocol):
    def seek(self, offset: int, whence: int = 0) -> int: ...
    def tell(self) -> int: ...
    def read(self, size: int = -1) -> bytes: ...


PathT = Union[str, PathLike[Any]]

# "rb" opens read only, "r+b" opens for in place editing.
FileModeT = Literal["rb", "r+b"]

ProgressCallback = Callable[[int, int], None]

FieldTypeT = Literal["C", "D", "F", "L", "M", "N"]


# https://en.wikipedia.org/wiki/.dbf#Database_records
class FieldType:
    """A bare bones 'enum', as the enum library noticeably slows performance."""

    C: Final = "C"  # "Character"  # (str)
    D: Final = "D"  # "Date"
    F: Final = "F"  # "Floating point"
    L: Final = "L"  # "Logical"  # (bool)
    M: Final = "M"  # "Memo"  # Legacy. (10 digit str, starting block in an .dbt file)
    N: Final = "N"  # "Numeric"  # (int)
    __members__: set[FieldTypeT] = {
        "C",
        "D",
        "F",
        "L",
        "M",
        "N",
    }


FIELD_TYPE_ALIASES: dict[str | bytes, FieldTypeT] = {}
for c in FieldType.__members__:
    FIELD_TYPE_ALIASES[c.upper()] = c
    FIELD_TYPE_ALIASES[c.lower()] = c
    FIELD_TYPE_ALIASES[c.encode("ascii").lower()] = c
    FIELD_TYPE_ALIASES[c.encode("ascii").upper()] = c


RecordValueNotDate = Union[bool, int, float, str]

# A Possible value in a dbf record, i.e. L, N, M, F, C, or D types
RecordValue = Union[RecordValueNotDate, date, None]
