from __future__ import annotations

import os
from os import PathLike
from struct import Struct
from typing import Any, overload

from .exceptions import IndexOutOfRangeError
from .types import T

# Helpers


unpack_2_int32_be = Struct(">2i").unpack
pack_2_int32_be = Struct(">2i").pack


@overload
def fsdecode_if_pathlike(path: PathLike[Any]) -> str: ...
@overload
def fsdecode_if_pathlike(path: T) -> T: ...
def fsdecode_if_pathlike(path: Any) -> Any:
    if isinstance(path, PathLike):
        return os.fsdecode(path)  # str

    return path


def constituent_path(path: str, ext: str) -> str:
    """Returns the path of the sibling file with extension 'ext' (given in
    lower case), preferring the lower case spelling, then the upper case one.
    If neither exists, the lower case path is returned."""
    base_name, __ = os.path.splitext(path)
    for cased_ext in (ext, ext.upper()):
        candidate = f"{base_name}.{cased_ext}"
        if os.path.exists(candidate):
            return candidate
    return f"{base_name}.{ext}"


def clip_range(start: int, limit: int | None, count: int) -> tuple[int, int]:
    """Returns the positions (start, stop) covered by a start position and
    a record limit, clipped to the record count."""
    if start < 0:
        raise IndexOutOfRangeError(f"Start position must not be negative. Got: {start}")
    if limit is not None and limit < 0:
        raise ValueError(f"Limit must not be negative. Got: {limit}")
    stop = count if limit is None else min(count, start + limit)
    return start, max(start, stop)
