from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from types import TracebackType
from typing import Any

from .constants import SHAPETYPE_LOOKUP
from .dbase import DbfField, DbfRecord
from .dbf import Dbf, RowT
from .envelope import Envelope
from .exceptions import IndexOutOfRangeError, ShapefileException
from .geometry import Feature
from .helpers import constituent_path, fsdecode_if_pathlike
from .iterators import FeatureIterator
from .shp import Shp
from .types import FileModeT, PathT, RecordValue


class Shapefile:
    """Reads and edits the three files of a shapefile as a unit.

    Geometry ids are 1-based, the attribute row of geometry id is the
    row id - 1. Only the headers are read on open, records are read
    when requested.
    """

    def __init__(
        self,
        path: PathT,
        mode: FileModeT = "rb",
        encoding: str = "utf-8",
        encoding_errors: str = "strict",
    ):
        self.path: str = fsdecode_if_pathlike(path)
        self.shp = Shp(self.path, mode)
        self.dbf = Dbf(
            constituent_path(self.path, "dbf"), mode, encoding, encoding_errors
        )

    @property
    def is_opened(self) -> bool:
        return self.shp.is_opened and self.dbf.is_opened

    def open(self) -> None:
        self.shp.open()
        try:
            self.dbf.open()
        except BaseException:
            self.shp.close()
            raise

    def close(self) -> None:
        try:
            self.shp.close()
        finally:
            self.dbf.close()

    def __enter__(self) -> Shapefile:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: BaseException | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        self.close()
        return None

    def __str__(self) -> str:
        info = [f"shapestore Shapefile {self.path}"]
        if self.is_opened:
            info.append(f"    {self.count()} shapes (type '{self.shp.shape_type_name}')")
            info.append(
                f"    {self.dbf.count()} records ({len(self.dbf.fields())} fields)"
            )
        return "\n".join(info)

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Feature]:
        return self.iterator()

    def count(self) -> int:
        return self.shp.count()

    def envelope(self) -> Envelope | None:
        return self.shp.envelope()

    def shape_type(self) -> int:
        return self.shp.shape_type()

    def fields(self, detail: bool = False) -> list[str] | list[DbfField]:
        return self.dbf.fields(detail)

    def _check_id(self, id: int) -> None:
        count = self.count()
        if not 1 <= id <= count:
            raise IndexOutOfRangeError(
                f"Feature id {id} out of range. Valid ids are 1 to {count}."
            )

    def get(self, id: int, fields: Iterable[str] | None = None) -> Feature | None:
        """Returns the feature with the given 1-based id, None if its
        geometry was removed or is a null shape."""
        geometry = self.shp.get(id)
        if geometry is None:
            return None
        record = self.dbf.get(id - 1, fields)
        return Feature(geometry, record.as_dict())

    def iterator(
        self,
        fields: Iterable[str] | None = None,
        envelope: Envelope | None = None,
        start: int = 0,
        limit: int | None = None,
    ) -> FeatureIterator:
        return FeatureIterator(
            self.shp.iterator(start, limit, envelope),
            self.dbf.iterator(fields, start, limit),
        )

    def records(
        self,
        fields: Iterable[str] | None = None,
        envelope: Envelope | None = None,
        start: int = 0,
        limit: int | None = None,
    ) -> list[Feature]:
        with self.iterator(fields, envelope, start, limit) as iterator:
            return list(iterator)

    @property
    def __geo_interface__(self) -> dict[str, Any]:
        envelope = self.envelope()
        fc: dict[str, Any] = {
            "type": "FeatureCollection",
            "features": [feature.__geo_interface__ for feature in self.records()],
        }
        if envelope is not None:
            fc["bbox"] = list(envelope)
        return fc

    def push(
        self,
        geometry: Any,
        properties: RowT | None = None,
    ) -> int:
        """Appends a geometry and its attribute row. Returns the new id."""
        self.dbf.push_row(properties if properties is not None else {})
        try:
            id = self.shp.push(geometry)
        except BaseException:
            # rows stay aligned with geometries
            self.dbf.discard_staged()
            raise
        self.dbf.flush()
        return id

    def update_at(
        self,
        id: int,
        geometry: Any = None,
        properties: Mapping[str, RecordValue] | None = None,
    ) -> None:
        """Replaces the geometry and/or updates the given properties of a
        feature. Properties not given keep their values. A geometry of None
        keeps the current one, to replace it with a null shape pass
        Geometry(NULL, []) or {"type": "Null"}."""
        self._check_id(id)
        if geometry is not None:
            self.shp.update_at(id, geometry)
        if properties is not None:
            self.dbf.update(DbfRecord(id - 1, dict(properties)))

    def remove_at(self, id: int) -> None:
        """Removes the geometry and flags the attribute row as deleted."""
        self._check_id(id)
        self.shp.remove_at(id)
        self.dbf.remove_at(id - 1)

    @classmethod
    def create_empty(
        cls,
        path: PathT,
        shape_type: int,
        fields: Iterable[Any],
        encoding: str = "utf-8",
        encoding_errors: str = "strict",
    ) -> Shapefile:
        """Writes an empty .shp, .shx and .dbf. Returns the shapefile, not
        yet opened, in read/write mode."""
        if shape_type not in SHAPETYPE_LOOKUP:
            raise ShapefileException(f"Unknown shape type: {shape_type}")
        path = fsdecode_if_pathlike(path)
        base_name, __ = os.path.splitext(path)
        Dbf.create_empty(f"{base_name}.dbf", fields, encoding, encoding_errors)
        Shp.create_empty(path, shape_type)
        return cls(path, "r+b", encoding, encoding_errors)
