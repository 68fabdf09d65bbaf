"""
shapestore
Reads, streams and edits ESRI Shapefiles (.shp, .shx and .dbf) in place.
Compatible with Python versions >=3.9
"""

from __future__ import annotations

import logging

from .__version__ import __version__
from .base import FileStore
from .codec import (
    PARSER_CLASS_FROM_SHAPETYPE,
    GeomParser,
    GeomRecord,
    MultiPointParser,
    PointParser,
    PolygonParser,
    PolyLineParser,
    ShxRecord,
    create_parser,
    encode_record,
    parts,
    read_record,
    vertices,
)
from .constants import (
    MULTIPATCH,
    MULTIPOINT,
    MULTIPOINTM,
    MULTIPOINTZ,
    NULL,
    POINT,
    POINTM,
    POINTZ,
    POLYGON,
    POLYGONM,
    POLYGONZ,
    POLYLINE,
    POLYLINEM,
    POLYLINEZ,
    SHAPETYPE_LOOKUP,
    SHAPETYPENUM_LOOKUP,
)
from .dbase import DbfField, DbfHeader, DbfRecord, DbfRowFormat
from .dbf import Dbf
from .envelope import Envelope
from .exceptions import (
    IndexOutOfRangeError,
    NotOpenError,
    RecordCountMismatchError,
    RecordEditedError,
    ShapeDecodeError,
    ShapefileException,
    ShapeTypeMismatchError,
    UnsupportedShapeTypeError,
)
from .geojson import from_geojson, to_geojson
from .geometry import Feature, Geometry
from .header import ShapefileHeader
from .iterators import (
    DbfIterator,
    FeatureIterator,
    RecordIterator,
    ShpIterator,
    ShxIterator,
)
from .shapefile import Shapefile
from .shp import Shp
from .shx import Shx
from .types import (
    FIELD_TYPE_ALIASES,
    Coordinates,
    FieldType,
    FieldTypeT,
    Point2D,
    PointsT,
    PointT,
    RecordValue,
)

__all__ = [
    "__version__",
    "NULL",
    "POINT",
    "POLYLINE",
    "POLYGON",
    "MULTIPOINT",
    "POINTZ",
    "POLYLINEZ",
    "POLYGONZ",
    "MULTIPOINTZ",
    "POINTM",
    "POLYLINEM",
    "POLYGONM",
    "MULTIPOINTM",
    "MULTIPATCH",
    "SHAPETYPE_LOOKUP",
    "SHAPETYPENUM_LOOKUP",
    "Shapefile",
    "Shp",
    "Shx",
    "Dbf",
    "FileStore",
    "ShapefileHeader",
    "ShxRecord",
    "DbfField",
    "DbfHeader",
    "DbfRecord",
    "DbfRowFormat",
    "Envelope",
    "Geometry",
    "Feature",
    "GeomParser",
    "GeomRecord",
    "PointParser",
    "MultiPointParser",
    "PolyLineParser",
    "PolygonParser",
    "PARSER_CLASS_FROM_SHAPETYPE",
    "create_parser",
    "read_record",
    "encode_record",
    "vertices",
    "parts",
    "to_geojson",
    "from_geojson",
    "RecordIterator",
    "ShxIterator",
    "ShpIterator",
    "DbfIterator",
    "FeatureIterator",
    "Point2D",
    "PointT",
    "PointsT",
    "Coordinates",
    "FieldTypeT",
    "FieldType",
    "FIELD_TYPE_ALIASES",
    "RecordValue",
    "ShapefileException",
    "NotOpenError",
    "IndexOutOfRangeError",
    "ShapeTypeMismatchError",
    "UnsupportedShapeTypeError",
    "ShapeDecodeError",
    "RecordCountMismatchError",
    "RecordEditedError",
]

logger = logging.getLogger(__name__)
