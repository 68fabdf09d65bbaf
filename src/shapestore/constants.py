from __future__ import annotations

import os

# Module settings
VERBOSE = os.getenv("SHAPESTORE_VERBOSE", "").lower() != "no"

# Constants for shape types
NULL = 0
POINT = 1
POLYLINE = 3
POLYGON = 5
MULTIPOINT = 8
POINTZ = 11
POLYLINEZ = 13
POLYGONZ = 15
MULTIPOINTZ = 18
POINTM = 21
POLYLINEM = 23
POLYGONM = 25
MULTIPOINTM = 28
MULTIPATCH = 31

SHAPETYPE_LOOKUP = {
    NULL: "NULL",
    POINT: "POINT",
    POLYLINE: "POLYLINE",
    POLYGON: "POLYGON",
    MULTIPOINT: "MULTIPOINT",
    POINTZ: "POINTZ",
    POLYLINEZ: "POLYLINEZ",
    POLYGONZ: "POLYGONZ",
    MULTIPOINTZ: "MULTIPOINTZ",
    POINTM: "POINTM",
    POLYLINEM: "POLYLINEM",
    POLYGONM: "POLYGONM",
    MULTIPOINTM: "MULTIPOINTM",
    MULTIPATCH: "MULTIPATCH",
}

SHAPETYPENUM_LOOKUP = {name: code for code, name in SHAPETYPE_LOOKUP.items()}

# Shared .shp / .shx header
FILE_CODE = 9994
FILE_VERSION = 1000
HEADER_SIZE = 100

# Per record prefix in the .shp file: record number and content length (big endian)
RECORD_PREFIX_SIZE = 8
# Fixed slot size in the .shx file: offset and content length (big endian)
SHX_RECORD_SIZE = 8

# dBase
DBF_FILE_TYPE = 3
DBF_HEADER_SIZE = 32
DBF_FIELD_DESCRIPTOR_SIZE = 32
DBF_HEADER_TERMINATOR = b"\r"
DBF_FIELD_NAME_SIZE = 11
DBF_MAX_FIELDS = 2046
ACTIVE_FLAG = b" "
DELETED_FLAG = b"*"

MISSING = (None, "")  # Don't make a set, as user input may not be Hashable
