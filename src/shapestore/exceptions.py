class ShapefileException(Exception):
    """An exception to handle shapefile specific problems."""


class NotOpenError(ShapefileException):
    """The file backing a store has not been opened, or was closed."""


class IndexOutOfRangeError(ShapefileException, IndexError):
    pass


class ShapeTypeMismatchError(ShapefileException):
    """A record's shape type tag does not match the codec of its file."""


class UnsupportedShapeTypeError(ShapefileException):
    pass


class ShapeDecodeError(ShapefileException):
    """A geometry record is truncated or disagrees with its index slot."""


class RecordCountMismatchError(ShapefileException):
    """The .shp and .dbf of a shapefile hold a different number of records."""


class RecordEditedError(ShapefileException):
    pass
