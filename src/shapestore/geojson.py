from __future__ import annotations

from typing import Any, Literal, Protocol, TypedDict, Union, cast

from .constants import MULTIPOINT, NULL, POINT, POLYGON, POLYLINE, SHAPETYPE_LOOKUP
from .envelope import is_point
from .exceptions import UnsupportedShapeTypeError
from .types import Coordinates, PointsT, PointT


class HasGeoInterface(Protocol):
    @property
    def __geo_interface__(self) -> GeoJSONHomogeneousGeometryObject: ...


class GeoJSONPoint(TypedDict):
    type: Literal["Point"]
    coordinates: PointT


class GeoJSONMultiPoint(TypedDict):
    type: Literal["MultiPoint"]
    coordinates: PointsT


class GeoJSONLineString(TypedDict):
    type: Literal["LineString"]
    coordinates: PointsT


class GeoJSONMultiLineString(TypedDict):
    type: Literal["MultiLineString"]
    coordinates: list[PointsT]


class GeoJSONPolygon(TypedDict):
    type: Literal["Polygon"]
    coordinates: list[PointsT]


class GeoJSONMultiPolygon(TypedDict):
    type: Literal["MultiPolygon"]
    coordinates: list[list[PointsT]]


GeoJSONHomogeneousGeometryObject = Union[
    GeoJSONPoint,
    GeoJSONMultiPoint,
    GeoJSONLineString,
    GeoJSONMultiLineString,
    GeoJSONPolygon,
    GeoJSONMultiPolygon,
]

GEOJSON_TO_SHAPETYPE: dict[str, int] = {
    "Null": NULL,
    "Point": POINT,
    "LineString": POLYLINE,
    "Polygon": POLYGON,
    "MultiPoint": MULTIPOINT,
    "MultiLineString": POLYLINE,
    "MultiPolygon": POLYGON,
}


class GeoJSONFeature(TypedDict):
    type: Literal["Feature"]
    properties: (
        dict[str, Any] | None
    )  # RFC7946 3.2 "(any JSON object or a JSON null value)"
    geometry: GeoJSONHomogeneousGeometryObject | None


def to_geojson(
    shape_type: int, coordinates: Coordinates
) -> GeoJSONHomogeneousGeometryObject:
    """Maps a shape type and its coordinates onto a GeoJSON geometry dict.
    Polygon rings are stored independently of each other, so every ring
    of a multi ring polygon becomes its own polygon."""
    if shape_type == POINT:
        return {"type": "Point", "coordinates": cast(PointT, coordinates)}

    if shape_type == MULTIPOINT:
        return {"type": "MultiPoint", "coordinates": cast(PointsT, coordinates)}

    if shape_type == POLYLINE:
        if len(coordinates) == 0 or is_point(coordinates[0]):
            return {"type": "LineString", "coordinates": cast(PointsT, coordinates)}
        return {
            "type": "MultiLineString",
            "coordinates": cast(list[PointsT], coordinates),
        }

    if shape_type == POLYGON:
        rings = cast(list[PointsT], coordinates)
        if len(rings) <= 1:
            return {"type": "Polygon", "coordinates": rings}
        return {"type": "MultiPolygon", "coordinates": [[ring] for ring in rings]}

    raise UnsupportedShapeTypeError(
        f'Shape type "{SHAPETYPE_LOOKUP.get(shape_type, shape_type)}" cannot be represented as GeoJSON.'
    )


def from_geojson(
    geoj: GeoJSONHomogeneousGeometryObject | None,
) -> tuple[int, Coordinates]:
    """Returns the shape type and coordinates of a GeoJSON geometry dict."""
    geojType = geoj["type"] if geoj else "Null"
    if geojType not in GEOJSON_TO_SHAPETYPE:
        raise UnsupportedShapeTypeError(
            f"Cannot create a geometry from GeoJSON type '{geojType}'"
        )

    shape_type = GEOJSON_TO_SHAPETYPE[geojType]
    if shape_type == NULL:
        return NULL, []

    coordinates = cast(GeoJSONHomogeneousGeometryObject, geoj)["coordinates"]
    if geojType == "MultiPolygon":
        # flatten polygons into their rings
        coordinates = [
            ring for polygon in cast(list[list[PointsT]], coordinates) for ring in polygon
        ]
    return shape_type, coordinates
