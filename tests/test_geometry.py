"""
This module tests geometries, features and their GeoJSON mapping.
"""

# third party imports
import pytest

# our imports
from shapestore import (
    MULTIPOINT,
    NULL,
    POINT,
    POINTZ,
    POLYGON,
    POLYLINE,
    Envelope,
    Feature,
    Geometry,
    UnsupportedShapeTypeError,
    from_geojson,
    to_geojson,
)

SQUARE = [[0, 0], [0, 2], [2, 2], [2, 0], [0, 0]]
TRIANGLE = [[5, 5], [5, 6], [6, 6], [5, 5]]


class GeoObject:
    def __init__(self, geo_interface):
        self.__geo_interface__ = geo_interface


@pytest.mark.parametrize(
    "shape_type,coordinates,expected",
    [
        (POINT, [1, 2], {"type": "Point", "coordinates": [1, 2]}),
        (
            MULTIPOINT,
            [[1, 2], [3, 4]],
            {"type": "MultiPoint", "coordinates": [[1, 2], [3, 4]]},
        ),
        (
            POLYLINE,
            [[1, 2], [3, 4]],
            {"type": "LineString", "coordinates": [[1, 2], [3, 4]]},
        ),
        (
            POLYLINE,
            [[[1, 2], [3, 4]], [[5, 6], [7, 8]]],
            {
                "type": "MultiLineString",
                "coordinates": [[[1, 2], [3, 4]], [[5, 6], [7, 8]]],
            },
        ),
        (POLYGON, [SQUARE], {"type": "Polygon", "coordinates": [SQUARE]}),
        (
            POLYGON,
            [SQUARE, TRIANGLE],
            {"type": "MultiPolygon", "coordinates": [[SQUARE], [TRIANGLE]]},
        ),
    ],
)
def test_to_geojson(shape_type, coordinates, expected):
    assert to_geojson(shape_type, coordinates) == expected


def test_to_geojson_unsupported():
    with pytest.raises(UnsupportedShapeTypeError):
        to_geojson(POINTZ, [1, 2, 3])


def test_from_geojson():
    assert from_geojson({"type": "Point", "coordinates": [1, 2]}) == (POINT, [1, 2])
    assert from_geojson({"type": "LineString", "coordinates": [[0, 0], [1, 1]]}) == (
        POLYLINE,
        [[0, 0], [1, 1]],
    )
    assert from_geojson(None) == (NULL, [])


def test_from_geojson_multipolygon_flattens_rings():
    """
    Assert that the polygons of a MultiPolygon become the rings of a
    single polygon geometry.
    """
    geoj = {"type": "MultiPolygon", "coordinates": [[SQUARE], [TRIANGLE]]}
    assert from_geojson(geoj) == (POLYGON, [SQUARE, TRIANGLE])


def test_from_geojson_unsupported():
    with pytest.raises(UnsupportedShapeTypeError):
        from_geojson({"type": "GeometryCollection", "geometries": []})


def test_geometry_from_geo_interface():
    geometry = Geometry.from_geo_interface(
        GeoObject({"type": "Polygon", "coordinates": [SQUARE]})
    )
    assert geometry.shape_type == POLYGON
    assert geometry.coordinates == [SQUARE]
    assert geometry.id is None

    geometry = Geometry.from_geo_interface({"type": "Point", "coordinates": [4, 5]})
    assert geometry == Geometry(POINT, [4, 5])


def test_geometry_from_invalid_object():
    with pytest.raises(TypeError):
        Geometry.from_geo_interface("POINT (1 2)")


def test_geometry_envelope():
    assert Geometry(POLYGON, [SQUARE, TRIANGLE]).envelope() == Envelope(0, 0, 6, 6)
    assert Geometry(MULTIPOINT, []).envelope() is None
    # a given envelope is kept
    given = Envelope(-1, -1, 1, 1)
    assert Geometry(POINT, [0, 0], envelope=given).envelope() == given


def test_geometry_geo_interface():
    geometry = Geometry(POLYLINE, [[0, 0], [1, 1]], id=3)
    assert geometry.__geo_interface__ == {
        "type": "LineString",
        "coordinates": [[0, 0], [1, 1]],
    }
    assert geometry.shape_type_name == "POLYLINE"


def test_geometry_equality():
    assert Geometry(POINT, [1, 2], id=1) == Geometry(POINT, [1, 2], id=1)
    assert Geometry(POINT, [1, 2], id=1) != Geometry(POINT, [1, 2], id=2)
    assert Geometry(POINT, [1, 2]) != Geometry(MULTIPOINT, [1, 2])


def test_feature():
    feature = Feature(Geometry(POINT, [1, 2], id=4), {"NAME": "a"})
    assert feature.id == 4
    assert feature["NAME"] == "a"
    assert feature.__geo_interface__ == {
        "type": "Feature",
        "properties": {"NAME": "a"},
        "geometry": {"type": "Point", "coordinates": [1, 2]},
    }


def test_feature_without_geometry():
    """
    Assert that a feature without geometry, or with a null geometry,
    maps to a GeoJSON feature whose geometry is null.
    """
    assert Feature(None).__geo_interface__ == {
        "type": "Feature",
        "properties": {},
        "geometry": None,
    }
    assert Feature(Geometry(NULL, [])).__geo_interface__["geometry"] is None
    assert Feature(None).id is None
