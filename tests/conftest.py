"""
Sample shapefiles shared by the tests. Every sample is written through
the public API into a temporary directory.
"""

# third party imports
import pytest

# our imports
from shapestore import POINT, POLYGON, Shapefile

SAMPLE_FIELDS = [("NAME", "C", 10), ("POP", "N", 8)]

SQUARE = [[0, 0], [0, 2], [2, 2], [2, 0], [0, 0]]
TRIANGLE = [[5, 5], [5, 6], [6, 6], [5, 5]]


@pytest.fixture
def points_path(tmpdir):
    """A point shapefile holding (1, 1), a null shape and (3, 3)."""
    path = tmpdir.join("points.shp").strpath
    with Shapefile.create_empty(path, POINT, SAMPLE_FIELDS) as shapefile:
        shapefile.push([1, 1], {"NAME": "a", "POP": 1})
        shapefile.push(None, {"NAME": "b", "POP": 2})
        shapefile.push([3, 3], {"NAME": "c", "POP": 3})
    return path


@pytest.fixture
def polygons_path(tmpdir):
    """A polygon shapefile holding a square with a separate triangle, then
    the triangle alone."""
    path = tmpdir.join("polygons.shp").strpath
    with Shapefile.create_empty(path, POLYGON, SAMPLE_FIELDS) as shapefile:
        shapefile.push([SQUARE, TRIANGLE], {"NAME": "both", "POP": 10})
        shapefile.push([TRIANGLE], {"NAME": "triangle", "POP": 20})
    return path
