from __future__ import annotations

from .constants import NULL, SHAPETYPE_LOOKUP
from .envelope import Envelope
from .geojson import (
    GeoJSONFeature,
    GeoJSONHomogeneousGeometryObject,
    HasGeoInterface,
    from_geojson,
    to_geojson,
)
from .types import Coordinates, RecordValue


class Geometry:
    """A decoded geometry record: its shape type, its coordinates as nested
    lists, and the record id it was read from (1-based, None if not stored).

    Coordinates follow the layout of the shape type:

    * point: ``[x, y]``
    * multipoint: ``[[x, y], ...]``
    * polyline: ``[[x, y], ...]`` for one part, ``[[[x, y], ...], ...]`` for several
    * polygon: ``[[[x, y], ...], ...]``, one list per ring
    """

    def __init__(
        self,
        shape_type: int,
        coordinates: Coordinates,
        id: int | None = None,
        envelope: Envelope | None = None,
    ):
        self.shape_type = shape_type
        self.coordinates = coordinates
        self.id = id
        self._envelope = envelope

    @classmethod
    def from_geo_interface(
        cls, obj: HasGeoInterface | GeoJSONHomogeneousGeometryObject
    ) -> Geometry:
        """Creates a geometry from a GeoJSON geometry dict or from any object
        implementing the __geo_interface__ protocol."""
        if hasattr(obj, "__geo_interface__"):
            obj = obj.__geo_interface__
        if not isinstance(obj, dict):
            raise TypeError(
                "Can only create geometries from GeoJSON dictionaries "
                f"or objects with the __geo_interface__, not: {obj}"
            )
        shape_type, coordinates = from_geojson(obj)
        return cls(shape_type, coordinates)

    def envelope(self) -> Envelope | None:
        """The bounding box of the geometry, None for a geometry without vertices."""
        if self._envelope is None:
            self._envelope = Envelope.from_coordinates(self.coordinates)
        return self._envelope

    @property
    def shape_type_name(self) -> str:
        return SHAPETYPE_LOOKUP[self.shape_type]

    @property
    def __geo_interface__(self) -> GeoJSONHomogeneousGeometryObject:
        return to_geojson(self.shape_type, self.coordinates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Geometry):
            return NotImplemented
        return (
            self.shape_type == other.shape_type
            and self.id == other.id
            and self.coordinates == other.coordinates
        )

    def __repr__(self) -> str:
        return f"Geometry #{self.id}: {SHAPETYPE_LOOKUP.get(self.shape_type, self.shape_type)}"


class Feature:
    """A geometry joined with the attribute values of its record.
    Provides the GeoJSON __geo_interface__ to return a Feature dictionary."""

    type = "Feature"

    def __init__(
        self,
        geometry: Geometry | None,
        properties: dict[str, RecordValue] | None = None,
    ):
        self.geometry = geometry
        self.properties = properties if properties is not None else {}

    @property
    def id(self) -> int | None:
        return None if self.geometry is None else self.geometry.id

    def __getitem__(self, key: str) -> RecordValue:
        return self.properties[key]

    @property
    def __geo_interface__(self) -> GeoJSONFeature:
        return {
            "type": "Feature",
            "properties": dict(self.properties),
            "geometry": None
            if self.geometry is None or self.geometry.shape_type == NULL
            else self.geometry.__geo_interface__,
        }

    def __repr__(self) -> str:
        return f"Feature #{self.id}: {self.properties}"
