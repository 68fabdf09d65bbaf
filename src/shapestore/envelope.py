from __future__ import annotations

from collections.abc import Iterable, Iterator
from numbers import Number
from typing import Any, NamedTuple

from .types import Coordinates, PointT


class Envelope(NamedTuple):
    """An axis aligned bounding box (lower left, upper right)."""

    minx: float
    miny: float
    maxx: float
    maxy: float

    def overlaps(self, other: Envelope) -> bool:
        """Tests whether two envelopes overlap. Touching edges overlap."""
        return (
            self.minx <= other.maxx
            and other.minx <= self.maxx
            and self.miny <= other.maxy
            and other.miny <= self.maxy
        )

    def contains(self, other: Envelope) -> bool:
        """Tests whether this envelope fully contains other (edges included)."""
        return (
            self.minx <= other.minx
            and other.maxx <= self.maxx
            and self.miny <= other.miny
            and other.maxy <= self.maxy
        )

    @staticmethod
    def union(a: Envelope | None, b: Envelope | None) -> Envelope | None:
        """Returns the smallest envelope covering both a and b.
        A missing envelope on either side yields the other one."""
        if a is None:
            return b
        if b is None:
            return a
        return Envelope(
            min(a.minx, b.minx),
            min(a.miny, b.miny),
            max(a.maxx, b.maxx),
            max(a.maxy, b.maxy),
        )

    @staticmethod
    def disjoined(a: Envelope | None, b: Envelope | None) -> bool:
        """True if the envelopes do not overlap. A missing envelope is
        never disjoint from anything, so an absent filter excludes nothing."""
        if a is None or b is None:
            return False
        return not a.overlaps(b)

    @classmethod
    def from_points(cls, points: Iterable[PointT]) -> Envelope | None:
        xs: list[float] = []
        ys: list[float] = []

        for point in points:
            xs.append(point[0])
            ys.append(point[1])

        if not xs:
            return None

        return cls(min(xs), min(ys), max(xs), max(ys))

    @classmethod
    def from_coordinates(cls, coordinates: Coordinates) -> Envelope | None:
        """Bounding box of arbitrarily nested coordinates, e.g. a point [x, y],
        a line [[x, y], ...] or a polygon [[[x, y], ...], ...]."""
        return cls.from_points(iter_points(coordinates))


def is_point(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) >= 2
        and isinstance(value[0], Number)
    )


def iter_points(coordinates: Coordinates) -> Iterator[PointT]:
    """Yields every (x, y, ...) vertex of nested coordinates in order."""
    if is_point(coordinates):
        yield coordinates
        return

    for child in coordinates:
        yield from iter_points(child)
