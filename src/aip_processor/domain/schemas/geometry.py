# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""Coordinate and geometry types with range validation."""

import math
from collections.abc import Iterator
from enum import StrEnum
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, model_validator

from aip_processor.exceptions import RangeError

UNIT_RANGE = (0.0, 1.0)
LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)
CONFIDENCE_RANGE = (0.0, 1.0)


def check_range(
    field: str,
    value: float,
    lower: float,
    upper: float,
    upper_inclusive: bool = True,
    error_cls: type[RangeError] = RangeError,
) -> None:
    """
    Raise `error_cls` unless lower <= value <= upper (or < upper when the bound is exclusive).

    NaN and infinities never pass.
    """
    in_range = math.isfinite(value) and lower <= value and (value <= upper if upper_inclusive else value < upper)
    if not in_range:
        raise error_cls(field, value, lower, upper, upper_inclusive=upper_inclusive)


def validate_unit_coordinate(row: float, col: float) -> None:
    check_range("row", row, *UNIT_RANGE)
    check_range("col", col, *UNIT_RANGE)


def validate_geo_coordinate(latitude: float, longitude: float) -> None:
    check_range("latitude", latitude, *LATITUDE_RANGE)
    check_range("longitude", longitude, *LONGITUDE_RANGE)


def validate_confidence(value: float, field: str = "confidence") -> None:
    check_range(field, value, *CONFIDENCE_RANGE)


class GeometryKind(StrEnum):
    """Tag of the geometry variant an inference carries. Values match the wire field names."""

    BOX = "box"
    POLYGON = "polygon"
    GEO_BOX = "geo_box"
    GEO_POLYGON = "geo_polygon"


class UnitCoordinate(BaseModel):
    """Image-relative location. (0, 0) is the upper-left corner, (1, 1) the lower-right one."""

    model_config = ConfigDict(frozen=True)

    row: float
    col: float

    @model_validator(mode="after")
    def _check_range(self) -> Self:
        validate_unit_coordinate(self.row, self.col)
        return self


class GeoCoordinate(BaseModel):
    """WGS84 latitude/longitude pair in degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @model_validator(mode="after")
    def _check_range(self) -> Self:
        validate_geo_coordinate(self.latitude, self.longitude)
        return self


class Classification(BaseModel):
    """
    A label and how likely the object is of that type.

    Classifications attached to one geometry are independent estimates; their confidences are not required to sum
    to one.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    confidence: float

    @model_validator(mode="after")
    def _check_range(self) -> Self:
        validate_confidence(self.confidence)
        return self


class BoundingBox(BaseModel):
    """Rectangle drawn from c0 (upper-left) to c1 (lower-right) in unit space."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[GeometryKind.BOX] = GeometryKind.BOX
    c0: UnitCoordinate
    c1: UnitCoordinate
    classifications: tuple[Classification, ...] = ()

    @property
    def height(self) -> float:
        return self.c1.row - self.c0.row

    @property
    def width(self) -> float:
        return self.c1.col - self.c0.col


class GeoBoundingBox(BaseModel):
    """Rectangle drawn from c0 (north-west) to c1 (south-east)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[GeometryKind.GEO_BOX] = GeometryKind.GEO_BOX
    c0: GeoCoordinate
    c1: GeoCoordinate
    classifications: tuple[Classification, ...] = ()


class Polygon(BaseModel):
    """Closed polygon in unit space; the last vertex connects back to the first."""

    model_config = ConfigDict(frozen=True)

    vertices: tuple[UnitCoordinate, ...] = ()

    def edges(self) -> Iterator[tuple[UnitCoordinate, UnitCoordinate]]:
        for i, vertex in enumerate(self.vertices):
            yield vertex, self.vertices[(i + 1) % len(self.vertices)]


class GeoPolygon(BaseModel):
    """Closed polygon of geo vertices; the last vertex connects back to the first."""

    model_config = ConfigDict(frozen=True)

    vertices: tuple[GeoCoordinate, ...] = ()

    def edges(self) -> Iterator[tuple[GeoCoordinate, GeoCoordinate]]:
        for i, vertex in enumerate(self.vertices):
            yield vertex, self.vertices[(i + 1) % len(self.vertices)]


class BoundingPolygon(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[GeometryKind.POLYGON] = GeometryKind.POLYGON
    polygon: Polygon
    classifications: tuple[Classification, ...] = ()


class GeoBoundingPolygon(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[GeometryKind.GEO_POLYGON] = GeometryKind.GEO_POLYGON
    polygon: GeoPolygon
    classifications: tuple[Classification, ...] = ()


class LatticePoint(BaseModel):
    """Maps an image coordinate to the point where it intersects the earth."""

    model_config = ConfigDict(frozen=True)

    coordinate: UnitCoordinate
    latitude: float
    longitude: float
    elevation: float  # meters

    @model_validator(mode="after")
    def _check_range(self) -> Self:
        validate_geo_coordinate(self.latitude, self.longitude)
        return self


class Lattice(BaseModel):
    """
    Sensor-to-earth intersection points.

    The points form a sparse set in caller-defined order; they are not assumed to be a dense grid.
    """

    model_config = ConfigDict(frozen=True)

    earth_intersection: tuple[LatticePoint, ...] = ()
