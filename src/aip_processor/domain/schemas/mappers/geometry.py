# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from collections.abc import Iterable

from aip_processor.domain.schemas.geometry import (
    BoundingBox,
    BoundingPolygon,
    Classification,
    GeoBoundingBox,
    GeoBoundingPolygon,
    GeoCoordinate,
    GeoPolygon,
    Lattice,
    LatticePoint,
    Polygon,
    UnitCoordinate,
)
from aip_processor.proto import schema as pb


def unit_coordinate_proto_to_schema(message: pb.UnitCoordinate) -> UnitCoordinate:
    return UnitCoordinate(row=message.row, col=message.col)


def unit_coordinate_schema_to_proto(coordinate: UnitCoordinate) -> pb.UnitCoordinate:
    return pb.UnitCoordinate(row=coordinate.row, col=coordinate.col)


def geo_coordinate_proto_to_schema(message: pb.GeoCoordinate) -> GeoCoordinate:
    return GeoCoordinate(latitude=message.latitude, longitude=message.longitude)


def geo_coordinate_schema_to_proto(coordinate: GeoCoordinate) -> pb.GeoCoordinate:
    return pb.GeoCoordinate(latitude=coordinate.latitude, longitude=coordinate.longitude)


def classifications_proto_to_schema(messages: Iterable[pb.Classification]) -> tuple[Classification, ...]:
    return tuple(Classification(type=m.type, confidence=m.confidence) for m in messages)


def classifications_schema_to_proto(classifications: Iterable[Classification]) -> list[pb.Classification]:
    return [pb.Classification(type=c.type, confidence=c.confidence) for c in classifications]


def bounding_box_proto_to_schema(message: pb.BoundingBox) -> BoundingBox:
    return BoundingBox(
        c0=unit_coordinate_proto_to_schema(message.c0),
        c1=unit_coordinate_proto_to_schema(message.c1),
        classifications=classifications_proto_to_schema(message.classifications),
    )


def bounding_box_schema_to_proto(box: BoundingBox) -> pb.BoundingBox:
    return pb.BoundingBox(
        c0=unit_coordinate_schema_to_proto(box.c0),
        c1=unit_coordinate_schema_to_proto(box.c1),
        classifications=classifications_schema_to_proto(box.classifications),
    )


def geo_bounding_box_proto_to_schema(message: pb.GeoBoundingBox) -> GeoBoundingBox:
    return GeoBoundingBox(
        c0=geo_coordinate_proto_to_schema(message.c0),
        c1=geo_coordinate_proto_to_schema(message.c1),
        classifications=classifications_proto_to_schema(message.classifications),
    )


def geo_bounding_box_schema_to_proto(box: GeoBoundingBox) -> pb.GeoBoundingBox:
    return pb.GeoBoundingBox(
        c0=geo_coordinate_schema_to_proto(box.c0),
        c1=geo_coordinate_schema_to_proto(box.c1),
        classifications=classifications_schema_to_proto(box.classifications),
    )


def bounding_polygon_proto_to_schema(message: pb.BoundingPolygon) -> BoundingPolygon:
    return BoundingPolygon(
        polygon=Polygon(vertices=tuple(unit_coordinate_proto_to_schema(v) for v in message.polygon.vertices)),
        classifications=classifications_proto_to_schema(message.classifications),
    )


def bounding_polygon_schema_to_proto(polygon: BoundingPolygon) -> pb.BoundingPolygon:
    return pb.BoundingPolygon(
        polygon=pb.Polygon(vertices=[unit_coordinate_schema_to_proto(v) for v in polygon.polygon.vertices]),
        classifications=classifications_schema_to_proto(polygon.classifications),
    )


def geo_bounding_polygon_proto_to_schema(message: pb.GeoBoundingPolygon) -> GeoBoundingPolygon:
    return GeoBoundingPolygon(
        polygon=GeoPolygon(vertices=tuple(geo_coordinate_proto_to_schema(v) for v in message.polygon.vertices)),
        classifications=classifications_proto_to_schema(message.classifications),
    )


def geo_bounding_polygon_schema_to_proto(polygon: GeoBoundingPolygon) -> pb.GeoBoundingPolygon:
    return pb.GeoBoundingPolygon(
        polygon=pb.GeoPolygon(vertices=[geo_coordinate_schema_to_proto(v) for v in polygon.polygon.vertices]),
        classifications=classifications_schema_to_proto(polygon.classifications),
    )


def lattice_proto_to_schema(message: pb.Lattice) -> Lattice:
    return Lattice(
        earth_intersection=tuple(
            LatticePoint(
                coordinate=unit_coordinate_proto_to_schema(point.coordinate),
                latitude=point.latitude,
                longitude=point.longitude,
                elevation=point.elevation,
            )
            for point in message.earth_intersection
        )
    )


def lattice_schema_to_proto(lattice: Lattice) -> pb.Lattice:
    return pb.Lattice(
        earth_intersection=[
            pb.LatticePoint(
                coordinate=unit_coordinate_schema_to_proto(point.coordinate),
                latitude=point.latitude,
                longitude=point.longitude,
                elevation=point.elevation,
            )
            for point in lattice.earth_intersection
        ]
    )
