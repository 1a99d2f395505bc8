# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""Mappers for the oneof-bearing payloads: images, inferences, velocities and provider metadata."""

from collections.abc import Callable
from typing import Any

from aip_processor.domain.schemas.geometry import GeometryKind
from aip_processor.domain.schemas.mappers.geometry import (
    bounding_box_proto_to_schema,
    bounding_box_schema_to_proto,
    bounding_polygon_proto_to_schema,
    bounding_polygon_schema_to_proto,
    geo_bounding_box_proto_to_schema,
    geo_bounding_box_schema_to_proto,
    geo_bounding_polygon_proto_to_schema,
    geo_bounding_polygon_schema_to_proto,
    geo_coordinate_proto_to_schema,
    geo_coordinate_schema_to_proto,
)
from aip_processor.domain.schemas.variants import (
    IMAGE_FIELD_BY_FORMAT,
    IMAGE_FIELDS,
    Bgr888Image,
    DigitalGlobeMetadata,
    Image,
    ImageFormat,
    Inference,
    Inferences,
    Nitf21Image,
    PixelVelocityVector,
    PngImage,
    ProviderMetadata,
    Rgb888Image,
    TiffImage,
    Velocity,
    active_variant,
    select_variant,
)
from aip_processor.proto import schema as pb

_RASTER_SCHEMAS: dict[ImageFormat, type] = {
    ImageFormat.RGB888: Rgb888Image,
    ImageFormat.PNG: PngImage,
    ImageFormat.TIFF: TiffImage,
    ImageFormat.BGR888: Bgr888Image,
}

_RASTER_PROTOS: dict[ImageFormat, type] = {
    ImageFormat.RGB888: pb.Rgb888Image,
    ImageFormat.PNG: pb.PngImage,
    ImageFormat.TIFF: pb.TiffImage,
    ImageFormat.BGR888: pb.Bgr888Image,
}

_GEOMETRY_FROM_PROTO: dict[str, Callable[[Any], Any]] = {
    GeometryKind.BOX: bounding_box_proto_to_schema,
    GeometryKind.POLYGON: bounding_polygon_proto_to_schema,
    GeometryKind.GEO_BOX: geo_bounding_box_proto_to_schema,
    GeometryKind.GEO_POLYGON: geo_bounding_polygon_proto_to_schema,
}

_GEOMETRY_TO_PROTO: dict[str, Callable[[Any], Any]] = {
    GeometryKind.BOX: bounding_box_schema_to_proto,
    GeometryKind.POLYGON: bounding_polygon_schema_to_proto,
    GeometryKind.GEO_BOX: geo_bounding_box_schema_to_proto,
    GeometryKind.GEO_POLYGON: geo_bounding_polygon_schema_to_proto,
}

_CORNERS = ("top_left", "top_right", "bottom_right", "bottom_left")


def image_proto_to_schema(message: pb.Image) -> Image:
    """
    Map the single populated image variant.

    Raises:
        MalformedPayloadError: If no variant is populated.
    """
    tag, variant = active_variant(message, "image")
    image_format = IMAGE_FIELDS[tag]
    if image_format is ImageFormat.NITF21:
        return Nitf21Image(path=variant.path)
    return _RASTER_SCHEMAS[image_format](width=variant.width, height=variant.height, path=variant.path)


def image_schema_to_proto(image: Image) -> pb.Image:
    field = IMAGE_FIELD_BY_FORMAT[image.format]
    if isinstance(image, Nitf21Image):
        return pb.Image(**{field: pb.Nitf21Image(path=image.path)})
    variant = _RASTER_PROTOS[image.format](width=image.width, height=image.height, path=image.path)
    return pb.Image(**{field: variant})


def image_from_fields(**fields: Any) -> Image:
    """
    Build an image from wire-shaped keyword arguments, e.g. ``image_from_fields(png_image={...})``.

    Each value is a mapping of the variant's attributes or None. Exactly one must be set.
    """
    unknown = set(fields) - set(IMAGE_FIELDS)
    if unknown:
        raise TypeError(f"Unknown image fields: {', '.join(sorted(unknown))}")
    tag, attributes = select_variant("Image.image", fields)
    image_format = IMAGE_FIELDS[tag]
    if image_format is ImageFormat.NITF21:
        return Nitf21Image(**attributes)
    return _RASTER_SCHEMAS[image_format](**attributes)


def velocity_proto_to_schema(message: pb.Velocity) -> Velocity:
    _, vector = active_variant(message, "velocity")
    return PixelVelocityVector(x=vector.x, y=vector.y)


def velocity_schema_to_proto(velocity: Velocity) -> pb.Velocity:
    return pb.Velocity(pixel=pb.PixelVelocityVector(x=velocity.x, y=velocity.y))


def inference_proto_to_schema(message: pb.Inference) -> Inference:
    tag, geometry = active_variant(message, "inference")
    return Inference(
        inference_id=message.inferenceId,
        geometry=_GEOMETRY_FROM_PROTO[tag](geometry),
        velocity=velocity_proto_to_schema(message.velocity) if message.HasField("velocity") else None,
    )


def inference_schema_to_proto(inference: Inference) -> pb.Inference:
    kind = inference.geometry.kind
    message = pb.Inference(inferenceId=inference.inference_id)
    getattr(message, kind).CopyFrom(_GEOMETRY_TO_PROTO[kind](inference.geometry))
    if inference.velocity is not None:
        message.velocity.CopyFrom(velocity_schema_to_proto(inference.velocity))
    return message


def inferences_proto_to_schema(message: pb.Inferences) -> Inferences:
    return Inferences(inferences=tuple(inference_proto_to_schema(m) for m in message.inference))


def inferences_schema_to_proto(inferences: Inferences) -> pb.Inferences:
    return pb.Inferences(inference=[inference_schema_to_proto(i) for i in inferences.inferences])


def provider_metadata_proto_to_schema(message: pb.ProviderMetadata) -> ProviderMetadata:
    _, dg = active_variant(message, "metadata")
    corners = {name: geo_coordinate_proto_to_schema(getattr(dg, name)) for name in _CORNERS if dg.HasField(name)}
    return DigitalGlobeMetadata(
        feature_id=dg.feature_id,
        source=dg.source,
        niirs=dg.niirs,
        product_type=dg.product_type,
        off_nadir_degrees=dg.off_nadir_degrees,
        sun_elevation_degrees=dg.sun_elevation_degrees,
        sun_azimuth_degrees=dg.sun_azimuth_degrees,
        ground_sample_distance_centimeters=dg.ground_sample_distance_centimeters,
        **corners,
    )


def provider_metadata_schema_to_proto(metadata: ProviderMetadata) -> pb.ProviderMetadata:
    dg = pb.DigitalGlobeMetadata(
        feature_id=metadata.feature_id,
        source=metadata.source,
        niirs=metadata.niirs,
        product_type=metadata.product_type,
        off_nadir_degrees=metadata.off_nadir_degrees,
        sun_elevation_degrees=metadata.sun_elevation_degrees,
        sun_azimuth_degrees=metadata.sun_azimuth_degrees,
        ground_sample_distance_centimeters=metadata.ground_sample_distance_centimeters,
    )
    for name in _CORNERS:
        corner = getattr(metadata, name)
        if corner is not None:
            getattr(dg, name).CopyFrom(geo_coordinate_schema_to_proto(corner))
    return pb.ProviderMetadata(digital_globe=dg)
