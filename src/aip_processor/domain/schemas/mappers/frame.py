# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from aip_processor.domain.schemas.frame import TELEMETRY_RANGES, Frame, UasMetadata
from aip_processor.domain.schemas.mappers.geometry import lattice_proto_to_schema, lattice_schema_to_proto
from aip_processor.domain.schemas.mappers.payload import (
    image_proto_to_schema,
    image_schema_to_proto,
    provider_metadata_proto_to_schema,
    provider_metadata_schema_to_proto,
)
from aip_processor.domain.schemas.messages import GeoRegistration
from aip_processor.exceptions import MalformedPayloadError
from aip_processor.proto import schema as pb

_SCALAR_FIELDS = (*TELEMETRY_RANGES, "image_source_sensor")


def uas_metadata_proto_to_schema(message: pb.UasMetadata) -> UasMetadata:
    """Only fields present on the wire are set; absent ones stay None."""
    values = {name: getattr(message, name) for name in _SCALAR_FIELDS if message.HasField(name)}
    if message.HasField("provider_metadata"):
        values["provider_metadata"] = provider_metadata_proto_to_schema(message.provider_metadata)
    return UasMetadata(**values)


def uas_metadata_schema_to_proto(metadata: UasMetadata) -> pb.UasMetadata:
    message = pb.UasMetadata()
    for name in _SCALAR_FIELDS:
        value = getattr(metadata, name)
        if value is not None:
            setattr(message, name, value)
    if metadata.provider_metadata is not None:
        message.provider_metadata.CopyFrom(provider_metadata_schema_to_proto(metadata.provider_metadata))
    return message


def frame_proto_to_schema(message: pb.Frame) -> Frame:
    if not message.HasField("image"):
        raise MalformedPayloadError("Image.image")
    uas_metadata = uas_metadata_proto_to_schema(message.uas_metadata) if message.HasField("uas_metadata") else None
    return Frame(image=image_proto_to_schema(message.image), uas_metadata=uas_metadata or UasMetadata())


def frame_schema_to_proto(frame: Frame) -> pb.Frame:
    return pb.Frame(
        image=image_schema_to_proto(frame.image),
        uas_metadata=uas_metadata_schema_to_proto(frame.uas_metadata),
    )


def geo_registration_proto_to_schema(message: pb.GeoRegistration) -> GeoRegistration:
    return GeoRegistration(
        lattice=lattice_proto_to_schema(message.lattice),
        confidence=message.confidence,
        updated_metadata=uas_metadata_proto_to_schema(message.updatedMetadata),
    )


def geo_registration_schema_to_proto(registration: GeoRegistration) -> pb.GeoRegistration:
    return pb.GeoRegistration(
        lattice=lattice_schema_to_proto(registration.lattice),
        confidence=registration.confidence,
        updatedMetadata=uas_metadata_schema_to_proto(registration.updated_metadata),
    )
