# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from datetime import timedelta

from aip_processor.domain.schemas.config import Capability, ProcessorV2Config
from aip_processor.domain.schemas.header import Identifier, RequestHeader, Timestamp
from aip_processor.domain.schemas.mappers.frame import (
    frame_proto_to_schema,
    frame_schema_to_proto,
    geo_registration_proto_to_schema,
    geo_registration_schema_to_proto,
)
from aip_processor.domain.schemas.mappers.payload import inferences_proto_to_schema, inferences_schema_to_proto
from aip_processor.domain.schemas.messages import (
    GeoRegistrationRequest,
    GeoRegistrationResponse,
    InferenceRequest,
    InferenceResponse,
    TrackRequest,
)
from aip_processor.domain.schemas.variants import ImageFormat
from aip_processor.exceptions import MalformedPayloadError
from aip_processor.proto import schema as pb

_NANOS_PER_MICRO = 1000


def identifier_proto_to_schema(message: pb.Identifier) -> Identifier:
    return Identifier(stream_id=message.stream_id, frame_id=message.frame_id)


def identifier_schema_to_proto(identifier: Identifier) -> pb.Identifier:
    return pb.Identifier(stream_id=identifier.stream_id, frame_id=identifier.frame_id)


def duration_proto_to_timedelta(message: pb.Duration) -> timedelta | None:
    """Convert a wire duration. A zero duration means no deadline was set."""
    if message.seconds == 0 and message.nanos == 0:
        return None
    return timedelta(seconds=message.seconds, microseconds=message.nanos // _NANOS_PER_MICRO)


def timedelta_to_duration_proto(value: timedelta) -> pb.Duration:
    total_micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    seconds, micros = divmod(total_micros, 1_000_000)
    return pb.Duration(seconds=seconds, nanos=micros * _NANOS_PER_MICRO)


def _require(message, field: str) -> None:
    if not message.HasField(field):
        name = f"{message.DESCRIPTOR.name}.{field}"
        raise MalformedPayloadError(name, message=f"{name} is required but was not set.")


def header_proto_to_schema(message: pb.RequestHeader) -> RequestHeader:
    """
    Map a request header.

    Raises:
        MalformedPayloadError: If the identifier or timestamp is missing.
    """
    _require(message, "identifier")
    _require(message, "timestamp")
    deadline = duration_proto_to_timedelta(message.deadline) if message.HasField("deadline") else None
    return RequestHeader(
        identifier=identifier_proto_to_schema(message.identifier),
        timestamp=Timestamp(nanos=message.timestamp.nanos),
        deadline=deadline,
    )


def header_schema_to_proto(header: RequestHeader) -> pb.RequestHeader:
    message = pb.RequestHeader(
        identifier=identifier_schema_to_proto(header.identifier),
        timestamp=pb.Timestamp(nanos=header.timestamp.nanos),
    )
    if header.deadline is not None:
        message.deadline.CopyFrom(timedelta_to_duration_proto(header.deadline))
    return message


def geo_registration_request_proto_to_schema(message: pb.GeoRegistrationRequest) -> GeoRegistrationRequest:
    _require(message, "header")
    _require(message, "frame")
    return GeoRegistrationRequest(
        header=header_proto_to_schema(message.header),
        frame=frame_proto_to_schema(message.frame),
    )


def geo_registration_request_schema_to_proto(request: GeoRegistrationRequest) -> pb.GeoRegistrationRequest:
    return pb.GeoRegistrationRequest(
        header=header_schema_to_proto(request.header),
        frame=frame_schema_to_proto(request.frame),
    )


def inference_request_proto_to_schema(message: pb.InferenceRequest) -> InferenceRequest:
    _require(message, "header")
    _require(message, "frame")
    return InferenceRequest(
        header=header_proto_to_schema(message.header),
        frame=frame_proto_to_schema(message.frame),
    )


def inference_request_schema_to_proto(request: InferenceRequest) -> pb.InferenceRequest:
    return pb.InferenceRequest(
        header=header_schema_to_proto(request.header),
        frame=frame_schema_to_proto(request.frame),
    )


def track_request_proto_to_schema(message: pb.TrackRequest) -> TrackRequest:
    """Either of the optional inputs may be absent; absence maps to None."""
    _require(message, "header")
    _require(message, "frame")
    inferences = None
    if message.WhichOneof("maybe_inferences") is not None:
        inferences = inferences_proto_to_schema(message.inferences)
    geo_registration = None
    if message.WhichOneof("maybe_geo_registration") is not None:
        geo_registration = geo_registration_proto_to_schema(message.geo_registration)
    return TrackRequest(
        header=header_proto_to_schema(message.header),
        frame=frame_proto_to_schema(message.frame),
        inferences=inferences,
        geo_registration=geo_registration,
    )


def track_request_schema_to_proto(request: TrackRequest) -> pb.TrackRequest:
    message = pb.TrackRequest(
        header=header_schema_to_proto(request.header),
        frame=frame_schema_to_proto(request.frame),
    )
    if request.inferences is not None:
        message.inferences.CopyFrom(inferences_schema_to_proto(request.inferences))
    if request.geo_registration is not None:
        message.geo_registration.CopyFrom(geo_registration_schema_to_proto(request.geo_registration))
    return message


def geo_registration_response_proto_to_schema(message: pb.GeoRegistrationResponse) -> GeoRegistrationResponse:
    return GeoRegistrationResponse(
        identifier=identifier_proto_to_schema(message.identifier),
        geo_registration=geo_registration_proto_to_schema(message.geo_registration),
    )


def geo_registration_response_schema_to_proto(response: GeoRegistrationResponse) -> pb.GeoRegistrationResponse:
    return pb.GeoRegistrationResponse(
        identifier=identifier_schema_to_proto(response.identifier),
        geo_registration=geo_registration_schema_to_proto(response.geo_registration),
    )


def inference_response_proto_to_schema(message: pb.InferenceResponse) -> InferenceResponse:
    return InferenceResponse(
        identifier=identifier_proto_to_schema(message.identifier),
        inferences=inferences_proto_to_schema(message.inferences),
    )


def inference_response_schema_to_proto(response: InferenceResponse) -> pb.InferenceResponse:
    return pb.InferenceResponse(
        identifier=identifier_schema_to_proto(response.identifier),
        inferences=inferences_schema_to_proto(response.inferences),
    )


def config_proto_to_schema(message: pb.ProcessorV2Config) -> ProcessorV2Config:
    return ProcessorV2Config(
        image_format=ImageFormat(pb.IMAGE_FORMAT.values_by_number[message.image_format].name),
        capabilities=tuple(Capability(pb.CAPABILITY.values_by_number[c].name) for c in message.capabilities),
    )


def config_schema_to_proto(config: ProcessorV2Config) -> pb.ProcessorV2Config:
    return pb.ProcessorV2Config(
        image_format=pb.IMAGE_FORMAT.values_by_name[config.image_format].number,
        capabilities=[pb.CAPABILITY.values_by_name[c].number for c in config.capabilities],
    )
