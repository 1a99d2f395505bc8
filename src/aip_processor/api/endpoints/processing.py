# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
Processing RPCs over HTTP.

Bodies are the protobuf encodings used by the gRPC service, sent as `application/x-protobuf`.
"""

from fastapi import Response, status

from aip_processor.api.routers import processing_router
from aip_processor.dependencies import DispatcherDep, ProtobufBodyDep
from aip_processor.domain.schemas.mappers.messages import (
    geo_registration_request_proto_to_schema,
    geo_registration_response_schema_to_proto,
    inference_request_proto_to_schema,
    inference_response_schema_to_proto,
    track_request_proto_to_schema,
)
from aip_processor.proto import parse_message
from aip_processor.proto import schema as pb

PROTOBUF_MEDIA_TYPE = "application/x-protobuf"

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {
        "description": "Malformed payload or value out of range",
        "content": {
            "application/json": {
                "example": {
                    "detail": "Image.image must have exactly one variant set, got 2: rgb_image, png_image.",
                    "kind": "malformed_payload",
                }
            }
        },
    },
    status.HTTP_409_CONFLICT: {"description": "The identifier is already in flight for this capability"},
    status.HTTP_412_PRECONDITION_FAILED: {"description": "Timestamp regressed on the stream"},
    status.HTTP_501_NOT_IMPLEMENTED: {"description": "Capability not declared by this processor"},
    status.HTTP_504_GATEWAY_TIMEOUT: {"description": "Deadline exceeded"},
}


def _protobuf_response(message) -> Response:
    return Response(content=message.SerializeToString(), media_type=PROTOBUF_MEDIA_TYPE)


@processing_router.post(
    path="/geo-register",
    tags=["Processing"],
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={status.HTTP_200_OK: {"content": {PROTOBUF_MEDIA_TYPE: {}}}, **_ERROR_RESPONSES},
)
def geo_register(body: ProtobufBodyDep, dispatcher: DispatcherDep) -> Response:
    """Geo-register a frame. Body: GeoRegistrationRequest. Response: GeoRegistrationResponse."""
    request = geo_registration_request_proto_to_schema(parse_message(pb.GeoRegistrationRequest, body))
    return _protobuf_response(geo_registration_response_schema_to_proto(dispatcher.geo_register(request)))


@processing_router.post(
    path="/infer",
    tags=["Processing"],
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={status.HTTP_200_OK: {"content": {PROTOBUF_MEDIA_TYPE: {}}}, **_ERROR_RESPONSES},
)
def infer(body: ProtobufBodyDep, dispatcher: DispatcherDep) -> Response:
    """Detect objects in a frame. Body: InferenceRequest. Response: InferenceResponse."""
    request = inference_request_proto_to_schema(parse_message(pb.InferenceRequest, body))
    return _protobuf_response(inference_response_schema_to_proto(dispatcher.infer(request)))


@processing_router.post(
    path="/track",
    tags=["Processing"],
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={status.HTTP_200_OK: {"content": {PROTOBUF_MEDIA_TYPE: {}}}, **_ERROR_RESPONSES},
)
def track(body: ProtobufBodyDep, dispatcher: DispatcherDep) -> Response:
    """Track objects in a frame. Body: TrackRequest. Response: InferenceResponse."""
    request = track_request_proto_to_schema(parse_message(pb.TrackRequest, body))
    return _protobuf_response(inference_response_schema_to_proto(dispatcher.track(request)))
