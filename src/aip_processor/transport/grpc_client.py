# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from datetime import timedelta
from types import TracebackType

import grpc

from aip_processor.domain.schemas.header import RequestHeader
from aip_processor.domain.schemas.mappers.messages import (
    geo_registration_request_schema_to_proto,
    geo_registration_response_proto_to_schema,
    inference_request_schema_to_proto,
    inference_response_proto_to_schema,
    track_request_schema_to_proto,
)
from aip_processor.domain.schemas.messages import (
    GeoRegistrationRequest,
    GeoRegistrationResponse,
    InferenceRequest,
    InferenceResponse,
    TrackRequest,
)
from aip_processor.exceptions import ErrorKind, ProtocolError
from aip_processor.proto import schema as pb
from aip_processor.transport.grpc_service import ERROR_KIND_METADATA_KEY, method_path

logger = logging.getLogger(__name__)

# network slack added on top of the request deadline for the RPC timeout
DEFAULT_TIMEOUT_SLACK = timedelta(milliseconds=500)


class RemoteProtocolError(ProtocolError):
    """A protocol error reported by a remote processor."""

    def __init__(self, kind: ErrorKind, code: grpc.StatusCode, message: str):
        super().__init__(message)
        self.kind = kind
        self.code = code


class ProcessingServiceClient:
    """
    Orchestrator-side stub for the processing service.

    The RPC timeout follows the request deadline plus `timeout_slack`; requests without a deadline wait as long as
    the server takes.
    """

    def __init__(
        self,
        target: str,
        channel: grpc.Channel | None = None,
        timeout_slack: timedelta = DEFAULT_TIMEOUT_SLACK,
    ):
        self._channel = channel or grpc.insecure_channel(target)
        self._timeout_slack = timeout_slack
        self._geo_register = self._channel.unary_unary(
            method_path("GeoRegister"),
            request_serializer=pb.GeoRegistrationRequest.SerializeToString,
            response_deserializer=pb.GeoRegistrationResponse.FromString,
        )
        self._infer = self._channel.unary_unary(
            method_path("Infer"),
            request_serializer=pb.InferenceRequest.SerializeToString,
            response_deserializer=pb.InferenceResponse.FromString,
        )
        self._track = self._channel.unary_unary(
            method_path("Track"),
            request_serializer=pb.TrackRequest.SerializeToString,
            response_deserializer=pb.InferenceResponse.FromString,
        )

    def geo_register(self, request: GeoRegistrationRequest) -> GeoRegistrationResponse:
        message = geo_registration_request_schema_to_proto(request)
        return geo_registration_response_proto_to_schema(self._call(self._geo_register, message, request.header))

    def infer(self, request: InferenceRequest) -> InferenceResponse:
        message = inference_request_schema_to_proto(request)
        return inference_response_proto_to_schema(self._call(self._infer, message, request.header))

    def track(self, request: TrackRequest) -> InferenceResponse:
        message = track_request_schema_to_proto(request)
        return inference_response_proto_to_schema(self._call(self._track, message, request.header))

    def close(self) -> None:
        self._channel.close()

    def __enter__(self) -> "ProcessingServiceClient":
        return self

    def __exit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None, /
    ) -> None:
        self.close()

    def _timeout(self, header: RequestHeader) -> float | None:
        if not header.deadline:
            return None
        return (header.deadline + self._timeout_slack).total_seconds()

    def _call(self, stub: grpc.UnaryUnaryMultiCallable, message, header: RequestHeader):
        try:
            return stub(message, timeout=self._timeout(header))
        except grpc.RpcError as e:
            kind = _error_kind(e)
            if kind is None:
                logger.debug("RPC failed without a protocol error kind: %s", e.code())
                raise
            raise RemoteProtocolError(kind, e.code(), e.details() or "") from e


def _error_kind(error: grpc.RpcError) -> ErrorKind | None:
    for key, value in error.trailing_metadata() or ():
        if key == ERROR_KIND_METADATA_KEY:
            return ErrorKind(value)
    if error.code() is grpc.StatusCode.DEADLINE_EXCEEDED:
        return ErrorKind.DEADLINE_EXCEEDED
    return None
