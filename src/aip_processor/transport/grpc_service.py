# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
gRPC surface of the processing service.

Requests are received as raw bytes so that oneof exclusivity can be checked on the encoding before protobuf
parsing collapses duplicated members.
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import grpc

from aip_processor.domain.schemas.mappers.messages import (
    geo_registration_request_proto_to_schema,
    geo_registration_response_schema_to_proto,
    inference_request_proto_to_schema,
    inference_response_schema_to_proto,
    track_request_proto_to_schema,
)
from aip_processor.exceptions import ErrorKind, ProtocolError
from aip_processor.proto import parse_message
from aip_processor.proto import schema as pb
from aip_processor.runtime.dispatcher import CapabilityDispatcher

logger = logging.getLogger(__name__)

ERROR_KIND_METADATA_KEY = "aip-error-kind"

GRPC_STATUS_BY_KIND: dict[ErrorKind, grpc.StatusCode] = {
    ErrorKind.RANGE: grpc.StatusCode.INVALID_ARGUMENT,
    ErrorKind.MALFORMED_PAYLOAD: grpc.StatusCode.INVALID_ARGUMENT,
    ErrorKind.DUPLICATE_REQUEST: grpc.StatusCode.ALREADY_EXISTS,
    ErrorKind.TIMESTAMP_REGRESSION: grpc.StatusCode.FAILED_PRECONDITION,
    ErrorKind.UNSUPPORTED_CAPABILITY: grpc.StatusCode.UNIMPLEMENTED,
    ErrorKind.DEADLINE_EXCEEDED: grpc.StatusCode.DEADLINE_EXCEEDED,
    ErrorKind.PROCESSOR_FAILURE: grpc.StatusCode.INTERNAL,
}


def method_path(method: str) -> str:
    return f"/{pb.SERVICE_NAME}/{method}"


class ProcessingServicer:
    """Implements the GeoRegister, Infer and Track RPCs on top of a CapabilityDispatcher."""

    def __init__(self, dispatcher: CapabilityDispatcher):
        self._dispatcher = dispatcher

    def GeoRegister(self, data: bytes, context: grpc.ServicerContext) -> bytes:  # noqa: N802
        return self._handle(
            "GeoRegister",
            data,
            context,
            lambda: geo_registration_response_schema_to_proto(
                self._dispatcher.geo_register(
                    geo_registration_request_proto_to_schema(parse_message(pb.GeoRegistrationRequest, data))
                )
            ),
        )

    def Infer(self, data: bytes, context: grpc.ServicerContext) -> bytes:  # noqa: N802
        return self._handle(
            "Infer",
            data,
            context,
            lambda: inference_response_schema_to_proto(
                self._dispatcher.infer(inference_request_proto_to_schema(parse_message(pb.InferenceRequest, data)))
            ),
        )

    def Track(self, data: bytes, context: grpc.ServicerContext) -> bytes:  # noqa: N802
        return self._handle(
            "Track",
            data,
            context,
            lambda: inference_response_schema_to_proto(
                self._dispatcher.track(track_request_proto_to_schema(parse_message(pb.TrackRequest, data)))
            ),
        )

    @staticmethod
    def _handle(method: str, data: bytes, context: grpc.ServicerContext, call: Callable[[], Any]) -> bytes:
        try:
            return call().SerializeToString()
        except ProtocolError as e:
            logger.debug("%s failed with %s (%d request bytes): %s", method, e.kind, len(data), e)
            context.set_trailing_metadata(((ERROR_KIND_METADATA_KEY, e.kind.value),))
            context.abort(GRPC_STATUS_BY_KIND[e.kind], str(e))
            raise


def create_generic_handler(servicer: ProcessingServicer) -> grpc.GenericRpcHandler:
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(getattr(servicer, name))
        for name in ("GeoRegister", "Infer", "Track")
    }
    return grpc.method_handlers_generic_handler(pb.SERVICE_NAME, handlers)


def create_server(
    dispatcher: CapabilityDispatcher, host: str = "[::]", port: int = 0, max_workers: int = 8
) -> tuple[grpc.Server, int]:
    """
    Build a gRPC server for the dispatcher, bound but not started.

    Returns:
        The server and the bound port, which differs from `port` when `port` is 0.
    """
    server = grpc.server(ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="grpc"))
    server.add_generic_rpc_handlers((create_generic_handler(ProcessingServicer(dispatcher)),))
    bound_port = server.add_insecure_port(f"{host}:{port}")
    if bound_port == 0:
        raise RuntimeError(f"Could not bind gRPC server to {host}:{port}")
    return server, bound_port


def serve(dispatcher: CapabilityDispatcher, host: str, port: int, max_workers: int = 8) -> None:
    """Run the gRPC server until interrupted."""
    server, bound_port = create_server(dispatcher, host=host, port=port, max_workers=max_workers)
    server.start()
    logger.info("gRPC %s listening on %s:%d", pb.SERVICE_NAME, host, bound_port)
    try:
        server.wait_for_termination()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping gRPC server")
    finally:
        server.stop(grace=1.0).wait()
