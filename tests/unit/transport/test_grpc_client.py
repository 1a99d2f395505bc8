# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from datetime import timedelta

import grpc
import pytest

from aip_processor.domain.schemas import (
    Capability,
    GeoRegistrationRequest,
    InferenceRequest,
    Inferences,
    ProcessorV2Config,
    TrackRequest,
)
from aip_processor.exceptions import ErrorKind
from aip_processor.proto import schema as pb
from aip_processor.runtime.correlation import RequestCorrelator
from aip_processor.runtime.deadline import DeadlineRunner
from aip_processor.runtime.dispatcher import CapabilityDispatcher
from aip_processor.runtime.processors import ProcessingService
from aip_processor.transport.grpc_client import ProcessingServiceClient, RemoteProtocolError
from aip_processor.transport.grpc_service import ERROR_KIND_METADATA_KEY, create_server, method_path


class SlowOnRequestProcessor(ProcessingService):
    """Infer blocks until cancelled on frame 999. Track echoes its input."""

    def infer(self, frame, context):
        if context.identifier.frame_id == 999:
            context.wait_cancelled(timeout=5)
        return Inferences()

    def track(self, frame, inferences, geo_registration, context):
        return inferences or Inferences()


@pytest.fixture
def server_port():
    runner = DeadlineRunner(max_workers=4)
    dispatcher = CapabilityDispatcher(
        processor=SlowOnRequestProcessor(),
        config=ProcessorV2Config(capabilities=(Capability.INFER, Capability.TRACK)),
        correlator=RequestCorrelator(default_deadline=timedelta(seconds=2)),
        runner=runner,
    )
    server, port = create_server(dispatcher, host="localhost", port=0, max_workers=4)
    server.start()
    yield port
    server.stop(grace=None)
    runner.shutdown(wait=False)


@pytest.fixture
def client(server_port):
    with ProcessingServiceClient(f"localhost:{server_port}") as client:
        yield client


class TestProcessingServiceClient:
    def test_infer_round_trip(self, client, make_header, frame):
        header = make_header(stream_id=11, frame_id=3)

        response = client.infer(InferenceRequest(header=header, frame=frame))

        assert response.identifier == header.identifier
        assert response.inferences == Inferences()

    def test_track_echoes_inferences(self, client, make_header, frame, inferences):
        header = make_header(stream_id=12)

        response = client.track(TrackRequest(header=header, frame=frame, inferences=inferences))

        assert response.identifier == header.identifier
        assert response.inferences == inferences

    def test_undeclared_capability(self, client, make_header, frame):
        with pytest.raises(RemoteProtocolError) as exc_info:
            client.geo_register(GeoRegistrationRequest(header=make_header(stream_id=13), frame=frame))

        assert exc_info.value.kind is ErrorKind.UNSUPPORTED_CAPABILITY
        assert exc_info.value.code is grpc.StatusCode.UNIMPLEMENTED

    def test_timestamp_regression(self, client, make_header, frame):
        client.infer(InferenceRequest(header=make_header(stream_id=14, frame_id=1, nanos=500), frame=frame))

        with pytest.raises(RemoteProtocolError) as exc_info:
            client.infer(InferenceRequest(header=make_header(stream_id=14, frame_id=2, nanos=100), frame=frame))

        assert exc_info.value.kind is ErrorKind.TIMESTAMP_REGRESSION
        assert exc_info.value.code is grpc.StatusCode.FAILED_PRECONDITION

    def test_deadline_exceeded(self, client, make_header, frame):
        header = make_header(stream_id=15, frame_id=999, deadline=timedelta(milliseconds=100))

        with pytest.raises(RemoteProtocolError) as exc_info:
            client.infer(InferenceRequest(header=header, frame=frame))

        assert exc_info.value.kind is ErrorKind.DEADLINE_EXCEEDED
        assert exc_info.value.code is grpc.StatusCode.DEADLINE_EXCEEDED

    def test_malformed_payload_over_the_wire(self, server_port):
        rgb = pb.InferenceRequest(frame=pb.Frame(image=pb.Image(rgb_image=pb.Rgb888Image(width=1, height=1))))
        png = pb.InferenceRequest(frame=pb.Frame(image=pb.Image(png_image=pb.PngImage(width=1, height=1))))

        with grpc.insecure_channel(f"localhost:{server_port}") as channel:
            infer = channel.unary_unary(method_path("Infer"))
            with pytest.raises(grpc.RpcError) as exc_info:
                infer(rgb.SerializeToString() + png.SerializeToString(), timeout=5)

        error = exc_info.value
        assert error.code() is grpc.StatusCode.INVALID_ARGUMENT
        assert (ERROR_KIND_METADATA_KEY, "malformed_payload") in tuple(error.trailing_metadata())
        assert "Image.image" in error.details()
