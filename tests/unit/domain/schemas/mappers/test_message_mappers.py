# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from datetime import timedelta

import pytest

from aip_processor.domain.schemas import Capability, GeoRegistration, InferenceRequest, ProcessorV2Config, TrackRequest
from aip_processor.domain.schemas.mappers.messages import (
    config_proto_to_schema,
    config_schema_to_proto,
    duration_proto_to_timedelta,
    header_proto_to_schema,
    header_schema_to_proto,
    inference_request_proto_to_schema,
    inference_request_schema_to_proto,
    timedelta_to_duration_proto,
    track_request_proto_to_schema,
    track_request_schema_to_proto,
)
from aip_processor.domain.schemas.variants import ImageFormat
from aip_processor.exceptions import MalformedPayloadError, RangeError
from aip_processor.proto import schema as pb


def _header(**overrides) -> pb.RequestHeader:
    fields = {
        "identifier": pb.Identifier(stream_id=3, frame_id=9),
        "timestamp": pb.Timestamp(nanos=1_000),
    }
    fields.update(overrides)
    return pb.RequestHeader(**fields)


def _frame() -> pb.Frame:
    return pb.Frame(image=pb.Image(rgb_image=pb.Rgb888Image(width=8, height=8, path="f.rgb")))


class TestDurationMappers:
    @pytest.mark.parametrize(
        "message, expected",
        [
            (pb.Duration(), None),
            (pb.Duration(seconds=2), timedelta(seconds=2)),
            (pb.Duration(seconds=1, nanos=500_000_000), timedelta(milliseconds=1500)),
            (pb.Duration(nanos=250_000), timedelta(microseconds=250)),
        ],
        ids=["zero_is_unset", "whole_seconds", "fractional", "sub_millisecond"],
    )
    def test_duration_to_timedelta(self, message, expected):
        assert duration_proto_to_timedelta(message) == expected

    def test_timedelta_to_duration(self):
        message = timedelta_to_duration_proto(timedelta(seconds=3, milliseconds=20))

        assert (message.seconds, message.nanos) == (3, 20_000_000)


class TestHeaderMappers:
    @pytest.mark.parametrize("missing", ["identifier", "timestamp"])
    def test_missing_field_is_malformed(self, missing):
        message = _header()
        message.ClearField(missing)

        with pytest.raises(MalformedPayloadError) as exc_info:
            header_proto_to_schema(message)

        assert exc_info.value.group == f"RequestHeader.{missing}"

    def test_without_deadline(self):
        header = header_proto_to_schema(_header())

        assert header.deadline is None
        assert str(header.identifier) == "3/9"
        assert header.timestamp.nanos == 1_000

    def test_zero_deadline_means_unset(self):
        assert header_proto_to_schema(_header(deadline=pb.Duration())).deadline is None

    def test_round_trip_with_deadline(self, make_header):
        header = make_header(stream_id=2**64 - 1, deadline=timedelta(milliseconds=250))

        message = header_schema_to_proto(header)

        assert message.deadline.nanos == 250_000_000
        assert header_proto_to_schema(message) == header

    def test_unset_deadline_is_not_written(self, make_header):
        assert not header_schema_to_proto(make_header()).HasField("deadline")


class TestRequestMappers:
    @pytest.mark.parametrize("missing", ["header", "frame"])
    def test_inference_request_requires_header_and_frame(self, missing):
        message = pb.InferenceRequest(header=_header(), frame=_frame())
        message.ClearField(missing)

        with pytest.raises(MalformedPayloadError) as exc_info:
            inference_request_proto_to_schema(message)

        assert exc_info.value.group == f"InferenceRequest.{missing}"

    def test_inference_request_round_trip(self, make_header, frame):
        request = InferenceRequest(header=make_header(), frame=frame)

        assert inference_request_proto_to_schema(inference_request_schema_to_proto(request)) == request

    def test_invalid_telemetry_fails_the_whole_request(self):
        message = pb.InferenceRequest(
            header=_header(),
            frame=pb.Frame(
                image=pb.Image(rgb_image=pb.Rgb888Image(width=8, height=8, path="f.rgb")),
                uas_metadata=pb.UasMetadata(sensor_latitude=95.0),
            ),
        )

        with pytest.raises(RangeError):
            inference_request_proto_to_schema(message)

    def test_track_request_with_neither_input(self):
        request = track_request_proto_to_schema(pb.TrackRequest(header=_header(), frame=_frame()))

        assert request.inferences is None
        assert request.geo_registration is None

    def test_track_request_empty_inferences_differs_from_absent(self):
        request = track_request_proto_to_schema(
            pb.TrackRequest(header=_header(), frame=_frame(), inferences=pb.Inferences())
        )

        assert request.inferences is not None
        assert request.inferences.inferences == ()

    def test_track_request_round_trip(self, make_header, frame, inferences):
        request = TrackRequest(
            header=make_header(),
            frame=frame,
            inferences=inferences,
            geo_registration=GeoRegistration(confidence=0.5),
        )

        message = track_request_schema_to_proto(request)

        assert message.WhichOneof("maybe_inferences") == "inferences"
        assert message.WhichOneof("maybe_geo_registration") == "geo_registration"
        assert track_request_proto_to_schema(message) == request


class TestConfigMappers:
    def test_round_trip(self):
        config = ProcessorV2Config(image_format=ImageFormat.PNG, capabilities=(Capability.INFER, Capability.TRACK))

        message = config_schema_to_proto(config)

        assert message.image_format == pb.IMAGE_FORMAT.values_by_name["PNG"].number
        assert config_proto_to_schema(message) == config

    def test_default_enum_values(self):
        geo = pb.CAPABILITY.values_by_name["GEO_REGISTER"].number

        config = config_proto_to_schema(pb.ProcessorV2Config(capabilities=[geo]))

        assert config.image_format is ImageFormat.RGB888
        assert config.capabilities == (Capability.GEO_REGISTER,)
