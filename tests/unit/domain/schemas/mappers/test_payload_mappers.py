# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import pytest

from aip_processor.domain.schemas import (
    BoundingPolygon,
    Classification,
    GeoBoundingBox,
    GeoCoordinate,
    Inference,
    Inferences,
    Polygon,
    UnitCoordinate,
)
from aip_processor.domain.schemas.mappers.payload import (
    image_from_fields,
    image_proto_to_schema,
    image_schema_to_proto,
    inference_proto_to_schema,
    inference_schema_to_proto,
    inferences_proto_to_schema,
    inferences_schema_to_proto,
    provider_metadata_proto_to_schema,
    provider_metadata_schema_to_proto,
)
from aip_processor.domain.schemas.variants import (
    DigitalGlobeMetadata,
    ImageFormat,
    Nitf21Image,
    PixelVelocityVector,
    PngImage,
    TiffImage,
)
from aip_processor.exceptions import MalformedPayloadError, RangeError
from aip_processor.proto import schema as pb


class TestImageMappers:
    @pytest.mark.parametrize(
        "message, expected_format",
        [
            (pb.Image(rgb_image=pb.Rgb888Image(width=4, height=3, path="a")), ImageFormat.RGB888),
            (pb.Image(png_image=pb.PngImage(width=4, height=3, path="a")), ImageFormat.PNG),
            (pb.Image(tiff_image=pb.TiffImage(width=4, height=3, path="a")), ImageFormat.TIFF),
            (pb.Image(bgr_image=pb.Bgr888Image(width=4, height=3, path="a")), ImageFormat.BGR888),
            (pb.Image(nitf21_image=pb.Nitf21Image(path="a")), ImageFormat.NITF21),
        ],
        ids=["rgb888", "png", "tiff", "bgr888", "nitf21"],
    )
    def test_proto_to_schema_follows_the_populated_member(self, message, expected_format):
        image = image_proto_to_schema(message)

        assert image.format is expected_format
        assert image.path == "a"
        assert image_schema_to_proto(image) == message

    def test_empty_image_is_malformed(self):
        with pytest.raises(MalformedPayloadError) as exc_info:
            image_proto_to_schema(pb.Image())

        assert exc_info.value.group == "Image.image"

    def test_image_from_fields(self):
        image = image_from_fields(png_image={"width": 2, "height": 2, "path": "p.png"}, rgb_image=None)

        assert image == PngImage(width=2, height=2, path="p.png")

    def test_image_from_fields_nitf(self):
        assert image_from_fields(nitf21_image={"path": "x.ntf"}) == Nitf21Image(path="x.ntf")

    def test_image_from_fields_rejects_two_members(self):
        with pytest.raises(MalformedPayloadError) as exc_info:
            image_from_fields(
                rgb_image={"width": 1, "height": 1, "path": "a"},
                tiff_image={"width": 1, "height": 1, "path": "b"},
            )

        assert exc_info.value.populated == ("rgb_image", "tiff_image")

    def test_image_from_fields_rejects_unknown_field(self):
        with pytest.raises(TypeError):
            image_from_fields(jpeg_image={"path": "a"})

    def test_tiff_round_trip_keeps_dimensions(self):
        image = TiffImage(width=1024, height=768, path="/data/scene.tif")

        assert image_proto_to_schema(image_schema_to_proto(image)) == image


class TestInferenceMappers:
    def test_box_round_trip(self, box_inference):
        message = inference_schema_to_proto(box_inference)

        assert message.WhichOneof("inference") == "box"
        assert message.inferenceId == "obj-1"
        assert not message.HasField("velocity")
        assert inference_proto_to_schema(message) == box_inference

    def test_geo_box_with_velocity(self):
        inference = Inference(
            inference_id="17",
            geometry=GeoBoundingBox(
                c0=GeoCoordinate(latitude=48.2, longitude=11.4),
                c1=GeoCoordinate(latitude=48.1, longitude=11.6),
                classifications=(Classification(type="truck", confidence=0.4),),
            ),
            velocity=PixelVelocityVector(x=0.25, y=-0.5),
        )

        message = inference_schema_to_proto(inference)

        assert message.WhichOneof("inference") == "geo_box"
        assert message.velocity.WhichOneof("velocity") == "pixel"
        assert inference_proto_to_schema(message) == inference

    def test_polygon_keeps_vertex_order(self):
        vertices = (
            UnitCoordinate(row=0.1, col=0.1),
            UnitCoordinate(row=0.1, col=0.9),
            UnitCoordinate(row=0.9, col=0.5),
        )
        inference = Inference(inference_id="tri", geometry=BoundingPolygon(polygon=Polygon(vertices=vertices)))

        mapped = inference_proto_to_schema(inference_schema_to_proto(inference))

        assert mapped.geometry.polygon.vertices == vertices

    def test_inference_without_geometry_is_malformed(self):
        with pytest.raises(MalformedPayloadError) as exc_info:
            inference_proto_to_schema(pb.Inference(inferenceId="lonely"))

        assert exc_info.value.group == "Inference.inference"

    def test_out_of_range_coordinate_is_rejected(self):
        message = pb.Inference(
            inferenceId="bad",
            box=pb.BoundingBox(c0=pb.UnitCoordinate(row=0.1, col=0.1), c1=pb.UnitCoordinate(row=1.5, col=0.2)),
        )

        with pytest.raises(RangeError):
            inference_proto_to_schema(message)

    def test_inferences_keep_order(self, box_inference):
        second = box_inference.model_copy(update={"inference_id": "obj-2"})
        inferences = Inferences(inferences=(box_inference, second))

        mapped = inferences_proto_to_schema(inferences_schema_to_proto(inferences))

        assert [i.inference_id for i in mapped.inferences] == ["obj-1", "obj-2"]


class TestProviderMetadataMappers:
    def test_digital_globe_round_trip(self):
        metadata = DigitalGlobeMetadata(
            feature_id="f-1",
            source="WV03_VNIR",
            niirs=5,
            off_nadir_degrees=12.5,
            ground_sample_distance_centimeters=31,
            top_left=GeoCoordinate(latitude=1.0, longitude=2.0),
        )

        message = provider_metadata_schema_to_proto(metadata)

        assert message.WhichOneof("metadata") == "digital_globe"
        assert message.digital_globe.HasField("top_left")
        assert not message.digital_globe.HasField("bottom_left")
        assert provider_metadata_proto_to_schema(message) == metadata

    def test_empty_provider_metadata_is_malformed(self):
        with pytest.raises(MalformedPayloadError):
            provider_metadata_proto_to_schema(pb.ProviderMetadata())
