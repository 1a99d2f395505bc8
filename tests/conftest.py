# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from datetime import timedelta

import pytest

from aip_processor.domain.schemas import (
    BoundingBox,
    Classification,
    Frame,
    Identifier,
    Inference,
    Inferences,
    PngImage,
    RequestHeader,
    Rgb888Image,
    Timestamp,
    UasMetadata,
    UnitCoordinate,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_header():
    def _make(
        stream_id: int = 1, frame_id: int = 1, nanos: int = 100, deadline: timedelta | None = None
    ) -> RequestHeader:
        return RequestHeader(
            identifier=Identifier(stream_id=stream_id, frame_id=frame_id),
            timestamp=Timestamp(nanos=nanos),
            deadline=deadline,
        )

    return _make


@pytest.fixture
def rgb_image() -> Rgb888Image:
    return Rgb888Image(width=640, height=480, path="/frames/0001.rgb")


@pytest.fixture
def frame(rgb_image) -> Frame:
    return Frame(
        image=rgb_image,
        uas_metadata=UasMetadata(platform_heading_angle=90.0, sensor_latitude=48.1, sensor_longitude=11.5),
    )


@pytest.fixture
def png_frame() -> Frame:
    return Frame(image=PngImage(width=32, height=16, path="/frames/0002.png"))


@pytest.fixture
def box_inference() -> Inference:
    return Inference(
        inference_id="obj-1",
        geometry=BoundingBox(
            c0=UnitCoordinate(row=0.1, col=0.2),
            c1=UnitCoordinate(row=0.3, col=0.4),
            classifications=(Classification(type="vehicle", confidence=0.9),),
        ),
    )


@pytest.fixture
def inferences(box_inference) -> Inferences:
    return Inferences(inferences=(box_inference,))
