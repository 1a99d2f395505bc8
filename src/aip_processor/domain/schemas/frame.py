# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import math
import struct
from typing import NamedTuple, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from aip_processor.domain.schemas.geometry import check_range
from aip_processor.domain.schemas.variants import Image, ProviderMetadata
from aip_processor.exceptions import TelemetryRangeError


class TelemetryRange(NamedTuple):
    lower: float
    upper: float
    upper_inclusive: bool = True


TELEMETRY_RANGES: dict[str, TelemetryRange] = {
    "platform_heading_angle": TelemetryRange(0.0, 360.0, upper_inclusive=False),
    "platform_pitch_angle": TelemetryRange(-20.0, 20.0),
    "platform_roll_angle": TelemetryRange(-50.0, 50.0),
    "sensor_latitude": TelemetryRange(-90.0, 90.0),
    "sensor_longitude": TelemetryRange(-180.0, 180.0),
    "sensor_true_altitude": TelemetryRange(-900.0, 19000.0),
    "sensor_horizontal_fov": TelemetryRange(0.0, 180.0),
    "sensor_vertical_fov": TelemetryRange(0.0, 180.0),
    "sensor_relative_azimuth_angle": TelemetryRange(0.0, 360.0),
    "sensor_relative_elevation_angle": TelemetryRange(-180.0, 180.0),
    "sensor_relative_roll_angle": TelemetryRange(0.0, 360.0),
}

# fields carried as 32-bit floats on the wire
FLOAT32_FIELDS: tuple[str, ...] = (
    "platform_heading_angle",
    "platform_pitch_angle",
    "platform_roll_angle",
    "sensor_horizontal_fov",
    "sensor_vertical_fov",
)

FLOAT32_MAX = 3.4028234663852886e38


def to_float32(value: float) -> float:
    """Round a double to the nearest 32-bit float. Non-finite and out-of-range values are returned unchanged."""
    if not math.isfinite(value) or abs(value) > FLOAT32_MAX:
        return value
    return struct.unpack("<f", struct.pack("<f", value))[0]


class UasMetadata(BaseModel):
    """
    Platform and sensor telemetry for a frame, a subset of the MISB 0601 tags.

    Every field is optional. None means the value was not provided, which is different from a measured zero.
    Angles are in degrees, altitude in meters above mean sea level.
    """

    model_config = ConfigDict(frozen=True)

    platform_heading_angle: float | None = None
    platform_pitch_angle: float | None = None
    platform_roll_angle: float | None = None
    sensor_latitude: float | None = None
    sensor_longitude: float | None = None
    sensor_true_altitude: float | None = None
    sensor_horizontal_fov: float | None = None
    sensor_vertical_fov: float | None = None
    sensor_relative_azimuth_angle: float | None = None
    sensor_relative_elevation_angle: float | None = None
    sensor_relative_roll_angle: float | None = None
    image_source_sensor: str | None = None
    provider_metadata: ProviderMetadata | None = None

    @field_validator(*FLOAT32_FIELDS)
    @classmethod
    def _quantize_float32(cls, value: float | None) -> float | None:
        # ranges are checked on the value the wire can carry
        return None if value is None else to_float32(value)

    @model_validator(mode="after")
    def _check_ranges(self) -> Self:
        for field, bounds in TELEMETRY_RANGES.items():
            value = getattr(self, field)
            if value is not None:
                check_range(field, value, *bounds, error_cls=TelemetryRangeError)
        return self

    def is_set(self, field: str) -> bool:
        """Whether the telemetry field was provided."""
        if field not in type(self).model_fields:
            raise AttributeError(f"UasMetadata has no field {field!r}")
        return getattr(self, field) is not None

    def present_fields(self) -> tuple[str, ...]:
        return tuple(name for name in type(self).model_fields if getattr(self, name) is not None)


class Frame(BaseModel):
    """One unit of imagery plus the telemetry captured with it."""

    model_config = ConfigDict(frozen=True)

    image: Image
    uas_metadata: UasMetadata = Field(default_factory=UasMetadata)


def compose_frame(image: Image, uas_metadata: UasMetadata | None = None) -> Frame:
    """Compose an already validated image and telemetry into a frame; no telemetry means all fields unspecified."""
    return Frame(image=image, uas_metadata=uas_metadata or UasMetadata())
