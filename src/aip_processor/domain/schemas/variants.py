# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
Tagged variants for the protocol's oneof groups.

Every oneof group is modelled as a discriminated union whose tag field names the active variant. Selecting the
variant out of a wire-shaped set of candidates goes through `select_variant`, which refuses zero or several
populated candidates instead of picking one.
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Annotated, Any, Literal, NamedTuple, Self

from google.protobuf.message import Message
from pydantic import BaseModel, ConfigDict, Field, model_validator

from aip_processor.domain.schemas.geometry import (
    BoundingBox,
    BoundingPolygon,
    GeoBoundingBox,
    GeoBoundingPolygon,
    GeoCoordinate,
    check_range,
)
from aip_processor.exceptions import MalformedPayloadError, RangeError


class ImageFormat(StrEnum):
    """Image encodings. Values match the names of the wire enum."""

    RGB888 = "RGB888"
    PNG = "PNG"
    TIFF = "TIFF"
    BGR888 = "BGR888"
    NITF21 = "NITF21"


class VelocityKind(StrEnum):
    PIXEL = "pixel"


class ProviderKind(StrEnum):
    DIGITAL_GLOBE = "digital_globe"


# oneof field name -> image format
IMAGE_FIELDS: dict[str, ImageFormat] = {
    "rgb_image": ImageFormat.RGB888,
    "png_image": ImageFormat.PNG,
    "tiff_image": ImageFormat.TIFF,
    "bgr_image": ImageFormat.BGR888,
    "nitf21_image": ImageFormat.NITF21,
}
IMAGE_FIELD_BY_FORMAT: dict[ImageFormat, str] = {fmt: name for name, fmt in IMAGE_FIELDS.items()}


class ActiveVariant(NamedTuple):
    """The populated member of a oneof group: its tag (wire field name) and its value."""

    tag: str
    value: Any


def select_variant(group: str, candidates: Mapping[str, Any], required: bool = True) -> ActiveVariant | None:
    """
    Pick the single populated candidate of a oneof group.

    Args:
        group: Qualified name of the oneof group, used in error messages (e.g. "Image.image").
        candidates: Wire field name of every member mapped to its value, None meaning unset.
        required: Whether an empty group is malformed. Optional groups return None when empty.

    Raises:
        MalformedPayloadError: If more than one candidate is set, or none is set and the group is required.
    """
    populated = [name for name, value in candidates.items() if value is not None]
    if len(populated) > 1:
        raise MalformedPayloadError(group, populated)
    if not populated:
        if required:
            raise MalformedPayloadError(group)
        return None
    return ActiveVariant(populated[0], candidates[populated[0]])


def active_variant(message: Message, oneof: str, required: bool = True) -> ActiveVariant | None:
    """Typed accessor for the active member of a oneof on a protobuf message."""
    name = message.WhichOneof(oneof)
    if name is None:
        if required:
            raise MalformedPayloadError(f"{message.DESCRIPTOR.name}.{oneof}")
        return None
    return ActiveVariant(name, getattr(message, name))


class RasterImage(BaseModel):
    """Image stored at `path` with known pixel dimensions."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    path: str

    @model_validator(mode="after")
    def _check_dimensions(self) -> Self:
        for field in ("width", "height"):
            value = getattr(self, field)
            if value <= 0:
                raise RangeError(field, value, 1, 2**31 - 1, message=f"Image {field} must be positive, got {value}.")
        return self


class Rgb888Image(RasterImage):
    """Raw RGB888 pixels in height-width-channel order."""

    format: Literal[ImageFormat.RGB888] = ImageFormat.RGB888


class Bgr888Image(RasterImage):
    """Raw BGR888 pixels in height-width-channel order."""

    format: Literal[ImageFormat.BGR888] = ImageFormat.BGR888


class PngImage(RasterImage):
    format: Literal[ImageFormat.PNG] = ImageFormat.PNG


class TiffImage(RasterImage):
    format: Literal[ImageFormat.TIFF] = ImageFormat.TIFF


class Nitf21Image(BaseModel):
    """NITF 2.1 container. Dimensions and metadata live inside the file."""

    model_config = ConfigDict(frozen=True)

    format: Literal[ImageFormat.NITF21] = ImageFormat.NITF21
    path: str


Image = Annotated[Rgb888Image | PngImage | TiffImage | Bgr888Image | Nitf21Image, Field(discriminator="format")]

InferenceGeometry = Annotated[
    BoundingBox | BoundingPolygon | GeoBoundingBox | GeoBoundingPolygon,
    Field(discriminator="kind"),
]


class PixelVelocityVector(BaseModel):
    """Motion in unit pixel space per unit time. Positive x is image-right, positive y is image-down."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[VelocityKind.PIXEL] = VelocityKind.PIXEL
    x: float
    y: float


# single variant for now; becomes a discriminated union once spatial velocity exists
Velocity = PixelVelocityVector


class DigitalGlobeMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: Literal[ProviderKind.DIGITAL_GLOBE] = ProviderKind.DIGITAL_GLOBE
    feature_id: str = ""
    source: str = ""  # satellite and band, e.g. WV03_VNIR
    niirs: int = Field(default=0, ge=0)
    product_type: str = ""
    off_nadir_degrees: float = 0.0
    sun_elevation_degrees: float = 0.0
    sun_azimuth_degrees: float = 0.0
    ground_sample_distance_centimeters: int = Field(default=0, ge=0)
    top_left: GeoCoordinate | None = None
    top_right: GeoCoordinate | None = None
    bottom_right: GeoCoordinate | None = None
    bottom_left: GeoCoordinate | None = None

    @model_validator(mode="after")
    def _check_angles(self) -> Self:
        check_range("off_nadir_degrees", self.off_nadir_degrees, 0.0, 90.0)
        check_range("sun_elevation_degrees", self.sun_elevation_degrees, -90.0, 90.0)
        check_range("sun_azimuth_degrees", self.sun_azimuth_degrees, 0.0, 360.0)
        return self


# single variant for now, same as Velocity
ProviderMetadata = DigitalGlobeMetadata


class Inference(BaseModel):
    """
    A detected object in a frame.

    `inference_id` ties detections of the same object together across frames; tracking echoes it unchanged to keep
    continuity.
    """

    model_config = ConfigDict(frozen=True)

    inference_id: str
    geometry: InferenceGeometry
    velocity: Velocity | None = None


class Inferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    inferences: tuple[Inference, ...] = ()
