# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""Domain value objects of the processing protocol."""

from aip_processor.domain.schemas.config import Capability, ProcessorV2Config
from aip_processor.domain.schemas.frame import Frame, UasMetadata, compose_frame
from aip_processor.domain.schemas.geometry import (
    BoundingBox,
    BoundingPolygon,
    Classification,
    GeoBoundingBox,
    GeoBoundingPolygon,
    GeoCoordinate,
    GeometryKind,
    GeoPolygon,
    Lattice,
    LatticePoint,
    Polygon,
    UnitCoordinate,
)
from aip_processor.domain.schemas.header import Identifier, RequestHeader, Timestamp
from aip_processor.domain.schemas.messages import (
    GeoRegistration,
    GeoRegistrationRequest,
    GeoRegistrationResponse,
    InferenceRequest,
    InferenceResponse,
    ProcessingRequest,
    TrackRequest,
)
from aip_processor.domain.schemas.variants import (
    Bgr888Image,
    DigitalGlobeMetadata,
    Image,
    ImageFormat,
    Inference,
    Inferences,
    Nitf21Image,
    PixelVelocityVector,
    PngImage,
    Rgb888Image,
    TiffImage,
)

__all__ = [
    "Bgr888Image",
    "BoundingBox",
    "BoundingPolygon",
    "Capability",
    "Classification",
    "DigitalGlobeMetadata",
    "Frame",
    "GeoBoundingBox",
    "GeoBoundingPolygon",
    "GeoCoordinate",
    "GeoPolygon",
    "GeoRegistration",
    "GeoRegistrationRequest",
    "GeoRegistrationResponse",
    "GeometryKind",
    "Identifier",
    "Image",
    "ImageFormat",
    "Inference",
    "InferenceRequest",
    "InferenceResponse",
    "Inferences",
    "Lattice",
    "LatticePoint",
    "Nitf21Image",
    "PixelVelocityVector",
    "PngImage",
    "Polygon",
    "ProcessingRequest",
    "ProcessorV2Config",
    "RequestHeader",
    "Rgb888Image",
    "TiffImage",
    "Timestamp",
    "TrackRequest",
    "UasMetadata",
    "UnitCoordinate",
    "compose_frame",
]
