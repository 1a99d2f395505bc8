# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from aip_processor.domain.schemas.frame import Frame, UasMetadata
from aip_processor.domain.schemas.geometry import Lattice, validate_confidence
from aip_processor.domain.schemas.header import Identifier, RequestHeader
from aip_processor.domain.schemas.variants import Inferences


class GeoRegistration(BaseModel):
    """Earth lattice for a frame plus the platform/camera state corrected by registration."""

    model_config = ConfigDict(frozen=True)

    lattice: Lattice = Field(default_factory=Lattice)
    confidence: float = 0.0
    updated_metadata: UasMetadata = Field(default_factory=UasMetadata)

    @model_validator(mode="after")
    def _check_confidence(self) -> Self:
        validate_confidence(self.confidence)
        return self


class GeoRegistrationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    header: RequestHeader
    frame: Frame


class GeoRegistrationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: Identifier
    geo_registration: GeoRegistration


class InferenceRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    header: RequestHeader
    frame: Frame


class InferenceResponse(BaseModel):
    """Result of both Infer and Track."""

    model_config = ConfigDict(frozen=True)

    identifier: Identifier
    inferences: Inferences = Field(default_factory=Inferences)


class TrackRequest(BaseModel):
    """
    Tracking input for a frame.

    `inferences` and `geo_registration` are independent and each may be absent; Track can be called for a frame
    on which neither Infer nor GeoRegister ran.
    """

    model_config = ConfigDict(frozen=True)

    header: RequestHeader
    frame: Frame
    inferences: Inferences | None = None
    geo_registration: GeoRegistration | None = None


ProcessingRequest = GeoRegistrationRequest | InferenceRequest | TrackRequest
