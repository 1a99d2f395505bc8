# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from aip_processor.domain.schemas.variants import ImageFormat


class Capability(StrEnum):
    """Processing endpoints a processor can declare. Values match the names of the wire enum."""

    GEO_REGISTER = "GEO_REGISTER"
    INFER = "INFER"
    TRACK = "TRACK"


class ProcessorV2Config(BaseModel):
    """Declared once per processor instance: which image format to receive and which capabilities it serves."""

    model_config = ConfigDict(frozen=True)

    image_format: ImageFormat = ImageFormat.RGB888
    capabilities: tuple[Capability, ...] = Field(min_length=1)

    @field_validator("capabilities", mode="after")
    @classmethod
    def _deduplicate(cls, capabilities: tuple[Capability, ...]) -> tuple[Capability, ...]:
        return tuple(dict.fromkeys(capabilities))

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities
