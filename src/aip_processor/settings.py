# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""Processor configuration management"""

from datetime import timedelta
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from aip_processor.domain.schemas.config import Capability, ProcessorV2Config
from aip_processor.domain.schemas.variants import ImageFormat


class Settings(BaseSettings):
    """Processor settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    # Application
    app_name: str = "AIP Processor"
    version: str = "0.1.0"
    description: str = (
        "Processing service for aerial imagery: geo-registration, object inference and tracking over a "
        "correlated, deadline-bounded request/response protocol."
    )
    openapi_url: str = "/api/openapi.json"
    debug: bool = Field(default=False, alias="DEBUG")
    log_format: str = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
    environment: Literal["dev", "prod"] = "dev"

    # Processor declaration
    processor: str = Field(default="passthrough", alias="PROCESSOR")  # "passthrough" or "module:ClassName"
    image_format: ImageFormat = Field(default=ImageFormat.RGB888, alias="IMAGE_FORMAT")
    capabilities: Annotated[tuple[Capability, ...], NoDecode] = Field(
        default=(Capability.GEO_REGISTER, Capability.INFER, Capability.TRACK), alias="CAPABILITIES"
    )

    # Correlation
    default_deadline_ms: int = Field(default=1000, gt=0, alias="DEFAULT_DEADLINE_MS")
    deadline_grace_ms: int = Field(default=250, ge=0, alias="DEADLINE_GRACE_MS")
    max_in_flight: int = Field(default=1024, gt=0, alias="MAX_IN_FLIGHT")
    reject_timestamp_regression: bool = Field(default=True, alias="REJECT_TIMESTAMP_REGRESSION")
    max_tracked_streams: int = Field(default=4096, gt=0, alias="MAX_TRACKED_STREAMS")

    # Workers
    processing_workers: int = Field(default=4, gt=0, alias="PROCESSING_WORKERS")
    event_workers: int = Field(default=2, gt=0, alias="EVENT_WORKERS")

    # Servers
    host: str = Field(default="localhost", alias="HOST")
    port: int = Field(default=9100, alias="PORT")
    grpc_host: str = Field(default="[::]", alias="GRPC_HOST")
    grpc_port: int = Field(default=50051, alias="GRPC_PORT")
    grpc_max_workers: int = Field(default=8, gt=0, alias="GRPC_MAX_WORKERS")

    @field_validator("capabilities", mode="before")
    @classmethod
    def split_capabilities(cls, v: object) -> object:
        # env values arrive as "INFER,TRACK"
        if isinstance(v, str):
            return tuple(item.strip().upper() for item in v.split(",") if item.strip())
        return v

    @property
    def default_deadline(self) -> timedelta:
        """Deadline applied when a request header does not declare one"""
        return timedelta(milliseconds=self.default_deadline_ms)

    @property
    def deadline_grace(self) -> timedelta:
        return timedelta(milliseconds=self.deadline_grace_ms)

    @property
    def processor_config(self) -> ProcessorV2Config:
        """The configuration this processor instance declares to the orchestrator"""
        return ProcessorV2Config(image_format=self.image_format, capabilities=self.capabilities)


@lru_cache
def get_settings() -> Settings:
    """Get cached processor settings"""
    return Settings()
