# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from fastapi import status

from aip_processor.api.routers import processor_router
from aip_processor.dependencies import CorrelatorDep, DispatcherDep
from aip_processor.domain.schemas.config import ProcessorV2Config
from aip_processor.runtime.correlation import CorrelatorStatus


@processor_router.get(
    path="/config",
    tags=["Processor"],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_200_OK: {
            "description": "The configuration declared by this processor instance.",
            "content": {
                "application/json": {
                    "example": {"image_format": "RGB888", "capabilities": ["GEO_REGISTER", "INFER", "TRACK"]},
                }
            },
        },
    },
)
def get_processor_config(dispatcher: DispatcherDep) -> ProcessorV2Config:
    """Return the image format and capabilities the processor declares."""
    return dispatcher.config


@processor_router.get(
    path="/status",
    tags=["Processor"],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_200_OK: {
            "description": "Current state of the in-flight request window.",
            "content": {
                "application/json": {
                    "example": {
                        "in_flight": 2,
                        "in_flight_by_capability": {"GEO_REGISTER": 0, "INFER": 1, "TRACK": 1},
                        "streams_tracked": 1,
                        "max_in_flight": 1024,
                    },
                }
            },
        },
    },
)
def get_processor_status(correlator: CorrelatorDep) -> CorrelatorStatus:
    return correlator.snapshot()
