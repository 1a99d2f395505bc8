# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from typing import Annotated

from fastapi import Depends, Request

from aip_processor.runtime.components import ProcessingRuntime
from aip_processor.runtime.correlation import RequestCorrelator
from aip_processor.runtime.dispatcher import CapabilityDispatcher


# --- Core singletons ---
def get_runtime(request: Request) -> ProcessingRuntime:
    """Dependency that provides access to the ProcessingRuntime."""
    return request.app.state.runtime


def get_dispatcher(runtime: Annotated[ProcessingRuntime, Depends(get_runtime)]) -> CapabilityDispatcher:
    """Dependency that provides the CapabilityDispatcher of the running processor."""
    return runtime.dispatcher


def get_correlator(runtime: Annotated[ProcessingRuntime, Depends(get_runtime)]) -> RequestCorrelator:
    return runtime.correlator


async def get_protobuf_body(request: Request) -> bytes:
    """Raw request body, undecoded."""
    return await request.body()


# --- Dependency aliases ---
DispatcherDep = Annotated[CapabilityDispatcher, Depends(get_dispatcher)]
CorrelatorDep = Annotated[RequestCorrelator, Depends(get_correlator)]
ProtobufBodyDep = Annotated[bytes, Depends(get_protobuf_body)]
