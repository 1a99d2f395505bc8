# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from abc import ABC

from aip_processor.domain.schemas.config import Capability
from aip_processor.domain.schemas.frame import Frame
from aip_processor.domain.schemas.messages import GeoRegistration
from aip_processor.domain.schemas.variants import Inferences
from aip_processor.runtime.deadline import ProcessingContext


class ProcessingService(ABC):
    """
    Processor logic behind the three capabilities.

    Subclasses override the methods of the capabilities they declare. Every call receives a ProcessingContext whose
    `cancelled` flag is set once the request deadline passes; work still running at that point is discarded.
    Methods are called concurrently from worker threads and must not keep per-frame state shared between
    capabilities.
    """

    def geo_register(self, frame: Frame, context: ProcessingContext) -> GeoRegistration:
        raise NotImplementedError

    def infer(self, frame: Frame, context: ProcessingContext) -> Inferences:
        raise NotImplementedError

    def track(
        self,
        frame: Frame,
        inferences: Inferences | None,
        geo_registration: GeoRegistration | None,
        context: ProcessingContext,
    ) -> Inferences:
        """
        Track objects in a frame.

        `inferences` and `geo_registration` are whatever the orchestrator sent, each possibly None. The result may
        hold fewer or more inferences than the input.
        """
        raise NotImplementedError

    @classmethod
    def implemented_capabilities(cls) -> frozenset[Capability]:
        """Capabilities whose method this class overrides."""
        methods = {
            Capability.GEO_REGISTER: "geo_register",
            Capability.INFER: "infer",
            Capability.TRACK: "track",
        }
        return frozenset(
            capability
            for capability, name in methods.items()
            if getattr(cls, name) is not getattr(ProcessingService, name)
        )
