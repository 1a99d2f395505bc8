# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging

from aip_processor.domain.schemas.frame import Frame
from aip_processor.domain.schemas.messages import GeoRegistration
from aip_processor.domain.schemas.variants import Inferences
from aip_processor.runtime.deadline import ProcessingContext
from aip_processor.runtime.processors.base import ProcessingService

logger = logging.getLogger(__name__)


class PassthroughProcessor(ProcessingService):
    """Implements every capability without computing anything. Used for conformance runs of the protocol layer."""

    def geo_register(self, frame: Frame, context: ProcessingContext) -> GeoRegistration:
        logger.debug("Using PassthroughProcessor, returning an empty lattice for %s.", context.identifier)
        return GeoRegistration(updated_metadata=frame.uas_metadata)

    def infer(self, frame: Frame, context: ProcessingContext) -> Inferences:  # noqa: ARG002
        logger.debug("Using PassthroughProcessor, returning no inferences for %s.", context.identifier)
        return Inferences()

    def track(
        self,
        frame: Frame,  # noqa: ARG002
        inferences: Inferences | None,
        geo_registration: GeoRegistration | None,  # noqa: ARG002
        context: ProcessingContext,  # noqa: ARG002
    ) -> Inferences:
        return inferences if inferences is not None else Inferences()
