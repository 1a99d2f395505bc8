# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from aip_processor.domain.schemas.config import Capability, ProcessorV2Config
from aip_processor.domain.schemas.header import RequestHeader
from aip_processor.domain.schemas.messages import (
    GeoRegistration,
    GeoRegistrationRequest,
    GeoRegistrationResponse,
    InferenceRequest,
    InferenceResponse,
    TrackRequest,
)
from aip_processor.domain.schemas.variants import Inferences
from aip_processor.exceptions import (
    DeadlineExceededError,
    ProcessorFailureError,
    ProtocolError,
    UnsupportedCapabilityError,
)
from aip_processor.runtime.correlation import RequestCorrelator
from aip_processor.runtime.deadline import DeadlineRunner, ProcessingContext
from aip_processor.runtime.events import ProtocolEventDispatcher, UnsupportedCapabilityEvent
from aip_processor.runtime.processors.base import ProcessingService

logger = logging.getLogger(__name__)

R = TypeVar("R")


class CapabilityDispatcher:
    """
    Routes validated requests to processor logic.

    Each call checks the capability against the declared config, admits the header into the in-flight window, runs
    the processor under the request deadline and releases the window entry exactly once, whatever the outcome.
    Responses always carry the request's Identifier.
    """

    def __init__(
        self,
        processor: ProcessingService,
        config: ProcessorV2Config,
        correlator: RequestCorrelator,
        runner: DeadlineRunner,
        events: ProtocolEventDispatcher | None = None,
    ):
        missing = set(config.capabilities) - type(processor).implemented_capabilities()
        if missing:
            raise ValueError(
                f"{type(processor).__name__} declares {', '.join(sorted(missing))} but does not implement "
                "the corresponding methods"
            )
        self._processor = processor
        self._config = config
        self._correlator = correlator
        self._runner = runner
        self._events = events
        self._reported_unsupported: set[Capability] = set()
        self._lock = threading.Lock()

    @property
    def config(self) -> ProcessorV2Config:
        return self._config

    def geo_register(self, request: GeoRegistrationRequest) -> GeoRegistrationResponse:
        registration = self._run(
            Capability.GEO_REGISTER,
            request.header,
            lambda context: self._processor.geo_register(request.frame, context),
            GeoRegistration,
        )
        return GeoRegistrationResponse(identifier=request.header.identifier, geo_registration=registration)

    def infer(self, request: InferenceRequest) -> InferenceResponse:
        inferences = self._run(
            Capability.INFER,
            request.header,
            lambda context: self._processor.infer(request.frame, context),
            Inferences,
        )
        return InferenceResponse(identifier=request.header.identifier, inferences=inferences)

    def track(self, request: TrackRequest) -> InferenceResponse:
        """Track with whichever of inferences and geo-registration the request carries; neither is synthesized."""
        inferences = self._run(
            Capability.TRACK,
            request.header,
            lambda context: self._processor.track(
                request.frame, request.inferences, request.geo_registration, context
            ),
            Inferences,
        )
        return InferenceResponse(identifier=request.header.identifier, inferences=inferences)

    def _check_capability(self, capability: Capability) -> None:
        if self._config.supports(capability):
            return
        with self._lock:
            first = capability not in self._reported_unsupported
            self._reported_unsupported.add(capability)
        if first:
            logger.warning(
                "Capability %s invoked but not declared (declared: %s)", capability, self._config.capabilities
            )
            if self._events is not None:
                self._events.dispatch(
                    UnsupportedCapabilityEvent(capability=capability, declared=self._config.capabilities)
                )
        else:
            logger.debug("Capability %s invoked again but not declared", capability)
        raise UnsupportedCapabilityError(capability, self._config.capabilities)

    def _run(
        self,
        capability: Capability,
        header: RequestHeader,
        call: Callable[[ProcessingContext], R],
        result_type: type[R],
    ) -> R:
        self._check_capability(capability)
        entry = self._correlator.admit(header, capability)
        context = ProcessingContext(
            header.identifier,
            capability,
            entry.deadline,
            started_at=entry.received_at,
            clock=self._correlator.clock,
        )
        try:
            return self._runner.run(lambda ctx: self._invoke(capability, call, ctx, result_type), context)
        except DeadlineExceededError:
            self._correlator.report_deadline_exceeded(entry)
            raise
        finally:
            self._correlator.release(entry)

    @staticmethod
    def _invoke(
        capability: Capability,
        call: Callable[[ProcessingContext], R],
        context: ProcessingContext,
        result_type: type[R],
    ) -> R:
        try:
            result = call(context)
        except ProtocolError:
            raise
        except Exception as e:
            logger.exception("%s failed for %s", capability, context.identifier)
            raise ProcessorFailureError(capability, e) from e
        if not isinstance(result, result_type):
            raise ProcessorFailureError(
                capability, TypeError(f"expected {result_type.__name__}, got {type(result).__name__}")
            )
        return result
