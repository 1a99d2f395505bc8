# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
import time

from aip_processor.runtime.correlation import Clock, RequestCorrelator
from aip_processor.runtime.deadline import DeadlineRunner
from aip_processor.runtime.dispatcher import CapabilityDispatcher
from aip_processor.runtime.events import LoggingEventListener, ProtocolEventDispatcher
from aip_processor.runtime.processors import ProcessingService, ProcessorFactory
from aip_processor.settings import Settings

logger = logging.getLogger(__name__)


class ProcessingRuntime:
    """
    Owns the capability dispatcher and the worker pools behind it.

    Both transports share one runtime per process, so the in-flight window and the timestamp history are the same
    whichever transport a request arrives on.
    """

    def __init__(self, settings: Settings, processor: ProcessingService | None = None, clock: Clock = time.monotonic):
        self.settings = settings
        self.processor = processor or ProcessorFactory.create(settings.processor)
        self.events = ProtocolEventDispatcher(max_workers=settings.event_workers)
        self.events.subscribe(LoggingEventListener())
        self.correlator = RequestCorrelator(
            default_deadline=settings.default_deadline,
            grace=settings.deadline_grace,
            max_in_flight=settings.max_in_flight,
            reject_timestamp_regression=settings.reject_timestamp_regression,
            max_tracked_streams=settings.max_tracked_streams,
            events=self.events,
            clock=clock,
        )
        self.runner = DeadlineRunner(max_workers=settings.processing_workers)
        try:
            self.dispatcher = CapabilityDispatcher(
                processor=self.processor,
                config=settings.processor_config,
                correlator=self.correlator,
                runner=self.runner,
                events=self.events,
            )
        except ValueError:
            self.stop()
            raise
        logger.info(
            "Processing runtime ready: processor=%s, capabilities=%s, image_format=%s",
            type(self.processor).__name__,
            ", ".join(settings.processor_config.capabilities),
            settings.processor_config.image_format,
        )

    def stop(self) -> None:
        """Stop the worker pools. Processor calls still running are abandoned."""
        self.runner.shutdown(wait=False)
        self.events.shutdown(wait=True)
