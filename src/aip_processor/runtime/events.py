# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from aip_processor.domain.schemas.config import Capability
from aip_processor.domain.schemas.header import Identifier

logger = logging.getLogger(__name__)


class ProtocolEvent(BaseModel):
    model_config = ConfigDict(frozen=True)


class TimestampRegressionEvent(ProtocolEvent):
    """Event fired when a stream's timestamp went backwards for a capability."""

    identifier: Identifier
    capability: Capability
    previous_nanos: int
    nanos: int
    rejected: bool


class DeadlineExceededEvent(ProtocolEvent):
    """Event fired when a request did not complete within its deadline, or was evicted from the in-flight window."""

    identifier: Identifier
    capability: Capability
    deadline: timedelta | None
    evicted: bool = False


class UnsupportedCapabilityEvent(ProtocolEvent):
    """Event fired the first time an undeclared capability is invoked."""

    capability: Capability
    declared: tuple[Capability, ...]


class DuplicateRequestEvent(ProtocolEvent):
    """Event fired when an identifier is reused while still in flight for the same capability."""

    identifier: Identifier
    capability: Capability


ObservabilityEvent = (
    TimestampRegressionEvent | DeadlineExceededEvent | UnsupportedCapabilityEvent | DuplicateRequestEvent
)


class ProtocolEventListener(Protocol):
    """
    Defines a protocol for consumers that need to react to recoverable protocol conditions.
    """

    def __call__(self, event: ObservabilityEvent) -> None: ...


class ProtocolEventDispatcher:
    """
    Manages and dispatches protocol events to subscribed listeners.

    Events are dispatched asynchronously so that reporting never delays a response.
    """

    def __init__(self, max_workers: int = 2):
        self._listeners: list[ProtocolEventListener] = []
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="event-dispatcher")

    def subscribe(self, listener: ProtocolEventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ProtocolEventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, event: ObservabilityEvent) -> None:
        """Dispatch an event to all subscribed listeners."""
        for listener in self._listeners:
            self._executor.submit(self._safe_notify, listener, event)

    def _safe_notify(self, listener: ProtocolEventListener, event: ObservabilityEvent) -> None:
        try:
            listener(event)
        except Exception:
            logger.exception(
                "Listener failed to process event: listener=%s, event=%s",
                listener.__class__.__name__,
                event.__class__.__name__,
            )

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the executor. Call during application shutdown."""
        self._executor.shutdown(wait=wait)


class LoggingEventListener:
    """Writes every protocol event to the log at warning level."""

    def __init__(self, log: logging.Logger | None = None):
        self._logger = log or logger

    def __call__(self, event: ObservabilityEvent) -> None:
        self._logger.warning("%s: %s", event.__class__.__name__, event.model_dump(mode="json"))
