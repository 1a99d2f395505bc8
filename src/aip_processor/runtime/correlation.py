# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
In-flight request window.

Requests are keyed by their Identifier and capability. Geo-registration, inference and tracking of the same frame
may be in flight at the same time, but the same capability may not run twice for one Identifier. Timestamps are
checked for monotonicity per stream and capability, since responses of different capabilities arrive in any order.
"""

import heapq
import itertools
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta

from pydantic import BaseModel

from aip_processor.domain.schemas.config import Capability
from aip_processor.domain.schemas.header import Identifier, RequestHeader, Timestamp
from aip_processor.exceptions import DuplicateRequestError, TimestampRegressionError
from aip_processor.runtime.events import (
    DeadlineExceededEvent,
    DuplicateRequestEvent,
    ObservabilityEvent,
    ProtocolEventDispatcher,
    TimestampRegressionEvent,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(eq=False, kw_only=True)
class InFlightEntry:
    """An admitted request. Compared by identity: a stale entry never matches a newer one with the same key."""

    identifier: Identifier
    capability: Capability
    timestamp: Timestamp
    deadline: timedelta
    received_at: float  # clock seconds
    expires_at: float  # received_at + deadline + grace
    deadline_reported: bool = field(default=False, repr=False)

    @property
    def key(self) -> tuple[int, int]:
        return self.identifier.stream_id, self.identifier.frame_id


class CorrelatorStatus(BaseModel):
    """Point-in-time view of the in-flight window."""

    in_flight: int
    in_flight_by_capability: dict[Capability, int]
    streams_tracked: int
    max_in_flight: int


class RequestCorrelator:
    """
    Admits requests into the in-flight window and releases them when their response is produced.

    Args:
        default_deadline: Deadline used when a header does not declare one, or declares zero.
        grace: Extra time an entry may outlive its deadline before it is evicted.
        max_in_flight: Upper bound on admitted entries. The entry with the earliest expiry is evicted to make room.
        reject_timestamp_regression: Whether a regressing timestamp fails the request or is only reported.
        max_tracked_streams: Upper bound on (stream, capability) timestamp histories. The least recently seen one
            is forgotten to make room, after which that stream's next timestamp is accepted as a fresh start.
        events: Receives recoverable conditions (regressions, deadline misses, duplicates).
        clock: Monotonic clock in seconds.
    """

    def __init__(
        self,
        default_deadline: timedelta,
        grace: timedelta = timedelta(0),
        max_in_flight: int = 1024,
        reject_timestamp_regression: bool = True,
        max_tracked_streams: int = 4096,
        events: ProtocolEventDispatcher | None = None,
        clock: Clock = time.monotonic,
    ):
        if default_deadline <= timedelta(0):
            raise ValueError(f"default_deadline must be positive, got {default_deadline}")
        if max_in_flight < 1:
            raise ValueError(f"max_in_flight must be at least 1, got {max_in_flight}")
        if max_tracked_streams < 1:
            raise ValueError(f"max_tracked_streams must be at least 1, got {max_tracked_streams}")
        self._default_deadline = default_deadline
        self._grace = grace
        self._max_in_flight = max_in_flight
        self._max_tracked_streams = max_tracked_streams
        self._reject_regression = reject_timestamp_regression
        self._events = events
        self._clock = clock
        self._lock = threading.Lock()
        self._window: dict[tuple[int, int], dict[Capability, InFlightEntry]] = {}
        self._expiry_heap: list[tuple[float, int, InFlightEntry]] = []
        self._sequence = itertools.count()
        # least recently seen first
        self._high_water: OrderedDict[tuple[int, Capability], int] = OrderedDict()
        self._size = 0

    @property
    def clock(self) -> Clock:
        return self._clock

    def effective_deadline(self, header: RequestHeader) -> timedelta:
        """Deadline that governs a request: the declared one, or the default when absent or zero."""
        if header.deadline:
            return header.deadline
        return self._default_deadline

    def admit(self, header: RequestHeader, capability: Capability) -> InFlightEntry:
        """
        Register a request as in flight.

        Raises:
            DuplicateRequestError: If the same Identifier is already in flight for the capability.
            TimestampRegressionError: If the timestamp is lower than the last one accepted for the stream and
                capability, and regressions are rejected.
        """
        pending: list[ObservabilityEvent] = []
        try:
            with self._lock:
                return self._admit_locked(header, capability, pending)
        finally:
            for event in pending:
                self._report(event)

    def _admit_locked(
        self, header: RequestHeader, capability: Capability, pending: list[ObservabilityEvent]
    ) -> InFlightEntry:
        now = self._clock()
        self._evict_expired(now, pending)

        identifier = header.identifier
        key = (identifier.stream_id, identifier.frame_id)
        if capability in self._window.get(key, {}):
            pending.append(DuplicateRequestEvent(identifier=identifier, capability=capability))
            raise DuplicateRequestError(identifier.stream_id, identifier.frame_id, capability)

        stream_key = (identifier.stream_id, capability)
        previous = self._high_water.get(stream_key)
        if previous is not None:
            self._high_water.move_to_end(stream_key)
        nanos = header.timestamp.nanos
        if previous is not None and nanos < previous:
            pending.append(
                TimestampRegressionEvent(
                    identifier=identifier,
                    capability=capability,
                    previous_nanos=previous,
                    nanos=nanos,
                    rejected=self._reject_regression,
                )
            )
            if self._reject_regression:
                raise TimestampRegressionError(identifier.stream_id, previous, nanos)
        else:
            self._high_water[stream_key] = nanos
            while len(self._high_water) > self._max_tracked_streams:
                (stream_id, stale_capability), _ = self._high_water.popitem(last=False)
                logger.debug("Forgot timestamp history of stream %d for %s", stream_id, stale_capability)

        while self._size >= self._max_in_flight:
            self._evict_earliest(pending)

        deadline = self.effective_deadline(header)
        entry = InFlightEntry(
            identifier=identifier,
            capability=capability,
            timestamp=header.timestamp,
            deadline=deadline,
            received_at=now,
            expires_at=now + (deadline + self._grace).total_seconds(),
        )
        self._window.setdefault(key, {})[capability] = entry
        heapq.heappush(self._expiry_heap, (entry.expires_at, next(self._sequence), entry))
        self._size += 1
        logger.debug("Admitted %s %s, deadline=%s", capability, identifier, deadline)
        return entry

    def release(self, entry: InFlightEntry) -> bool:
        """
        Remove an entry from the window.

        Returns:
            True if the entry was removed by this call; False if it had already been released or evicted.
        """
        with self._lock:
            return self._remove(entry)

    def report_deadline_exceeded(self, entry: InFlightEntry) -> None:
        """Report a missed deadline for the entry, at most once over its lifetime."""
        with self._lock:
            if entry.deadline_reported:
                return
            entry.deadline_reported = True
        self._report(
            DeadlineExceededEvent(identifier=entry.identifier, capability=entry.capability, deadline=entry.deadline)
        )

    def evict_expired(self) -> int:
        """Evict every entry whose deadline and grace period have elapsed. Returns the number evicted."""
        pending: list[ObservabilityEvent] = []
        with self._lock:
            evicted = self._evict_expired(self._clock(), pending)
        for event in pending:
            self._report(event)
        return evicted

    def is_in_flight(self, identifier: Identifier, capability: Capability) -> bool:
        with self._lock:
            return capability in self._window.get((identifier.stream_id, identifier.frame_id), {})

    def forget_stream(self, stream_id: int) -> None:
        """Drop the timestamp history of a stream, e.g. after the orchestrator restarted it."""
        with self._lock:
            for stream_key in [k for k in self._high_water if k[0] == stream_id]:
                del self._high_water[stream_key]

    def snapshot(self) -> CorrelatorStatus:
        with self._lock:
            by_capability = dict.fromkeys(Capability, 0)
            for entries in self._window.values():
                for capability in entries:
                    by_capability[capability] += 1
            return CorrelatorStatus(
                in_flight=self._size,
                in_flight_by_capability=by_capability,
                streams_tracked=len({stream_id for stream_id, _ in self._high_water}),
                max_in_flight=self._max_in_flight,
            )

    def _remove(self, entry: InFlightEntry) -> bool:
        entries = self._window.get(entry.key)
        if entries is None or entries.get(entry.capability) is not entry:
            return False
        del entries[entry.capability]
        if not entries:
            del self._window[entry.key]
        self._size -= 1
        # heap entries are dropped lazily; compact when most of the heap is stale
        if len(self._expiry_heap) > 2 * self._size + 64:
            self._expiry_heap = [item for item in self._expiry_heap if self._is_live(item[2])]
            heapq.heapify(self._expiry_heap)
        return True

    def _is_live(self, entry: InFlightEntry) -> bool:
        return self._window.get(entry.key, {}).get(entry.capability) is entry

    def _evict_expired(self, now: float, pending: list[ObservabilityEvent]) -> int:
        evicted = 0
        while self._expiry_heap and self._expiry_heap[0][0] <= now:
            _, _, entry = heapq.heappop(self._expiry_heap)
            if self._is_live(entry):
                self._evict(entry, pending)
                evicted += 1
        return evicted

    def _evict_earliest(self, pending: list[ObservabilityEvent]) -> None:
        while self._expiry_heap:
            _, _, entry = heapq.heappop(self._expiry_heap)
            if self._is_live(entry):
                # the entry may still be running; a retry of its Identifier is no longer caught as a duplicate
                logger.warning(
                    "In-flight window full (%d entries), evicted %s %s before its deadline",
                    self._max_in_flight,
                    entry.capability,
                    entry.identifier,
                )
                self._evict(entry, pending)
                return

    def _evict(self, entry: InFlightEntry, pending: list[ObservabilityEvent]) -> None:
        self._remove(entry)
        logger.info("Evicted %s %s from the in-flight window", entry.capability, entry.identifier)
        if not entry.deadline_reported:
            entry.deadline_reported = True
            pending.append(
                DeadlineExceededEvent(
                    identifier=entry.identifier, capability=entry.capability, deadline=entry.deadline, evicted=True
                )
            )

    def _report(self, event: ObservabilityEvent) -> None:
        if self._events is not None:
            self._events.dispatch(event)
