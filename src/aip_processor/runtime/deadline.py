# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
import threading
import time
from collections.abc import Callable
from concurrent import futures
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import TypeVar

from aip_processor.domain.schemas.config import Capability
from aip_processor.domain.schemas.header import Identifier
from aip_processor.exceptions import DeadlineExceededError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def wait_timeout(remaining: timedelta | None) -> float | None:
    """Seconds to block on a wait for `remaining`, capped at the longest timeout the platform accepts."""
    if remaining is None:
        return None
    return min(remaining.total_seconds(), threading.TIMEOUT_MAX)


class ProcessingContext:
    """
    Per-request state handed to processor logic.

    Long-running logic should poll `cancelled` or `remaining()` and stop early once the deadline has passed; the
    result of a cancelled call is discarded.
    """

    def __init__(
        self,
        identifier: Identifier,
        capability: Capability,
        deadline: timedelta | None,
        started_at: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.identifier = identifier
        self.capability = capability
        self.deadline = deadline
        self._clock = clock
        self.started_at = clock() if started_at is None else started_at
        self._cancel_event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        self._cancel_event.set()

    def wait_cancelled(self, timeout: float | None = None) -> bool:
        """Block until the request is cancelled or `timeout` seconds pass. Returns whether it was cancelled."""
        return self._cancel_event.wait(None if timeout is None else min(timeout, threading.TIMEOUT_MAX))

    def remaining(self) -> timedelta | None:
        """Time left until the deadline, never negative. None when the request has no deadline."""
        if self.deadline is None:
            return None
        elapsed = timedelta(seconds=self._clock() - self.started_at)
        return max(self.deadline - elapsed, timedelta(0))

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining == timedelta(0)


class DeadlineRunner:
    """Runs processor logic on a worker pool and stops waiting for it once the request deadline passes."""

    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="processor")

    def run(self, fn: Callable[[ProcessingContext], T], context: ProcessingContext) -> T:
        """
        Call `fn(context)` and return its result.

        Raises:
            DeadlineExceededError: If the deadline passes first. The context is cancelled before raising.
        """
        if context.expired():
            context.cancel()
            raise DeadlineExceededError(context.identifier.stream_id, context.identifier.frame_id, context.deadline)
        future = self._executor.submit(fn, context)
        done, _ = futures.wait([future], timeout=wait_timeout(context.remaining()))
        if not done:
            context.cancel()
            future.cancel()
            logger.warning(
                "%s %s did not finish within %s, cancelled", context.capability, context.identifier, context.deadline
            )
            raise DeadlineExceededError(context.identifier.stream_id, context.identifier.frame_id, context.deadline)
        return future.result()

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the executor. Call during application shutdown."""
        self._executor.shutdown(wait=wait, cancel_futures=True)
