# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from collections.abc import Sequence
from datetime import timedelta
from enum import StrEnum


class ErrorKind(StrEnum):
    """Enumeration for the failure kinds a processing call can end with."""

    RANGE = "range_error"
    MALFORMED_PAYLOAD = "malformed_payload"
    DUPLICATE_REQUEST = "duplicate_request"
    TIMESTAMP_REGRESSION = "timestamp_regression"
    UNSUPPORTED_CAPABILITY = "unsupported_capability"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    PROCESSOR_FAILURE = "processor_failure"


class ProtocolError(Exception):
    """
    Base exception for every failure surfaced by the processing protocol.

    Must not derive from ValueError: pydantic wraps ValueError/AssertionError raised in validators into a
    ValidationError, while any other exception propagates out of model construction unchanged.
    """

    kind: ErrorKind
    recoverable: bool = False


class RangeError(ProtocolError):
    """Exception raised when a coordinate, confidence or other bounded value is out of range."""

    kind = ErrorKind.RANGE

    def __init__(
        self,
        field: str,
        value: float,
        lower: float,
        upper: float,
        upper_inclusive: bool = True,
        message: str | None = None,
    ):
        closing = "]" if upper_inclusive else ")"
        msg = message or f"{field}={value!r} is outside of [{lower}, {upper}{closing}."
        super().__init__(msg)
        self.field = field
        self.value = value
        self.lower = lower
        self.upper = upper


class TelemetryRangeError(RangeError):
    """Exception raised when a platform or sensor telemetry value is outside its physical range."""


class MalformedPayloadError(ProtocolError):
    """Exception raised when a oneof group has zero or several populated variants, or a message is undecodable."""

    kind = ErrorKind.MALFORMED_PAYLOAD

    def __init__(self, group: str, populated: Sequence[str] = (), message: str | None = None):
        if message:
            msg = message
        elif populated:
            msg = f"{group} must have exactly one variant set, got {len(populated)}: {', '.join(populated)}."
        else:
            msg = f"{group} must have exactly one variant set, got none."
        super().__init__(msg)
        self.group = group
        self.populated = tuple(populated)


class DuplicateRequestError(ProtocolError):
    """Exception raised when an identifier is reused while a request with the same identifier is in flight."""

    kind = ErrorKind.DUPLICATE_REQUEST

    def __init__(self, stream_id: int, frame_id: int, capability: str):
        super().__init__(
            f"{capability} request for stream_id={stream_id} frame_id={frame_id} is already in flight."
        )
        self.stream_id = stream_id
        self.frame_id = frame_id
        self.capability = capability


class TimestampRegressionError(ProtocolError):
    """Exception raised when a stream's timestamp goes backwards."""

    kind = ErrorKind.TIMESTAMP_REGRESSION
    recoverable = True

    def __init__(self, stream_id: int, previous_nanos: int, nanos: int):
        super().__init__(f"Timestamp on stream_id={stream_id} regressed from {previous_nanos} to {nanos} nanos.")
        self.stream_id = stream_id
        self.previous_nanos = previous_nanos
        self.nanos = nanos


class UnsupportedCapabilityError(ProtocolError):
    """Exception raised when a capability is invoked that the processor did not declare."""

    kind = ErrorKind.UNSUPPORTED_CAPABILITY

    def __init__(self, capability: str, declared: Sequence[str]):
        super().__init__(
            f"Capability {capability} is not declared by this processor (declared: {', '.join(declared) or 'none'})."
        )
        self.capability = capability
        self.declared = tuple(declared)


class DeadlineExceededError(ProtocolError):
    """Exception raised when processing did not finish within the request deadline."""

    kind = ErrorKind.DEADLINE_EXCEEDED
    recoverable = True

    def __init__(self, stream_id: int, frame_id: int, deadline: timedelta | None):
        super().__init__(f"Deadline {deadline} exceeded for stream_id={stream_id} frame_id={frame_id}.")
        self.stream_id = stream_id
        self.frame_id = frame_id
        self.deadline = deadline


class ProcessorFailureError(ProtocolError):
    """Exception raised when processor logic fails with an error outside of the protocol taxonomy."""

    kind = ErrorKind.PROCESSOR_FAILURE

    def __init__(self, capability: str, cause: BaseException):
        super().__init__(f"{capability} processing failed: {type(cause).__name__}: {cause}")
        self.capability = capability
