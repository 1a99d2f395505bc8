# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from aip_processor.exceptions.custom_errors import (
    DeadlineExceededError,
    DuplicateRequestError,
    ErrorKind,
    MalformedPayloadError,
    ProcessorFailureError,
    ProtocolError,
    RangeError,
    TelemetryRangeError,
    TimestampRegressionError,
    UnsupportedCapabilityError,
)

__all__ = [
    "DeadlineExceededError",
    "DuplicateRequestError",
    "ErrorKind",
    "MalformedPayloadError",
    "ProcessorFailureError",
    "ProtocolError",
    "RangeError",
    "TelemetryRangeError",
    "TimestampRegressionError",
    "UnsupportedCapabilityError",
]
