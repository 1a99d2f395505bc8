# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from datetime import timedelta
from typing import Self

from pydantic import BaseModel, ConfigDict, model_validator

from aip_processor.exceptions import RangeError

UINT64_MAX = 2**64 - 1


def _check_uint64(field: str, value: int) -> None:
    if not 0 <= value <= UINT64_MAX:
        raise RangeError(field, value, 0, UINT64_MAX)


class Identifier(BaseModel):
    """Names a unit of work and its result. `frame_id` is scoped to `stream_id`."""

    model_config = ConfigDict(frozen=True)

    stream_id: int
    frame_id: int

    @model_validator(mode="after")
    def _check_range(self) -> Self:
        _check_uint64("stream_id", self.stream_id)
        _check_uint64("frame_id", self.frame_id)
        return self

    def __str__(self) -> str:
        return f"{self.stream_id}/{self.frame_id}"


class Timestamp(BaseModel):
    """Nanoseconds since a stream-local epoch. Non-decreasing across the frames of one stream."""

    model_config = ConfigDict(frozen=True)

    nanos: int

    @model_validator(mode="after")
    def _check_range(self) -> Self:
        _check_uint64("nanos", self.nanos)
        return self


class RequestHeader(BaseModel):
    """
    Correlation data carried by every request.

    The deadline is relative to the moment the processor receives the header. None means the sender did not set
    one.
    """

    model_config = ConfigDict(frozen=True)

    identifier: Identifier
    timestamp: Timestamp
    deadline: timedelta | None = None

    @model_validator(mode="after")
    def _check_deadline(self) -> Self:
        if self.deadline is not None and self.deadline < timedelta(0):
            raise RangeError(
                "deadline",
                self.deadline.total_seconds(),
                0,
                float("inf"),
                message=f"deadline must not be negative, got {self.deadline}.",
            )
        return self
