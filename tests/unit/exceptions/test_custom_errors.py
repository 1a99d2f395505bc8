# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import pytest
from pydantic import BaseModel, ValidationError, model_validator

from aip_processor.exceptions import (
    DeadlineExceededError,
    ProtocolError,
    RangeError,
    TimestampRegressionError,
    UnsupportedCapabilityError,
)


class Bounded(BaseModel):
    value: float

    @model_validator(mode="after")
    def _check(self):
        if self.value > 1:
            raise RangeError("value", self.value, 0, 1)
        return self


class TestProtocolError:
    def test_is_not_a_value_error(self):
        assert not issubclass(ProtocolError, ValueError)

    def test_escapes_pydantic_validation_unwrapped(self):
        with pytest.raises(RangeError) as exc_info:
            Bounded(value=2)

        assert not isinstance(exc_info.value, ValidationError)
        assert str(exc_info.value) == "value=2.0 is outside of [0, 1]."

    @pytest.mark.parametrize(
        "error_cls, recoverable",
        [(TimestampRegressionError, True), (DeadlineExceededError, True), (RangeError, False)],
        ids=["regression", "deadline", "range"],
    )
    def test_recoverable(self, error_cls, recoverable):
        assert error_cls.recoverable is recoverable

    def test_unsupported_capability_message(self):
        assert "declared: none" in str(UnsupportedCapabilityError("INFER", ()))
