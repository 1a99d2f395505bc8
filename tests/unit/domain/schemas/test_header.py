# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

from datetime import timedelta

import pytest

from aip_processor.domain.schemas.header import UINT64_MAX, Identifier, RequestHeader, Timestamp
from aip_processor.exceptions import RangeError


class TestIdentifier:
    def test_accepts_full_uint64_range(self):
        identifier = Identifier(stream_id=0, frame_id=UINT64_MAX)

        assert str(identifier) == f"0/{UINT64_MAX}"

    @pytest.mark.parametrize(
        "stream_id, frame_id, field",
        [(-1, 0, "stream_id"), (0, UINT64_MAX + 1, "frame_id")],
        ids=["negative_stream", "frame_overflow"],
    )
    def test_rejects_values_outside_uint64(self, stream_id, frame_id, field):
        with pytest.raises(RangeError) as exc_info:
            Identifier(stream_id=stream_id, frame_id=frame_id)

        assert exc_info.value.field == field

    def test_is_hashable_and_compares_by_value(self):
        assert Identifier(stream_id=1, frame_id=2) == Identifier(stream_id=1, frame_id=2)
        assert len({Identifier(stream_id=1, frame_id=2), Identifier(stream_id=1, frame_id=2)}) == 1


class TestTimestamp:
    def test_rejects_negative_nanos(self):
        with pytest.raises(RangeError):
            Timestamp(nanos=-5)


class TestRequestHeader:
    def test_deadline_defaults_to_none(self, make_header):
        assert make_header().deadline is None

    def test_rejects_negative_deadline(self, make_header):
        with pytest.raises(RangeError) as exc_info:
            make_header(deadline=timedelta(milliseconds=-1))

        assert exc_info.value.field == "deadline"

    def test_zero_deadline_is_kept_as_declared(self):
        header = RequestHeader(
            identifier=Identifier(stream_id=1, frame_id=1),
            timestamp=Timestamp(nanos=0),
            deadline=timedelta(0),
        )

        assert header.deadline == timedelta(0)
