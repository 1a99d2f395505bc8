# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

import logging
from datetime import timedelta
from unittest.mock import Mock

import pytest

from aip_processor.domain.schemas import Capability
from aip_processor.exceptions import DuplicateRequestError, TimestampRegressionError
from aip_processor.runtime.correlation import RequestCorrelator
from aip_processor.runtime.events import DeadlineExceededEvent, DuplicateRequestEvent, TimestampRegressionEvent


@pytest.fixture
def events():
    return Mock()


@pytest.fixture
def correlator(clock, events) -> RequestCorrelator:
    return RequestCorrelator(
        default_deadline=timedelta(seconds=1),
        grace=timedelta(milliseconds=500),
        max_in_flight=8,
        events=events,
        clock=clock,
    )


def dispatched(events: Mock, event_type: type) -> list:
    return [c.args[0] for c in events.dispatch.call_args_list if isinstance(c.args[0], event_type)]


class TestRequestCorrelatorConstruction:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"default_deadline": timedelta(0)},
            {"default_deadline": timedelta(seconds=1), "max_in_flight": 0},
            {"default_deadline": timedelta(seconds=1), "max_tracked_streams": 0},
        ],
        ids=["zero_default_deadline", "empty_window", "no_stream_history"],
    )
    def test_rejects_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            RequestCorrelator(**kwargs)


class TestAdmit:
    def test_admitted_entry_is_in_flight(self, correlator, make_header, clock):
        header = make_header(stream_id=4, frame_id=2)

        entry = correlator.admit(header, Capability.INFER)

        assert correlator.is_in_flight(header.identifier, Capability.INFER)
        assert not correlator.is_in_flight(header.identifier, Capability.TRACK)
        assert entry.received_at == clock.now
        assert entry.expires_at == clock.now + 1.5

    def test_duplicate_identifier_is_rejected_while_in_flight(self, correlator, make_header, events):
        correlator.admit(make_header(frame_id=7), Capability.INFER)

        with pytest.raises(DuplicateRequestError) as exc_info:
            correlator.admit(make_header(frame_id=7, nanos=200), Capability.INFER)

        assert (exc_info.value.stream_id, exc_info.value.frame_id) == (1, 7)
        assert len(dispatched(events, DuplicateRequestEvent)) == 1

    def test_identifier_can_be_reused_after_release(self, correlator, make_header):
        entry = correlator.admit(make_header(frame_id=7), Capability.INFER)
        correlator.release(entry)

        correlator.admit(make_header(frame_id=7), Capability.INFER)

    def test_capabilities_of_one_frame_run_in_parallel(self, correlator, make_header):
        header = make_header()

        for capability in Capability:
            correlator.admit(header, capability)

        assert correlator.snapshot().in_flight == 3

    def test_same_frame_id_on_other_stream_is_not_a_duplicate(self, correlator, make_header):
        correlator.admit(make_header(stream_id=1, frame_id=1), Capability.INFER)
        correlator.admit(make_header(stream_id=2, frame_id=1), Capability.INFER)

        assert correlator.snapshot().in_flight == 2

    def test_timestamp_regression_is_rejected(self, correlator, make_header, events):
        for frame_id, nanos in enumerate((100, 250, 400)):
            correlator.release(correlator.admit(make_header(frame_id=frame_id, nanos=nanos), Capability.INFER))

        with pytest.raises(TimestampRegressionError) as exc_info:
            correlator.admit(make_header(frame_id=10, nanos=300), Capability.INFER)

        assert (exc_info.value.previous_nanos, exc_info.value.nanos) == (400, 300)
        [event] = dispatched(events, TimestampRegressionEvent)
        assert event.rejected
        # the high-water mark stays at 400
        correlator.admit(make_header(frame_id=11, nanos=500), Capability.INFER)
        with pytest.raises(TimestampRegressionError):
            correlator.admit(make_header(frame_id=12, nanos=450), Capability.INFER)

    def test_equal_timestamps_are_allowed(self, correlator, make_header):
        correlator.admit(make_header(frame_id=1, nanos=100), Capability.INFER)
        correlator.admit(make_header(frame_id=2, nanos=100), Capability.INFER)

    def test_monotonicity_is_tracked_per_capability(self, correlator, make_header):
        correlator.admit(make_header(frame_id=2, nanos=200), Capability.INFER)

        correlator.admit(make_header(frame_id=1, nanos=100), Capability.GEO_REGISTER)

    def test_regression_is_only_reported_when_not_rejected(self, clock, events, make_header):
        correlator = RequestCorrelator(
            default_deadline=timedelta(seconds=1), reject_timestamp_regression=False, events=events, clock=clock
        )
        correlator.admit(make_header(frame_id=1, nanos=400), Capability.TRACK)

        entry = correlator.admit(make_header(frame_id=2, nanos=300), Capability.TRACK)

        assert entry.timestamp.nanos == 300
        [event] = dispatched(events, TimestampRegressionEvent)
        assert not event.rejected

    def test_forget_stream_resets_timestamp_history(self, correlator, make_header):
        correlator.admit(make_header(stream_id=5, frame_id=1, nanos=1_000), Capability.INFER)

        correlator.forget_stream(5)

        correlator.admit(make_header(stream_id=5, frame_id=2, nanos=10), Capability.INFER)

    def test_least_recently_seen_stream_history_is_forgotten(self, clock, make_header):
        correlator = RequestCorrelator(default_deadline=timedelta(seconds=1), max_tracked_streams=2, clock=clock)
        correlator.admit(make_header(stream_id=1, frame_id=1, nanos=500), Capability.INFER)
        correlator.admit(make_header(stream_id=2, frame_id=1, nanos=500), Capability.INFER)
        correlator.admit(make_header(stream_id=1, frame_id=2, nanos=600), Capability.INFER)

        correlator.admit(make_header(stream_id=3, frame_id=1, nanos=1), Capability.INFER)

        with pytest.raises(TimestampRegressionError):
            correlator.admit(make_header(stream_id=1, frame_id=3, nanos=100), Capability.INFER)
        entry = correlator.admit(make_header(stream_id=2, frame_id=2, nanos=10), Capability.INFER)
        assert entry.timestamp.nanos == 10

    def test_stream_history_stays_bounded(self, clock, make_header):
        correlator = RequestCorrelator(default_deadline=timedelta(seconds=1), max_tracked_streams=16, clock=clock)

        for stream_id in range(100):
            correlator.release(correlator.admit(make_header(stream_id=stream_id), Capability.TRACK))

        assert correlator.snapshot().streams_tracked == 16

    def test_declared_deadline_overrides_default(self, correlator, make_header):
        entry = correlator.admit(make_header(deadline=timedelta(milliseconds=200)), Capability.INFER)

        assert entry.deadline == timedelta(milliseconds=200)

    @pytest.mark.parametrize("deadline", [None, timedelta(0)], ids=["absent", "zero"])
    def test_missing_deadline_falls_back_to_default(self, correlator, make_header, deadline):
        entry = correlator.admit(make_header(deadline=deadline), Capability.INFER)

        assert entry.deadline == timedelta(seconds=1)


class TestRelease:
    def test_release_is_exactly_once(self, correlator, make_header):
        entry = correlator.admit(make_header(), Capability.INFER)

        assert correlator.release(entry)
        assert not correlator.release(entry)
        assert correlator.snapshot().in_flight == 0

    def test_stale_entry_does_not_release_its_successor(self, correlator, make_header, clock):
        stale = correlator.admit(make_header(frame_id=3), Capability.INFER)
        clock.advance(2)
        correlator.evict_expired()
        fresh = correlator.admit(make_header(frame_id=3), Capability.INFER)

        assert not correlator.release(stale)
        assert correlator.is_in_flight(fresh.identifier, Capability.INFER)


class TestEviction:
    def test_entry_is_evicted_after_deadline_and_grace(self, correlator, make_header, clock, events):
        header = make_header()
        correlator.admit(header, Capability.GEO_REGISTER)

        clock.advance(1.4)
        assert correlator.evict_expired() == 0
        clock.advance(0.2)
        assert correlator.evict_expired() == 1

        assert not correlator.is_in_flight(header.identifier, Capability.GEO_REGISTER)
        [event] = dispatched(events, DeadlineExceededEvent)
        assert event.evicted
        assert event.identifier == header.identifier

    def test_expired_entries_are_evicted_on_admit(self, correlator, make_header, clock):
        correlator.admit(make_header(frame_id=1), Capability.INFER)
        clock.advance(5)

        correlator.admit(make_header(frame_id=1), Capability.INFER)

        assert correlator.snapshot().in_flight == 1

    def test_deadline_miss_is_reported_once(self, correlator, make_header, clock, events):
        entry = correlator.admit(make_header(), Capability.INFER)

        correlator.report_deadline_exceeded(entry)
        correlator.report_deadline_exceeded(entry)
        clock.advance(5)
        correlator.evict_expired()

        [event] = dispatched(events, DeadlineExceededEvent)
        assert not event.evicted

    def test_full_window_evicts_earliest_expiry(self, clock, events, make_header):
        correlator = RequestCorrelator(
            default_deadline=timedelta(seconds=10), max_in_flight=2, events=events, clock=clock
        )
        short = correlator.admit(make_header(frame_id=1, deadline=timedelta(seconds=1)), Capability.INFER)
        long = correlator.admit(make_header(frame_id=2), Capability.INFER)

        correlator.admit(make_header(frame_id=3), Capability.INFER)

        assert not correlator.is_in_flight(short.identifier, Capability.INFER)
        assert correlator.is_in_flight(long.identifier, Capability.INFER)
        assert correlator.snapshot().in_flight == 2
        assert len(dispatched(events, DeadlineExceededEvent)) == 1

    def test_full_window_evicts_running_entry_and_forgets_it(self, clock, events, make_header, caplog):
        correlator = RequestCorrelator(
            default_deadline=timedelta(seconds=10), max_in_flight=1, events=events, clock=clock
        )
        running = correlator.admit(make_header(frame_id=1), Capability.INFER)
        caplog.set_level(logging.WARNING, logger="aip_processor.runtime.correlation")

        correlator.admit(make_header(frame_id=2), Capability.INFER)
        retry = correlator.admit(make_header(frame_id=1), Capability.INFER)

        assert retry is not running
        assert not correlator.release(running)
        assert "In-flight window full (1 entries), evicted INFER" in caplog.text
        [event, _] = dispatched(events, DeadlineExceededEvent)
        assert event.identifier == running.identifier
        assert event.evicted

    def test_many_releases_keep_window_consistent(self, correlator, make_header):
        for frame_id in range(500):
            correlator.release(correlator.admit(make_header(frame_id=frame_id), Capability.TRACK))

        assert correlator.snapshot().in_flight == 0
        assert len(correlator._expiry_heap) <= 64


class TestSnapshot:
    def test_counts_by_capability_and_stream(self, correlator, make_header):
        correlator.admit(make_header(stream_id=1, frame_id=1), Capability.INFER)
        correlator.admit(make_header(stream_id=1, frame_id=1), Capability.TRACK)
        correlator.admit(make_header(stream_id=2, frame_id=1), Capability.INFER)

        status = correlator.snapshot()

        assert status.in_flight == 3
        assert status.in_flight_by_capability == {
            Capability.GEO_REGISTER: 0,
            Capability.INFER: 2,
            Capability.TRACK: 1,
        }
        assert status.streams_tracked == 2
        assert status.max_in_flight == 8
