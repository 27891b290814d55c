"""
Test Suite for telemetry event models and wire parsing

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from conftest import T0, make_span
from observatory.enums import LogLevel, MetricType, SpanStatus, TelemetryType
from observatory.exceptions import ObservatoryError, TelemetryParseError
from observatory.telemetry.models import (
    LogEvent,
    MetricEvent,
    SpanEvent,
    dump_event,
    parse_event,
    parse_events,
    telemetry_type_of,
)


def test_parse_span_from_mapping_normalizes_naive_timestamps():
    event = parse_event({
        "telemetry_type": "span",
        "span_id": "s1",
        "trace_id": "t1",
        "operation_name": "llm.generate",
        "start_time": "2026-01-01T12:00:00",
        "end_time": "2026-01-01T12:00:00.250",
        "status": "ok",
    })
    assert isinstance(event, SpanEvent)
    assert event.start_time.tzinfo is not None
    assert event.start_time == T0
    assert event.duration_ms == 250
    assert event.status is SpanStatus.ok
    assert event.is_root
    assert event.timestamp == event.start_time


def test_parse_metric_from_json_document():
    doc = json.dumps({
        "telemetry_type": "metric",
        "name": "latency",
        "value": 12.5,
        "metric_type": "histogram",
        "timestamp": "2026-01-01T12:00:00Z",
        "labels": {"service": "api"},
    })
    event = parse_event(doc)
    assert isinstance(event, MetricEvent)
    assert event.metric_type is MetricType.histogram
    assert event.labels == {"service": "api"}
    assert telemetry_type_of(event) is TelemetryType.metric


def test_parse_log_with_trace_context_alias():
    event = parse_event({
        "telemetry_type": "log",
        "level": "WARN",
        "message": "slow tool",
        "timestamp": "2026-01-01T12:00:00+02:00",
        "trace_context": {"trace_id": "t1", "span_id": "s1", "flags": 1},
    })
    assert isinstance(event, LogEvent)
    assert event.level is LogLevel.warn
    assert event.trace_context.trace_flags == 1
    assert event.timestamp == datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("payload", [
    {"telemetry_type": "trace", "span_id": "s1"},
    {"telemetry_type": "span", "span_id": "s1"},
    {"name": "cpu", "value": 1.0},
    "not json",
])
def test_parse_rejects_malformed_payloads(payload):
    with pytest.raises(TelemetryParseError):
        parse_event(payload)


def test_parse_error_is_observatory_error():
    assert issubclass(TelemetryParseError, ObservatoryError)


def test_parse_events_keeps_order():
    events = parse_events([
        {"telemetry_type": "metric", "name": "a", "value": 1, "timestamp": "2026-01-01T12:00:00Z"},
        {"telemetry_type": "log", "message": "m", "timestamp": "2026-01-01T12:00:00Z"},
    ])
    assert [telemetry_type_of(e) for e in events] == [TelemetryType.metric, TelemetryType.log]


def test_negative_duration_is_clamped():
    span = make_span("s1", start=100, end=40)
    assert span.has_negative_duration
    assert span.raw_duration_ms == -60
    assert span.duration_ms == 0


def test_events_are_immutable():
    span = make_span("s1")
    with pytest.raises(ValidationError):
        span.span_id = "other"


def test_dump_event_carries_discriminator():
    span = make_span("s1", parent="s0", model="gpt")
    out = dump_event(span)
    assert out["telemetry_type"] == "span"
    assert out["parent_span_id"] == "s0"
    assert out["attributes"] == {"model": "gpt"}
    assert parse_event(out) == span


def test_telemetry_type_of_rejects_foreign_objects():
    with pytest.raises(TypeError):
        telemetry_type_of({"telemetry_type": "span"})
