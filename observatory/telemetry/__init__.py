"""
Telemetry package exports.

Event models form the wire contract for spans, metrics and logs; the consumer
module defines the minimal sink capability the ingestion pipeline implements.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from observatory.telemetry.models import (
    LogEvent,
    MetricEvent,
    SpanEvent,
    TelemetryEvent,
    TraceContext,
    dump_event,
    parse_event,
    parse_events,
    telemetry_type_of,
)
from observatory.telemetry.consumer import ConsumptionStats, InMemoryConsumer, NoOpConsumer, TelemetryConsumer

__all__ = [
    "LogEvent",
    "MetricEvent",
    "SpanEvent",
    "TelemetryEvent",
    "TraceContext",
    "dump_event",
    "parse_event",
    "parse_events",
    "telemetry_type_of",
    "ConsumptionStats",
    "InMemoryConsumer",
    "NoOpConsumer",
    "TelemetryConsumer",
]
