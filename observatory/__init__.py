"""
Observatory ingestion engine.

Turns span, metric and log telemetry into lineage chains, temporal correlation
graphs and graph-store entities.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from observatory.ingest import IngestionConfig, IngestionPipeline, IngestionStats, ProcessingResult
from observatory.lineage import LineageBuilder, LineageChain
from observatory.mapping import EntityMapper, MappingConfig, MappingResult
from observatory.telemetry import (
    ConsumptionStats,
    InMemoryConsumer,
    LogEvent,
    MetricEvent,
    NoOpConsumer,
    SpanEvent,
    TelemetryConsumer,
    parse_event,
)
from observatory.temporal import TemporalGraph, TemporalGraphBuilder

__all__ = [
    "IngestionConfig",
    "IngestionPipeline",
    "IngestionStats",
    "ProcessingResult",
    "LineageBuilder",
    "LineageChain",
    "EntityMapper",
    "MappingConfig",
    "MappingResult",
    "ConsumptionStats",
    "InMemoryConsumer",
    "LogEvent",
    "MetricEvent",
    "NoOpConsumer",
    "SpanEvent",
    "TelemetryConsumer",
    "parse_event",
    "TemporalGraph",
    "TemporalGraphBuilder",
]
