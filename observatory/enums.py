"""
Enumerations for span status, metric and log kinds, and graph node/edge vocabularies

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum


class TelemetryType(str, Enum):
    span = "span"
    metric = "metric"
    log = "log"


class SpanStatus(str, Enum):
    ok = "ok"
    error = "error"
    unset = "unset"


class MetricType(str, Enum):
    counter = "counter"
    gauge = "gauge"
    histogram = "histogram"
    summary = "summary"


class LogLevel(str, Enum):
    debug = "DEBUG"
    info = "INFO"
    warn = "WARN"
    error = "ERROR"
    fatal = "FATAL"


class NodeType(str, Enum):
    prompt = "prompt"
    response = "response"
    tool = "tool"
    agent = "agent"
    context = "context"
    session = "session"


class EdgeType(str, Enum):
    parent_child = "parent_child"
    follows = "follows"
    references = "references"
    contains = "contains"


class LineageEdgeType(str, Enum):
    parent_child = "parent_child"
    follows = "follows"
    caused_by = "caused_by"
    data_flow = "data_flow"

    def to_edge_type(self) -> EdgeType:
        return _LINEAGE_TO_EDGE[self]


_LINEAGE_TO_EDGE = {
    LineageEdgeType.parent_child: EdgeType.parent_child,
    LineageEdgeType.follows: EdgeType.follows,
    LineageEdgeType.caused_by: EdgeType.references,
    LineageEdgeType.data_flow: EdgeType.contains,
}
