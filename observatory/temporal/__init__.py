"""
Temporal package exports.

Retained metric time series, pairwise Pearson correlation and the temporal
correlation graph assembled from them.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from observatory.temporal.series import DataPoint, TimeSeries
from observatory.temporal.correlation import Correlation, correlate_series, pearson
from observatory.temporal.graph import TemporalEdge, TemporalGraph, TemporalNode
from observatory.temporal.builder import TemporalGraphBuilder, assemble_graph

__all__ = [
    "DataPoint",
    "TimeSeries",
    "Correlation",
    "correlate_series",
    "pearson",
    "TemporalEdge",
    "TemporalGraph",
    "TemporalNode",
    "TemporalGraphBuilder",
    "assemble_graph",
]
