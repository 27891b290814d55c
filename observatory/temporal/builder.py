"""
Temporal graph builder: retains metric time series under a rolling window and, on demand, correlates every pair of series to assemble a temporal correlation graph.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from itertools import combinations
from typing import Any, Callable, Dict, List, Optional, Tuple

from config import settings
from observatory.telemetry.models import MetricEvent, as_utc, utcnow
from observatory.temporal.correlation import Correlation, correlate_series
from observatory.temporal.graph import TemporalEdge, TemporalGraph, TemporalNode
from observatory.temporal.series import DataPoint, TimeSeries

log = logging.getLogger(__name__)


def assemble_graph(
    series: List[TimeSeries],
    start: datetime,
    end: datetime,
    significance_threshold: float,
    lag_ms: int = 0,
) -> Tuple[TemporalGraph, List[Correlation]]:
    """Build a temporal graph from already-snapshotted series.

    Pure function of its inputs; safe to run in a worker thread. Returns the
    graph together with every correlation computed along the way.
    """
    graph = TemporalGraph(start_time=start, end_time=end)
    ordered = sorted(series, key=lambda s: s.name)

    for ts in ordered:
        for point in ts.range(start, end):
            graph.add_node(TemporalNode(
                metric=ts.name,
                timestamp=point.timestamp,
                value=point.value,
                labels=dict(point.labels),
            ))

    computed: List[Correlation] = []
    for ts_a, ts_b in combinations(ordered, 2):
        corr = correlate_series(ts_a, ts_b, start, end)
        if corr is None:
            continue
        computed.append(corr)
        if abs(corr.coefficient) > significance_threshold:
            graph.add_edge(TemporalEdge(
                from_metric=ts_a.name,
                to_metric=ts_b.name,
                correlation=corr.coefficient,
                lag_ms=lag_ms,
            ))
    return graph, computed


class TemporalGraphBuilder:
    def __init__(
        self,
        retention: timedelta | None = None,
        significance_threshold: float | None = None,
        lag_ms: int | None = None,
        history_max: int | None = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if retention is None:
            retention = timedelta(hours=settings.temporal_retention_hours)
        if significance_threshold is None:
            significance_threshold = settings.correlation_significance_threshold
        if lag_ms is None:
            lag_ms = settings.correlation_lag_ms
        if history_max is None:
            history_max = settings.correlation_history_max
        self.retention = retention
        self.significance_threshold = significance_threshold
        self.lag_ms = lag_ms
        self.history_max = history_max
        self._clock = clock or utcnow

        self._series: Dict[str, TimeSeries] = {}
        self._series_locks: Dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()
        self._correlations: List[Correlation] = []
        self._correlations_lock = asyncio.Lock()

    def cutoff(self) -> datetime:
        return as_utc(self._clock()) - self.retention

    async def _series_for(self, event: MetricEvent) -> Tuple[TimeSeries, asyncio.Lock]:
        async with self._lock:
            ts = self._series.get(event.name)
            if ts is None:
                ts = TimeSeries(event.name, event.metric_type)
                self._series[event.name] = ts
                self._series_locks[event.name] = asyncio.Lock()
            return ts, self._series_locks[event.name]

    async def _snapshot(self, name: str) -> Optional[TimeSeries]:
        async with self._lock:
            ts = self._series.get(name)
            ts_lock = self._series_locks.get(name)
        if ts is None or ts_lock is None:
            return None
        async with ts_lock:
            return ts.copy()

    async def _snapshot_all(self) -> List[TimeSeries]:
        async with self._lock:
            entries = [(ts, self._series_locks[name]) for name, ts in self._series.items()]
        out: List[TimeSeries] = []
        for ts, ts_lock in entries:
            async with ts_lock:
                out.append(ts.copy())
        return out

    async def _record(self, correlations: List[Correlation]) -> None:
        if not correlations:
            return
        async with self._correlations_lock:
            self._correlations.extend(correlations)
            if self.history_max and len(self._correlations) > self.history_max:
                del self._correlations[: len(self._correlations) - self.history_max]

    async def process_metric(self, event: Any) -> bool:
        """Insert the metric's point into its series and evict expired points.

        Returns False for non-metric events, which are ignored.
        """
        if not isinstance(event, MetricEvent):
            return False

        point = DataPoint(timestamp=event.timestamp, value=event.value, labels=dict(event.labels))
        ts, ts_lock = await self._series_for(event)
        async with ts_lock:
            ts.add_point(point)
            evicted = ts.evict_before(self.cutoff())
        if evicted:
            log.debug("series %s evicted %d point(s) past retention", event.name, evicted)
        return True

    async def get_series(self, name: str) -> Optional[TimeSeries]:
        return await self._snapshot(name)

    async def get_all_series(self) -> List[TimeSeries]:
        return await self._snapshot_all()

    async def calculate_correlation(
        self,
        metric_a: str,
        metric_b: str,
        start: datetime,
        end: datetime,
    ) -> Optional[Correlation]:
        ts_a = await self._snapshot(metric_a)
        ts_b = await self._snapshot(metric_b)
        if ts_a is None or ts_b is None:
            return None
        corr = await asyncio.to_thread(correlate_series, ts_a, ts_b, as_utc(start), as_utc(end))
        if corr is not None:
            await self._record([corr])
        return corr

    async def build_graph(self, start: datetime, end: datetime) -> TemporalGraph:
        start, end = as_utc(start), as_utc(end)
        snapshot = await self._snapshot_all()
        graph, computed = await asyncio.to_thread(
            assemble_graph,
            snapshot,
            start,
            end,
            self.significance_threshold,
            self.lag_ms,
        )
        await self._record(computed)
        log.debug(
            "temporal graph [%s, %s]: %d node(s), %d edge(s) from %d series",
            start.isoformat(), end.isoformat(), len(graph.nodes), len(graph.edges), len(snapshot),
        )
        return graph

    async def get_correlations(self) -> List[Correlation]:
        async with self._correlations_lock:
            return list(self._correlations)

    async def clear_correlations(self) -> None:
        async with self._correlations_lock:
            self._correlations.clear()

    async def clear(self) -> None:
        async with self._lock:
            self._series.clear()
            self._series_locks.clear()
        await self.clear_correlations()

    async def metric_count(self) -> int:
        async with self._lock:
            return len(self._series)

    @staticmethod
    def downsample(series: TimeSeries, target_points: int) -> TimeSeries:
        return series.downsample(target_points)
