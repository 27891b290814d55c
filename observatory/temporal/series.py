"""
Retained time series for a single metric name, ordered by timestamp with last-write-wins on equal timestamps, plus range queries, summary statistics, retention eviction and downsampling.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

import numpy as np

from observatory.enums import MetricType


@dataclass(frozen=True)
class DataPoint:
    timestamp: datetime
    value: float
    labels: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp.isoformat(), "value": self.value, "labels": dict(self.labels)}


class TimeSeries:
    __slots__ = ("name", "metric_type", "_points", "_keys")

    def __init__(self, name: str, metric_type: MetricType = MetricType.gauge) -> None:
        self.name = name
        self.metric_type = metric_type
        self._points: Dict[datetime, DataPoint] = {}
        self._keys: List[datetime] = []

    def add_point(self, point: DataPoint) -> None:
        if point.timestamp not in self._points:
            bisect.insort(self._keys, point.timestamp)
        self._points[point.timestamp] = point

    @property
    def points(self) -> Dict[datetime, DataPoint]:
        return {k: self._points[k] for k in self._keys}

    def values(self) -> List[float]:
        return [self._points[k].value for k in self._keys]

    def __iter__(self) -> Iterator[DataPoint]:
        return (self._points[k] for k in self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def is_empty(self) -> bool:
        return not self._keys

    def range(self, start: datetime, end: datetime) -> List[DataPoint]:
        lo = bisect.bisect_left(self._keys, start)
        hi = bisect.bisect_right(self._keys, end)
        return [self._points[k] for k in self._keys[lo:hi]]

    def latest(self) -> Optional[DataPoint]:
        if not self._keys:
            return None
        return self._points[self._keys[-1]]

    def average(self) -> Optional[float]:
        if not self._keys:
            return None
        return float(np.mean(self.values()))

    def min(self) -> Optional[float]:
        if not self._keys:
            return None
        return float(np.min(self.values()))

    def max(self) -> Optional[float]:
        if not self._keys:
            return None
        return float(np.max(self.values()))

    def evict_before(self, cutoff: datetime) -> int:
        idx = bisect.bisect_left(self._keys, cutoff)
        if idx == 0:
            return 0
        for k in self._keys[:idx]:
            del self._points[k]
        del self._keys[:idx]
        return idx

    def downsample(self, target_points: int) -> TimeSeries:
        """Keep every floor(len/target)-th point, preserving order.

        Series at or below the target are returned as an unchanged copy.
        """
        out = TimeSeries(self.name, self.metric_type)
        if target_points <= 0 or len(self) <= target_points:
            for point in self:
                out.add_point(point)
            return out
        step = len(self) // target_points
        for i, k in enumerate(self._keys):
            if i % step == 0:
                out.add_point(self._points[k])
        return out

    def copy(self) -> TimeSeries:
        out = TimeSeries(self.name, self.metric_type)
        out._points = dict(self._points)
        out._keys = list(self._keys)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "metric_type": self.metric_type.value,
            "points": [p.to_dict() for p in self],
        }

    def __repr__(self) -> str:
        return f"TimeSeries(name={self.name!r}, metric_type={self.metric_type.value}, points={len(self)})"
