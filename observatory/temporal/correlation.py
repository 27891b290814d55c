"""
Pearson correlation between two metric time series over a time window, used to connect metrics whose values move together.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import numpy as np

from config import settings
from observatory.temporal.series import TimeSeries


@dataclass(frozen=True)
class Correlation:
    metric_a: str
    metric_b: str
    coefficient: float
    start_time: datetime
    end_time: datetime
    sample_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_a": self.metric_a,
            "metric_b": self.metric_b,
            "coefficient": self.coefficient,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "sample_size": self.sample_size,
        }


def pearson(values_a: Sequence[float], values_b: Sequence[float]) -> float:
    n = min(len(values_a), len(values_b))
    if n == 0:
        return 0.0
    a = np.asarray(values_a[:n], dtype=float)
    b = np.asarray(values_b[:n], dtype=float)
    da = a - a.mean()
    db = b - b.mean()
    var_a = float(np.sum(da * da))
    var_b = float(np.sum(db * db))
    if var_a <= 0.0 or var_b <= 0.0:
        return 0.0
    coefficient = float(np.sum(da * db)) / (np.sqrt(var_a) * np.sqrt(var_b))
    if not np.isfinite(coefficient):
        return 0.0
    # float error can push perfectly linear inputs a hair past 1
    return float(np.clip(coefficient, -1.0, 1.0))


def correlate_series(
    series_a: TimeSeries,
    series_b: TimeSeries,
    start: datetime,
    end: datetime,
    min_samples: int | None = None,
) -> Optional[Correlation]:
    if min_samples is None:
        min_samples = settings.correlation_min_samples
    # a single sample has no variance to correlate
    min_samples = max(2, min_samples)
    values_a = [p.value for p in series_a.range(start, end)]
    values_b = [p.value for p in series_b.range(start, end)]
    if len(values_a) < min_samples or len(values_b) < min_samples:
        return None

    n = min(len(values_a), len(values_b))
    return Correlation(
        metric_a=series_a.name,
        metric_b=series_b.name,
        coefficient=round(pearson(values_a, values_b), settings.correlation_round_precision),
        start_time=start,
        end_time=end,
        sample_size=n,
    )
