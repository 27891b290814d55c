"""
Telemetry consumer capability: anything that accepts spans, metrics and logs and reports consumption counters. Includes a discarding sink and an in-memory recording sink for tests and inspection.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from observatory.enums import TelemetryType
from observatory.telemetry.models import LogEvent, MetricEvent, SpanEvent, telemetry_type_of, utcnow


@dataclass
class ConsumptionStats:
    spans_consumed: int = 0
    metrics_consumed: int = 0
    logs_consumed: int = 0
    errors: int = 0
    last_consumption_time: Optional[datetime] = None

    def record(self, event: Any) -> None:
        kind = telemetry_type_of(event)
        if kind is TelemetryType.span:
            self.spans_consumed += 1
        elif kind is TelemetryType.metric:
            self.metrics_consumed += 1
        else:
            self.logs_consumed += 1

    def merge(self, other: ConsumptionStats) -> None:
        self.spans_consumed += other.spans_consumed
        self.metrics_consumed += other.metrics_consumed
        self.logs_consumed += other.logs_consumed
        self.errors += other.errors

    @property
    def total(self) -> int:
        return self.spans_consumed + self.metrics_consumed + self.logs_consumed

    def to_dict(self) -> Dict[str, Any]:
        out = dataclasses.asdict(self)
        ts = self.last_consumption_time
        out["last_consumption_time"] = ts.isoformat() if ts is not None else None
        return out


class TelemetryConsumer(ABC):
    @abstractmethod
    async def consume(self, event: Any) -> None: ...

    async def consume_batch(self, events: Iterable[Any]) -> None:
        for event in events:
            await self.consume(event)

    @abstractmethod
    async def stats(self) -> ConsumptionStats: ...

    @abstractmethod
    async def reset_stats(self) -> None: ...


class NoOpConsumer(TelemetryConsumer):
    async def consume(self, event: Any) -> None:
        return None

    async def consume_batch(self, events: Iterable[Any]) -> None:
        return None

    async def stats(self) -> ConsumptionStats:
        return ConsumptionStats()

    async def reset_stats(self) -> None:
        return None


class InMemoryConsumer(TelemetryConsumer):
    def __init__(self) -> None:
        self._data: List[Any] = []
        self._stats = ConsumptionStats()
        self._data_lock = asyncio.Lock()
        self._stats_lock = asyncio.Lock()

    async def consume(self, event: Any) -> None:
        async with self._stats_lock:
            self._stats.record(event)
            self._stats.last_consumption_time = utcnow()
        async with self._data_lock:
            self._data.append(event)

    async def consume_batch(self, events: Iterable[Any]) -> None:
        items = list(events)
        # raises TypeError on a foreign object before any state changes
        batch = ConsumptionStats()
        for item in items:
            batch.record(item)
        async with self._stats_lock:
            self._stats.merge(batch)
            self._stats.last_consumption_time = utcnow()
        async with self._data_lock:
            self._data.extend(items)

    async def stats(self) -> ConsumptionStats:
        async with self._stats_lock:
            return dataclasses.replace(self._stats)

    async def reset_stats(self) -> None:
        async with self._stats_lock:
            self._stats = ConsumptionStats()

    async def get_data(self) -> List[Any]:
        async with self._data_lock:
            return list(self._data)

    async def get_spans(self) -> List[SpanEvent]:
        async with self._data_lock:
            return [d for d in self._data if isinstance(d, SpanEvent)]

    async def get_metrics(self) -> List[MetricEvent]:
        async with self._data_lock:
            return [d for d in self._data if isinstance(d, MetricEvent)]

    async def get_logs(self) -> List[LogEvent]:
        async with self._data_lock:
            return [d for d in self._data if isinstance(d, LogEvent)]

    async def count(self) -> int:
        async with self._data_lock:
            return len(self._data)

    async def clear(self) -> None:
        async with self._data_lock:
            self._data.clear()
