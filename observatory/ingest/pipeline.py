"""
Ingestion pipeline that routes telemetry events to the lineage builder, temporal graph builder and entity mapper, aggregates pipeline statistics, and offers buffered batch/flush semantics. The pipeline is itself a telemetry consumer.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from observatory.enums import TelemetryType
from observatory.exceptions import PipelineClosedError, TelemetryParseError
from observatory.ingest.config import IngestionConfig
from observatory.lineage.builder import LineageBuilder
from observatory.lineage.chain import LineageChain
from observatory.mapping.entities import MappingResult
from observatory.mapping.mapper import EntityMapper
from observatory.telemetry.consumer import ConsumptionStats, TelemetryConsumer
from observatory.telemetry.models import LogEvent, MetricEvent, SpanEvent, parse_event, telemetry_type_of, utcnow
from observatory.temporal.builder import TemporalGraphBuilder
from observatory.temporal.graph import TemporalGraph

log = logging.getLogger(__name__)


@dataclass
class IngestionStats(ConsumptionStats):
    total_ingested: int = 0
    entities_mapped: int = 0
    lineage_chains_built: int = 0
    mapping_errors: int = 0


@dataclass
class ProcessingResult:
    lineage_chain: Optional[LineageChain] = None
    mapping_result: Optional[MappingResult] = None
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "lineage_chain": self.lineage_chain.to_dict() if self.lineage_chain is not None else None,
            "mapping_result": self.mapping_result.to_dict() if self.mapping_result is not None else None,
            "errors": list(self.errors),
        }


class IngestionPipeline(TelemetryConsumer):
    """Shared entry point for concurrent telemetry producers.

    `ingest` never raises: every failure while handling one event is recorded
    in that event's ProcessingResult, and `ingest_batch` always returns one
    result per input. Raw mappings or JSON documents are accepted as well as
    parsed events; payloads that fail validation produce an unsuccessful
    result rather than an exception.

    Each piece of shared state (chains, series, the mapper's identity cache,
    statistics, the buffer) has its own lock, so work on unrelated traces or
    metrics does not contend.
    """

    def __init__(
        self,
        config: IngestionConfig | None = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config if config is not None else IngestionConfig()
        self.lineage_builder = LineageBuilder()
        self.temporal_builder = TemporalGraphBuilder(
            retention=self.config.retention,
            significance_threshold=self.config.correlation_threshold,
            lag_ms=self.config.correlation_lag_ms,
            clock=clock,
        )
        self.mapper = EntityMapper(self.config.mapping_config)

        self._stats = IngestionStats()
        self._stats_lock = asyncio.Lock()
        self._mapper_lock = asyncio.Lock()
        self._buffer: List[Any] = []
        self._buffer_lock = asyncio.Lock()
        self._flush_task: Optional[asyncio.Task] = None
        self._closed = False

    async def _bump(self, **counters: int) -> None:
        async with self._stats_lock:
            for name, amount in counters.items():
                setattr(self._stats, name, getattr(self._stats, name) + amount)

    async def ingest(self, event: Any, include_chain: bool = False) -> ProcessingResult:
        """Route one event. With `include_chain`, a span result also carries a
        snapshot of its trace's lineage chain."""
        result = ProcessingResult()

        if isinstance(event, (dict, str, bytes)):
            try:
                event = parse_event(event)
            except TelemetryParseError as exc:
                result.add_error(str(exc))
                await self._bump(errors=1)
                return result

        try:
            kind = telemetry_type_of(event)
        except TypeError as exc:
            result.add_error(f"Unsupported telemetry event: {exc}")
            await self._bump(errors=1)
            return result

        async with self._stats_lock:
            self._stats.total_ingested += 1
            self._stats.record(event)
            self._stats.last_consumption_time = utcnow()

        try:
            if kind is TelemetryType.span:
                await self._process_span(event, result, include_chain)
            elif kind is TelemetryType.metric:
                await self._process_metric(event)
            else:
                await self._process_log(event)
        except Exception as exc:
            log.warning("%s processing failed: %s", kind.value, exc)
            result.add_error(f"{kind.value.capitalize()} processing error: {exc}")

        if not result.success:
            await self._bump(errors=1)
        return result

    async def ingest_batch(self, events: Iterable[Any], include_chain: bool = False) -> List[ProcessingResult]:
        return [await self.ingest(event, include_chain) for event in events]

    async def _process_span(self, event: SpanEvent, result: ProcessingResult, include_chain: bool) -> None:
        graph_node_id: Optional[str] = None

        if self.config.enable_mapping:
            async with self._mapper_lock:
                entity = self.mapper.map_span(event)
            mapping = MappingResult()
            if entity is None:
                message = f"Failed to map span {event.span_id!r} (trace {event.trace_id!r}) to entity"
                mapping.add_error(message)
                result.add_error(message)
                await self._bump(mapping_errors=1)
            else:
                mapping.add_entity(entity)
                graph_node_id = entity.node_id
                await self._bump(entities_mapped=1)
            result.mapping_result = mapping

        if self.config.enable_lineage:
            await self.lineage_builder.process_span(event, graph_node_id=graph_node_id)
            if include_chain:
                result.lineage_chain = await self.lineage_builder.get_chain(event.trace_id)

        log.debug("span %s routed (trace=%s)", event.span_id, event.trace_id)

    async def _process_metric(self, event: MetricEvent) -> None:
        if self.config.enable_temporal:
            await self.temporal_builder.process_metric(event)

    async def _process_log(self, event: LogEvent) -> None:
        # acknowledged only; logs have no structural effect yet
        if event.trace_context is not None:
            log.debug("log correlated to trace %s span %s", event.trace_context.trace_id, event.trace_context.span_id)

    async def get_lineage_chain(self, trace_id: str) -> Optional[LineageChain]:
        return await self.lineage_builder.get_chain(trace_id)

    async def build_temporal_graph(self, start: datetime, end: datetime) -> TemporalGraph:
        return await self.temporal_builder.build_graph(start, end)

    async def map_lineage_chain(self, chain: LineageChain) -> MappingResult:
        async with self._mapper_lock:
            result = self.mapper.map_lineage_chain(chain)

        await self._bump(
            entities_mapped=len(result.entities),
            mapping_errors=len(result.errors),
            lineage_chains_built=1 if result.is_success() else 0,
        )
        if result.entities:
            await self.lineage_builder.attach_graph_ids(
                chain.trace_id,
                {e.source_span_id: e.node_id for e in result.entities},
            )
        return result

    async def stats(self) -> IngestionStats:
        async with self._stats_lock:
            return dataclasses.replace(self._stats)

    async def consumption_stats(self) -> ConsumptionStats:
        s = await self.stats()
        return ConsumptionStats(
            spans_consumed=s.spans_consumed,
            metrics_consumed=s.metrics_consumed,
            logs_consumed=s.logs_consumed,
            errors=s.errors,
            last_consumption_time=s.last_consumption_time,
        )

    async def reset_stats(self) -> None:
        async with self._stats_lock:
            self._stats = IngestionStats()

    async def clear(self) -> None:
        await self.lineage_builder.clear()
        await self.temporal_builder.clear()
        async with self._mapper_lock:
            self.mapper.clear_cache()
        async with self._buffer_lock:
            self._buffer.clear()
        await self.reset_stats()
        log.info("ingestion pipeline cleared")

    # TelemetryConsumer

    async def consume(self, event: Any) -> None:
        await self.ingest(event)

    async def consume_batch(self, events: Iterable[Any]) -> None:
        await self.ingest_batch(events)

    # buffering

    async def buffer_size(self) -> int:
        async with self._buffer_lock:
            return len(self._buffer)

    async def enqueue(self, event: Any) -> List[ProcessingResult]:
        """Buffer an event; flushes and returns the results once the buffer is full."""
        if self._closed:
            raise PipelineClosedError("pipeline is stopped; use ingest() directly")
        async with self._buffer_lock:
            self._buffer.append(event)
            full = len(self._buffer) >= self.config.buffer_size
        if full:
            return await self.flush()
        return []

    async def flush(self) -> List[ProcessingResult]:
        async with self._buffer_lock:
            items = self._buffer
            self._buffer = []
        if not items:
            return []
        log.debug("flushing %d buffered event(s)", len(items))
        return await self.ingest_batch(items)

    async def _flush_loop(self) -> None:
        interval = self.config.flush_interval_seconds
        while True:
            await asyncio.sleep(interval)
            results = await self.flush()
            failed = sum(1 for r in results if not r.success)
            if failed:
                log.warning("periodic flush: %d of %d event(s) failed", failed, len(results))

    def start(self) -> None:
        if self._flush_task is not None and not self._flush_task.done():
            return
        self._closed = False
        self._flush_task = asyncio.get_running_loop().create_task(self._flush_loop())
        log.info("flush loop started (interval=%dms, buffer=%d)", self.config.flush_interval_ms, self.config.buffer_size)

    async def stop(self) -> List[ProcessingResult]:
        self._closed = True
        task, self._flush_task = self._flush_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            log.info("flush loop stopped")
        return await self.flush()
