"""
Entity mapper: converts spans and lineage chains into graph entities with stable node identifiers, and converts graph-store events back into span telemetry.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from observatory.enums import NodeType, SpanStatus
from observatory.lineage.chain import LineageChain, LineageEdge, LineageNode
from observatory.mapping.config import MappingConfig
from observatory.mapping.entities import MappedEdge, MappedEntity, MappingResult
from observatory.mapping.events import NodeCreated, PromptSubmitted, ResponseGenerated
from observatory.telemetry.models import SpanEvent

log = logging.getLogger(__name__)


def new_node_id() -> str:
    return str(uuid.uuid4())


class EntityMapper:
    """Maps telemetry spans onto the graph store's entity vocabulary.

    The span-id to node-id cache is the identity rule: the first node id
    generated for a span id is returned for every later mapping of that span
    until `clear_cache` is called, so re-ingesting a span is idempotent.
    Edges can only be mapped once both of their endpoint spans are cached.

    Not safe for concurrent mutation on its own; the ingestion pipeline
    serializes access to it.
    """

    def __init__(self, config: MappingConfig | None = None) -> None:
        self.config = config if config is not None else MappingConfig()
        self._span_to_node: Dict[str, str] = {}

    def _node_id_for(self, span_id: str) -> str:
        node_id = self._span_to_node.get(span_id)
        if node_id is None:
            node_id = new_node_id()
            self._span_to_node[span_id] = node_id
        return node_id

    def session_for(self, trace_id: str) -> Optional[str]:
        if not self.config.trace_to_session:
            return None
        return f"{self.config.session_prefix}{trace_id}"

    def trace_for_session(self, session_id: str) -> str:
        prefix = self.config.session_prefix
        if prefix and session_id.startswith(prefix):
            return session_id[len(prefix):]
        return session_id

    def infer_node_type(self, operation: str) -> NodeType:
        for pattern, node_type in self.config.operation_patterns.items():
            if pattern in operation:
                return node_type
        return NodeType.context

    def extract_metadata(self, attributes: Dict[str, str]) -> Dict[str, str]:
        return {k: attributes[k] for k in self.config.metadata_keys if k in attributes}

    def map_span(self, event: Any) -> Optional[MappedEntity]:
        if not isinstance(event, SpanEvent):
            return None
        if not event.span_id.strip() or not event.trace_id.strip():
            log.warning("span without span_id/trace_id cannot be mapped (operation=%s)", event.operation_name)
            return None

        metadata = self.extract_metadata(event.attributes)
        metadata["span_id"] = event.span_id
        metadata["trace_id"] = event.trace_id
        metadata["operation"] = event.operation_name

        return MappedEntity(
            node_id=self._node_id_for(event.span_id),
            node_type=self.infer_node_type(event.operation_name),
            session_id=self.session_for(event.trace_id),
            source_span_id=event.span_id,
            source_trace_id=event.trace_id,
            timestamp=event.start_time,
            metadata=metadata,
        )

    def map_lineage_node(self, node: LineageNode, trace_id: str) -> Optional[MappedEntity]:
        if not node.id.strip() or not trace_id.strip():
            return None

        metadata = self.extract_metadata(node.attributes)
        metadata["span_id"] = node.id
        metadata["trace_id"] = trace_id
        metadata["operation"] = node.operation
        metadata["duration_ms"] = str(node.duration_ms)
        metadata["status"] = node.status.value

        return MappedEntity(
            node_id=self._node_id_for(node.id),
            node_type=self.infer_node_type(node.operation),
            session_id=self.session_for(trace_id),
            source_span_id=node.id,
            source_trace_id=trace_id,
            timestamp=node.start_time,
            metadata=metadata,
        )

    def map_lineage_edge(self, edge: LineageEdge) -> Optional[MappedEdge]:
        from_node = self._span_to_node.get(edge.from_id)
        to_node = self._span_to_node.get(edge.to_id)
        if from_node is None or to_node is None:
            return None
        return MappedEdge(
            from_node=from_node,
            to_node=to_node,
            edge_type=edge.edge_type.to_edge_type(),
            source_lineage_type=edge.edge_type,
        )

    def map_lineage_chain(self, chain: LineageChain) -> MappingResult:
        result = MappingResult()

        for node in chain.nodes:
            entity = self.map_lineage_node(node, chain.trace_id)
            if entity is None:
                result.add_error(f"Failed to map lineage node: {node.id!r}")
            else:
                result.add_entity(entity)

        if self.config.create_lineage_edges:
            for edge in chain.edges:
                mapped = self.map_lineage_edge(edge)
                if mapped is None:
                    missing = [s for s in (edge.from_id, edge.to_id) if s not in self._span_to_node]
                    result.add_error(
                        f"Failed to map lineage edge: {edge.from_id} -> {edge.to_id} "
                        f"(unmapped endpoint(s): {', '.join(missing)})"
                    )
                else:
                    result.add_edge(mapped)

        if result.errors:
            log.warning("trace %s mapped with %d error(s)", chain.trace_id, len(result.errors))
        return result

    def get_node_id(self, span_id: str) -> Optional[str]:
        return self._span_to_node.get(span_id)

    def cache_size(self) -> int:
        return len(self._span_to_node)

    def clear_cache(self) -> None:
        self._span_to_node.clear()

    def event_to_telemetry(self, event: Any) -> Optional[SpanEvent]:
        """Best-effort reverse mapping of a graph event into a span.

        Only node creation, prompt submission and response generation have a
        span shape; every other event kind yields None.
        """
        if isinstance(event, NodeCreated):
            trace_id = (
                self.trace_for_session(event.session_id)
                if event.session_id
                else f"trace-{event.node_id}"
            )
            return SpanEvent(
                span_id=f"node-{event.node_id}",
                trace_id=trace_id,
                operation_name=f"{event.node_type.value}.created",
                start_time=event.timestamp,
                end_time=event.timestamp,
                attributes=dict(event.metadata),
                status=SpanStatus.ok,
            )

        if isinstance(event, PromptSubmitted):
            attributes = {"content_length": str(event.content_length), "model": event.model}
            return SpanEvent(
                span_id=f"prompt-{event.prompt_id}",
                trace_id=self.trace_for_session(event.session_id),
                operation_name="llm.prompt.submit",
                start_time=event.timestamp,
                end_time=event.timestamp,
                attributes=attributes,
                status=SpanStatus.ok,
            )

        if isinstance(event, ResponseGenerated):
            trace_id = (
                self.trace_for_session(event.session_id)
                if event.session_id
                else f"prompt-{event.prompt_id}"
            )
            start: datetime = event.timestamp - timedelta(milliseconds=event.latency_ms)
            return SpanEvent(
                span_id=f"response-{event.response_id}",
                trace_id=trace_id,
                parent_span_id=f"prompt-{event.prompt_id}",
                operation_name="llm.response.generate",
                start_time=start,
                end_time=event.timestamp,
                attributes={
                    "prompt_tokens": str(event.tokens_used.prompt_tokens),
                    "completion_tokens": str(event.tokens_used.completion_tokens),
                    "total_tokens": str(event.tokens_used.total_tokens),
                },
                status=SpanStatus.ok,
            )

        return None
