"""
Incremental construction of per-trace lineage chains from span events, tolerant of out-of-order arrival where a child span is seen before its parent.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from observatory.enums import EdgeType, LineageEdgeType, NodeType
from observatory.lineage.chain import LineageChain, LineageEdge, LineageNode
from observatory.telemetry.models import SpanEvent, utcnow

log = logging.getLogger(__name__)

# ordered: first rule whose substring occurs in the operation name wins
_NODE_TYPE_RULES: Tuple[Tuple[Tuple[str, ...], NodeType], ...] = (
    (("prompt", "llm.generate"), NodeType.prompt),
    (("response", "llm.completion"), NodeType.response),
    (("tool", "function"), NodeType.tool),
)


def node_from_span(span: SpanEvent) -> LineageNode:
    if span.has_negative_duration:
        log.warning(
            "span %s in trace %s ends before it starts (%d ms); clamping duration to 0",
            span.span_id, span.trace_id, span.raw_duration_ms,
        )
    return LineageNode(
        id=span.span_id,
        operation=span.operation_name,
        start_time=span.start_time,
        end_time=span.end_time,
        duration_ms=span.duration_ms,
        status=span.status,
        attributes=dict(span.attributes),
    )


class LineageBuilder:
    def __init__(self) -> None:
        self._chains: Dict[str, LineageChain] = {}
        self._chain_locks: Dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()

    async def _chain_for(self, trace_id: str) -> Tuple[LineageChain, asyncio.Lock]:
        async with self._lock:
            chain = self._chains.get(trace_id)
            if chain is None:
                chain = LineageChain(trace_id=trace_id, metadata={"created_at": utcnow().isoformat()})
                self._chains[trace_id] = chain
                self._chain_locks[trace_id] = asyncio.Lock()
                log.debug("lineage chain created for trace %s", trace_id)
            return chain, self._chain_locks[trace_id]

    async def process_span(self, event: Any, graph_node_id: Optional[str] = None) -> bool:
        """Fold one span into its trace's chain.

        Returns False for non-span events, which are ignored. Use `get_chain`
        for a snapshot of the resulting chain.
        """
        if not isinstance(event, SpanEvent):
            return False

        node = node_from_span(event)
        node.mapped_graph_node_id = graph_node_id
        chain, chain_lock = await self._chain_for(event.trace_id)
        async with chain_lock:
            chain.add_node(node)
            if event.parent_span_id is not None:
                chain.add_edge(LineageEdge(
                    from_id=event.parent_span_id,
                    to_id=event.span_id,
                    edge_type=LineageEdgeType.parent_child,
                ))
            else:
                chain.add_root(event.span_id)
        return True

    async def add_edge(self, trace_id: str, edge: LineageEdge) -> bool:
        """Record a non-hierarchical relationship (follows, caused-by, data-flow)."""
        chain, chain_lock = await self._chain_for(trace_id)
        async with chain_lock:
            return chain.add_edge(edge)

    async def attach_graph_ids(self, trace_id: str, node_ids: Mapping[str, str]) -> int:
        async with self._lock:
            chain = self._chains.get(trace_id)
            chain_lock = self._chain_locks.get(trace_id)
        if chain is None or chain_lock is None:
            return 0
        updated = 0
        async with chain_lock:
            for node in chain.nodes:
                graph_id = node_ids.get(node.id)
                if graph_id is not None:
                    node.mapped_graph_node_id = graph_id
                    updated += 1
        return updated

    async def get_chain(self, trace_id: str) -> Optional[LineageChain]:
        async with self._lock:
            chain = self._chains.get(trace_id)
            chain_lock = self._chain_locks.get(trace_id)
        if chain is None or chain_lock is None:
            return None
        async with chain_lock:
            return chain.copy()

    async def get_all_chains(self) -> List[LineageChain]:
        async with self._lock:
            entries = [(c, self._chain_locks[t]) for t, c in self._chains.items()]
        chains: List[LineageChain] = []
        for chain, chain_lock in entries:
            async with chain_lock:
                chains.append(chain.copy())
        return chains

    async def remove_chain(self, trace_id: str) -> Optional[LineageChain]:
        async with self._lock:
            self._chain_locks.pop(trace_id, None)
            return self._chains.pop(trace_id, None)

    async def clear(self) -> None:
        async with self._lock:
            self._chains.clear()
            self._chain_locks.clear()

    async def chain_count(self) -> int:
        async with self._lock:
            return len(self._chains)

    @staticmethod
    def infer_node_type(operation: str) -> NodeType:
        for needles, node_type in _NODE_TYPE_RULES:
            if any(n in operation for n in needles):
                return node_type
        return NodeType.context

    @staticmethod
    def map_edge_type(lineage_type: LineageEdgeType) -> EdgeType:
        return lineage_type.to_edge_type()
