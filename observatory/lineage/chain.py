"""
Lineage chain structures for a single trace: nodes are spans, edges are causal or hierarchical relationships between span ids, resolved by id lookup at query time so edges may reference spans that have not arrived yet.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from observatory.enums import LineageEdgeType, SpanStatus

_ONE_MS = timedelta(milliseconds=1)


@dataclass
class LineageNode:
    id: str
    operation: str
    start_time: datetime
    end_time: datetime
    duration_ms: int
    status: SpanStatus
    attributes: Dict[str, str] = field(default_factory=dict)
    mapped_graph_node_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_ms": self.duration_ms,
            "status": self.status.value,
            "attributes": dict(self.attributes),
            "mapped_graph_node_id": self.mapped_graph_node_id,
        }


@dataclass(frozen=True)
class LineageEdge:
    from_id: str
    to_id: str
    edge_type: LineageEdgeType = LineageEdgeType.parent_child

    @property
    def key(self) -> Tuple[str, str, LineageEdgeType]:
        return (self.from_id, self.to_id, self.edge_type)

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.from_id, "to": self.to_id, "edge_type": self.edge_type.value}


@dataclass
class LineageChain:
    """Per-trace lineage graph.

    Node, edge and root lists are backed by id indexes so upserts and
    deduplication stay constant-time as a trace grows; mutate them through
    the add_* methods.
    """

    trace_id: str
    nodes: List[LineageNode] = field(default_factory=list)
    edges: List[LineageEdge] = field(default_factory=list)
    roots: List[str] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)
    _node_index: Dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)
    _edge_keys: Set[Tuple[str, str, LineageEdgeType]] = field(default_factory=set, init=False, repr=False, compare=False)
    _root_ids: Set[str] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._node_index = {n.id: i for i, n in enumerate(self.nodes)}
        self._edge_keys = {e.key for e in self.edges}
        self._root_ids = set(self.roots)

    def _position(self, node_id: str) -> Optional[int]:
        idx = self._node_index.get(node_id)
        if idx is None or idx >= len(self.nodes) or self.nodes[idx].id != node_id:
            return None
        return idx

    def add_node(self, node: LineageNode) -> None:
        """Insert a node, replacing any earlier node with the same span id."""
        idx = self._position(node.id)
        if idx is None:
            self._node_index[node.id] = len(self.nodes)
            self.nodes.append(node)
            return
        if node.mapped_graph_node_id is None:
            node = replace(node, mapped_graph_node_id=self.nodes[idx].mapped_graph_node_id)
        self.nodes[idx] = node

    def add_edge(self, edge: LineageEdge) -> bool:
        if edge.key in self._edge_keys:
            return False
        self._edge_keys.add(edge.key)
        self.edges.append(edge)
        return True

    def add_root(self, span_id: str) -> bool:
        if span_id in self._root_ids:
            return False
        self._root_ids.add(span_id)
        self.roots.append(span_id)
        return True

    def find_node(self, node_id: str) -> Optional[LineageNode]:
        idx = self._position(node_id)
        return self.nodes[idx] if idx is not None else None

    def get_children(
        self,
        node_id: str,
        edge_type: LineageEdgeType = LineageEdgeType.parent_child,
    ) -> List[LineageNode]:
        child_ids = {e.to_id for e in self.edges if e.from_id == node_id and e.edge_type == edge_type}
        return [n for n in self.nodes if n.id in child_ids]

    def get_parents(
        self,
        node_id: str,
        edge_type: LineageEdgeType = LineageEdgeType.parent_child,
    ) -> List[LineageNode]:
        parent_ids = {e.from_id for e in self.edges if e.to_id == node_id and e.edge_type == edge_type}
        return [n for n in self.nodes if n.id in parent_ids]

    def dangling_edges(self) -> List[LineageEdge]:
        """Edges whose endpoints have not been observed as nodes (yet)."""
        known = {n.id for n in self.nodes}
        return [e for e in self.edges if e.from_id not in known or e.to_id not in known]

    def walk(self, start: Optional[str] = None) -> Iterator[LineageNode]:
        """Depth-first traversal from `start` (or every root) along outgoing edges.

        Each node is yielded at most once, so malformed traces in which a span
        is its own ancestor terminate instead of looping.
        """
        outgoing: Dict[str, List[str]] = {}
        for e in self.edges:
            outgoing.setdefault(e.from_id, []).append(e.to_id)

        visited: Set[str] = set()
        stack: List[str] = list(reversed([start] if start is not None else self.roots))
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            node = self.find_node(current)
            if node is not None:
                yield node
            for nxt in reversed(outgoing.get(current, [])):
                if nxt not in visited:
                    stack.append(nxt)

    def total_duration_ms(self) -> int:
        if not self.nodes:
            return 0
        min_start = min(n.start_time for n in self.nodes)
        max_end = max(n.end_time for n in self.nodes)
        return max(0, (max_end - min_start) // _ONE_MS)

    def count_by_status(self) -> Dict[SpanStatus, int]:
        return dict(Counter(n.status for n in self.nodes))

    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    def edge_keys(self) -> Set[Tuple[str, str, LineageEdgeType]]:
        return {e.key for e in self.edges}

    def copy(self) -> LineageChain:
        return LineageChain(
            trace_id=self.trace_id,
            nodes=[replace(n, attributes=dict(n.attributes)) for n in self.nodes],
            edges=list(self.edges),
            roots=list(self.roots),
            metadata=dict(self.metadata),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "roots": list(self.roots),
            "metadata": dict(self.metadata),
        }
