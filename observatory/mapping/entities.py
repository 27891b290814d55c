"""
Graph-side results of mapping telemetry: entities carrying stable node ids, edges between them, and a result container that collects errors instead of raising them.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from observatory.enums import EdgeType, LineageEdgeType, NodeType


@dataclass(frozen=True)
class MappedEntity:
    node_id: str
    node_type: NodeType
    source_span_id: str
    source_trace_id: str
    timestamp: datetime
    session_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "node_type": self.node_type.value,
            "session_id": self.session_id,
            "source_span_id": self.source_span_id,
            "source_trace_id": self.source_trace_id,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class MappedEdge:
    from_node: str
    to_node: str
    edge_type: EdgeType
    source_lineage_type: LineageEdgeType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_node,
            "to": self.to_node,
            "edge_type": self.edge_type.value,
            "source_lineage_type": self.source_lineage_type.value,
        }


@dataclass
class MappingResult:
    entities: List[MappedEntity] = field(default_factory=list)
    edges: List[MappedEdge] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def add_entity(self, entity: MappedEntity) -> None:
        self.entities.append(entity)

    def add_edge(self, edge: MappedEdge) -> None:
        self.edges.append(edge)

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def is_success(self) -> bool:
        return not self.errors

    def merge(self, other: MappingResult) -> None:
        self.entities.extend(other.entities)
        self.edges.extend(other.edges)
        self.errors.extend(other.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "edges": [e.to_dict() for e in self.edges],
            "errors": list(self.errors),
        }
