"""
Temporal graph of metric observations within a window, with edges between metric pairs whose correlation is significant.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Set


@dataclass(frozen=True)
class TemporalNode:
    metric: str
    timestamp: datetime
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TemporalEdge:
    from_metric: str
    to_metric: str
    correlation: float
    lag_ms: int = 0


@dataclass
class TemporalGraph:
    start_time: datetime
    end_time: datetime
    nodes: List[TemporalNode] = field(default_factory=list)
    edges: List[TemporalEdge] = field(default_factory=list)

    def add_node(self, node: TemporalNode) -> None:
        self.nodes.append(node)

    def add_edge(self, edge: TemporalEdge) -> None:
        self.edges.append(edge)

    def find_correlated_metrics(self, threshold: float) -> List[TemporalEdge]:
        return [e for e in self.edges if abs(e.correlation) > threshold]

    def metrics(self) -> Set[str]:
        return {n.metric for n in self.nodes}

    def neighbors(self, metric: str) -> List[str]:
        out: List[str] = []
        for e in self.edges:
            if e.from_metric == metric:
                out.append(e.to_metric)
            elif e.to_metric == metric:
                out.append(e.from_metric)
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "nodes": [
                {
                    "metric": n.metric,
                    "timestamp": n.timestamp.isoformat(),
                    "value": n.value,
                    "labels": dict(n.labels),
                }
                for n in self.nodes
            ],
            "edges": [
                {
                    "from_metric": e.from_metric,
                    "to_metric": e.to_metric,
                    "correlation": e.correlation,
                    "lag_ms": e.lag_ms,
                }
                for e in self.edges
            ],
        }
