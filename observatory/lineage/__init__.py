"""
Lineage package exports.

Per-trace causal graphs assembled from span parent/child relationships.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from observatory.lineage.chain import LineageChain, LineageEdge, LineageNode
from observatory.lineage.builder import LineageBuilder, node_from_span

__all__ = ["LineageChain", "LineageEdge", "LineageNode", "LineageBuilder", "node_from_span"]
