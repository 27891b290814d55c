"""
Mapping package exports.

Translation between telemetry spans and the typed entity/edge vocabulary of the
consuming graph store, in both directions.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from observatory.mapping.config import MappingConfig
from observatory.mapping.entities import MappedEdge, MappedEntity, MappingResult
from observatory.mapping.events import (
    EdgeCreated,
    GraphEvent,
    NodeCreated,
    PromptSubmitted,
    ResponseGenerated,
    SessionCreated,
    TokenUsage,
    parse_graph_event,
)
from observatory.mapping.mapper import EntityMapper, new_node_id

__all__ = [
    "MappingConfig",
    "MappedEdge",
    "MappedEntity",
    "MappingResult",
    "EdgeCreated",
    "GraphEvent",
    "NodeCreated",
    "PromptSubmitted",
    "ResponseGenerated",
    "SessionCreated",
    "TokenUsage",
    "parse_graph_event",
    "EntityMapper",
    "new_node_id",
]
