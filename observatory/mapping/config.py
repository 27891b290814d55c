"""
Configuration model for mapping spans onto graph entities.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from config import settings
from observatory.enums import NodeType


def _default_patterns() -> Dict[str, NodeType]:
    return {pattern: NodeType(node_type) for pattern, node_type in settings.mapping_operation_patterns.items()}


class MappingConfig(BaseModel):
    # insertion order is the match order
    operation_patterns: Dict[str, NodeType] = Field(default_factory=_default_patterns)
    metadata_keys: List[str] = Field(default_factory=lambda: list(settings.mapping_metadata_keys))
    create_lineage_edges: bool = Field(default_factory=lambda: settings.mapping_create_lineage_edges)
    trace_to_session: bool = Field(default_factory=lambda: settings.mapping_trace_to_session)
    session_prefix: str = Field(default_factory=lambda: settings.session_prefix)
