"""
Events emitted by the consuming memory-graph store, used for the reverse mapping of graph activity back into span-shaped telemetry.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from observatory.enums import EdgeType, NodeType
from observatory.exceptions import MappingError
from observatory.telemetry.models import as_utc


class _GraphEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _normalize_time(cls, value: datetime) -> datetime:
        return as_utc(value)


class TokenUsage(BaseModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class NodeCreated(_GraphEvent):
    event_type: Literal["node_created"] = "node_created"
    node_id: str
    node_type: NodeType
    session_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class EdgeCreated(_GraphEvent):
    event_type: Literal["edge_created"] = "edge_created"
    from_node: str
    to_node: str
    edge_type: EdgeType


class SessionCreated(_GraphEvent):
    event_type: Literal["session_created"] = "session_created"
    session_id: str
    metadata: Dict[str, str] = Field(default_factory=dict)


class PromptSubmitted(_GraphEvent):
    event_type: Literal["prompt_submitted"] = "prompt_submitted"
    prompt_id: str
    session_id: str
    content_length: int = Field(default=0, ge=0)
    model: str = ""


class ResponseGenerated(_GraphEvent):
    event_type: Literal["response_generated"] = "response_generated"
    response_id: str
    prompt_id: str
    session_id: Optional[str] = None
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)
    latency_ms: int = Field(default=0, ge=0)


GraphEvent = Annotated[
    Union[NodeCreated, EdgeCreated, SessionCreated, PromptSubmitted, ResponseGenerated],
    Field(discriminator="event_type"),
]

_graph_event_adapter: TypeAdapter = TypeAdapter(GraphEvent)


def parse_graph_event(payload: Dict[str, Any]) -> Any:
    try:
        return _graph_event_adapter.validate_python(payload)
    except ValidationError as exc:
        raise MappingError(f"invalid graph event: {exc.error_count()} error(s)") from exc
