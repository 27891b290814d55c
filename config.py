"""
Constants and configuration for the Observatory ingestion engine.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Dict, List

from pydantic_settings import BaseSettings


OBSERVATORY_RETENTION_HOURS: int = int(os.getenv("OBSERVATORY_RETENTION_HOURS", "24"))
OBSERVATORY_BUFFER_SIZE: int = int(os.getenv("OBSERVATORY_BUFFER_SIZE", "100"))
OBSERVATORY_FLUSH_INTERVAL_MS: int = int(os.getenv("OBSERVATORY_FLUSH_INTERVAL_MS", "1000"))

SESSION_PREFIX = "session:"

# attribute keys copied onto mapped entities; everything else is dropped
DEFAULT_METADATA_KEYS: List[str] = ["model", "temperature", "max_tokens", "user_id"]

# ordered operation-substring rules used by the entity mapper; first match wins
DEFAULT_OPERATION_PATTERNS: Dict[str, str] = {
    "llm.generate": "prompt",
    "llm.completion": "response",
    "llm.prompt": "prompt",
    "llm.response": "response",
    "tool.": "tool",
    "function.": "tool",
    "agent.": "agent",
}


class Settings(BaseSettings):
    # routing
    lineage_enabled: bool = True
    temporal_enabled: bool = True
    mapping_enabled: bool = True

    # buffering
    ingest_buffer_size: int = OBSERVATORY_BUFFER_SIZE
    ingest_flush_interval_ms: int = OBSERVATORY_FLUSH_INTERVAL_MS

    # temporal retention and correlation
    temporal_retention_hours: int = OBSERVATORY_RETENTION_HOURS
    correlation_significance_threshold: float = 0.5
    correlation_min_samples: int = 2
    # no lag search is performed; this value is stamped on every edge
    correlation_lag_ms: int = 0
    correlation_round_precision: int = 6
    # 0 keeps the full, append-only history; a positive cap drops the oldest entries
    correlation_history_max: int = 0

    # entity mapping
    mapping_metadata_keys: List[str] = list(DEFAULT_METADATA_KEYS)
    mapping_operation_patterns: Dict[str, str] = dict(DEFAULT_OPERATION_PATTERNS)
    mapping_trace_to_session: bool = True
    mapping_create_lineage_edges: bool = True
    session_prefix: str = SESSION_PREFIX

    model_config = {
        "env_prefix": "OBSERVATORY_",
        "extra": "ignore",
    }


settings = Settings()
