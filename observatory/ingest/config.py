"""
Configuration model for the ingestion pipeline.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, Field

from config import settings
from observatory.mapping.config import MappingConfig


class IngestionConfig(BaseModel):
    enable_lineage: bool = Field(default_factory=lambda: settings.lineage_enabled)
    enable_temporal: bool = Field(default_factory=lambda: settings.temporal_enabled)
    enable_mapping: bool = Field(default_factory=lambda: settings.mapping_enabled)
    mapping_config: MappingConfig = Field(default_factory=MappingConfig)
    buffer_size: int = Field(default_factory=lambda: settings.ingest_buffer_size, ge=1)
    flush_interval_ms: int = Field(default_factory=lambda: settings.ingest_flush_interval_ms, ge=1)
    temporal_retention_hours: int = Field(default_factory=lambda: settings.temporal_retention_hours, ge=0)
    correlation_threshold: float = Field(
        default_factory=lambda: settings.correlation_significance_threshold, ge=0.0, le=1.0
    )
    correlation_lag_ms: int = Field(default_factory=lambda: settings.correlation_lag_ms)

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.temporal_retention_hours)

    @property
    def flush_interval_seconds(self) -> float:
        return self.flush_interval_ms / 1000.0
