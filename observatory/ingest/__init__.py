"""
Ingestion package exports.

The pipeline is the single entry point producers hand telemetry to.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from observatory.ingest.config import IngestionConfig
from observatory.ingest.pipeline import IngestionPipeline, IngestionStats, ProcessingResult

__all__ = ["IngestionConfig", "IngestionPipeline", "IngestionStats", "ProcessingResult"]
