"""
Telemetry event models shared by every producer and consumer of the ingestion engine. Each event is one variant of a closed union discriminated by the `telemetry_type` field, which is also the wire contract external producers must match.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from observatory.enums import LogLevel, MetricType, SpanStatus, TelemetryType
from observatory.exceptions import TelemetryParseError

_ONE_MS = timedelta(milliseconds=1)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class SpanEvent(_Event):
    telemetry_type: Literal["span"] = "span"
    span_id: str
    trace_id: str
    parent_span_id: Optional[str] = None
    operation_name: str
    start_time: datetime
    end_time: datetime
    attributes: Dict[str, str] = Field(default_factory=dict)
    status: SpanStatus = SpanStatus.unset

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_time(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def timestamp(self) -> datetime:
        return self.start_time

    @property
    def raw_duration_ms(self) -> int:
        return (self.end_time - self.start_time) // _ONE_MS

    @property
    def duration_ms(self) -> int:
        return max(0, self.raw_duration_ms)

    @property
    def has_negative_duration(self) -> bool:
        return self.end_time < self.start_time

    @property
    def is_root(self) -> bool:
        return self.parent_span_id is None


class MetricEvent(_Event):
    telemetry_type: Literal["metric"] = "metric"
    name: str
    value: float
    metric_type: MetricType = MetricType.gauge
    timestamp: datetime
    labels: Dict[str, str] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _normalize_time(cls, value: datetime) -> datetime:
        return as_utc(value)


class TraceContext(_Event):
    trace_id: str
    span_id: str
    trace_flags: int = Field(
        default=0,
        ge=0,
        le=255,
        validation_alias=AliasChoices("trace_flags", "flags"),
    )


class LogEvent(_Event):
    telemetry_type: Literal["log"] = "log"
    level: LogLevel = LogLevel.info
    message: str
    timestamp: datetime
    fields: Dict[str, str] = Field(default_factory=dict)
    trace_context: Optional[TraceContext] = None

    @field_validator("timestamp")
    @classmethod
    def _normalize_time(cls, value: datetime) -> datetime:
        return as_utc(value)


TelemetryEvent = Annotated[
    Union[SpanEvent, MetricEvent, LogEvent],
    Field(discriminator="telemetry_type"),
]

_event_adapter: TypeAdapter = TypeAdapter(TelemetryEvent)


def telemetry_type_of(event: Any) -> TelemetryType:
    if isinstance(event, SpanEvent):
        return TelemetryType.span
    if isinstance(event, MetricEvent):
        return TelemetryType.metric
    if isinstance(event, LogEvent):
        return TelemetryType.log
    raise TypeError(f"not a telemetry event: {type(event).__name__}")


def parse_event(payload: Union[Dict[str, Any], str, bytes]) -> Union[SpanEvent, MetricEvent, LogEvent]:
    """Validate one wire payload (a mapping or a JSON document) into an event.

    Raises TelemetryParseError when the payload is not a well-formed span,
    metric or log. This is the only place malformed telemetry is rejected;
    nothing downstream of it raises for bad input.
    """
    try:
        if isinstance(payload, (str, bytes)):
            return _event_adapter.validate_json(payload)
        return _event_adapter.validate_python(payload)
    except ValidationError as exc:
        raise TelemetryParseError(f"invalid telemetry payload: {exc.error_count()} error(s)") from exc


def parse_events(payloads: Iterable[Union[Dict[str, Any], str, bytes]]) -> List[Union[SpanEvent, MetricEvent, LogEvent]]:
    return [parse_event(p) for p in payloads]


def dump_event(event: Union[SpanEvent, MetricEvent, LogEvent]) -> Dict[str, Any]:
    return event.model_dump(mode="json")
