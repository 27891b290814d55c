import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from observatory.telemetry.models import MetricEvent, SpanEvent


T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def ms(n):
    return timedelta(milliseconds=n)


def make_span(span_id, trace_id="t1", parent=None, op="llm.generate", start=0, end=100, **attrs):
    return SpanEvent(
        span_id=span_id,
        trace_id=trace_id,
        parent_span_id=parent,
        operation_name=op,
        start_time=T0 + ms(start),
        end_time=T0 + ms(end),
        attributes=attrs,
    )


def make_metric(name, value, offset_s=0, **labels):
    return MetricEvent(name=name, value=value, timestamp=T0 + timedelta(seconds=offset_s), labels=labels)


@pytest.fixture
def fixed_clock():
    """A clock pinned a few seconds after T0, so freshly generated metrics are in retention."""
    return lambda: T0 + timedelta(seconds=30)
