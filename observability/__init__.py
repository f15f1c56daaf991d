# Observability Package
from observability.buffer import BoundedBuffer
from observability.trace import (
    AgentMetrics,
    AgentTraceContext,
    CoordinationEvent,
    TraceMetric,
    TraceStatus,
)
from observability.sink import MetricSink, LoggingMetricSink, JsonMetricSink
from observability.collector import TraceCollector

__all__ = [
    "BoundedBuffer",
    "AgentMetrics",
    "AgentTraceContext",
    "CoordinationEvent",
    "TraceMetric",
    "TraceStatus",
    "MetricSink",
    "LoggingMetricSink",
    "JsonMetricSink",
    "TraceCollector",
]
