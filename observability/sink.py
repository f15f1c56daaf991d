"""
Metric Sink Interface

Abstract sink for recorded trace metrics.
Storage-agnostic - implementations can write to logs, files, exporters, etc.

DESIGN RULES:
- Side-effect only
- Never throw exceptions
- Storage-agnostic interface
"""

import json
import logging
from abc import ABC, abstractmethod

from observability.trace import TraceMetric


logger = logging.getLogger(__name__)


class MetricSink(ABC):
    """
    Abstract base for metric output destinations.

    Implementations:
    - LoggingMetricSink (default)
    - JsonMetricSink
    """

    @abstractmethod
    def emit(self, metric: TraceMetric) -> None:
        """
        Emit a metric to the sink.

        Must not throw - failures should be logged and ignored.
        """
        pass


class LoggingMetricSink(MetricSink):
    """
    Default sink: one human-readable log line per metric.

    Successful executions are logged at DEBUG, failures at WARNING.
    """

    def emit(self, metric: TraceMetric) -> None:
        try:
            if metric.succeeded:
                logger.debug(
                    f"[TRACING] {metric.series_key} {metric.status.value} "
                    f"in {metric.duration_ms:.1f}ms"
                )
            else:
                logger.warning(
                    f"[TRACING] {metric.series_key} {metric.status.value} "
                    f"in {metric.duration_ms:.1f}ms: {metric.error}"
                )
        except Exception as e:
            logger.error(f"[TRACING] Failed to emit metric: {e}")


class JsonMetricSink(MetricSink):
    """
    Sink that logs metrics as JSON lines.

    Useful for log aggregation systems.
    """

    def __init__(self, level: int = logging.INFO):
        self._level = level

    def emit(self, metric: TraceMetric) -> None:
        try:
            logger.log(self._level, json.dumps(metric.to_dict(), default=str))
        except Exception as e:
            logger.error(f"[TRACING] Failed to emit JSON metric: {e}")
