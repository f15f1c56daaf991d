"""
Metric -> Usage Pattern Forwarding

Bridges the trace collector and the anomaly detector. Registered as a
collector listener, so it runs off the instrumented call path.
"""

import logging
from typing import Optional, Tuple

import psutil

from anomaly.detector import AnomalyDetector
from anomaly.types import Anomaly, UsagePattern
from observability.trace import TraceMetric


logger = logging.getLogger(__name__)


def sample_resource_usage() -> Tuple[Optional[float], Optional[float]]:
    """Current process-host CPU and memory percentages. Non-blocking."""
    try:
        return psutil.cpu_percent(interval=None), psutil.virtual_memory().percent
    except Exception as e:
        logger.warning(f"[ANOMALY] Resource sampling failed: {e}")
        return None, None


def pattern_from_metric(metric: TraceMetric, sample_resources: bool = False) -> UsagePattern:
    """Derive a single-request usage pattern from a recorded metric."""
    cpu_percent, memory_percent = (
        sample_resource_usage() if sample_resources else (None, None)
    )
    return UsagePattern(
        timestamp=metric.timestamp,
        agent_name=metric.agent_name,
        task_type=metric.operation,
        duration_ms=metric.duration_ms,
        request_count=1,
        error_count=0 if metric.succeeded else 1,
        cpu_percent=cpu_percent,
        memory_percent=memory_percent,
        metadata={
            **metric.metadata,
            "status": metric.status.value,
            "task_id": metric.task_id,
            "agent_id": metric.agent_id,
        },
    )


class AnomalyForwarder:
    """
    Collector listener feeding every metric to the detector.

    Each metric is buffered (possibly triggering a retrain) and then scored.
    """

    def __init__(self, detector: AnomalyDetector, sample_resources: bool = False):
        self._detector = detector
        self._sample_resources = sample_resources

    async def __call__(self, metric: TraceMetric) -> Optional[Anomaly]:
        pattern = pattern_from_metric(metric, self._sample_resources)
        await self._detector.add_pattern(pattern)
        return self._detector.detect_anomaly(pattern)
