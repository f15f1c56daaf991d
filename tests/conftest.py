import sys
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from anomaly.config import AnomalyDetectionConfig
from anomaly.detector import AnomalyDetector
from anomaly.model import OutlierModel
from anomaly.types import UsagePattern
from observability.collector import TraceCollector
from observability.trace import TraceMetric, TraceStatus


def duration_score(vector: Sequence[float]) -> float:
    """Anything slower than 10s is an outlier."""
    return -0.9 if vector[0] > 10_000 else -0.1


class FakeOutlierModel(OutlierModel):
    """
    Deterministic stand-in for the isolation forest.

    fit() returns a fresh token per call so tests can tell models apart.
    """

    def __init__(
        self,
        score_fn: Callable[[Sequence[float]], float] = duration_score,
        gate: Optional[threading.Event] = None,
    ):
        self.score_fn = score_fn
        self.gate = gate
        self.fail = False
        self.fit_calls = 0
        self.fitted_sizes: List[int] = []

    def fit(self, vectors):
        self.fit_calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.fail:
            raise RuntimeError("fit exploded")
        self.fitted_sizes.append(len(vectors))
        return {"generation": self.fit_calls, "size": len(vectors)}

    def score(self, fitted, vector):
        return self.score_fn(vector)


def make_pattern(
    agent_name: str = "billing",
    duration_ms: float = 100.0,
    error_count: int = 0,
    request_count: int = 1,
    cpu_percent: Optional[float] = None,
    memory_percent: Optional[float] = None,
    timestamp: Optional[datetime] = None,
    task_type: str = "invoice",
) -> UsagePattern:
    return UsagePattern(
        timestamp=timestamp or datetime(2024, 1, 8, 10, 0),
        agent_name=agent_name,
        task_type=task_type,
        duration_ms=duration_ms,
        request_count=request_count,
        error_count=error_count,
        cpu_percent=cpu_percent,
        memory_percent=memory_percent,
    )


def make_metric(
    agent_name: str = "billing",
    operation: str = "run",
    duration_ms: float = 100.0,
    status: TraceStatus = TraceStatus.SUCCESS,
    error: Optional[str] = None,
) -> TraceMetric:
    return TraceMetric(
        agent_name=agent_name,
        operation=operation,
        duration_ms=duration_ms,
        status=status,
        error=error,
    )


def normal_patterns(count: int, agent_name: str = "billing") -> List[UsagePattern]:
    start = datetime(2024, 1, 8, 9, 0)
    return [
        make_pattern(
            agent_name=agent_name,
            duration_ms=100.0 + (i % 10),
            timestamp=start + timedelta(minutes=i),
        )
        for i in range(count)
    ]


@pytest.fixture
def fake_model():
    return FakeOutlierModel()


@pytest.fixture
def detector_config():
    return AnomalyDetectionConfig(min_training_patterns=100, max_patterns=1000)


@pytest.fixture
def alerts():
    return []


@pytest.fixture
def detector(fake_model, detector_config, alerts):
    from anomaly.alerts import CallbackAlertSink

    return AnomalyDetector(
        config=detector_config,
        model=fake_model,
        alert_sink=CallbackAlertSink(alerts.append),
    )


@pytest.fixture
def collector():
    return TraceCollector(service_name="agent-monitor-test", environment="test")
