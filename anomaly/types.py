"""
Anomaly Types

Data structures for usage patterns and detected anomalies.

DESIGN RULES:
- Immutable data
- No business logic
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Severity(str, Enum):
    """Anomaly severity, banded from the outlier score."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DetectorState(str, Enum):
    UNTRAINED = "untrained"
    TRAINED = "trained"
    RETRAINING = "retraining"


@dataclass(frozen=True)
class UsagePattern:
    """
    One observed unit of agent activity.

    Input to the outlier model.
    """
    timestamp: datetime
    agent_name: str
    task_type: str
    duration_ms: float
    request_count: int = 1
    error_count: int = 0
    cpu_percent: Optional[float] = None
    memory_percent: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "agent_name": self.agent_name,
            "task_type": self.task_type,
            "duration_ms": self.duration_ms,
            "request_count": self.request_count,
            "error_count": self.error_count,
            "cpu_percent": self.cpu_percent,
            "memory_percent": self.memory_percent,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class Anomaly:
    """A usage pattern the model scored below threshold."""
    timestamp: datetime
    pattern: UsagePattern
    score: float  # more negative = more anomalous
    severity: Severity
    reason: str
    recommendation: str

    @property
    def agent_name(self) -> str:
        return self.pattern.agent_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "pattern": self.pattern.to_dict(),
            "score": self.score,
            "severity": self.severity.value,
            "reason": self.reason,
            "recommendation": self.recommendation,
        }
