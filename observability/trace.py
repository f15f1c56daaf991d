"""
Trace Records

Value objects produced by the trace collector.

DESIGN RULES:
- Pure data containers
- No dependencies on anomaly detection or analytics
- Immutable after creation
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceStatus(str, Enum):
    """Outcome of a traced operation."""
    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class AgentTraceContext:
    """
    Identity of the agent invocation being traced.

    Supplied by instrumentation call sites.
    """
    agent_id: str
    agent_name: str
    task_id: Optional[str] = None
    parent_span_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TraceMetric:
    """
    One completed operation execution.

    Captures:
    - Identity (agent_name, operation, task_id, agent_id, parent_span_id)
    - Timing (duration_ms, timestamp of completion)
    - Outcome (status, error)
    - Caller metadata from the trace context
    """

    agent_name: str
    operation: str
    duration_ms: float
    status: TraceStatus
    timestamp: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None
    task_id: Optional[str] = None
    agent_id: Optional[str] = None
    parent_span_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def series_key(self) -> str:
        return f"{self.agent_name}:{self.operation}"

    @property
    def succeeded(self) -> bool:
        return self.status == TraceStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging/export."""
        return {
            "agent_name": self.agent_name,
            "operation": self.operation,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "error": self.error,
            "task_id": self.task_id,
            "agent_id": self.agent_id,
            "parent_span_id": self.parent_span_id,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class AgentMetrics:
    """Aggregate view over every series recorded for one agent."""

    total_executions: int
    avg_duration_ms: float
    success_rate: float
    error_rate: float
    recent_errors: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "AgentMetrics":
        return cls(
            total_executions=0,
            avg_duration_ms=0.0,
            success_rate=0.0,
            error_rate=0.0,
            recent_errors=[],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_executions": self.total_executions,
            "avg_duration_ms": self.avg_duration_ms,
            "success_rate": self.success_rate,
            "error_rate": self.error_rate,
            "recent_errors": list(self.recent_errors),
        }


@dataclass(frozen=True)
class CoordinationEvent:
    """One agent handing work to another."""

    source_agent: str
    target_agent: str
    action: str
    payload_size: int
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_agent": self.source_agent,
            "target_agent": self.target_agent,
            "action": self.action,
            "payload_size": self.payload_size,
            "timestamp": self.timestamp.isoformat(),
        }
