from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Trend(str, Enum):
    IMPROVING = "improving"
    DEGRADING = "degrading"
    STABLE = "stable"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Category(str, Enum):
    PERFORMANCE = "performance"
    RELIABILITY = "reliability"
    COST = "cost"
    SCALABILITY = "scalability"


class Effort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AgentPerformance(BaseModel):
    """
    Point-in-time performance snapshot for one agent.

    A new snapshot is created on every analysis pass; snapshots are never edited.
    """
    model_config = ConfigDict(frozen=True)

    agent_name: str
    total_executions: int = Field(..., ge=0)
    success_rate: float = Field(..., ge=0.0, le=1.0)
    avg_duration_ms: float = Field(..., ge=0.0)
    p95_duration_ms: float = Field(..., ge=0.0, description="Approximation: avg x 1.5")
    p99_duration_ms: float = Field(..., ge=0.0, description="Approximation: avg x 2")
    error_rate: float = Field(..., ge=0.0, le=1.0)
    throughput: float = Field(..., ge=0.0, description="Retained execution count")
    last_active: datetime
    health_score: float = Field(..., ge=0.0, le=100.0)


class PerformanceComparison(BaseModel):
    """Change in health between an agent's two most recent snapshots."""
    model_config = ConfigDict(frozen=True)

    agent_name: str
    current: AgentPerformance
    previous: AgentPerformance
    improvement_percent: float
    trend: Trend


class OptimizationSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_name: str
    priority: Priority
    category: Category
    issue: str
    suggestion: str
    expected_impact: str
    effort: Effort


class AnalyticsOverview(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_agents: int = 0
    active_agents: int = 0
    avg_health_score: float = 0.0
    total_executions: int = 0
    overall_success_rate: float = 0.0


class AnalyticsDashboard(BaseModel):
    model_config = ConfigDict(frozen=True)

    overview: AnalyticsOverview
    top_performers: List[AgentPerformance] = Field(default_factory=list)
    bottlenecks: List[AgentPerformance] = Field(default_factory=list)
    optimizations: List[OptimizationSuggestion] = Field(default_factory=list)
    trends: List[PerformanceComparison] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=datetime.now)


class AgentAnalyticsReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    current: AgentPerformance
    history: List[AgentPerformance] = Field(default_factory=list)
    optimizations: List[OptimizationSuggestion] = Field(default_factory=list)
    anomalies: List[Dict[str, Any]] = Field(default_factory=list)


class AgentComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    performances: List[AgentPerformance] = Field(default_factory=list)
    winner: str = ""
    insights: List[str] = Field(default_factory=list)
