"""
Agent Analytics Engine

Turns collector metrics into comparable health signals, trends and
optimization suggestions for dashboards.

DESIGN RULES:
- Read-only over the collector and detector
- Never throws for empty or zero-execution input
- Snapshot history is bounded per agent
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from analytics.health import calculate_performance, round_half_up
from analytics.optimizer import generate_optimizations
from analytics.rules import OptimizationThresholds
from analytics.types import (
    AgentAnalyticsReport,
    AgentComparison,
    AgentPerformance,
    AnalyticsDashboard,
    AnalyticsOverview,
    OptimizationSuggestion,
    PerformanceComparison,
    Trend,
)
from anomaly.detector import AnomalyDetector
from observability.buffer import BoundedBuffer
from observability.collector import TraceCollector
from observability.trace import AgentMetrics


logger = logging.getLogger(__name__)


class AgentAnalytics:
    """
    Per-agent performance analytics.

    Responsibilities:
    - Compute health snapshots from trace metrics
    - Keep a rolling snapshot history for trends
    - Rank agents and derive optimization suggestions
    """

    DEFAULT_HISTORY_LIMIT = 100
    RANKING_SIZE = 5
    STABLE_BAND_PERCENT = 5.0
    SLOW_AGENT_FACTOR = 1.5
    REPORT_ANOMALY_LIMIT = 10

    def __init__(
        self,
        collector: TraceCollector,
        detector: Optional[AnomalyDetector] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        thresholds: Optional[OptimizationThresholds] = None,
    ):
        """
        Initialize analytics.

        Args:
            collector: Source of per-agent metrics. Required.
            detector: Optional anomaly detector for per-agent reports.
            history_limit: Snapshots kept per agent.
            thresholds: Optimization rule thresholds.
        """
        if collector is None:
            raise ValueError("AgentAnalytics requires a TraceCollector")
        if history_limit <= 0:
            raise ValueError("history_limit must be positive")

        self._collector = collector
        self._detector = detector
        self._history_limit = history_limit
        self._thresholds = thresholds
        self._history: Dict[str, BoundedBuffer[AgentPerformance]] = {}

    def calculate_performance(self, agent_name: str, metrics: AgentMetrics) -> AgentPerformance:
        return calculate_performance(agent_name, metrics)

    def generate_optimizations(
        self, performances: Iterable[AgentPerformance]
    ) -> List[OptimizationSuggestion]:
        return generate_optimizations(performances, self._thresholds)

    # ============================================================
    # DASHBOARD
    # ============================================================

    def analyze_all_agents(self) -> AnalyticsDashboard:
        """
        Snapshot every agent and build the dashboard payload.

        Each call appends one snapshot per agent to its history.
        """
        performances = [
            self.calculate_performance(entry["agent_name"], entry["metrics"])
            for entry in self._collector.get_all_agent_metrics()
        ]

        for perf in performances:
            self.record_snapshot(perf)

        ranked = sorted(performances, key=lambda p: p.health_score, reverse=True)
        top_performers = ranked[: self.RANKING_SIZE]
        bottlenecks = list(reversed(ranked[-self.RANKING_SIZE:]))

        trends = [
            trend
            for trend in (self.calculate_trend(p.agent_name) for p in performances)
            if trend is not None
        ]

        dashboard = AnalyticsDashboard(
            overview=self._overview(performances),
            top_performers=top_performers,
            bottlenecks=bottlenecks,
            optimizations=self.generate_optimizations(performances),
            trends=trends,
        )
        logger.debug(f"[ANALYTICS] Analyzed {len(performances)} agents")
        return dashboard

    def _overview(self, performances: List[AgentPerformance]) -> AnalyticsOverview:
        if not performances:
            return AnalyticsOverview()

        count = len(performances)
        return AnalyticsOverview(
            total_agents=count,
            active_agents=sum(1 for p in performances if p.total_executions > 0),
            avg_health_score=sum(p.health_score for p in performances) / count,
            total_executions=sum(p.total_executions for p in performances),
            overall_success_rate=sum(p.success_rate for p in performances) / count,
        )

    # ============================================================
    # HISTORY / TRENDS
    # ============================================================

    def record_snapshot(self, performance: AgentPerformance) -> None:
        """Append a snapshot to the agent's rolling history (oldest evicted)."""
        history = self._history.get(performance.agent_name)
        if history is None:
            history = BoundedBuffer(self._history_limit)
            self._history[performance.agent_name] = history
        history.append(performance)

    def get_history(self, agent_name: str) -> List[AgentPerformance]:
        history = self._history.get(agent_name)
        return history.snapshot() if history is not None else []

    def calculate_trend(self, agent_name: str) -> Optional[PerformanceComparison]:
        """Compare the two most recent snapshots. None with fewer than two."""
        history = self.get_history(agent_name)
        if len(history) < 2:
            return None

        previous, current = history[-2], history[-1]
        improvement = _percent_change(previous.health_score, current.health_score)

        if abs(improvement) < self.STABLE_BAND_PERCENT:
            trend = Trend.STABLE
        elif improvement > 0:
            trend = Trend.IMPROVING
        else:
            trend = Trend.DEGRADING

        return PerformanceComparison(
            agent_name=agent_name,
            current=current,
            previous=previous,
            improvement_percent=improvement,
            trend=trend,
        )

    # ============================================================
    # PER-AGENT VIEWS
    # ============================================================

    def get_agent_analytics(self, agent_name: str) -> Optional[AgentAnalyticsReport]:
        """
        Current snapshot, history, suggestions and recent anomalies for one agent.

        Returns:
            None when the agent has no executions yet.
        """
        metrics = self._collector.get_agent_metrics(agent_name)
        if metrics.total_executions == 0:
            return None

        current = self.calculate_performance(agent_name, metrics)
        anomalies = []
        if self._detector is not None:
            anomalies = [
                a.to_dict()
                for a in self._detector.get_anomalies(
                    agent_name=agent_name, limit=self.REPORT_ANOMALY_LIMIT
                )
            ]

        return AgentAnalyticsReport(
            current=current,
            history=self.get_history(agent_name),
            optimizations=self.generate_optimizations([current]),
            anomalies=anomalies,
        )

    def compare_agents(self, agent_names: Iterable[str]) -> AgentComparison:
        """Rank agents by health score and summarise the comparison."""
        performances = []
        for name in agent_names:
            metrics = self._collector.get_agent_metrics(name)
            if metrics.total_executions > 0:
                performances.append(self.calculate_performance(name, metrics))

        if not performances:
            return AgentComparison(insights=["No data available for comparison"])

        winner = max(performances, key=lambda p: p.health_score)
        avg_success = sum(p.success_rate for p in performances) / len(performances)
        avg_duration = sum(p.avg_duration_ms for p in performances) / len(performances)

        insights = [
            f"Average success rate: {round_half_up(avg_success * 100)}%",
            f"Average duration: {round_half_up(avg_duration)}ms",
            f"Best performer: {winner.agent_name} (health: {round_half_up(winner.health_score)})",
        ]

        slowest = max(performances, key=lambda p: p.avg_duration_ms)
        if slowest.avg_duration_ms > avg_duration * self.SLOW_AGENT_FACTOR:
            insights.append(f"{slowest.agent_name} is significantly slower than average")

        return AgentComparison(
            performances=performances,
            winner=winner.agent_name,
            insights=insights,
        )

    def export_data(self) -> Dict[str, object]:
        """Snapshot history for every agent, serialized."""
        return {
            "timestamp": datetime.now().isoformat(),
            "performances": {
                name: [perf.model_dump(mode="json") for perf in history]
                for name, history in self._history.items()
            },
        }


def _percent_change(previous: float, current: float) -> float:
    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return (current - previous) / previous * 100
