# Analytics Package
from analytics.types import (
    AgentAnalyticsReport,
    AgentComparison,
    AgentPerformance,
    AnalyticsDashboard,
    AnalyticsOverview,
    Category,
    Effort,
    OptimizationSuggestion,
    PerformanceComparison,
    Priority,
    Trend,
)
from analytics.health import calculate_health_score, calculate_performance
from analytics.rules import OptimizationThresholds
from analytics.optimizer import generate_optimizations
from analytics.engine import AgentAnalytics

__all__ = [
    "AgentAnalyticsReport",
    "AgentComparison",
    "AgentPerformance",
    "AnalyticsDashboard",
    "AnalyticsOverview",
    "Category",
    "Effort",
    "OptimizationSuggestion",
    "PerformanceComparison",
    "Priority",
    "Trend",
    "calculate_health_score",
    "calculate_performance",
    "OptimizationThresholds",
    "generate_optimizations",
    "AgentAnalytics",
]
