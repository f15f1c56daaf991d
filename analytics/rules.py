"""
Optimization Rules

Declarative rule configuration for optimization suggestions.
Rules are evaluated against performance snapshots.

DESIGN RULES:
- Declarative (data, not code)
- Configurable thresholds
- Deterministic evaluation
"""

from dataclasses import dataclass
from typing import Dict

from analytics.types import Category, Effort, Priority


@dataclass
class OptimizationThresholds:
    """
    Rule thresholds.

    All thresholds can be adjusted without code changes.
    """

    # Latency (ms)
    slow_duration_ms: float = 5000.0  # performance issue above this
    critical_duration_ms: float = 10000.0  # ... critical above this

    # Reliability
    max_error_rate: float = 0.1
    min_health_score: float = 50.0

    # Scalability
    min_throughput: float = 10.0


DEFAULT_THRESHOLDS = OptimizationThresholds()


@dataclass
class OptimizationRule:
    """Definition of a single optimization rule."""
    name: str
    category: Category
    suggestion: str
    expected_impact: str
    effort: Effort


OPTIMIZATION_RULES: Dict[str, OptimizationRule] = {
    rule.name: rule
    for rule in [
        OptimizationRule(
            name="slow_duration",
            category=Category.PERFORMANCE,
            suggestion="Add caching, optimize database queries, or use async operations",
            expected_impact="Reduce latency by 40-60%",
            effort=Effort.MEDIUM,
        ),
        OptimizationRule(
            name="high_error_rate",
            category=Category.RELIABILITY,
            suggestion="Review error logs, add retry logic, improve error handling",
            expected_impact="Reduce errors by 70-90%",
            effort=Effort.HIGH,
        ),
        OptimizationRule(
            name="low_throughput",
            category=Category.SCALABILITY,
            suggestion="Parallelize operations, increase worker count, or optimize algorithm",
            expected_impact="Increase throughput by 2-3x",
            effort=Effort.MEDIUM,
        ),
        OptimizationRule(
            name="low_health",
            category=Category.RELIABILITY,
            suggestion=(
                "Comprehensive review needed - check errors, performance, and resource usage"
            ),
            expected_impact="Improve overall reliability by 50%+",
            effort=Effort.HIGH,
        ),
    ]
}


PRIORITY_ORDER: Dict[Priority, int] = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}
