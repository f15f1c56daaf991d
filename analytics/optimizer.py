"""
Optimization Suggestions

Evaluates performance snapshots against the optimization rules.
Read-only - suggests only, does not act.
"""

from typing import Iterable, List, Optional

from analytics.health import round_half_up
from analytics.rules import (
    DEFAULT_THRESHOLDS,
    OPTIMIZATION_RULES,
    PRIORITY_ORDER,
    OptimizationThresholds,
)
from analytics.types import AgentPerformance, OptimizationSuggestion, Priority


def generate_optimizations(
    performances: Iterable[AgentPerformance],
    thresholds: Optional[OptimizationThresholds] = None,
) -> List[OptimizationSuggestion]:
    """
    Run every rule against every snapshot.

    Several rules may fire for one agent. Results are ordered
    critical -> high -> medium -> low, stable within a priority.
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    suggestions: List[OptimizationSuggestion] = []

    for perf in performances:
        if perf.avg_duration_ms > thresholds.slow_duration_ms:
            priority = (
                Priority.CRITICAL
                if perf.avg_duration_ms > thresholds.critical_duration_ms
                else Priority.HIGH
            )
            suggestions.append(
                _suggest(
                    "slow_duration",
                    perf,
                    priority,
                    f"Average duration {round_half_up(perf.avg_duration_ms)}ms is too slow",
                )
            )

        if perf.error_rate > thresholds.max_error_rate:
            suggestions.append(
                _suggest(
                    "high_error_rate",
                    perf,
                    Priority.CRITICAL,
                    f"Error rate {round_half_up(perf.error_rate * 100)}% is too high",
                )
            )

        if perf.throughput < thresholds.min_throughput and perf.total_executions > 0:
            suggestions.append(
                _suggest(
                    "low_throughput",
                    perf,
                    Priority.MEDIUM,
                    "Low throughput indicates potential bottleneck",
                )
            )

        if perf.health_score < thresholds.min_health_score:
            suggestions.append(
                _suggest(
                    "low_health",
                    perf,
                    Priority.HIGH,
                    f"Health score {round_half_up(perf.health_score)} is critically low",
                )
            )

    return sorted(suggestions, key=lambda s: PRIORITY_ORDER[s.priority])


def _suggest(
    rule_name: str,
    perf: AgentPerformance,
    priority: Priority,
    issue: str,
) -> OptimizationSuggestion:
    rule = OPTIMIZATION_RULES[rule_name]
    return OptimizationSuggestion(
        agent_name=perf.agent_name,
        priority=priority,
        category=rule.category,
        issue=issue,
        suggestion=rule.suggestion,
        expected_impact=rule.expected_impact,
        effort=rule.effort,
    )
