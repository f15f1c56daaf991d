"""
Health Scoring

Pure functions turning aggregated trace metrics into a performance snapshot.

Percentiles and throughput are approximations derived from the aggregate
(p95 = avg x 1.5, p99 = avg x 2, throughput = retained execution count).
"""

import math
from datetime import datetime
from typing import Optional

from analytics.types import AgentPerformance
from observability.trace import AgentMetrics


MAX_HEALTH = 100.0
ERROR_RATE_PENALTY = 50.0
SLOW_DURATION_MS = 5000.0
SLOW_PENALTY_PER_SECOND = 5.0
MAX_SLOW_PENALTY = 30.0
VOLUME_BONUS_EXECUTIONS = 100
VOLUME_BONUS = 5.0
RECENT_ERROR_PENALTY = 5.0

P95_FACTOR = 1.5
P99_FACTOR = 2.0


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up (12.5 -> 13), for rendered messages."""
    return math.floor(value + 0.5)


def calculate_health_score(metrics: AgentMetrics) -> float:
    """Composite 0-100 score from error rate, latency, volume and recent errors."""
    score = MAX_HEALTH

    score -= metrics.error_rate * ERROR_RATE_PENALTY

    if metrics.avg_duration_ms > SLOW_DURATION_MS:
        over_seconds = (metrics.avg_duration_ms - SLOW_DURATION_MS) / 1000
        score -= min(MAX_SLOW_PENALTY, over_seconds * SLOW_PENALTY_PER_SECOND)

    if metrics.total_executions > VOLUME_BONUS_EXECUTIONS:
        score += VOLUME_BONUS

    score -= len(metrics.recent_errors) * RECENT_ERROR_PENALTY

    return max(0.0, min(MAX_HEALTH, score))


def calculate_performance(
    agent_name: str,
    metrics: AgentMetrics,
    last_active: Optional[datetime] = None,
) -> AgentPerformance:
    return AgentPerformance(
        agent_name=agent_name,
        total_executions=metrics.total_executions,
        success_rate=metrics.success_rate,
        avg_duration_ms=metrics.avg_duration_ms,
        p95_duration_ms=metrics.avg_duration_ms * P95_FACTOR,
        p99_duration_ms=metrics.avg_duration_ms * P99_FACTOR,
        error_rate=metrics.error_rate,
        throughput=float(metrics.total_executions),
        last_active=last_active or datetime.now(),
        health_score=calculate_health_score(metrics),
    )
