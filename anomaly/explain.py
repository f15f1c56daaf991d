"""
Anomaly Explanation

Turns a flagged pattern into a human-readable reason and remediation hint
by comparing it with the same agent's buffered history.

DESIGN RULES:
- Deterministic
- Each signal is checked independently
- No signal firing is a valid outcome (multivariate outlier)
"""

from typing import List, Sequence

import numpy as np

from anomaly.types import Severity, UsagePattern


MIN_HISTORY_SAMPLES = 10
DURATION_STDDEV_FACTOR = 2.0
ERROR_MEAN_FACTOR = 2.0
REQUEST_MEAN_FACTOR = 3.0
REQUEST_WINDOW = 50
RESOURCE_PERCENT_LIMIT = 80.0

FALLBACK_REASON = "Unusual pattern detected"
FALLBACK_RECOMMENDATION = "Monitor this pattern closely and investigate if it persists."

# Checked in order; first matching substring wins.
RECOMMENDATIONS = (
    (
        "Duration",
        "Investigate slow operations. Check database queries, external API calls, "
        "or consider caching.",
    ),
    (
        "Error count",
        "Review error logs for this agent. Check for external service issues "
        "or input validation problems.",
    ),
    (
        "Request spike",
        "Monitor for DDoS or unusual traffic. Consider rate limiting or scaling resources.",
    ),
    (
        "CPU usage",
        "Optimize CPU-intensive operations or scale horizontally to handle load.",
    ),
    (
        "memory usage",
        "Check for memory leaks, optimize data structures, or increase available memory.",
    ),
)


def severity_for_score(score: float) -> Severity:
    if score < -0.8:
        return Severity.CRITICAL
    if score < -0.6:
        return Severity.HIGH
    if score < -0.4:
        return Severity.MEDIUM
    return Severity.LOW


def analyze_anomaly(pattern: UsagePattern, history: Sequence[UsagePattern]) -> str:
    """
    Explain what makes a pattern unusual.

    Args:
        pattern: The flagged observation.
        history: Buffered observations, oldest first. Only entries for the
            same agent are considered; the flagged pattern itself is skipped
            if it was already buffered.

    Returns:
        Semicolon-joined clauses, or FALLBACK_REASON when nothing stands out.
    """
    same_agent = [
        p for p in history if p.agent_name == pattern.agent_name and p is not pattern
    ]
    reasons: List[str] = []

    if len(same_agent) >= MIN_HISTORY_SAMPLES:
        durations = np.array([p.duration_ms for p in same_agent], dtype=float)
        avg_duration = float(durations.mean())
        std_duration = float(durations.std())
        if pattern.duration_ms > avg_duration + DURATION_STDDEV_FACTOR * std_duration:
            reasons.append(_duration_clause(pattern.duration_ms, avg_duration))

        avg_errors = float(np.mean([p.error_count for p in same_agent]))
        if pattern.error_count > avg_errors * ERROR_MEAN_FACTOR:
            reasons.append(f"Error count ({pattern.error_count}) is unusually high")

    recent = same_agent[-REQUEST_WINDOW:]
    if len(recent) >= MIN_HISTORY_SAMPLES:
        avg_requests = float(np.mean([p.request_count for p in recent]))
        if pattern.request_count > avg_requests * REQUEST_MEAN_FACTOR:
            reasons.append(f"Request spike detected ({pattern.request_count} requests)")

    if pattern.cpu_percent is not None and pattern.cpu_percent > RESOURCE_PERCENT_LIMIT:
        reasons.append(f"High CPU usage ({pattern.cpu_percent:g}%)")

    if pattern.memory_percent is not None and pattern.memory_percent > RESOURCE_PERCENT_LIMIT:
        reasons.append(f"High memory usage ({pattern.memory_percent:g}%)")

    return "; ".join(reasons) if reasons else FALLBACK_REASON


def recommend(reason: str) -> str:
    for marker, recommendation in RECOMMENDATIONS:
        if marker in reason:
            return recommendation
    return FALLBACK_RECOMMENDATION


def _duration_clause(duration_ms: float, avg_duration: float) -> str:
    if avg_duration > 0:
        above = round((duration_ms / avg_duration - 1) * 100)
        return f"Duration ({duration_ms:g}ms) is {above}% higher than average"
    return f"Duration ({duration_ms:g}ms) is far above the agent's average"
