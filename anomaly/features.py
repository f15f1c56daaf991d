"""
Feature Extraction

Fixed-order numeric projection of a usage pattern. The same projection is
used for training and scoring; changing the order invalidates any fitted model.
"""

from typing import List

from anomaly.types import UsagePattern


FEATURE_NAMES = (
    "duration_ms",
    "request_count",
    "error_count",
    "cpu_percent",
    "memory_percent",
    "hour_of_day",
    "day_of_week",
)

FEATURE_COUNT = len(FEATURE_NAMES)


def extract_features(pattern: UsagePattern) -> List[float]:
    """Project a pattern onto FEATURE_NAMES. Day of week is Sunday=0 .. Saturday=6."""
    return [
        float(pattern.duration_ms),
        float(pattern.request_count),
        float(pattern.error_count),
        float(pattern.cpu_percent or 0),
        float(pattern.memory_percent or 0),
        float(pattern.timestamp.hour),
        float(pattern.timestamp.isoweekday() % 7),
    ]
