"""
Anomaly Detection Configuration

Tunable knobs for the detector and its outlier model.
All thresholds can be adjusted without code changes.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.core.config import Settings


@dataclass(frozen=True)
class AnomalyDetectionConfig:
    """Detector configuration with reference defaults."""

    # Model capacity
    contamination: float = 0.1  # expected outlier fraction
    tree_count: int = 100
    sample_size: int = 256
    random_state: Optional[int] = None

    # Classification
    score_threshold: float = -0.5  # flag when score < threshold

    # Alerting
    enable_realtime_alerts: bool = True

    # Buffers
    max_patterns: int = 10_000
    min_training_patterns: int = 100
    max_anomalies: int = 1000

    def __post_init__(self) -> None:
        if not 0.0 < self.contamination <= 0.5:
            raise ValueError(f"contamination must be in (0, 0.5], got {self.contamination}")
        if self.tree_count <= 0 or self.sample_size <= 0:
            raise ValueError("tree_count and sample_size must be positive")
        if self.min_training_patterns <= 0:
            raise ValueError("min_training_patterns must be positive")
        if self.max_patterns < self.min_training_patterns:
            raise ValueError("max_patterns must be at least min_training_patterns")
        if self.max_anomalies <= 0:
            raise ValueError("max_anomalies must be positive")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "AnomalyDetectionConfig":
        return cls(
            contamination=settings.anomaly_contamination,
            tree_count=settings.anomaly_tree_count,
            sample_size=settings.anomaly_sample_size,
            score_threshold=settings.anomaly_score_threshold,
            enable_realtime_alerts=settings.anomaly_enable_realtime_alerts,
            max_patterns=settings.anomaly_max_patterns,
            min_training_patterns=settings.anomaly_min_training_patterns,
            max_anomalies=settings.anomaly_max_anomalies,
        )


DEFAULT_CONFIG = AnomalyDetectionConfig()
