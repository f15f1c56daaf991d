"""
Anomaly Detector

Online/offline hybrid: observations accumulate in a bounded buffer, an
outlier model is retrained from the whole buffer once enough exist, and
every scored observation is checked against the latest fitted model.

State machine:
    UNTRAINED --(buffer >= min size)--> RETRAINING --> TRAINED
    TRAINED   --(new pattern)---------> RETRAINING --> TRAINED

DESIGN RULES:
- A fitted model is replaced whole, never updated in place
- At most one retrain runs at a time; extra triggers are dropped, not queued
- Training failures keep the previous model
- Scoring never throws; no model means no opinion
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from anomaly.alerts import AlertSink, LoggingAlertSink, build_alert
from anomaly.config import DEFAULT_CONFIG, AnomalyDetectionConfig
from anomaly.explain import analyze_anomaly, recommend, severity_for_score
from anomaly.features import extract_features
from anomaly.model import IsolationForestModel, OutlierModel
from anomaly.types import Anomaly, DetectorState, Severity, UsagePattern
from observability.buffer import BoundedBuffer


logger = logging.getLogger(__name__)


class AnomalyDetector:
    """
    Flags usage patterns that deviate from recent agent behaviour.

    Responsibilities:
    - Buffer observations (bounded)
    - Retrain the outlier model as observations arrive
    - Score, explain, store and alert on anomalies
    """

    DEFAULT_ANOMALY_LIMIT = 100

    def __init__(
        self,
        config: Optional[AnomalyDetectionConfig] = None,
        model: Optional[OutlierModel] = None,
        alert_sink: Optional[AlertSink] = None,
    ):
        """
        Initialize anomaly detector.

        Args:
            config: Detector configuration. Defaults to DEFAULT_CONFIG.
            model: Outlier model strategy. Defaults to an isolation forest
                built from the config.
            alert_sink: Destination for real-time alerts. Defaults to the log.
        """
        self.config = config or DEFAULT_CONFIG
        self._model = model or IsolationForestModel(
            tree_count=self.config.tree_count,
            sample_size=self.config.sample_size,
            contamination=self.config.contamination,
            random_state=self.config.random_state,
        )
        self._alert_sink = alert_sink or LoggingAlertSink()

        self._patterns: BoundedBuffer[UsagePattern] = BoundedBuffer(self.config.max_patterns)
        self._anomalies: BoundedBuffer[Anomaly] = BoundedBuffer(self.config.max_anomalies)

        self._fitted: Any = None
        self._is_training = False
        self._trained_at: Optional[datetime] = None
        self._training_size = 0

    # ============================================================
    # STATE
    # ============================================================

    @property
    def state(self) -> DetectorState:
        if self._is_training:
            return DetectorState.RETRAINING
        if self._fitted is None:
            return DetectorState.UNTRAINED
        return DetectorState.TRAINED

    @property
    def is_trained(self) -> bool:
        """True once any model has been fitted (also while a retrain runs)."""
        return self._fitted is not None

    @property
    def trained_at(self) -> Optional[datetime]:
        return self._trained_at

    @property
    def training_size(self) -> int:
        """Number of patterns the current model was fitted on."""
        return self._training_size

    # ============================================================
    # INGESTION / TRAINING
    # ============================================================

    async def add_pattern(self, pattern: UsagePattern) -> None:
        """
        Buffer a pattern and retrain when enough data exists.

        The retrain is skipped (not queued) if one is already running.
        """
        self._patterns.append(pattern)

        if len(self._patterns) >= self.config.min_training_patterns and not self._is_training:
            await self._train()

    async def retrain(self) -> bool:
        """
        Retrain on demand.

        Returns:
            True if a new model was fitted.
        """
        if self._is_training:
            return False
        return await self._train()

    async def _train(self) -> bool:
        if len(self._patterns) < self.config.min_training_patterns:
            logger.warning(
                f"[ANOMALY] Not enough data to train "
                f"(need at least {self.config.min_training_patterns} patterns)"
            )
            return False

        # Set before the first suspension point.
        self._is_training = True
        try:
            features = [extract_features(p) for p in self._patterns]
            fitted = await asyncio.to_thread(self._model.fit, features)
            self._fitted = fitted
            self._trained_at = datetime.now()
            self._training_size = len(features)
            logger.debug(f"[ANOMALY] Model trained with {len(features)} patterns")
            return True
        except Exception:
            logger.exception("[ANOMALY] Error training model; keeping previous model")
            return False
        finally:
            self._is_training = False

    # ============================================================
    # DETECTION
    # ============================================================

    def detect_anomaly(self, pattern: UsagePattern) -> Optional[Anomaly]:
        """
        Score a pattern against the current model.

        Returns:
            The recorded Anomaly, or None when the pattern is normal, the
            detector is untrained, or scoring failed.
        """
        fitted = self._fitted
        if fitted is None:
            return None

        try:
            score = self._model.score(fitted, extract_features(pattern))
        except Exception:
            logger.exception("[ANOMALY] Scoring failed")
            return None

        if not score < self.config.score_threshold:
            return None

        anomaly = self._create_anomaly(pattern, score)
        self._anomalies.append(anomaly)

        if self.config.enable_realtime_alerts:
            self._alert(anomaly)

        return anomaly

    def _create_anomaly(self, pattern: UsagePattern, score: float) -> Anomaly:
        reason = analyze_anomaly(pattern, self._patterns.snapshot())
        return Anomaly(
            timestamp=datetime.now(),
            pattern=pattern,
            score=score,
            severity=severity_for_score(score),
            reason=reason,
            recommendation=recommend(reason),
        )

    def _alert(self, anomaly: Anomaly) -> None:
        try:
            self._alert_sink.send(build_alert(anomaly))
        except Exception:
            logger.exception("[ANOMALY] Alert delivery failed")

    # ============================================================
    # READ SIDE
    # ============================================================

    def get_anomalies(
        self,
        severity: Optional[Severity] = None,
        agent_name: Optional[str] = None,
        limit: Optional[int] = DEFAULT_ANOMALY_LIMIT,
    ) -> List[Anomaly]:
        """
        Most recent anomalies matching the filters, oldest first.

        A missing or zero limit means DEFAULT_ANOMALY_LIMIT; a negative limit
        returns nothing.
        """
        filtered = self._anomalies.snapshot()

        if severity is not None:
            wanted = Severity(severity)
            filtered = [a for a in filtered if a.severity == wanted]

        if agent_name:
            filtered = [a for a in filtered if a.pattern.agent_name == agent_name]

        limit = limit or self.DEFAULT_ANOMALY_LIMIT
        if limit < 0:
            return []
        return filtered[-limit:]

    def get_patterns(self, agent_name: Optional[str] = None) -> List[UsagePattern]:
        patterns = self._patterns.snapshot()
        if agent_name:
            patterns = [p for p in patterns if p.agent_name == agent_name]
        return patterns

    def get_statistics(self) -> Dict[str, Any]:
        """Counts over the retained anomaly log."""
        anomalies = self._anomalies.snapshot()
        total_patterns = len(self._patterns)

        by_severity = {severity.value: 0 for severity in Severity}
        by_severity.update(Counter(a.severity.value for a in anomalies))

        return {
            "total_patterns": total_patterns,
            "total_anomalies": len(anomalies),
            "anomaly_rate": len(anomalies) / total_patterns if total_patterns else 0.0,
            "by_severity": by_severity,
            "by_agent": dict(Counter(a.pattern.agent_name for a in anomalies)),
        }
