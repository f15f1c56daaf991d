"""
Anomaly Alerts

Real-time alert channel for detected anomalies.
The delivery mechanism is pluggable; the default writes to the log.

DESIGN RULES:
- Side-effect only
- Never throw exceptions
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict

from anomaly.types import Anomaly


logger = logging.getLogger(__name__)


def build_alert(anomaly: Anomaly) -> Dict[str, Any]:
    """Flatten an anomaly into an alert payload."""
    return {
        "severity": anomaly.severity.value,
        "agent": anomaly.pattern.agent_name,
        "task": anomaly.pattern.task_type,
        "score": anomaly.score,
        "reason": anomaly.reason,
        "recommendation": anomaly.recommendation,
        "timestamp": anomaly.timestamp.isoformat(),
    }


class AlertSink(ABC):
    """
    Abstract base for alert destinations.

    Implementations:
    - LoggingAlertSink (default)
    - CallbackAlertSink
    """

    @abstractmethod
    def send(self, alert: Dict[str, Any]) -> None:
        """
        Deliver an alert.

        Must not throw - failures should be logged and ignored.
        """
        pass


class LoggingAlertSink(AlertSink):
    def send(self, alert: Dict[str, Any]) -> None:
        try:
            logger.warning(f"[ANOMALY] ALERT: {json.dumps(alert, indent=2)}")
        except Exception as e:
            logger.error(f"[ANOMALY] Failed to log alert: {e}")


class CallbackAlertSink(AlertSink):
    """Forwards alerts to a callable (event bus, notifier, test spy)."""

    def __init__(self, callback: Callable[[Dict[str, Any]], None]):
        self._callback = callback

    def send(self, alert: Dict[str, Any]) -> None:
        try:
            self._callback(alert)
        except Exception:
            logger.exception("[ANOMALY] Alert callback failed")
