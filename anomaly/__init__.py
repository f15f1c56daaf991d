# Anomaly Detection Package
from anomaly.types import Anomaly, DetectorState, Severity, UsagePattern
from anomaly.config import AnomalyDetectionConfig
from anomaly.features import FEATURE_NAMES, extract_features
from anomaly.model import OutlierModel, IsolationForestModel
from anomaly.alerts import AlertSink, LoggingAlertSink, CallbackAlertSink
from anomaly.detector import AnomalyDetector

__all__ = [
    "Anomaly",
    "DetectorState",
    "Severity",
    "UsagePattern",
    "AnomalyDetectionConfig",
    "FEATURE_NAMES",
    "extract_features",
    "OutlierModel",
    "IsolationForestModel",
    "AlertSink",
    "LoggingAlertSink",
    "CallbackAlertSink",
    "AnomalyDetector",
]
