# Monitoring Package
from monitoring.forwarder import AnomalyForwarder, pattern_from_metric, sample_resource_usage
from monitoring.wiring import MonitoringComponents, build_monitoring
from monitoring.poller import DashboardPoller, LatestPayload

__all__ = [
    "AnomalyForwarder",
    "pattern_from_metric",
    "sample_resource_usage",
    "MonitoringComponents",
    "build_monitoring",
    "DashboardPoller",
    "LatestPayload",
]
