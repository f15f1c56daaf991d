"""
Component Wiring

Constructs the collector, detector and analytics engine once and connects
them. Consumers receive references; there are no module-level globals here.
"""

from dataclasses import dataclass
from typing import Optional

from analytics.engine import AgentAnalytics
from anomaly.alerts import AlertSink
from anomaly.config import AnomalyDetectionConfig
from anomaly.detector import AnomalyDetector
from anomaly.model import OutlierModel
from app.core.config import Settings
from monitoring.forwarder import AnomalyForwarder
from monitoring.poller import DashboardPoller, LatestPayload
from observability.collector import TraceCollector
from observability.sink import MetricSink


@dataclass(frozen=True)
class MonitoringComponents:
    collector: TraceCollector
    detector: AnomalyDetector
    analytics: AgentAnalytics
    poller: DashboardPoller
    live: LatestPayload
    forwarder: Optional[AnomalyForwarder] = None


def build_monitoring(
    settings: Settings,
    model: Optional[OutlierModel] = None,
    metric_sink: Optional[MetricSink] = None,
    alert_sink: Optional[AlertSink] = None,
) -> MonitoringComponents:
    """
    Build and connect all monitoring components.

    Args:
        settings: Application settings.
        model: Outlier model override (defaults to an isolation forest).
        metric_sink: Collector sink override.
        alert_sink: Detector alert sink override.
    """
    collector = TraceCollector(
        service_name=settings.service_name,
        environment=settings.environment,
        max_metrics_per_series=settings.max_metrics_per_series,
        sink=metric_sink,
    )
    detector = AnomalyDetector(
        config=AnomalyDetectionConfig.from_settings(settings),
        model=model,
        alert_sink=alert_sink,
    )
    analytics = AgentAnalytics(
        collector=collector,
        detector=detector,
        history_limit=settings.analytics_history_limit,
    )

    forwarder = None
    if settings.forward_usage_patterns:
        forwarder = AnomalyForwarder(detector, sample_resources=settings.sample_resource_usage)
        collector.add_listener(forwarder)

    poller = DashboardPoller(
        collector=collector,
        analytics=analytics,
        detector=detector,
        interval=settings.dashboard_poll_interval_seconds,
        slow_threshold_ms=settings.slow_operation_threshold_ms,
    )
    live = LatestPayload()
    poller.subscribe(live)

    return MonitoringComponents(
        collector=collector,
        detector=detector,
        analytics=analytics,
        poller=poller,
        live=live,
        forwarder=forwarder,
    )
