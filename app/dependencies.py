"""
FastAPI Dependencies

All object creation happens here, not per request.
This module provides dependency injection for the monitoring components.

RULE: Routes only read from the components; instrumentation call sites
receive the same instances through get_monitoring().
"""

from functools import lru_cache

from analytics.engine import AgentAnalytics
from anomaly.detector import AnomalyDetector
from app.core.config import settings
from monitoring.poller import LatestPayload
from monitoring.wiring import MonitoringComponents, build_monitoring
from observability.collector import TraceCollector


@lru_cache(maxsize=1)
def get_monitoring() -> MonitoringComponents:
    """
    Create and cache the monitoring components.

    All components are wired here:
    - TraceCollector: Records agent executions
    - AnomalyDetector: Fed by the collector through AnomalyForwarder
    - AgentAnalytics: Reads collector metrics and detector findings
    """
    return build_monitoring(settings)


def get_trace_collector() -> TraceCollector:
    return get_monitoring().collector


def get_anomaly_detector() -> AnomalyDetector:
    return get_monitoring().detector


def get_agent_analytics() -> AgentAnalytics:
    return get_monitoring().analytics


def get_live_dashboard() -> LatestPayload:
    return get_monitoring().live
