"""
Dashboard API Routes

Thin read-only layer over the monitoring components.
Contains NO aggregation, scoring, or rule logic.

DESIGN RULE: Every route serializes what a component already returns.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from analytics.engine import AgentAnalytics
from analytics.types import AgentAnalyticsReport, AgentComparison, AnalyticsDashboard
from anomaly.detector import AnomalyDetector
from anomaly.types import Severity
from monitoring.poller import LatestPayload
from app.core.config import settings
from app.dependencies import (
    get_agent_analytics,
    get_anomaly_detector,
    get_live_dashboard,
    get_trace_collector,
)
from observability.collector import TraceCollector


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/agents")
def list_agents(
    collector: TraceCollector = Depends(get_trace_collector),
) -> List[Dict[str, Any]]:
    """Aggregated metrics for every agent observed so far."""
    return [
        {"agent_name": entry["agent_name"], "metrics": entry["metrics"].to_dict()}
        for entry in collector.get_all_agent_metrics()
    ]


@router.get("/agents/{agent_name}", response_model=AgentAnalyticsReport)
def agent_report(
    agent_name: str,
    analytics: AgentAnalytics = Depends(get_agent_analytics),
) -> AgentAnalyticsReport:
    report = analytics.get_agent_analytics(agent_name)
    if report is None:
        raise HTTPException(status_code=404, detail=f"No executions recorded for {agent_name}")
    return report


@router.get("/analytics", response_model=AnalyticsDashboard)
def analytics_dashboard(
    analytics: AgentAnalytics = Depends(get_agent_analytics),
) -> AnalyticsDashboard:
    return analytics.analyze_all_agents()


@router.get("/compare", response_model=AgentComparison)
def compare_agents(
    agents: List[str] = Query(..., description="Agent names to compare"),
    analytics: AgentAnalytics = Depends(get_agent_analytics),
) -> AgentComparison:
    return analytics.compare_agents(agents)


@router.get("/anomalies")
def list_anomalies(
    severity: Optional[Severity] = None,
    agent_name: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    detector: AnomalyDetector = Depends(get_anomaly_detector),
) -> Dict[str, Any]:
    anomalies = detector.get_anomalies(severity=severity, agent_name=agent_name, limit=limit)
    return {
        "detector_state": detector.state.value,
        "anomalies": [a.to_dict() for a in anomalies],
    }


@router.get("/anomalies/statistics")
def anomaly_statistics(
    detector: AnomalyDetector = Depends(get_anomaly_detector),
) -> Dict[str, Any]:
    return {"detector_state": detector.state.value, **detector.get_statistics()}


@router.get("/slow-operations")
def slow_operations(
    threshold_ms: float = Query(settings.slow_operation_threshold_ms, ge=0),
    collector: TraceCollector = Depends(get_trace_collector),
) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in collector.get_slow_operations(threshold_ms)]


@router.get("/live")
def live_dashboard(
    live: LatestPayload = Depends(get_live_dashboard),
) -> Dict[str, Any]:
    """Most recent payload pushed by the background poller."""
    if live.payload is None:
        raise HTTPException(status_code=503, detail="Dashboard snapshot not ready")
    return {"received_at": live.received_at.isoformat(), **live.payload}
