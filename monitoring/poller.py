"""
Dashboard Poller

Re-polls the read APIs on a fixed interval and fans the same payload out to
every subscriber. Push transports (WebSocket, SSE) subscribe here instead of
querying the components themselves.

DESIGN RULES:
- Read-only over all components
- A failing subscriber never stops the fan-out
- One background task at most
"""

import asyncio
import inspect
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from analytics.engine import AgentAnalytics
from anomaly.detector import AnomalyDetector
from observability.collector import TraceCollector


logger = logging.getLogger(__name__)

Subscriber = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


class LatestPayload:
    """Subscriber that keeps the most recent dashboard payload for pull-based readers."""

    def __init__(self):
        self._payload: Optional[Dict[str, Any]] = None
        self._received_at: Optional[datetime] = None

    @property
    def payload(self) -> Optional[Dict[str, Any]]:
        return self._payload

    @property
    def received_at(self) -> Optional[datetime]:
        return self._received_at

    def __call__(self, payload: Dict[str, Any]) -> None:
        self._payload = payload
        self._received_at = datetime.now()


class DashboardPoller:
    DEFAULT_INTERVAL_SECONDS = 5.0
    ANOMALY_LIMIT = 20

    def __init__(
        self,
        collector: TraceCollector,
        analytics: AgentAnalytics,
        detector: Optional[AnomalyDetector] = None,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        slow_threshold_ms: float = TraceCollector.DEFAULT_SLOW_THRESHOLD_MS,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._collector = collector
        self._analytics = analytics
        self._detector = detector
        self._interval = interval
        self._slow_threshold_ms = slow_threshold_ms
        self._subscribers: List[Subscriber] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber. Returns a callable that unsubscribes it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def build_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "agents": [
                {"agent_name": entry["agent_name"], "metrics": entry["metrics"].to_dict()}
                for entry in self._collector.get_all_agent_metrics()
            ],
            "analytics": self._analytics.analyze_all_agents().model_dump(mode="json"),
            "slow_operations": [
                m.to_dict() for m in self._collector.get_slow_operations(self._slow_threshold_ms)
            ],
        }

        if self._detector is not None:
            payload["anomalies"] = [
                a.to_dict() for a in self._detector.get_anomalies(limit=self.ANOMALY_LIMIT)
            ]
            payload["anomaly_statistics"] = self._detector.get_statistics()
            payload["detector_state"] = self._detector.state.value

        return payload

    async def poll_once(self) -> Dict[str, Any]:
        """Build one payload and deliver it to every subscriber."""
        payload = self.build_payload()
        for subscriber in list(self._subscribers):
            try:
                outcome = subscriber(payload)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("[DASHBOARD] Subscriber failed")
        return payload

    def start(self) -> None:
        if self.running:
            logger.warning("[DASHBOARD] Poller already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"[DASHBOARD] Polling every {self._interval}s")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("[DASHBOARD] Poller stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("[DASHBOARD] Poll failed")
            await asyncio.sleep(self._interval)
