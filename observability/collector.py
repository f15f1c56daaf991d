"""
Trace Collector

Wraps agent operations, measures them, and keeps a bounded series of
metrics per (agent, operation).

DESIGN RULES:
- Never swallow or alter the caller's exception
- Bookkeeping failures never fail the wrapped operation
- Every series is bounded (oldest evicted first)
- Listeners are notified, never awaited on the hot path
"""

import asyncio
import inspect
import itertools
import json
import logging
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple, Union

from observability.buffer import BoundedBuffer
from observability.sink import LoggingMetricSink, MetricSink
from observability.trace import (
    AgentMetrics,
    AgentTraceContext,
    CoordinationEvent,
    TraceMetric,
    TraceStatus,
)


logger = logging.getLogger(__name__)

MetricListener = Callable[[TraceMetric], Union[None, Awaitable[None]]]

# (agent_name, operation)
SeriesKey = Tuple[str, str]


class TraceCollector:
    """
    Coordinates metric recording for instrumented agents.

    Responsibilities:
    - Time wrapped operations and record their outcome
    - Keep a bounded series per agent/operation
    - Aggregate per-agent metrics for dashboards
    - Forward metrics to a sink and to registered listeners
    """

    DEFAULT_MAX_METRICS_PER_SERIES = 1000
    DEFAULT_SLOW_THRESHOLD_MS = 5000
    RECENT_ERROR_LIMIT = 5
    SLOW_OPERATION_LIMIT = 20
    COORDINATION_LOG_LIMIT = 1000

    def __init__(
        self,
        service_name: str = "agent-monitor",
        environment: str = "local",
        max_metrics_per_series: int = DEFAULT_MAX_METRICS_PER_SERIES,
        sink: Optional[MetricSink] = None,
        enabled: bool = True,
    ):
        """
        Initialize trace collector.

        Args:
            service_name: Service identity, carried for log context only.
            environment: Deployment environment, carried for log context only.
            max_metrics_per_series: Cap per agent/operation series.
            sink: MetricSink to emit metrics to. Defaults to LoggingMetricSink.
            enabled: Whether tracing is enabled. Can be toggled at runtime.
        """
        if max_metrics_per_series <= 0:
            raise ValueError("max_metrics_per_series must be positive")

        self.service_name = service_name
        self.environment = environment
        self._max_metrics = max_metrics_per_series
        self._sink = sink or LoggingMetricSink()
        self._enabled = enabled

        # Entries are (sequence, metric) so reads can restore recording order
        # across series.
        self._series: Dict[SeriesKey, BoundedBuffer[Tuple[int, TraceMetric]]] = {}
        self._sequence = itertools.count()
        self._coordination: BoundedBuffer[CoordinationEvent] = BoundedBuffer(
            self.COORDINATION_LOG_LIMIT
        )
        self._listeners: List[MetricListener] = []
        self._pending: Set[asyncio.Task] = set()

        logger.info(f"[TRACING] Collector initialized for {service_name} ({environment})")

    @property
    def enabled(self) -> bool:
        """Check if tracing is enabled."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        """Enable or disable tracing at runtime."""
        self._enabled = value

    # ============================================================
    # INSTRUMENTATION
    # ============================================================

    async def trace_execution(
        self,
        agent_context: AgentTraceContext,
        operation_name: str,
        operation: Callable[[], Any],
    ) -> Any:
        """
        Run an operation and record its outcome.

        Args:
            agent_context: Identity of the invoking agent.
            operation_name: Name of the operation, second half of the series key.
            operation: Zero-argument callable returning a value or an awaitable.

        Returns:
            Whatever the operation returns.

        Raises:
            Whatever the operation raises, unchanged, after the metric is recorded.
        """
        if not self._enabled:
            return await _invoke(operation)

        started = time.perf_counter()
        try:
            result = await _invoke(operation)
        except (asyncio.TimeoutError, TimeoutError) as e:
            self._record(agent_context, operation_name, started, TraceStatus.TIMEOUT, e)
            raise
        except Exception as e:
            self._record(agent_context, operation_name, started, TraceStatus.ERROR, e)
            raise

        self._record(agent_context, operation_name, started, TraceStatus.SUCCESS)
        return result

    async def trace_sub_operation(
        self,
        operation_name: str,
        operation: Callable[[], Any],
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Time a child operation inside a traced execution.

        Logged only; sub-operations do not add to any metric series.
        """
        started = time.perf_counter()
        try:
            result = await _invoke(operation)
        except Exception as e:
            logger.debug(
                f"[TRACING] sub-operation {operation_name} failed after "
                f"{_elapsed_ms(started):.1f}ms: {e}"
            )
            raise

        logger.debug(
            f"[TRACING] sub-operation {operation_name} completed in "
            f"{_elapsed_ms(started):.1f}ms {attributes or {}}"
        )
        return result

    def trace_agent_coordination(
        self,
        source_agent: str,
        target_agent: str,
        action: str,
        payload: Any = None,
    ) -> None:
        """Record one agent handing work to another. Never throws."""
        try:
            payload_size = len(json.dumps(payload, default=str))
            self._coordination.append(
                CoordinationEvent(
                    source_agent=source_agent,
                    target_agent=target_agent,
                    action=action,
                    payload_size=payload_size,
                )
            )
        except Exception:
            logger.exception(
                f"[TRACING] Failed to record coordination {source_agent}->{target_agent}"
            )

    def record_metric(self, metric: TraceMetric) -> None:
        """
        Record a metric produced outside trace_execution.

        Note: This method NEVER throws. Failures are logged and ignored.
        """
        try:
            key = (metric.agent_name, metric.operation)
            series = self._series.get(key)
            if series is None:
                series = BoundedBuffer(self._max_metrics)
                self._series[key] = series
            series.append((next(self._sequence), metric))
        except Exception:
            logger.exception("[TRACING] Failed to record metric")
            return

        self._emit(metric)
        self._notify(metric)

    # ============================================================
    # LISTENERS
    # ============================================================

    def add_listener(self, listener: MetricListener) -> None:
        """Register a callback invoked with every recorded metric."""
        self._listeners.append(listener)

    def remove_listener(self, listener: MetricListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def flush(self) -> None:
        """Wait for every scheduled listener task to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def shutdown(self) -> None:
        await self.flush()
        logger.info(f"[TRACING] Collector for {self.service_name} shut down")

    # ============================================================
    # READ SIDE
    # ============================================================

    def get_agent_metrics(self, agent_name: str) -> AgentMetrics:
        """
        Aggregate every series recorded for an agent.

        Returns:
            AgentMetrics, all zero when the agent has no data.
        """
        entries = self._entries_for(agent_name)
        if not entries:
            return AgentMetrics.empty()

        metrics = [metric for _, metric in entries]
        total = len(metrics)
        successes = sum(1 for m in metrics if m.succeeded)
        avg_duration = sum(m.duration_ms for m in metrics) / total

        last_errors = [m.error for m in metrics if m.error][-self.RECENT_ERROR_LIMIT:]
        recent_errors = list(dict.fromkeys(last_errors))

        return AgentMetrics(
            total_executions=total,
            avg_duration_ms=avg_duration,
            success_rate=successes / total,
            error_rate=(total - successes) / total,
            recent_errors=recent_errors,
        )

    def get_all_agent_metrics(self) -> List[Dict[str, Any]]:
        """Metrics for every agent observed so far (for dashboards)."""
        return [
            {"agent_name": name, "metrics": self.get_agent_metrics(name)}
            for name in self.agent_names()
        ]

    def get_slow_operations(
        self, threshold_ms: float = DEFAULT_SLOW_THRESHOLD_MS
    ) -> List[TraceMetric]:
        """Slowest stored metrics above the threshold, longest first."""
        slow = [
            metric
            for series in list(self._series.values())
            for _, metric in series
            if metric.duration_ms > threshold_ms
        ]
        slow.sort(key=lambda m: m.duration_ms, reverse=True)
        return slow[: self.SLOW_OPERATION_LIMIT]

    def get_series(self, agent_name: str, operation: str) -> List[TraceMetric]:
        series = self._series.get((agent_name, operation))
        if series is None:
            return []
        return [metric for _, metric in series]

    def get_coordination_events(self, limit: int = 100) -> List[CoordinationEvent]:
        return self._coordination.tail(limit)

    def agent_names(self) -> List[str]:
        """Distinct agent names in first-seen order."""
        return list(dict.fromkeys(agent for agent, _ in self._series.keys()))

    def clear(self) -> None:
        self._series.clear()
        self._coordination.clear()

    # ============================================================
    # INTERNALS
    # ============================================================

    def _entries_for(self, agent_name: str) -> List[Tuple[int, TraceMetric]]:
        entries = [
            entry
            for (agent, _), series in list(self._series.items())
            if agent == agent_name
            for entry in series
        ]
        entries.sort(key=lambda entry: entry[0])
        return entries

    def _record(
        self,
        agent_context: AgentTraceContext,
        operation_name: str,
        started: float,
        status: TraceStatus,
        error: Optional[BaseException] = None,
    ) -> None:
        try:
            metric = TraceMetric(
                agent_name=agent_context.agent_name,
                operation=operation_name,
                duration_ms=_elapsed_ms(started),
                status=status,
                timestamp=datetime.now(),
                error=_error_message(error) if error is not None else None,
                task_id=agent_context.task_id,
                agent_id=agent_context.agent_id,
                parent_span_id=agent_context.parent_span_id,
                metadata=dict(agent_context.metadata),
            )
        except Exception:
            logger.exception("[TRACING] Failed to build metric")
            return

        self.record_metric(metric)

    def _emit(self, metric: TraceMetric) -> None:
        try:
            self._sink.emit(metric)
        except Exception as e:
            logger.warning(f"[TRACING] Sink failed: {e}")

    def _notify(self, metric: TraceMetric) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener(metric)
                if inspect.isawaitable(outcome):
                    self._schedule(outcome)
            except Exception:
                logger.exception("[TRACING] Metric listener failed")

    def _schedule(self, awaitable: Awaitable[None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[TRACING] No running event loop; async listener skipped")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = loop.create_task(_guarded(awaitable))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


async def _invoke(operation: Callable[[], Any]) -> Any:
    result = operation()
    if inspect.isawaitable(result):
        result = await result
    return result


async def _guarded(awaitable: Awaitable[None]) -> None:
    try:
        await awaitable
    except Exception:
        logger.exception("[TRACING] Async metric listener failed")


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__
