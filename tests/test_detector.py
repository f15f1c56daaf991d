"""
Anomaly Detector Tests

Verifies the training state machine, scoring/classification, bounded
storage and the read side, using a deterministic outlier model.
"""

import asyncio
import logging
import threading
from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from anomaly.alerts import CallbackAlertSink
from anomaly.config import DEFAULT_CONFIG, AnomalyDetectionConfig
from anomaly.detector import AnomalyDetector
from anomaly.features import FEATURE_COUNT, extract_features
from anomaly.types import DetectorState, Severity
from conftest import FakeOutlierModel, make_pattern, normal_patterns


async def feed(detector, patterns):
    for pattern in patterns:
        await detector.add_pattern(pattern)


@pytest.mark.asyncio
async def test_untrained_detector_never_flags(detector, fake_model):
    await feed(detector, normal_patterns(99))

    extreme = make_pattern(duration_ms=1_000_000, error_count=50)
    assert detector.detect_anomaly(extreme) is None
    assert detector.state == DetectorState.UNTRAINED
    assert fake_model.fit_calls == 0
    assert detector.get_anomalies() == []


@pytest.mark.asyncio
async def test_trains_once_minimum_reached(detector, fake_model):
    await feed(detector, normal_patterns(100))

    assert detector.state == DetectorState.TRAINED
    assert detector.is_trained
    assert fake_model.fit_calls == 1
    assert detector.training_size == 100
    assert detector.trained_at is not None


@pytest.mark.asyncio
async def test_every_new_pattern_retrains(detector, fake_model):
    await feed(detector, normal_patterns(103))

    assert fake_model.fit_calls == 4
    assert fake_model.fitted_sizes == [100, 101, 102, 103]


@pytest.mark.asyncio
async def test_outlier_is_flagged_stored_and_alerted(detector, alerts):
    await feed(detector, normal_patterns(100))

    anomaly = detector.detect_anomaly(make_pattern(duration_ms=60_000))

    assert anomaly is not None
    assert anomaly.score == -0.9
    assert anomaly.severity == Severity.CRITICAL
    assert anomaly.reason.startswith("Duration (60000ms)")
    assert "slow operations" in anomaly.recommendation
    assert detector.get_anomalies() == [anomaly]

    assert len(alerts) == 1
    assert alerts[0]["severity"] == "critical"
    assert alerts[0]["agent"] == "billing"
    assert alerts[0]["task"] == "invoice"


@pytest.mark.asyncio
async def test_normal_pattern_is_not_flagged(detector, alerts):
    await feed(detector, normal_patterns(100))

    assert detector.detect_anomaly(make_pattern(duration_ms=105)) is None
    assert alerts == []


@pytest.mark.asyncio
async def test_score_at_threshold_is_not_flagged(alerts):
    model = FakeOutlierModel(score_fn=lambda vector: -0.5)
    detector = AnomalyDetector(model=model, alert_sink=CallbackAlertSink(alerts.append))
    await feed(detector, normal_patterns(100))

    assert detector.detect_anomaly(make_pattern()) is None


@pytest.mark.asyncio
async def test_no_alert_when_realtime_alerts_disabled(fake_model, alerts):
    detector = AnomalyDetector(
        config=AnomalyDetectionConfig(enable_realtime_alerts=False),
        model=fake_model,
        alert_sink=CallbackAlertSink(alerts.append),
    )
    await feed(detector, normal_patterns(100))

    assert detector.detect_anomaly(make_pattern(duration_ms=60_000)) is not None
    assert alerts == []


@pytest.mark.asyncio
async def test_training_failure_keeps_previous_model(detector, fake_model):
    await feed(detector, normal_patterns(100))
    fitted_before = detector._fitted
    trained_at = detector.trained_at

    fake_model.fail = True
    await detector.add_pattern(make_pattern())

    assert detector._fitted is fitted_before
    assert detector.trained_at == trained_at
    assert detector.state == DetectorState.TRAINED
    assert detector.detect_anomaly(make_pattern(duration_ms=60_000)) is not None


@pytest.mark.asyncio
async def test_training_failure_while_untrained_stays_untrained(detector, fake_model):
    fake_model.fail = True
    await feed(detector, normal_patterns(100))

    assert detector.state == DetectorState.UNTRAINED
    assert detector.detect_anomaly(make_pattern(duration_ms=60_000)) is None


@pytest.mark.asyncio
async def test_trigger_during_retrain_is_dropped(detector_config):
    gate = threading.Event()
    model = FakeOutlierModel(gate=gate)
    detector = AnomalyDetector(config=detector_config, model=model)
    patterns = normal_patterns(101)

    await feed(detector, patterns[:99])
    training = asyncio.create_task(detector.add_pattern(patterns[99]))
    try:
        for _ in range(100):
            if model.fit_calls == 1:
                break
            await asyncio.sleep(0.01)
        assert detector.state == DetectorState.RETRAINING

        await detector.add_pattern(patterns[100])
        assert await detector.retrain() is False
        assert model.fit_calls == 1
    finally:
        gate.set()
        await training

    assert detector.state == DetectorState.TRAINED
    assert len(detector.get_patterns()) == 101


@pytest.mark.asyncio
async def test_manual_retrain(detector, fake_model):
    assert await detector.retrain() is False

    await feed(detector, normal_patterns(100))
    assert await detector.retrain() is True
    assert fake_model.fit_calls == 2


@pytest.mark.asyncio
async def test_scoring_failure_returns_none(alerts):
    def broken(vector):
        raise RuntimeError("bad vector")

    detector = AnomalyDetector(
        model=FakeOutlierModel(score_fn=broken), alert_sink=CallbackAlertSink(alerts.append)
    )
    await feed(detector, normal_patterns(100))

    assert detector.detect_anomaly(make_pattern(duration_ms=60_000)) is None
    assert alerts == []


@pytest.mark.asyncio
async def test_pattern_buffer_is_bounded(fake_model):
    detector = AnomalyDetector(
        config=AnomalyDetectionConfig(min_training_patterns=100, max_patterns=150),
        model=fake_model,
    )
    patterns = normal_patterns(200)
    await feed(detector, patterns)

    assert detector.get_patterns() == patterns[50:]
    assert detector.training_size == 150


@pytest.mark.asyncio
async def test_anomaly_log_is_bounded(fake_model):
    detector = AnomalyDetector(
        config=AnomalyDetectionConfig(max_anomalies=5, enable_realtime_alerts=False),
        model=fake_model,
    )
    await feed(detector, normal_patterns(100))

    flagged = [detector.detect_anomaly(make_pattern(duration_ms=20_000 + i)) for i in range(8)]

    assert detector.get_anomalies() == flagged[3:]


@pytest.mark.asyncio
async def test_get_anomalies_filters(alerts):
    def by_errors(vector):
        return -0.9 if vector[2] >= 5 else (-0.7 if vector[2] >= 1 else -0.1)

    detector = AnomalyDetector(
        model=FakeOutlierModel(score_fn=by_errors), alert_sink=CallbackAlertSink(alerts.append)
    )
    await feed(detector, normal_patterns(100))

    detector.detect_anomaly(make_pattern(agent_name="billing", error_count=5))
    detector.detect_anomaly(make_pattern(agent_name="search", error_count=1))
    detector.detect_anomaly(make_pattern(agent_name="search", error_count=9))

    assert len(detector.get_anomalies()) == 3
    assert [a.agent_name for a in detector.get_anomalies(severity=Severity.CRITICAL)] == [
        "billing",
        "search",
    ]
    assert [a.severity for a in detector.get_anomalies(agent_name="search")] == [
        Severity.HIGH,
        Severity.CRITICAL,
    ]
    assert detector.get_anomalies(limit=1)[0].pattern.error_count == 9
    assert len(detector.get_anomalies(limit=0)) == 3
    assert len(detector.get_anomalies(limit=None)) == 3
    assert detector.get_anomalies(limit=-1) == []


@pytest.mark.asyncio
async def test_statistics(detector):
    empty = detector.get_statistics()
    assert empty["anomaly_rate"] == 0.0
    assert empty["by_severity"] == {"low": 0, "medium": 0, "high": 0, "critical": 0}

    await feed(detector, normal_patterns(100))
    detector.detect_anomaly(make_pattern(duration_ms=60_000))
    detector.detect_anomaly(make_pattern(agent_name="search", duration_ms=60_000))

    stats = detector.get_statistics()
    assert stats["total_patterns"] == 100
    assert stats["total_anomalies"] == 2
    assert stats["anomaly_rate"] == pytest.approx(0.02)
    assert stats["by_severity"]["critical"] == 2
    assert stats["by_severity"]["low"] == 0
    assert stats["by_agent"] == {"billing": 1, "search": 1}


def test_feature_extraction_order():
    # 2024-01-07 is a Sunday
    pattern = make_pattern(
        duration_ms=250,
        request_count=3,
        error_count=1,
        cpu_percent=40,
        memory_percent=None,
        timestamp=datetime(2024, 1, 7, 14, 30),
    )

    features = extract_features(pattern)

    assert len(features) == FEATURE_COUNT
    assert features == [250.0, 3.0, 1.0, 40.0, 0.0, 14.0, 0.0]
    assert extract_features(make_pattern(timestamp=datetime(2024, 1, 13)))[6] == 6.0


def test_config_validation():
    with pytest.raises(ValueError):
        AnomalyDetectionConfig(contamination=0)
    with pytest.raises(ValueError):
        AnomalyDetectionConfig(contamination=0.6)
    with pytest.raises(ValueError):
        AnomalyDetectionConfig(max_patterns=10, min_training_patterns=100)


@pytest.mark.asyncio
async def test_default_alert_sink_logs_warning(fake_model, caplog):
    detector = AnomalyDetector(model=fake_model)
    await feed(detector, normal_patterns(100))

    with caplog.at_level(logging.WARNING, logger="anomaly.alerts"):
        detector.detect_anomaly(make_pattern(duration_ms=60_000))

    assert any("[ANOMALY] ALERT:" in r.getMessage() for r in caplog.records)


def test_failing_alert_callback_is_contained():
    def broken(alert):
        raise RuntimeError("pager down")

    CallbackAlertSink(broken).send({"severity": "critical"})


@pytest.mark.asyncio
async def test_falsy_limit_means_default(fake_model):
    detector = AnomalyDetector(
        config=AnomalyDetectionConfig(enable_realtime_alerts=False), model=fake_model
    )
    await feed(detector, normal_patterns(100))
    for i in range(120):
        detector.detect_anomaly(make_pattern(duration_ms=20_000 + i))

    recent = detector.get_anomalies(limit=0)

    assert len(recent) == AnomalyDetector.DEFAULT_ANOMALY_LIMIT
    assert recent[-1].pattern.duration_ms == 20_119


def test_default_config_is_shared_and_immutable(fake_model):
    detector = AnomalyDetector(model=fake_model)

    assert detector.config is DEFAULT_CONFIG
    with pytest.raises(FrozenInstanceError):
        detector.config.score_threshold = -0.9
