"""
Events, balance monitoring, record validation, persistence and settings tests
"""
import json

import pytest

from banzuke.ranks import MAEZUMO_RANK, Division, Side, Title, makuuchi, ranked
from simulation.config import SimulationConfig
from simulation.events import CareerEvent, CareerEventType, EventPublisher
from simulation.monitoring import AlertSeverity, BalanceMonitor, MetricType
from simulation.persistence import load_snapshot, save_snapshot, snapshot_path
from simulation.schemas import CareerSnapshot, CareerStatus, ValidationSeverity
from simulation.validators import RecordValidator

from conftest import make_record


def _snapshot(history=None, seed=17):
    return CareerSnapshot(
        subject_id="PLAYER",
        shikona="Kaiseiyama",
        seed=seed,
        status=CareerStatus.RETIRED,
        current_rank=ranked(Division.JURYO, 3, Side.WEST),
        age=31,
        history=history if history is not None else [
            make_record(MAEZUMO_RANK, 3, year=2024, month=1),
            make_record(ranked(Division.JONOKUCHI, 10), 6, year=2024, month=3),
            make_record(ranked(Division.JURYO, 3, Side.WEST), 11, year=2024, month=5, runner_up=True),
        ],
        retirement_reason="age",
    )


# =====================================================
# Events
# =====================================================

class TestEventPublisher:
    """In-process publish/subscribe"""

    def _event(self, event_type=CareerEventType.PROMOTION, month=1):
        return CareerEvent(event_type=event_type, subject_id="PLAYER", year=2024, month=month)

    def test_subscriber_receives_event(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(CareerEventType.PROMOTION, received.append)
        publisher.publish(self._event())
        publisher.publish(self._event(CareerEventType.DEMOTION))
        assert len(received) == 1
        assert received[0].event_type == CareerEventType.PROMOTION

    def test_unsubscribe(self):
        publisher = EventPublisher()
        received = []
        publisher.subscribe(CareerEventType.PROMOTION, received.append)
        publisher.unsubscribe(CareerEventType.PROMOTION, received.append)
        publisher.publish(self._event())
        assert received == []

    def test_failing_subscriber_does_not_stop_others(self):
        publisher = EventPublisher()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        publisher.subscribe(CareerEventType.YUSHO, broken)
        publisher.subscribe(CareerEventType.YUSHO, received.append)
        publisher.publish(self._event(CareerEventType.YUSHO))
        assert len(received) == 1

    def test_log_is_bounded(self):
        publisher = EventPublisher(max_log_size=5)
        for month in range(1, 13):
            publisher.publish(self._event(month=month))
        recent = publisher.get_recent_events()
        assert len(recent) == 5
        assert recent[-1].month == 12
        assert publisher.count(CareerEventType.PROMOTION) == 5

    def test_recent_events_filtered(self):
        publisher = EventPublisher()
        publisher.publish(self._event())
        publisher.publish(self._event(CareerEventType.RETIREMENT))
        assert [e.event_type for e in publisher.get_recent_events(event_type=CareerEventType.RETIREMENT)] == [
            CareerEventType.RETIREMENT
        ]

    def test_json_form(self):
        event = CareerEvent(CareerEventType.YUSHO, "PLAYER", 2024, 5, data={"wins": 15})
        data = json.loads(event.to_json())
        assert data["event_type"] == "career.yusho"
        assert data["basho"] == "2024-05"
        assert data["data"] == {"wins": 15}


# =====================================================
# Monitoring
# =====================================================

class TestBalanceMonitor:
    """Batch metrics and alerts"""

    def test_clean_batch_is_healthy(self):
        monitor = BalanceMonitor()
        snapshots = [_snapshot(seed=s) for s in range(3)]
        monitor.check_invariants(snapshots)
        monitor.check_unmatched_mandatory(0, 9)
        monitor.check_sekitori_reach(snapshots)
        report = monitor.get_report()
        assert report["health_status"] == "healthy"
        assert report["alerts"] == []

    def test_unmatched_rate_alert(self):
        monitor = BalanceMonitor()
        metric = monitor.check_unmatched_mandatory(5, 10)
        assert not metric.is_healthy
        alerts = monitor.get_alerts()
        assert len(alerts) == 1
        assert alerts[0].severity == AlertSeverity.CRITICAL

    def test_short_careers_alert(self):
        monitor = BalanceMonitor()
        monitor.check_career_length([_snapshot()])
        assert monitor.get_alerts()[0].metric.metric_type == MetricType.MEAN_CAREER_LENGTH

    def test_acknowledge_all(self):
        monitor = BalanceMonitor()
        monitor.check_unmatched_mandatory(5, 10)
        assert monitor.acknowledge_all() == 1
        assert monitor.get_alerts() == []
        assert len(monitor.get_alerts(include_acknowledged=True)) == 1

    def test_custom_thresholds(self):
        monitor = BalanceMonitor({MetricType.MEAN_CAREER_LENGTH: 2})
        assert monitor.check_career_length([_snapshot()]).is_healthy


# =====================================================
# Validation
# =====================================================

class TestRecordValidator:
    """TournamentRecord checks"""

    def test_valid_record(self):
        result = RecordValidator().validate(make_record(ranked(Division.SANDANME, 12), 5))
        assert result.is_valid
        assert result.pass_rate == 1.0

    def test_bout_count_violation_from_raw_dict(self):
        data = make_record(ranked(Division.SANDANME, 12), 5).model_dump()
        data["losses"] = 5
        result = RecordValidator().validate(data)
        assert not result.is_valid
        assert result.errors[0].error_type == "RECORD_INVARIANT_FAILED"
        assert result.errors[0].severity == ValidationSeverity.CRITICAL
        assert result.has_critical_errors

    def test_illegal_rank_shape(self):
        record = make_record(ranked(Division.JONOKUCHI, 40), 4)
        result = RecordValidator().validate(record)
        assert [e.error_type for e in result.errors] == ["INVALID_RANK_SHAPE"]

    def test_gold_stars_only_for_maegashira(self):
        record = make_record(makuuchi(Title.SEKIWAKE), 9, gold_stars=1)
        result = RecordValidator().validate(record)
        assert "GOLD_STAR_RANK" in [e.error_type for e in result.errors]

    def test_technique_tally_warning(self):
        record = make_record(ranked(Division.JONIDAN, 3), 2, technique_tally={"yorikiri": 4})
        result = RecordValidator().validate(record)
        assert result.is_valid
        assert result.warnings[0].error_type == "TECHNIQUE_TALLY"

    def test_batch_pass_rate(self):
        good = make_record(ranked(Division.JONIDAN, 3), 4)
        bad = make_record(ranked(Division.JONIDAN, 300), 4)
        result = RecordValidator().validate_batch([good, good, good, bad])
        assert result.pass_rate == pytest.approx(0.75)


# =====================================================
# Persistence
# =====================================================

class TestPersistence:
    """Career snapshot JSON"""

    def test_round_trip(self, tmp_path):
        snapshot = _snapshot()
        path = save_snapshot(snapshot, snapshot_path(tmp_path, snapshot))
        assert path.name == "career_17.json"
        loaded = load_snapshot(path)
        assert loaded == snapshot
        assert loaded.summary()["highest_rank"] == "Juryo 3w"

    def test_summary(self):
        summary = _snapshot().summary()
        assert summary["basho"] == 3
        assert summary["record"] == "20-5-0"
        assert summary["championships"] == 0
        assert summary["status"] == "retired"


# =====================================================
# Settings
# =====================================================

class TestSimulationConfig:
    """pydantic-settings configuration"""

    def test_defaults(self):
        config = SimulationConfig()
        assert config.max_basho > 0
        assert config.juryo_guest_count == 6

    def test_keyword_overrides(self):
        config = SimulationConfig(seed=5, max_basho=3, injuries_enabled=False)
        assert (config.seed, config.max_basho, config.injuries_enabled) == (5, 3, False)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("BANZUKE_RETIREMENT_AGE", "33")
        assert SimulationConfig().retirement_age == 33
