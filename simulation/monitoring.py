"""
Balance monitoring

Batch-level health metrics of simulated careers, checked against thresholds.
"""

from typing import Dict, Any, List, Optional, Sequence
from datetime import datetime
from loguru import logger
from enum import Enum
from dataclasses import dataclass, field

from banzuke.ranks import SEKITORI_DIVISIONS

from .schemas import CareerSnapshot
from .validators import RecordValidator


class AlertSeverity(str, Enum):
    """Alert severity"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class MetricType(str, Enum):
    """Metric types"""
    INVARIANT_PASS_RATE = "invariant_pass_rate"
    UNMATCHED_MANDATORY_RATE = "unmatched_mandatory_rate"
    SEKITORI_REACH_RATE = "sekitori_reach_rate"
    MEAN_CAREER_LENGTH = "mean_career_length"


# Metrics where larger is healthier
HIGHER_IS_BETTER = (
    MetricType.INVARIANT_PASS_RATE,
    MetricType.SEKITORI_REACH_RATE,
    MetricType.MEAN_CAREER_LENGTH,
)


@dataclass
class BalanceMetric:
    metric_type: MetricType
    value: float
    threshold: float
    timestamp: datetime = field(default_factory=datetime.now)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        if self.metric_type in HIGHER_IS_BETTER:
            return self.value >= self.threshold
        return self.value <= self.threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_type": self.metric_type.value,
            "value": self.value,
            "threshold": self.threshold,
            "is_healthy": self.is_healthy,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }


@dataclass
class Alert:
    severity: AlertSeverity
    title: str
    message: str
    metric: Optional[BalanceMetric] = None
    timestamp: datetime = field(default_factory=datetime.now)
    acknowledged: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "metric": self.metric.to_dict() if self.metric else None,
            "timestamp": self.timestamp.isoformat(),
            "acknowledged": self.acknowledged,
        }


class BalanceMonitor:
    """
    Simulation balance monitor

    - records batch metrics
    - raises alerts when a metric misses its threshold
    - summarizes the latest state for reports
    """

    DEFAULT_THRESHOLDS = {
        MetricType.INVARIANT_PASS_RATE: 1.0,        # every record well-formed
        MetricType.UNMATCHED_MANDATORY_RATE: 0.05,  # per cycle
        MetricType.SEKITORI_REACH_RATE: 0.05,       # careers reaching Juryo or above
        MetricType.MEAN_CAREER_LENGTH: 12,          # cycles
    }

    def __init__(self, thresholds: Optional[Dict[MetricType, float]] = None):
        self.thresholds = {**self.DEFAULT_THRESHOLDS, **(thresholds or {})}
        self._metrics: List[BalanceMetric] = []
        self._alerts: List[Alert] = []
        self._max_history = 10000
        self.validator = RecordValidator()

    # ==================== metrics ====================

    def record_metric(
        self,
        metric_type: MetricType,
        value: float,
        details: Optional[Dict[str, Any]] = None
    ) -> BalanceMetric:
        metric = BalanceMetric(
            metric_type=metric_type,
            value=value,
            threshold=self.thresholds.get(metric_type, 0),
            details=details or {}
        )

        self._metrics.append(metric)
        if len(self._metrics) > self._max_history:
            self._metrics = self._metrics[-self._max_history:]

        if not metric.is_healthy:
            self._create_alert(metric)
        return metric

    def _create_alert(self, metric: BalanceMetric) -> Alert:
        alert = Alert(
            severity=self._determine_severity(metric),
            title=f"{metric.metric_type.value} out of range",
            message=self._generate_alert_message(metric),
            metric=metric
        )
        self._alerts.append(alert)
        logger.warning(f"🚨 Alert: {alert.title} - {alert.message}")
        return alert

    def _determine_severity(self, metric: BalanceMetric) -> AlertSeverity:
        threshold = metric.threshold
        deviation = abs(metric.value - threshold) / (threshold if threshold != 0 else 1)

        if deviation > 0.5:
            return AlertSeverity.CRITICAL
        elif deviation > 0.2:
            return AlertSeverity.ERROR
        elif deviation > 0.1:
            return AlertSeverity.WARNING
        else:
            return AlertSeverity.INFO

    def _generate_alert_message(self, metric: BalanceMetric) -> str:
        messages = {
            MetricType.INVARIANT_PASS_RATE: f"Record invariants held for {metric.value:.1%} of records (threshold {metric.threshold:.1%}).",
            MetricType.UNMATCHED_MANDATORY_RATE: f"{metric.value:.1%} of cycles had unmatched mandatory moves (threshold {metric.threshold:.1%}).",
            MetricType.SEKITORI_REACH_RATE: f"Only {metric.value:.1%} of careers reached sekitori (threshold {metric.threshold:.1%}).",
            MetricType.MEAN_CAREER_LENGTH: f"Mean career length {metric.value:.1f} cycles (threshold {metric.threshold}).",
        }
        return messages.get(metric.metric_type, f"{metric.metric_type.value}: {metric.value}")

    # ==================== checks ====================

    def check_invariants(self, snapshots: Sequence[CareerSnapshot]) -> BalanceMetric:
        total = 0
        passed = 0
        for snapshot in snapshots:
            for record in snapshot.history:
                total += 1
                if self.validator.validate(record).is_valid:
                    passed += 1
        rate = passed / total if total > 0 else 1.0
        return self.record_metric(
            MetricType.INVARIANT_PASS_RATE,
            rate,
            {"total": total, "passed": passed},
        )

    def check_unmatched_mandatory(self, unmatched_cycles: int, total_cycles: int) -> BalanceMetric:
        rate = unmatched_cycles / total_cycles if total_cycles > 0 else 0.0
        return self.record_metric(
            MetricType.UNMATCHED_MANDATORY_RATE,
            rate,
            {"unmatched_cycles": unmatched_cycles, "total_cycles": total_cycles},
        )

    def check_sekitori_reach(self, snapshots: Sequence[CareerSnapshot]) -> BalanceMetric:
        reached = sum(
            1 for s in snapshots
            if any(r.rank.division in SEKITORI_DIVISIONS for r in s.history)
        )
        rate = reached / len(snapshots) if snapshots else 0.0
        return self.record_metric(
            MetricType.SEKITORI_REACH_RATE,
            rate,
            {"careers": len(snapshots), "reached": reached},
        )

    def check_career_length(self, snapshots: Sequence[CareerSnapshot]) -> BalanceMetric:
        mean = sum(s.basho_count for s in snapshots) / len(snapshots) if snapshots else 0.0
        return self.record_metric(
            MetricType.MEAN_CAREER_LENGTH,
            mean,
            {"careers": len(snapshots)},
        )

    # ==================== report ====================

    def get_alerts(self, include_acknowledged: bool = False) -> List[Alert]:
        if include_acknowledged:
            return list(self._alerts)
        return [a for a in self._alerts if not a.acknowledged]

    def acknowledge_all(self) -> int:
        count = 0
        for alert in self._alerts:
            if not alert.acknowledged:
                alert.acknowledged = True
                count += 1
        return count

    def get_report(self) -> Dict[str, Any]:
        latest_by_type = {}
        for metric in reversed(self._metrics):
            if metric.metric_type not in latest_by_type:
                latest_by_type[metric.metric_type] = metric

        health_scores = [m.is_healthy for m in latest_by_type.values()]
        overall_health = sum(health_scores) / len(health_scores) if health_scores else 1.0
        return {
            "overall_health": overall_health,
            "health_status": "healthy" if overall_health >= 0.9 else (
                "degraded" if overall_health >= 0.5 else "unhealthy"
            ),
            "metrics": {k.value: v.to_dict() for k, v in latest_by_type.items()},
            "alerts": [a.to_dict() for a in self.get_alerts()],
        }
