"""
Career event publish/subscribe

Milestones of the tracked competitor (and world-level exchange anomalies)
are published to in-process subscribers and kept in a bounded log.
"""

from typing import Dict, Any, List, Callable, Optional
from enum import Enum
from dataclasses import dataclass, field
from loguru import logger
import json
from collections import defaultdict


class CareerEventType(str, Enum):
    """Event types"""
    # banzuke movement
    PROMOTION = "career.promotion"
    DEMOTION = "career.demotion"

    # results
    YUSHO = "career.yusho"
    JUN_YUSHO = "career.jun_yusho"

    # Ozeki
    KADOBAN = "career.kadoban"
    OZEKI_RETURN = "career.ozeki_return"

    # world
    UNMATCHED_MANDATORY = "world.unmatched_mandatory"

    # end
    RETIREMENT = "career.retirement"


@dataclass
class CareerEvent:
    """One milestone, stamped with the cycle it happened in"""
    event_type: CareerEventType
    subject_id: str
    year: int
    month: int
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = "career_engine"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "subject_id": self.subject_id,
            "basho": f"{self.year}-{self.month:02d}",
            "data": self.data,
            "source": self.source,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


class EventPublisher:
    """Event publisher"""

    def __init__(self, max_log_size: int = 1000):
        self.local_subscribers: Dict[CareerEventType, List[Callable]] = defaultdict(list)
        self._event_log: List[CareerEvent] = []
        self._max_log_size = max_log_size

    def publish(self, event: CareerEvent) -> None:
        logger.debug(f"📢 Event published: {event.event_type.value} - {event.subject_id} {event.year}-{event.month:02d}")

        self._event_log.append(event)
        if len(self._event_log) > self._max_log_size:
            self._event_log = self._event_log[-self._max_log_size:]

        for subscriber in self.local_subscribers.get(event.event_type, []):
            try:
                subscriber(event)
            except Exception as e:
                logger.error(f"Subscriber failed for {event.event_type.value}: {e}")

    def subscribe(self, event_type: CareerEventType, callback: Callable) -> None:
        self.local_subscribers[event_type].append(callback)
        logger.debug(f"✅ Subscribed to {event_type.value}")

    def unsubscribe(self, event_type: CareerEventType, callback: Callable) -> None:
        if callback in self.local_subscribers[event_type]:
            self.local_subscribers[event_type].remove(callback)
            logger.debug(f"❌ Unsubscribed from {event_type.value}")

    def get_recent_events(self, limit: int = 100, event_type: Optional[CareerEventType] = None) -> List[CareerEvent]:
        events = self._event_log
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        return events[-limit:]

    def count(self, event_type: CareerEventType) -> int:
        return sum(1 for e in self._event_log if e.event_type == event_type)
