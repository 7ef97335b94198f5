"""
Event Dispatcher — typed publish/subscribe for simulation events.

Subscribers are notified synchronously on emit. The queue is drained by
process_event_queue, which routes each event to its typed handler. History
is bounded.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional

import numpy as np

from civ_kernel.events.black_swan import BlackSwanEvents
from civ_kernel.models.events import BlackSwanEvent, SimulationEvent
from civ_kernel.models.world import WorldState

logger = logging.getLogger(__name__)

WILDCARD = "*"

Subscriber = Callable[[SimulationEvent], None]


class EventDispatcher:
    """Fan-out of SimulationEvents to subscribers, with a bounded history."""

    def __init__(
        self,
        black_swan_events: Optional[BlackSwanEvents] = None,
        max_history_size: int = 1000,
    ):
        self.black_swan_events = black_swan_events or BlackSwanEvents()
        self.max_history_size = max_history_size
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)
        self._queue: List[SimulationEvent] = []
        self._history: List[SimulationEvent] = []
        self._handlers: Dict[str, Callable[[SimulationEvent], None]] = {
            "black_swan": self._handle_black_swan,
            "world_change": self._handle_world_change,
            "machine_action": self._handle_machine_action,
            "intervention": self._handle_intervention,
            "system_alert": self._handle_system_alert,
        }

    # -- subscription -------------------------------------------------------

    def subscribe(self, event_type: str, callback: Subscriber) -> Callable[[], None]:
        """Register callback for event_type (or "*"). Returns an unsubscribe function."""
        self._subscribers[event_type].append(callback)
        return lambda: self.unsubscribe(event_type, callback)

    def unsubscribe(self, event_type: str, callback: Subscriber) -> bool:
        callbacks = self._subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)
            return True
        return False

    # -- dispatch -----------------------------------------------------------

    def emit(self, event: SimulationEvent) -> None:
        self._queue.append(event)
        self._history.append(event)
        if len(self._history) > self.max_history_size:
            self._history = self._history[-self.max_history_size:]
        self._notify_subscribers(event)

    def process_event_queue(self) -> int:
        """Route every queued event to its handler. Returns how many were processed."""
        processed = 0
        while self._queue:
            event = self._queue.pop(0)
            self.handle_event(event)
            processed += 1
        return processed

    def handle_event(self, event: SimulationEvent) -> None:
        handler = self._handlers.get(event.type)
        if handler is None:
            logger.debug("No handler for event type %s", event.type)
            return
        handler(event)

    def clear_queue(self) -> None:
        self._queue.clear()

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    # -- black swans --------------------------------------------------------

    def check_for_black_swan_events(
        self, world_state: WorldState, cycle: int, rng: np.random.Generator
    ) -> Optional[BlackSwanEvent]:
        event = self.black_swan_events.select_event(world_state, cycle, rng)
        if event is not None:
            self.publish_black_swan(event)
        return event

    def publish_black_swan(self, event: BlackSwanEvent) -> None:
        """Start tracking a fired event and announce it."""
        self.black_swan_events.track(event)
        self.emit(SimulationEvent(
            type="black_swan",
            cycle=event.cycle_triggered,
            payload=event.model_dump(mode="json"),
        ))

    def update_active_events(self) -> List[BlackSwanEvent]:
        return self.black_swan_events.update_active_events()

    def get_active_events(self) -> List[BlackSwanEvent]:
        return self.black_swan_events.get_active_events()

    def get_event_impact(self) -> Dict[str, Dict[str, float]]:
        return self.black_swan_events.get_event_impact()

    # -- history ------------------------------------------------------------

    def get_recent_events(self, limit: int = 10) -> List[SimulationEvent]:
        return self._history[-limit:]

    def get_events_by_type(self, event_type: str, limit: int = 10) -> List[SimulationEvent]:
        matching = [e for e in self._history if e.type == event_type]
        return matching[-limit:]

    # -- internals ----------------------------------------------------------

    def _notify_subscribers(self, event: SimulationEvent) -> None:
        callbacks = list(self._subscribers.get(event.type, []))
        callbacks += self._subscribers.get(WILDCARD, [])
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber failed on %s event", event.type)

    def _handle_black_swan(self, event: SimulationEvent) -> None:
        logger.warning(
            "Processing black swan %s (severity %.2f)",
            event.payload.get("name"), event.payload.get("severity", 0.0),
        )

    def _handle_world_change(self, event: SimulationEvent) -> None:
        logger.debug("World changed at cycle %s", event.cycle)

    def _handle_machine_action(self, event: SimulationEvent) -> None:
        logger.debug("Machine acted at cycle %s: %s", event.cycle, event.payload)

    def _handle_intervention(self, event: SimulationEvent) -> None:
        logger.info(
            "Intervention %s applied to %s",
            event.payload.get("id"), event.payload.get("target_system"),
        )

    def _handle_system_alert(self, event: SimulationEvent) -> None:
        logger.warning(
            "System alert %s: %s=%s",
            event.payload.get("trigger"), event.payload.get("path"), event.payload.get("value"),
        )
