"""
Black Swan Events — rare exogenous shocks.

At most one event fires per cycle. Probabilities are adjusted to the current
world before the Bernoulli draws; fired events stay active for their
duration and their impacts sum while active.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from civ_kernel.models.events import BlackSwanEvent, BlackSwanEventType
from civ_kernel.models.world import WorldState

logger = logging.getLogger(__name__)

MAX_PROBABILITY_MULTIPLIER = 3.0

DEFAULT_EVENT_TYPES: List[BlackSwanEventType] = [
    BlackSwanEventType(
        name="Global Pandemic",
        probability=0.001,
        impact={
            "population": {"health": -0.3, "happiness": -0.25},
            "economy": {"growth_rate": -0.15, "market_confidence": -0.4},
            "stability": {"social": -0.2, "overall": -0.18},
        },
        duration=20,
    ),
    BlackSwanEventType(
        name="Technological Singularity",
        probability=0.0005,
        impact={
            "technology": {"level": 0.5, "innovation_rate": 0.2},
            "economy": {"productivity": 0.4, "growth_rate": 0.1},
            "society": {"adaptability": 0.3},
        },
        duration=50,
    ),
    BlackSwanEventType(
        name="Economic Collapse",
        probability=0.005,
        impact={
            "economy": {"resources": -0.4, "market_confidence": -0.5, "employment": -0.3},
            "population": {"happiness": -0.3, "health": -0.1},
            "stability": {"economic": -0.4, "overall": -0.3},
        },
        duration=30,
    ),
    BlackSwanEventType(
        name="Natural Disaster",
        probability=0.02,
        impact={
            "population": {"count": -0.05, "happiness": -0.2},
            "economy": {"resources": -0.15, "trade_volume": -0.2},
            "infrastructure": {"damage": 0.3},
        },
        duration=10,
    ),
    BlackSwanEventType(
        name="Revolution",
        probability=0.01,
        impact={
            "stability": {"political": -0.4, "social": -0.3, "overall": -0.35},
            "population": {"happiness": -0.2, "trust": -0.3},
            "economy": {"market_confidence": -0.3},
        },
        duration=15,
    ),
    BlackSwanEventType(
        name="Resource Discovery",
        probability=0.015,
        impact={
            "economy": {"resources": 0.3, "growth_rate": 0.1},
            "technology": {"research_investment": 0.2},
            "population": {"happiness": 0.15},
        },
        duration=25,
    ),
    BlackSwanEventType(
        name="AI Breakthrough",
        probability=0.01,
        impact={
            "technology": {"level": 0.2, "innovation_rate": 0.15},
            "economy": {"productivity": 0.2, "employment": -0.1},
            "society": {"adaptability": 0.2},
        },
        duration=40,
    ),
]


def _event_slug(name: str) -> str:
    return name.lower().replace(" ", "_")


class BlackSwanEvents:
    """Catalog of shock types plus the countdowns of fired events."""

    def __init__(self, event_types: Optional[List[BlackSwanEventType]] = None):
        self.event_types = list(DEFAULT_EVENT_TYPES if event_types is None else event_types)
        self._active: List[BlackSwanEvent] = []

    def adjust_probability(self, event_type: BlackSwanEventType, world_state: WorldState) -> float:
        """Context-adjusted per-cycle probability, clamped to [0, 3x base]."""
        systems = world_state.systems
        probability = event_type.probability

        if event_type.name == "Revolution":
            probability *= 1.5 - systems.stability.overall
        elif event_type.name == "Global Pandemic":
            probability *= 0.8 + systems.population.urbanization * 0.5
        elif event_type.name == "Economic Collapse":
            probability *= (
                1.5 - systems.economy.market_confidence + systems.economy.inflation * 5
            )

        ceiling = event_type.probability * MAX_PROBABILITY_MULTIPLIER
        return min(max(probability, 0.0), ceiling)

    def adjusted_probabilities(self, world_state: WorldState) -> List[Tuple[BlackSwanEventType, float]]:
        return [(t, self.adjust_probability(t, world_state)) for t in self.event_types]

    def select_event(
        self, world_state: WorldState, cycle: int, rng: np.random.Generator
    ) -> Optional[BlackSwanEvent]:
        """Draw in catalog order and return the first type that fires, untracked."""
        for event_type, probability in self.adjusted_probabilities(world_state):
            if rng.random() < probability:
                return self._instantiate(event_type, cycle, rng)
        return None

    def track(self, event: BlackSwanEvent) -> None:
        self._active.append(event)
        logger.warning(
            "BLACK SWAN EVENT: %s (severity %.2f) at cycle %d",
            event.name, event.severity, event.cycle_triggered,
        )

    def generate_event(
        self, world_state: WorldState, cycle: int, rng: np.random.Generator
    ) -> Optional[BlackSwanEvent]:
        event = self.select_event(world_state, cycle, rng)
        if event is not None:
            self.track(event)
        return event

    def update_active_events(self) -> List[BlackSwanEvent]:
        """Decrement countdowns; returns the events that expired."""
        expired = []
        still_active = []
        for event in self._active:
            event.remaining_duration -= 1
            if event.remaining_duration <= 0:
                expired.append(event)
            else:
                still_active.append(event)
        self._active = still_active
        for event in expired:
            logger.info("Black swan event ended: %s", event.name)
        return expired

    def get_active_events(self) -> List[BlackSwanEvent]:
        return list(self._active)

    def get_event_impact(self) -> Dict[str, Dict[str, float]]:
        """Sum of the impacts of every active event."""
        return sum_impacts(self._active)

    def _instantiate(
        self, event_type: BlackSwanEventType, cycle: int, rng: np.random.Generator
    ) -> BlackSwanEvent:
        severity = float(rng.uniform(0.7, 1.3))
        impact = {
            system: {name: delta * severity for name, delta in fields.items()}
            for system, fields in event_type.impact.items()
        }
        return BlackSwanEvent(
            id=f"{_event_slug(event_type.name)}_{cycle}",
            name=event_type.name,
            cycle_triggered=cycle,
            impact=impact,
            duration=event_type.duration,
            remaining_duration=event_type.duration,
            severity=severity,
        )


def sum_impacts(events: List[BlackSwanEvent]) -> Dict[str, Dict[str, float]]:
    total: Dict[str, Dict[str, float]] = {}
    for event in events:
        for system, fields in event.impact.items():
            bucket = total.setdefault(system, {})
            for name, delta in fields.items():
                bucket[name] = bucket.get(name, 0.0) + delta
    return total
