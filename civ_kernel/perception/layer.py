"""
Perception Layer — what the machine actually sees of the world.

Each system passes through a relevance/noise/window profile: symmetric noise
is added, the value is scaled by relevance, then averaged over the last
window cycles. Trend metrics and anomalies are computed from the raw series.
All rolling buffers live in PerceptionMemory, which is returned rather than
mutated so a cycle can be discarded without side effects.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from civ_kernel.models.machine import MachineState
from civ_kernel.models.perception import (
    Anomaly,
    AnomalySeverity,
    DerivedMetrics,
    MachineInfluencePerception,
    PerceivedWorldState,
    PerceptionFilter,
    PerceptionMemory,
    TrendMetrics,
)
from civ_kernel.models.world import WorldState
from civ_kernel.utils import clamp, mean, scalar_values

logger = logging.getLogger(__name__)

MAX_RAW_HISTORY = 20
ANOMALY_THRESHOLD = 0.1
ANOMALY_LOOKBACK = 3

PERCEPTION_FILTERS: Dict[str, PerceptionFilter] = {
    "economy": PerceptionFilter(relevance=0.8, noise_factor=0.1, aggregation_window=3, importance_weight=0.25),
    "population": PerceptionFilter(relevance=0.7, noise_factor=0.15, aggregation_window=5, importance_weight=0.2),
    "technology": PerceptionFilter(relevance=0.9, noise_factor=0.05, aggregation_window=2, importance_weight=0.2),
    "stability": PerceptionFilter(relevance=0.95, noise_factor=0.08, aggregation_window=2, importance_weight=0.25),
    "entropy": PerceptionFilter(relevance=0.85, noise_factor=0.12, aggregation_window=3, importance_weight=0.15),
    "resistance": PerceptionFilter(relevance=0.6, noise_factor=0.2, aggregation_window=4, importance_weight=0.15),
    "machine_influence": PerceptionFilter(relevance=1.0, noise_factor=0.05, aggregation_window=1, importance_weight=0.3),
}
DEFAULT_FILTER = PerceptionFilter(relevance=0.5, noise_factor=0.1, aggregation_window=3, importance_weight=0.1)


def calculate_trend_metrics(values: List[float]) -> TrendMetrics:
    """Direction, momentum, acceleration and strength of a raw series."""
    n = len(values)
    if n < 2:
        return TrendMetrics()

    direction = values[-1] - values[0]
    relative_direction = direction / abs(values[0]) if values[0] else 0.0
    momentum = direction / n

    acceleration = 0.0
    if n >= 3:
        mid = n // 2
        first_half = (values[mid] - values[0]) / (n / 2)
        second_half = (values[-1] - values[mid]) / (n - mid)
        acceleration = second_half - first_half

    consistent = 0
    for previous, current in zip(values, values[1:]):
        if np.sign(current - previous) == np.sign(direction):
            consistent += 1
    strength = consistent / (n - 1)

    return TrendMetrics(
        direction=direction,
        relative_direction=relative_direction,
        momentum=momentum,
        acceleration=acceleration,
        strength=strength,
    )


class PerceptionLayer:
    """Filters raw WorldState snapshots into PerceivedWorldState."""

    def __init__(self, filters: Optional[Dict[str, PerceptionFilter]] = None):
        self.filters = dict(PERCEPTION_FILTERS if filters is None else filters)

    def get_filter(self, system: str) -> PerceptionFilter:
        return self.filters.get(system, DEFAULT_FILTER)

    def perceive(
        self,
        world_state: WorldState,
        machine_state: MachineState,
        rng: np.random.Generator,
        cycle: Optional[int] = None,
    ) -> Tuple[PerceivedWorldState, PerceptionMemory]:
        memory = machine_state.perception_memory.model_copy(deep=True)
        raw = {
            system: scalar_values(getattr(world_state.systems, system))
            for system in type(world_state.systems).model_fields
        }

        systems = {
            system: self._filter_system(system, values, memory, rng)
            for system, values in raw.items()
        }
        anomalies = self._detect_anomalies(raw, memory)
        trends = self._calculate_trends(raw, memory)

        perceived = PerceivedWorldState(
            cycle=world_state.cycle if cycle is None else cycle,
            systems=systems,
            trends=trends,
            anomalies=anomalies,
            confidence=self._perception_confidence(world_state, machine_state),
            machine_influence=self._perceive_machine_influence(machine_state, rng),
        )
        return perceived, memory

    def get_derived_metrics(self, perceived: PerceivedWorldState) -> DerivedMetrics:
        stability = perceived.systems.get("stability", {})
        entropy = perceived.systems.get("entropy", {})
        resistance = perceived.systems.get("resistance", {})

        overall_stability = stability.get("overall", 0.5)
        systemic_risk = clamp(
            entropy.get("current", 0.0) * 0.4
            + (1 - overall_stability) * 0.3
            + resistance.get("to_change", 0.0) * 0.2
            + min(0.1, len(perceived.anomalies) * 0.05),
            0.0, 1.0,
        )

        all_trends = [m for params in perceived.trends.values() for m in params.values()]
        change_velocity = mean(abs(m.momentum) for m in all_trends)

        directions = [np.sign(m.direction) for m in all_trends if m.direction != 0]
        coherence = 1.0
        if directions:
            rising = sum(1 for d in directions if d > 0)
            coherence = max(rising, len(directions) - rising) / len(directions)

        if change_velocity > 0.3 or overall_stability < 0.3:
            opportunity = min(change_velocity * overall_stability * 2, 1.0)
        else:
            opportunity = change_velocity * overall_stability * 1.5

        return DerivedMetrics(
            overall_stability=overall_stability,
            systemic_risk=systemic_risk,
            change_velocity=change_velocity,
            coherence=coherence,
            opportunity_level=clamp(opportunity, 0.0, 1.0),
        )

    # -- internals ----------------------------------------------------------

    def _filter_system(self, system, values, memory, rng):
        profile = self.get_filter(system)
        noisy = {
            name: (value + rng.uniform(-1, 1) * profile.noise_factor) * profile.relevance
            for name, value in values.items()
        }
        if profile.aggregation_window <= 1:
            return noisy

        window = memory.smoothing_windows.get(system, []) + [noisy]
        window = window[-profile.aggregation_window:]
        memory.smoothing_windows[system] = window
        return {
            name: mean(sample[name] for sample in window if name in sample)
            for name in noisy
        }

    def _detect_anomalies(self, raw, memory) -> List[Anomaly]:
        anomalies = []
        for system, values in raw.items():
            for name, actual in values.items():
                history = memory.raw_history.get(f"{system}.{name}", [])
                if not history:
                    continue
                expected = mean(history[-ANOMALY_LOOKBACK:])
                deviation = abs(actual - expected)
                if deviation > ANOMALY_THRESHOLD:
                    anomalies.append(Anomaly(
                        system=system,
                        parameter=name,
                        actual_value=actual,
                        expected_value=expected,
                        deviation=deviation,
                        severity=(
                            AnomalySeverity.HIGH
                            if deviation > ANOMALY_THRESHOLD * 2
                            else AnomalySeverity.MEDIUM
                        ),
                    ))
        return anomalies

    def _calculate_trends(self, raw, memory) -> Dict[str, Dict[str, TrendMetrics]]:
        trends: Dict[str, Dict[str, TrendMetrics]] = {}
        for system, values in raw.items():
            trends[system] = {}
            for name, value in values.items():
                key = f"{system}.{name}"
                history = (memory.raw_history.get(key, []) + [value])[-MAX_RAW_HISTORY:]
                memory.raw_history[key] = history
                trends[system][name] = calculate_trend_metrics(history)
        return trends

    def _perception_confidence(self, world_state, machine_state) -> float:
        systems = world_state.systems
        return clamp(
            0.7
            + (systems.stability.overall - 0.5) * 0.2
            - systems.entropy.current * 0.3
            + (machine_state.belief_system.confidence - 0.7) * 0.1,
            0.1, 1.0,
        )

    def _perceive_machine_influence(self, machine_state, rng) -> MachineInfluencePerception:
        profile = self.get_filter("machine_influence")

        def _see(value):
            return (value + rng.uniform(-1, 1) * profile.noise_factor) * profile.relevance

        return MachineInfluencePerception(
            actual_interventions=len(machine_state.intervention_engine.active_interventions),
            perceived_effectiveness=_see(machine_state.intervention_engine.success_rate),
            belief_in_own_capabilities=_see(machine_state.belief_system.confidence),
            emotional_certainty=_see(machine_state.emotion_system.regulation),
            introspective_clarity=_see(machine_state.introspection_engine.self_awareness),
        )
