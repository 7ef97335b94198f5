"""
World Engine — advances the world by one cycle.

Sequence:
  1. Six primary updaters, each against the previous snapshot
  2. Legitimacy, fed by the machine's previous-cycle feedback
  3. One causal propagation pass over the aggregated change log
  4. Advisory threshold check
  5. Trend and history bookkeeping

All work happens on a copy; the input snapshot is never mutated.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import numpy as np

from civ_kernel.models.cycle import MachineFeedback, WorldChanges
from civ_kernel.models.events import BlackSwanEvent
from civ_kernel.models.graph import ThresholdViolation
from civ_kernel.models.machine import Intervention
from civ_kernel.models.paths import FieldPath, UnknownFieldPathError
from civ_kernel.models.world import HistoryEntry, TrendPoint, WorldState
from civ_kernel.world.economy import EconomySystem
from civ_kernel.world.entropy import EntropySystem
from civ_kernel.world.graph import WorldModelGraph
from civ_kernel.world.legitimacy import LegitimacySystem
from civ_kernel.world.population import PopulationSystem
from civ_kernel.world.resistance import ResistanceSystem
from civ_kernel.world.stability import StabilitySystem
from civ_kernel.world.technology import TechnologySystem

logger = logging.getLogger(__name__)

MAX_TREND_LENGTH = 20

VIOLATION_MESSAGES = {
    "population_collapse": "Population collapse: population has fallen below viable levels",
    "stability_collapse": "Stability collapse: civil order is breaking down",
    "entropy_runaway": "Entropy runaway: disorder is approaching its maximum",
    "economic_depression": "Economic depression: growth has collapsed",
    "tech_singularity": "Technological singularity: technology level beyond the modelled range",
}


class WorldEngine:

    def __init__(self, graph: Optional[WorldModelGraph] = None):
        self.graph = graph or WorldModelGraph()
        self.primary_systems = [
            EconomySystem(),
            PopulationSystem(),
            TechnologySystem(),
            StabilitySystem(),
            EntropySystem(),
            ResistanceSystem(),
        ]
        self.legitimacy = LegitimacySystem()

    def process_cycle(
        self,
        world_state: WorldState,
        cycle: int,
        rng: np.random.Generator,
        feedback: Optional[MachineFeedback] = None,
    ) -> Tuple[WorldState, WorldChanges]:
        """Compute the next world snapshot and the record of what changed."""
        new_state = world_state.fork()
        new_state.timestamp = datetime.utcnow()
        new_state.cycle = cycle
        previous = world_state.systems

        system_changes: Dict[str, Dict[str, float]] = {}
        for system in self.primary_systems:
            result = system.update(getattr(previous, system.name), cycle, rng, previous)
            setattr(new_state.systems, system.name, result.new_state)
            system_changes[system.name] = result.changes

        result = self.legitimacy.update(
            previous.legitimacy, feedback, new_state.systems, system_changes, cycle, rng
        )
        new_state.systems.legitimacy = result.new_state
        system_changes[self.legitimacy.name] = result.changes

        changes = WorldChanges(cycle=cycle, systems=system_changes)
        new_state, changes.causal_effects = self.graph.apply_causal_effects(
            new_state, changes.change_log()
        )

        changes.threshold_violations = self.graph.check_threshold_violations(new_state.systems)
        self._report_violations(changes.threshold_violations, cycle)

        self._record_trends(new_state, changes)
        new_state.history.append(HistoryEntry(
            cycle=cycle,
            changes=changes.model_dump(mode="json"),
            timestamp=changes.timestamp,
        ))
        return new_state, changes

    def apply_event(self, world_state: WorldState, event: BlackSwanEvent) -> WorldState:
        """Apply a freshly fired black swan as a one-off shock."""
        new_state = world_state.fork()
        for system, fields in event.impact.items():
            for name, delta in fields.items():
                try:
                    path = FieldPath.parse(f"{system}.{name}")
                except UnknownFieldPathError:
                    logger.debug("Black swan %s: no world field %s.%s", event.name, system, name)
                    continue
                value = path.get(new_state.systems)
                if abs(value) > 1:
                    path.set(new_state.systems, value * (1 + delta))
                else:
                    path.add(new_state.systems, delta)
        new_state.events.append(event.model_copy(deep=True))
        return new_state

    def apply_interventions(
        self, world_state: WorldState, interventions: List[Intervention]
    ) -> WorldState:
        """Add each intervention's deltas to its target system."""
        new_state = world_state.fork()
        for intervention in interventions:
            for name, delta in intervention.changes.items():
                try:
                    path = FieldPath(system=intervention.target_system, name=name)
                except ValueError:
                    logger.warning(
                        "Intervention %s targets unknown field %s.%s",
                        intervention.id, intervention.target_system.value, name,
                    )
                    continue
                path.add(new_state.systems, delta)
        return new_state

    def _report_violations(self, violations: List[ThresholdViolation], cycle: int) -> None:
        for violation in violations:
            message = VIOLATION_MESSAGES.get(
                violation.trigger, f"Threshold {violation.trigger} crossed"
            )
            logger.warning(
                "%s (cycle %d, %s=%.4f, threshold %.4f)",
                message, cycle, violation.path, violation.value, violation.threshold,
            )

    def _record_trends(self, state: WorldState, changes: WorldChanges) -> None:
        for key, delta in changes.change_log().items():
            points = state.trends.get(key, []) + [
                TrendPoint(cycle=changes.cycle, value=delta, timestamp=changes.timestamp)
            ]
            state.trends[key] = points[-MAX_TREND_LENGTH:]
