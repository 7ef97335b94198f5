"""
World Model Graph — explicit cross-system causality.

Holds a fixed table of weighted edges between world fields and a table of
advisory thresholds. One propagation pass runs per cycle over the cycle's
aggregated change log; thresholds are checked afterwards and never mutate
state.
"""

import logging
from typing import Dict, List, Optional, Tuple

from civ_kernel.models.graph import (
    CausalEdge,
    CausalEffect,
    ThresholdRule,
    ThresholdViolation,
    ThresholdViolationType,
)
from civ_kernel.models.paths import FieldPath
from civ_kernel.models.world import WorldState, WorldSystems

logger = logging.getLogger(__name__)

# Above this magnitude a source value is treated as a quantity, and its
# change is propagated relative to its size.
LARGE_MAGNITUDE = 100
MAGNITUDE_CAP = 1000

DEFAULT_CAUSAL_EDGES: List[CausalEdge] = [
    CausalEdge(source=source, target=target, weight=weight)
    for source, target, weight in [
        ("economy.resources", "population.growth_rate", 0.4),
        ("economy.employment", "population.happiness", 0.3),
        ("economy.market_confidence", "population.happiness", 0.2),
        ("stability.overall", "economy.market_confidence", 0.6),
        ("stability.political", "economy.growth_rate", 0.3),
        ("stability.economic", "economy.market_confidence", 0.5),
        ("technology.level", "economy.productivity", 0.5),
        ("technology.level", "population.education_level", 0.4),
        ("technology.level", "stability.overall", 0.2),
        ("entropy.current", "stability.volatility", 0.7),
        ("entropy.current", "stability.overall", -0.4),
        ("entropy.current", "resistance.to_change", 0.3),
        ("population.happiness", "stability.social", 0.5),
        ("population.education_level", "technology.innovation_rate", 0.3),
        ("population.urbanization", "entropy.current", 0.2),
        ("resistance.to_innovation", "technology.innovation_rate", -0.6),
        ("resistance.to_change", "stability.overall", 0.4),
        ("resistance.to_technology", "technology.adoption_rate", -0.5),
        ("stability.overall", "resistance.to_government_policy", -0.3),
        ("population.count", "economy.resources", 0.1),
    ]
]

DEFAULT_THRESHOLDS: List[ThresholdRule] = [
    ThresholdRule(path="population.count", min=100, trigger="population_collapse"),
    ThresholdRule(path="stability.overall", min=0.2, trigger="stability_collapse"),
    ThresholdRule(path="entropy.current", max=0.9, trigger="entropy_runaway"),
    ThresholdRule(path="economy.growth_rate", min=-0.1, trigger="economic_depression"),
    ThresholdRule(path="technology.level", max=10, trigger="tech_singularity"),
]


def _propagated_effect(change: float, source_value: float, weight: float) -> float:
    if abs(source_value) > LARGE_MAGNITUDE:
        return (change / source_value) * weight * min(abs(source_value), MAGNITUDE_CAP)
    return change * weight


class WorldModelGraph:
    """Causal edge table plus threshold table over WorldSystems fields."""

    def __init__(
        self,
        edges: Optional[List[CausalEdge]] = None,
        thresholds: Optional[List[ThresholdRule]] = None,
    ):
        self.edges = list(DEFAULT_CAUSAL_EDGES if edges is None else edges)
        self.thresholds = list(DEFAULT_THRESHOLDS if thresholds is None else thresholds)

    def apply_causal_effects(
        self, world_state: WorldState, change_log: Dict[str, float]
    ) -> Tuple[WorldState, List[CausalEffect]]:
        """
        Propagate each logged change along its outgoing edges.

        Source values are read from the input snapshot; effects are written
        to a copy, so the order of edges never matters within one pass.
        """
        new_state = world_state.fork()
        effects: List[CausalEffect] = []

        for path, change in change_log.items():
            for edge in self.edges:
                if str(edge.source) != path:
                    continue
                source_value = edge.source.get(world_state.systems)
                effect = _propagated_effect(change, source_value, edge.weight)
                edge.target.add(new_state.systems, effect)
                effects.append(CausalEffect(
                    source=str(edge.source),
                    target=str(edge.target),
                    weight=edge.weight,
                    original_change=change,
                    propagated_effect=effect,
                ))
                logger.debug(
                    "Causal effect %s -> %s: %.6f", edge.source, edge.target, effect
                )

        return new_state, effects

    def check_threshold_violations(self, systems: WorldSystems) -> List[ThresholdViolation]:
        violations: List[ThresholdViolation] = []
        for rule in self.thresholds:
            value = rule.path.get(systems)
            if rule.min is not None and value < rule.min:
                violations.append(ThresholdViolation(
                    path=str(rule.path),
                    value=value,
                    threshold=rule.min,
                    type=ThresholdViolationType.MIN,
                    trigger=rule.trigger,
                ))
            if rule.max is not None and value > rule.max:
                violations.append(ThresholdViolation(
                    path=str(rule.path),
                    value=value,
                    threshold=rule.max,
                    type=ThresholdViolationType.MAX,
                    trigger=rule.trigger,
                ))
        return violations

    def get_dependencies(self, path: str) -> List[CausalEdge]:
        """Edges that feed into the given field."""
        return [edge for edge in self.edges if str(edge.target) == path]

    def get_affected_by(self, path: str) -> List[CausalEdge]:
        """Edges that leave the given field."""
        return [edge for edge in self.edges if str(edge.source) == path]

    def get_full_graph(self) -> dict:
        return {
            "edges": [
                {"from": str(e.source), "to": str(e.target), "weight": e.weight}
                for e in self.edges
            ],
            "thresholds": [
                {"path": str(rule.path), "min": rule.min, "max": rule.max, "trigger": rule.trigger}
                for rule in self.thresholds
            ],
        }
