"""
Intervention Engine — turns what the machine sees into proposed actions.

Per cycle:
  1. Tick down cooldowns, dropping expired ones
  2. Evaluate the rule table against live world metrics
  3. Keep candidates above the intervention threshold and off cooldown
  4. Greedily select by priority while the budget allows
  5. Pay for the selection, then regenerate budget up to the cap
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional

import numpy as np

from civ_kernel.models.cycle import UpdateResult
from civ_kernel.models.machine import (
    BeliefSystemState,
    EmotionState,
    Intervention,
    InterventionRound,
    InterventionState,
)
from civ_kernel.models.paths import SystemName
from civ_kernel.models.perception import DerivedMetrics
from civ_kernel.models.simulation import SimulationConfig
from civ_kernel.models.world import WorldSystems
from civ_kernel.utils import clamp, diff_scalars

logger = logging.getLogger(__name__)

MAX_RECENT_ROUNDS = 10


class InterventionRule(NamedTuple):
    rule_id: str
    target_system: SystemName
    type: str
    changes: Dict[str, float]
    priority: float
    cost: float
    description: str
    applies: Callable[[WorldSystems, BeliefSystemState, EmotionState], bool]


INTERVENTION_RULES: List[InterventionRule] = [
    InterventionRule(
        "econ-inflation", SystemName.ECONOMY, "stabilize_inflation",
        {"inflation": -0.02, "market_confidence": -0.05}, 0.8, 15,
        "Tighten monetary policy to reduce inflation",
        lambda w, b, e: w.economy.inflation > 0.05,
    ),
    InterventionRule(
        "econ-employment", SystemName.ECONOMY, "boost_employment",
        {"employment": 0.03, "growth_rate": 0.005}, 0.75, 20,
        "Fund job programmes to raise employment",
        lambda w, b, e: w.economy.employment < 0.8,
    ),
    InterventionRule(
        "pop-happiness", SystemName.POPULATION, "improve_happiness",
        {"happiness": 0.1, "health": 0.05}, 0.85, 25,
        "Invest in public wellbeing",
        lambda w, b, e: w.population.happiness < 0.5,
    ),
    InterventionRule(
        "pop-health", SystemName.POPULATION, "health_initiative",
        {"health": 0.1, "education_level": 0.03}, 0.7, 30,
        "Launch a public health initiative",
        lambda w, b, e: w.population.health < 0.6,
    ),
    InterventionRule(
        "stability", SystemName.STABILITY, "stability_enhancement",
        {"overall": 0.1, "political": 0.05, "social": 0.05}, 0.9, 35,
        "Strengthen institutions and social order",
        lambda w, b, e: w.stability.overall < 0.6,
    ),
    InterventionRule(
        "entropy", SystemName.ENTROPY, "reduce_entropy",
        {"current": -0.1}, 0.8, 40,
        "Impose order to reduce systemic entropy",
        lambda w, b, e: w.entropy.current > 0.7,
    ),
    InterventionRule(
        "belief-confidence", SystemName.TECHNOLOGY, "knowledge_investment",
        {"innovation_rate": 0.05, "knowledge_base": 0.1}, 0.65, 10,
        "Invest in research to firm up uncertain beliefs",
        lambda w, b, e: b.confidence < 0.6,
    ),
    InterventionRule(
        "emotion-regulation", SystemName.POPULATION, "emotional_support",
        {"happiness": 0.1, "health": 0.05}, 0.6, 12,
        "Steady the population while the machine's own mood is low",
        lambda w, b, e: e.mood == "negative" and e.regulation < 0.5,
    ),
]


class InterventionEngine:

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rules: Optional[List[InterventionRule]] = None,
    ):
        self.config = config or SimulationConfig()
        self.rules = list(INTERVENTION_RULES if rules is None else rules)

    def default_state(self) -> InterventionState:
        return InterventionState(intervention_budget=self.config.max_intervention_budget)

    def evaluate_interventions(
        self,
        systems: WorldSystems,
        beliefs: BeliefSystemState,
        emotions: EmotionState,
        cycle: int,
    ) -> List[Intervention]:
        """Candidates whose trigger holds, highest priority first."""
        candidates = [
            Intervention(
                id=f"{rule.rule_id}-{cycle}",
                rule_id=rule.rule_id,
                target_system=rule.target_system,
                type=rule.type,
                changes=dict(rule.changes),
                priority=rule.priority,
                cost=rule.cost,
                description=rule.description,
            )
            for rule in self.rules
            if rule.applies(systems, beliefs, emotions)
        ]
        return sorted(candidates, key=lambda c: c.priority, reverse=True)

    def update(
        self,
        current: InterventionState,
        systems: WorldSystems,
        beliefs: BeliefSystemState,
        emotions: EmotionState,
        derived: DerivedMetrics,
        cycle: int,
        rng: np.random.Generator,
        timestamp: Optional[datetime] = None,
    ) -> UpdateResult:
        state = current.model_copy(deep=True)
        state.intervention_cooldowns = {
            rule_id: remaining - 1
            for rule_id, remaining in state.intervention_cooldowns.items()
            if remaining - 1 > 0
        }

        candidates = self.evaluate_interventions(systems, beliefs, emotions, cycle)
        viable = [
            c for c in candidates
            if c.priority > state.intervention_threshold
            and c.rule_id not in state.intervention_cooldowns
        ]

        selected: List[Intervention] = []
        spent = 0.0
        for candidate in viable:
            if spent + candidate.cost <= state.intervention_budget:
                selected.append(candidate)
                spent += candidate.cost

        state.intervention_budget = min(
            self.config.max_intervention_budget,
            max(0.0, state.intervention_budget - spent) + self.config.budget_regeneration,
        )
        for intervention in selected:
            if self.config.intervention_cooldown_cycles > 0:
                state.intervention_cooldowns[intervention.rule_id] = (
                    self.config.intervention_cooldown_cycles
                )
        state.active_interventions = selected

        state.initiative_level = clamp(
            state.initiative_level * 0.7 + (0.8 if selected else 0.2) * 0.3, 0.1, 1.0
        )
        estimated_success = (
            0.6
            + rng.uniform(-0.1, 0.1)
            + state.initiative_level * 0.2
            + (self.config.max_intervention_budget - state.intervention_budget)
            / self.config.max_intervention_budget * 0.1
            - derived.systemic_risk * 0.1
        )
        state.success_rate = clamp(
            state.success_rate * 0.8 + estimated_success * 0.2, 0.1, 1.0
        )

        if selected:
            state.recent_interventions = (
                state.recent_interventions
                + [InterventionRound(
                    cycle=cycle,
                    interventions=selected,
                    timestamp=timestamp or datetime.utcnow(),
                )]
            )[-MAX_RECENT_ROUNDS:]
            logger.debug(
                "Cycle %d selected %s (budget now %.1f)",
                cycle, [i.id for i in selected], state.intervention_budget,
            )

        return UpdateResult(state, diff_scalars(current, state), selected)
