"""
Machine Engine — one cognitive step of the steering agent.

Sequence:
  perception -> entropy decay -> beliefs -> emotions -> predictions
  -> derived metrics -> interventions -> introspection -> bookkeeping

Works on a copy of the MachineState and returns the new snapshot together
with the cycle's MachineActions.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

import numpy as np

from civ_kernel.machine.belief import BeliefEngine
from civ_kernel.machine.emotion import EmotionEngine
from civ_kernel.machine.intervention import InterventionEngine
from civ_kernel.machine.introspection import IntrospectionEngine
from civ_kernel.machine.prediction import PredictionEngine
from civ_kernel.models.cycle import MachineActions
from civ_kernel.models.machine import BehaviorRecord, KnowledgeEntry, MachineState
from civ_kernel.models.simulation import SimulationConfig
from civ_kernel.models.world import WorldState
from civ_kernel.perception.layer import PerceptionLayer
from civ_kernel.utils import clamp

logger = logging.getLogger(__name__)

KNOWLEDGE_DECAY_STEP, KNOWLEDGE_DECAY_CAP = 0.001, 0.1
BELIEF_ENTROPY_STEP, BELIEF_ENTROPY_CAP = 0.002, 0.2
MODEL_DRIFT_STEP, MODEL_DRIFT_CAP = 0.0005, 0.05


class MachineEngine:

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        perception: Optional[PerceptionLayer] = None,
    ):
        self.config = config or SimulationConfig()
        self.perception = perception or PerceptionLayer()
        self.beliefs = BeliefEngine()
        self.emotions = EmotionEngine()
        self.predictions = PredictionEngine()
        self.interventions = InterventionEngine(self.config)
        self.introspection = IntrospectionEngine()

    def default_state(self) -> MachineState:
        return MachineState(intervention_engine=self.interventions.default_state())

    def process_cycle(
        self,
        machine_state: MachineState,
        world_state: WorldState,
        cycle: int,
        rng: np.random.Generator,
        event_impact: Optional[Dict[str, Dict[str, float]]] = None,
    ) -> Tuple[MachineState, MachineActions]:
        state = machine_state.model_copy(deep=True)
        now = datetime.utcnow()
        state.timestamp = now
        state.cycle = cycle
        actions = MachineActions(cycle=cycle, timestamp=now)

        perceived, state.perception_memory = self.perception.perceive(
            world_state, machine_state, rng, cycle
        )
        actions.perceived_world_state = perceived
        self.apply_entropy_decay(state, rng)

        deltas = perceived.deltas()

        result = self.beliefs.update(state.belief_system, deltas, cycle, rng)
        state.belief_system, actions.beliefs = result.new_state, result.actions

        emotional_input = dict(deltas)
        if event_impact:
            emotional_input["black_swan_events"] = {
                f"{system}.{name}": delta
                for system, fields in event_impact.items()
                for name, delta in fields.items()
            }
        result = self.emotions.update(state.emotion_system, emotional_input, cycle, rng)
        state.emotion_system, actions.emotions = result.new_state, result.actions

        result = self.predictions.update(state.prediction_engine, deltas, cycle, rng, now)
        state.prediction_engine, actions.predictions = result.new_state, result.actions

        derived = self.perception.get_derived_metrics(perceived)
        actions.derived_metrics = derived

        result = self.interventions.update(
            state.intervention_engine,
            world_state.systems,
            state.belief_system,
            state.emotion_system,
            derived,
            cycle,
            rng,
            now,
        )
        state.intervention_engine, actions.interventions = result.new_state, result.actions

        result = self.introspection.update(
            state.introspection_engine,
            state.belief_system,
            state.emotion_system,
            state.prediction_engine,
            state.intervention_engine,
            derived,
            deltas,
            perceived.systems.get("entropy", {}).get("current", 0.0),
            cycle,
            rng,
            now,
        )
        state.introspection_engine, actions.introspections = result.new_state, result.actions

        for formation in actions.beliefs.belief_formations:
            state.knowledge_base[formation.topic] = KnowledgeEntry(
                learned_at=cycle, strength=formation.strength
            )

        state.behavior_history.append(BehaviorRecord(
            cycle=cycle,
            timestamp=now,
            intervention_ids=[i.id for i in actions.interventions],
            belief_formations=len(actions.beliefs.belief_formations),
            insight_count=len(actions.introspections.insights),
            mood=actions.emotions.mood,
        ))
        state.behavior_history = state.behavior_history[-self.config.behavior_history_limit:]

        return state, actions

    def apply_entropy_decay(self, state: MachineState, rng: np.random.Generator) -> None:
        """Slowly erode knowledge, beliefs and models. Mutates state in place."""
        state.knowledge_decay = min(KNOWLEDGE_DECAY_CAP, state.knowledge_decay + KNOWLEDGE_DECAY_STEP)
        state.belief_entropy = min(BELIEF_ENTROPY_CAP, state.belief_entropy + BELIEF_ENTROPY_STEP)
        state.model_drift = min(MODEL_DRIFT_CAP, state.model_drift + MODEL_DRIFT_STEP)

        if state.knowledge_base and rng.random() < state.knowledge_decay:
            topics = sorted(state.knowledge_base)
            forgotten = topics[int(rng.integers(len(topics)))]
            del state.knowledge_base[forgotten]
            logger.debug("Forgot knowledge about %s", forgotten)

        for belief in state.belief_system.beliefs:
            belief.confidence = clamp(
                belief.confidence + rng.uniform(-0.5, 0.5) * state.belief_entropy, 0.01, 0.99
            )

        for model in state.prediction_engine.models:
            model.parameters.slope += rng.uniform(-0.5, 0.5) * state.model_drift
            model.parameters.intercept += rng.uniform(-0.5, 0.5) * state.model_drift
