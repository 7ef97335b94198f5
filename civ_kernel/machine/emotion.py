"""
Emotion Engine — three bipolar drives that colour the machine's strategy.

exploration: curiosity vs caution
control:     dominance vs passivity
stability:   risk_seeking vs preservation
"""

from typing import Dict

import numpy as np

from civ_kernel.models.cycle import EmotionActions, StrategicDirection, UpdateResult
from civ_kernel.models.machine import EmotionState
from civ_kernel.utils import clamp, diff_scalars, mean

MIN_EMOTIONAL_CHANGE = 0.02
MAX_AXIS_SUM = 1.2
VOLATILE_SYSTEMS = ("stability", "entropy")
SHOCK_SOURCES = ("entropy", "black_swan_events")


def mood_for(tendency: float) -> str:
    if tendency < -0.1:
        return "negative"
    if tendency > 0.1:
        return "positive"
    return "neutral"


class EmotionEngine:

    def default_state(self) -> EmotionState:
        return EmotionState()

    def update(
        self,
        current: EmotionState,
        deltas: Dict[str, Dict[str, float]],
        cycle: int,
        rng: np.random.Generator,
    ) -> UpdateResult:
        state = current.model_copy(deep=True)

        for system, params in deltas.items():
            for delta in params.values():
                if abs(delta) <= MIN_EMOTIONAL_CHANGE:
                    continue
                self._react(state, system, delta)

        self._renormalize(state)

        tensions = [
            abs(state.exploration.curiosity - state.exploration.caution),
            abs(state.control.dominance - state.control.passivity),
            abs(state.stability.risk_seeking - state.stability.preservation),
        ]
        state.intensity = clamp(mean(tensions), 0.0, 1.0)
        state.regulation = clamp(
            state.regulation * 0.9 + (1 - state.intensity) * 0.1 + rng.uniform(-0.02, 0.02),
            0.1, 1.0,
        )
        state.emotional_stability = clamp(1 - mean(tensions), 0.0, 1.0)

        actions = self._actions(state)
        biases = [actions.exploration_bias, actions.control_bias, actions.stability_bias]
        state.strategic_tension = mean([
            abs(biases[0] - biases[1]),
            abs(biases[1] - biases[2]),
            abs(biases[0] - biases[2]),
        ])
        state.mood = actions.mood

        return UpdateResult(state, diff_scalars(current, state), actions)

    def _react(self, state: EmotionState, system: str, delta: float) -> None:
        magnitude = abs(delta)
        if magnitude > 0.1:
            state.exploration.curiosity = clamp(state.exploration.curiosity + magnitude * 0.1, 0.0, 1.0)
        if system in VOLATILE_SYSTEMS:
            state.exploration.caution = clamp(state.exploration.caution + magnitude * 0.05, 0.0, 1.0)

        if magnitude > 0.05:
            state.control.dominance = clamp(state.control.dominance + delta * 0.02, 0.0, 1.0)
        if system in SHOCK_SOURCES:
            state.control.passivity = clamp(state.control.passivity + magnitude * 0.03, 0.0, 1.0)

        if magnitude > 0.08:
            state.stability.risk_seeking = clamp(state.stability.risk_seeking + magnitude * 0.04, 0.0, 1.0)
        if system in VOLATILE_SYSTEMS:
            state.stability.preservation = clamp(state.stability.preservation + magnitude * 0.05, 0.0, 1.0)

    def _renormalize(self, state: EmotionState) -> None:
        for axis, first, second in (
            (state.exploration, "curiosity", "caution"),
            (state.control, "dominance", "passivity"),
            (state.stability, "risk_seeking", "preservation"),
        ):
            if getattr(axis, first) + getattr(axis, second) > MAX_AXIS_SUM:
                setattr(axis, first, getattr(axis, first) * 0.9)
                setattr(axis, second, getattr(axis, second) * 0.9)

    def _actions(self, state: EmotionState) -> EmotionActions:
        exploration = state.exploration.curiosity - state.exploration.caution
        control = state.control.dominance - state.control.passivity
        stability = state.stability.risk_seeking - state.stability.preservation
        tendency = mean([exploration, control, stability])
        return EmotionActions(
            exploration_bias=exploration,
            control_bias=control,
            stability_bias=stability,
            strategic_direction=StrategicDirection(
                exploration=exploration,
                control=control,
                stability=stability,
                overall_tendency=tendency,
            ),
            mood=mood_for(tendency),
        )
