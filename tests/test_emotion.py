"""Tests for the Emotion Engine."""

import numpy as np
import pytest

from civ_kernel.machine.emotion import EmotionEngine, mood_for
from civ_kernel.models.machine import EmotionState, ExplorationAxis


class TestEmotionEngine:
    def setup_method(self):
        self.engine = EmotionEngine()
        self.rng = np.random.default_rng(0)

    def test_small_changes_ignored(self):
        state = EmotionState()
        result = self.engine.update(state, {"economy": {"inflation": 0.01}}, 1, self.rng)
        assert result.new_state.exploration == state.exploration
        assert result.new_state.control == state.control

    def test_large_change_raises_curiosity(self):
        state = EmotionState(exploration=ExplorationAxis(curiosity=0.5, caution=0.2))
        result = self.engine.update(state, {"economy": {"resources": 0.2}}, 1, self.rng)
        assert result.new_state.exploration.curiosity == pytest.approx(0.52)

    def test_entropy_raises_caution_and_passivity(self):
        state = EmotionState()
        result = self.engine.update(state, {"entropy": {"current": 0.04}}, 1, self.rng)
        assert result.new_state.exploration.caution == pytest.approx(0.2 + 0.04 * 0.05)
        assert result.new_state.control.passivity == pytest.approx(0.5 + 0.04 * 0.03)
        assert result.new_state.stability.preservation == pytest.approx(0.6 + 0.04 * 0.05)

    def test_black_swans_raise_passivity(self):
        state = EmotionState()
        result = self.engine.update(
            state, {"black_swan_events": {"economy.resources": -0.3}}, 1, self.rng
        )
        assert result.new_state.control.passivity > 0.5

    def test_axis_renormalized(self):
        state = EmotionState(exploration=ExplorationAxis(curiosity=0.9, caution=0.5))
        result = self.engine.update(state, {}, 1, self.rng)
        assert result.new_state.exploration.curiosity == pytest.approx(0.81)
        assert result.new_state.exploration.caution == pytest.approx(0.45)

    def test_derived_scalars(self):
        result = self.engine.update(EmotionState(), {}, 1, self.rng)
        state = result.new_state
        # tensions: |0.8-0.2|, |0.5-0.5|, |0.4-0.6|
        assert state.intensity == pytest.approx((0.6 + 0.0 + 0.2) / 3)
        assert state.emotional_stability == pytest.approx(1 - (0.6 + 0.0 + 0.2) / 3)
        assert 0.1 <= state.regulation <= 1.0

    def test_actions_and_mood(self):
        result = self.engine.update(EmotionState(), {}, 1, self.rng)
        actions = result.actions
        assert actions.exploration_bias == pytest.approx(0.6)
        assert actions.control_bias == pytest.approx(0.0)
        assert actions.stability_bias == pytest.approx(-0.2)
        assert actions.strategic_direction.overall_tendency == pytest.approx(0.4 / 3)
        assert actions.mood == "positive"
        assert result.new_state.mood == "positive"

    def test_mood_bands(self):
        assert mood_for(-0.2) == "negative"
        assert mood_for(0.0) == "neutral"
        assert mood_for(0.2) == "positive"
