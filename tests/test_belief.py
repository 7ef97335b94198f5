"""Tests for the Belief Engine."""

import numpy as np
import pytest

from civ_kernel.machine.belief import BeliefEngine
from civ_kernel.models.machine import Belief, BeliefSystemState


def _make_belief(topic="economy.inflation", confidence=0.8, strength=0.05) -> Belief:
    return Belief(
        topic=topic,
        strength=strength,
        confidence=confidence,
        formed_at=0,
        last_updated=0,
        category=topic.split(".")[0],
    )


class TestBeliefEngine:
    def setup_method(self):
        self.engine = BeliefEngine()
        self.rng = np.random.default_rng(0)

    def test_forms_belief_from_significant_change(self):
        result = self.engine.update(
            BeliefSystemState(), {"economy": {"inflation": 0.05}}, 3, self.rng
        )
        belief = result.new_state.beliefs[0]
        assert belief.topic == "economy.inflation"
        assert belief.category == "economy"
        assert belief.strength == pytest.approx(0.05)
        assert belief.confidence == pytest.approx(0.1)
        assert belief.formed_at == 3
        assert [f.topic for f in result.actions.belief_formations] == ["economy.inflation"]

    def test_ignores_small_changes(self):
        result = self.engine.update(
            BeliefSystemState(), {"economy": {"inflation": 0.005}}, 1, self.rng
        )
        assert result.new_state.beliefs == []

    def test_reinforcement_blends_confidence(self):
        state = BeliefSystemState(beliefs=[_make_belief(confidence=0.8, strength=0.05)])
        result = self.engine.update(state, {"economy": {"inflation": 0.1}}, 2, self.rng)
        belief = result.new_state.beliefs[0]
        assert belief.confidence == pytest.approx(0.8 * 0.7 + 0.9 * 0.3)
        assert belief.strength == pytest.approx(0.05 + 0.01)
        assert belief.last_updated == 2
        assert result.actions.belief_reinforcements == 1

    def test_unreinforced_beliefs_decay(self):
        state = BeliefSystemState(beliefs=[_make_belief(confidence=0.5)])
        result = self.engine.update(state, {}, 1, self.rng)
        assert result.new_state.beliefs[0].confidence == pytest.approx(0.495)

    def test_weak_beliefs_pruned(self):
        state = BeliefSystemState(beliefs=[_make_belief(confidence=0.1)])
        result = self.engine.update(state, {}, 1, self.rng)
        assert result.new_state.beliefs == []
        assert result.actions.belief_drops == 1

    def test_topics_stay_unique(self):
        state = BeliefSystemState()
        for cycle in range(5):
            state = self.engine.update(
                state, {"economy": {"inflation": 0.05}}, cycle, self.rng
            ).new_state
        assert len(state.beliefs) == 1

    def test_category_coherence_pulls_strengths_together(self):
        state = BeliefSystemState(beliefs=[
            _make_belief("economy.inflation", strength=1.0),
            _make_belief("economy.employment", strength=0.0),
        ])
        result = self.engine.update(state, {}, 1, self.rng)
        strengths = sorted(b.strength for b in result.new_state.beliefs)
        assert strengths == pytest.approx([0.1, 0.9])

    def test_overall_scalars_bounded(self):
        state = BeliefSystemState()
        rng = np.random.default_rng(8)
        for cycle in range(30):
            deltas = {"entropy": {"current": float(rng.uniform(-0.3, 0.3))}}
            state = self.engine.update(state, deltas, cycle, rng).new_state
        assert 0.1 <= state.confidence <= 1.0
        assert 0.1 <= state.coherence <= 1.0
        assert 0.01 <= state.update_rate <= 0.5
