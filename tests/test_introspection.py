"""Tests for the Introspection Engine."""

import numpy as np
import pytest

from civ_kernel.machine.introspection import IntrospectionEngine
from civ_kernel.models.machine import (
    BeliefSystemState,
    EmotionState,
    InterventionState,
    IntrospectionState,
    PredictionState,
)
from civ_kernel.models.perception import DerivedMetrics


class TestIntrospectionEngine:
    def setup_method(self):
        self.engine = IntrospectionEngine()
        self.rng = np.random.default_rng(3)

    def _update(self, state=None, beliefs=None, emotions=None, predictions=None,
                interventions=None, derived=None, deltas=None, entropy=0.3, cycle=1):
        return self.engine.update(
            state or IntrospectionState(),
            beliefs or BeliefSystemState(),
            emotions or EmotionState(),
            predictions or PredictionState(),
            interventions or InterventionState(),
            derived or DerivedMetrics(),
            deltas or {},
            entropy,
            cycle,
            self.rng,
        )

    def test_consistency_scores(self):
        scores = self.engine.check_internal_consistency(
            BeliefSystemState(confidence=0.8),
            EmotionState(regulation=0.6),
            InterventionState(initiative_level=0.5),
        )
        assert scores["belief_emotion_alignment"] == pytest.approx(0.8)
        assert scores["belief_action_alignment"] == pytest.approx(0.7)
        assert scores["emotion_action_alignment"] == pytest.approx(0.9)

    def test_reflective_pause_on_high_dissonance(self):
        result = self._update(
            beliefs=BeliefSystemState(confidence=1.0),
            emotions=EmotionState(regulation=1.0),
            predictions=PredictionState(accuracy=0.0),
            interventions=InterventionState(success_rate=0.0, initiative_level=0.0),
        )
        assert result.new_state.cognitive_dissonance > 0.6
        behaviors = [r.behavior for r in result.actions.behavioral_recommendations]
        assert "reflective_pause" in behaviors
        adjustments = [a.adjustment for a in result.actions.self_adjustments]
        assert "reduce_confidence" in adjustments

    def test_calm_machine_does_not_pause(self):
        result = self._update()
        assert result.new_state.cognitive_dissonance < 0.6
        behaviors = [r.behavior for r in result.actions.behavioral_recommendations]
        assert "reflective_pause" not in behaviors

    def test_large_world_change_produces_insight(self):
        result = self._update(deltas={"economy": {"inflation": 0.2, "employment": 0.01}})
        observations = [i for i in result.actions.insights if i.type == "world_observation"]
        assert len(observations) == 1
        assert "economy.inflation" in observations[0].description
        assert observations[0].significance == pytest.approx(0.2)

    def test_repeated_insights_are_not_novel(self):
        deltas = {"economy": {"inflation": 0.2}}
        first = self._update(deltas=deltas)
        second = self._update(state=first.new_state, deltas=deltas, cycle=2)
        assert first.new_state.introspection_history[-1].self_assessment["novelty"] == 0.5
        assert second.new_state.introspection_history[-1].self_assessment["novelty"] == 0.0

    def test_goal_realignment_on_systemic_risk(self):
        result = self._update(derived=DerivedMetrics(systemic_risk=0.7))
        assert [g.goal_type for g in result.actions.goal_realignments] == ["stability"]
        assert result.new_state.self_model.goals == ["stability"]

    def test_no_realignment_when_risk_low(self):
        result = self._update(derived=DerivedMetrics(systemic_risk=0.2))
        assert result.actions.goal_realignments == []

    def test_high_entropy_recommends_stabilizing(self):
        result = self._update(entropy=0.8)
        behaviors = [r.behavior for r in result.actions.behavioral_recommendations]
        assert "stabilizing_interventions" in behaviors

    def test_history_capped(self):
        state = IntrospectionState()
        for cycle in range(60):
            state = self._update(state=state, cycle=cycle).new_state
        assert len(state.introspection_history) == 50
        assert state.introspection_history[0].cycle == 10
        assert state.introspection_history[-1].cycle == 59

    def test_self_model_capabilities(self):
        result = self._update(
            predictions=PredictionState(accuracy=0.65),
            interventions=InterventionState(success_rate=0.4),
        )
        capabilities = result.new_state.self_model.capabilities
        assert capabilities["prediction"] == 0.65
        assert capabilities["intervention"] == 0.4

    def test_values_stay_in_range(self):
        state = IntrospectionState()
        for cycle in range(30):
            state = self._update(state=state, cycle=cycle, deltas={"stability": {"overall": -0.3}}).new_state
            assert 0.1 <= state.self_awareness <= 1.0
            assert 0.05 <= state.cognitive_dissonance <= 0.95
            assert 0.01 <= state.learning_rate <= 0.5

    def test_input_state_not_mutated(self):
        state = IntrospectionState()
        self._update(state=state)
        assert state.introspection_history == []
