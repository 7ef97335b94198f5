"""Tests for the Intervention Engine."""

import numpy as np
import pytest

from civ_kernel.machine.intervention import INTERVENTION_RULES, InterventionEngine
from civ_kernel.models.machine import BeliefSystemState, EmotionState, InterventionState
from civ_kernel.models.perception import DerivedMetrics
from civ_kernel.models.simulation import SimulationConfig
from civ_kernel.models.world import WorldSystems


def _make_calm_world() -> WorldSystems:
    """A world where no rule fires."""
    return WorldSystems()


def _make_troubled_world() -> WorldSystems:
    systems = WorldSystems()
    systems.economy.inflation = 0.06
    systems.economy.employment = 0.7
    systems.population.happiness = 0.4
    systems.population.health = 0.5
    systems.stability.overall = 0.5
    systems.entropy.current = 0.8
    return systems


class TestEvaluation:
    def setup_method(self):
        self.engine = InterventionEngine()

    def test_inflation_rule(self):
        systems = _make_calm_world()
        systems.economy.inflation = 0.06
        candidates = self.engine.evaluate_interventions(
            systems, BeliefSystemState(), EmotionState(), 12
        )
        inflation = next(c for c in candidates if c.rule_id == "econ-inflation")
        assert inflation.id.startswith("econ-inflation-")
        assert inflation.id == "econ-inflation-12"
        assert inflation.cost == 15
        assert inflation.priority == 0.8
        assert inflation.type == "stabilize_inflation"

    def test_calm_world_has_no_candidates(self):
        candidates = self.engine.evaluate_interventions(
            _make_calm_world(), BeliefSystemState(), EmotionState(), 1
        )
        assert candidates == []

    def test_sorted_by_priority(self):
        candidates = self.engine.evaluate_interventions(
            _make_troubled_world(), BeliefSystemState(), EmotionState(), 1
        )
        priorities = [c.priority for c in candidates]
        assert priorities == sorted(priorities, reverse=True)
        assert candidates[0].rule_id == "stability"

    def test_belief_and_emotion_triggers(self):
        beliefs = BeliefSystemState(confidence=0.5)
        emotions = EmotionState(mood="negative", regulation=0.4)
        candidates = self.engine.evaluate_interventions(_make_calm_world(), beliefs, emotions, 1)
        assert {c.rule_id for c in candidates} == {"belief-confidence", "emotion-regulation"}

    def test_rule_table(self):
        assert [(r.rule_id, r.cost) for r in INTERVENTION_RULES] == [
            ("econ-inflation", 15),
            ("econ-employment", 20),
            ("pop-happiness", 25),
            ("pop-health", 30),
            ("stability", 35),
            ("entropy", 40),
            ("belief-confidence", 10),
            ("emotion-regulation", 12),
        ]


class TestUpdate:
    def setup_method(self):
        self.engine = InterventionEngine()
        self.rng = np.random.default_rng(0)

    def _update(self, state, systems, cycle=1):
        return self.engine.update(
            state, systems, BeliefSystemState(), EmotionState(), DerivedMetrics(), cycle, self.rng
        )

    def test_greedy_selection_within_budget(self):
        result = self._update(InterventionState(), _make_troubled_world())
        selected = result.actions
        assert sum(i.cost for i in selected) <= 100
        # stability 35, pop-happiness 25, econ-inflation 15, entropy 40 would overflow
        assert [i.rule_id for i in selected] == [
            "stability", "pop-happiness", "econ-inflation", "econ-employment",
        ]
        assert result.new_state.intervention_budget == pytest.approx(100 - 95 + 5)

    def test_threshold_filters_low_priority(self):
        state = InterventionState(intervention_threshold=0.85)
        result = self._update(state, _make_troubled_world())
        assert [i.rule_id for i in result.actions] == ["stability"]

    def test_budget_regenerates_and_caps(self):
        result = self._update(InterventionState(intervention_budget=98), _make_calm_world())
        assert result.new_state.intervention_budget == 100

    def test_budget_stays_in_range(self):
        state = InterventionState()
        systems = _make_troubled_world()
        for cycle in range(40):
            state = self._update(state, systems, cycle).new_state
            assert 0 <= state.intervention_budget <= 100

    def test_cooldown_set_and_blocks_reselection(self):
        first = self._update(InterventionState(), _make_troubled_world(), cycle=1)
        assert first.new_state.intervention_cooldowns["stability"] == 3
        second = self._update(first.new_state, _make_troubled_world(), cycle=2)
        assert "stability" not in [i.rule_id for i in second.actions]

    def test_cooldowns_decrement_and_expire(self):
        state = InterventionState(intervention_cooldowns={"a": 3, "b": 1})
        result = self._update(state, _make_calm_world())
        assert result.new_state.intervention_cooldowns == {"a": 2}

    def test_cooldown_length_from_config(self):
        engine = InterventionEngine(SimulationConfig(intervention_cooldown_cycles=5))
        result = engine.update(
            InterventionState(), _make_troubled_world(), BeliefSystemState(), EmotionState(),
            DerivedMetrics(), 1, self.rng,
        )
        assert set(result.new_state.intervention_cooldowns.values()) == {5}

    def test_recent_rounds_capped(self):
        state = InterventionState()
        systems = _make_troubled_world()
        for cycle in range(30):
            state = self._update(state, systems, cycle).new_state
        assert len(state.recent_interventions) <= 10

    def test_initiative_tracks_activity(self):
        idle = self._update(InterventionState(), _make_calm_world()).new_state
        busy = self._update(InterventionState(), _make_troubled_world()).new_state
        assert idle.initiative_level == pytest.approx(0.5 * 0.7 + 0.2 * 0.3)
        assert busy.initiative_level == pytest.approx(0.5 * 0.7 + 0.8 * 0.3)
        assert 0.1 <= busy.success_rate <= 1.0
