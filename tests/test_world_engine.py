"""Tests for the World Engine cycle."""

import numpy as np
import pytest

from civ_kernel.engine.world_engine import WorldEngine
from civ_kernel.models.cycle import MachineFeedback
from civ_kernel.models.events import BlackSwanEvent
from civ_kernel.models.machine import Intervention
from civ_kernel.models.paths import SystemName
from civ_kernel.models.world import WorldState


def _make_event(impact, name="Economic Collapse") -> BlackSwanEvent:
    return BlackSwanEvent(
        id="economic_collapse_3",
        name=name,
        cycle_triggered=3,
        impact=impact,
        duration=10,
        remaining_duration=10,
        severity=1.0,
    )


def _make_intervention(target, changes) -> Intervention:
    return Intervention(
        id="test-1",
        rule_id="test",
        target_system=target,
        type="test",
        changes=changes,
        priority=0.9,
        cost=10,
    )


class TestProcessCycle:
    def setup_method(self):
        self.engine = WorldEngine()
        self.rng = np.random.default_rng(11)

    def test_input_not_mutated(self):
        world = WorldState()
        before = world.model_dump()
        self.engine.process_cycle(world, 0, self.rng)
        assert world.model_dump() == before

    def test_cycle_stamped_and_history_appended(self):
        new_world, changes = self.engine.process_cycle(WorldState(), 0, self.rng)
        assert new_world.cycle == 0
        assert changes.cycle == 0
        assert len(new_world.history) == 1
        assert new_world.history[0].cycle == 0
        assert set(changes.systems) == {
            "economy", "population", "technology", "stability",
            "entropy", "resistance", "legitimacy",
        }

    def test_trends_track_deltas(self):
        new_world, changes = self.engine.process_cycle(WorldState(), 0, self.rng)
        point = new_world.trends["economy.inflation"][-1]
        assert point.cycle == 0
        assert point.value == changes.systems["economy"]["inflation"]

    def test_history_entries_shared_across_cycles(self):
        first, _ = self.engine.process_cycle(WorldState(), 0, self.rng)
        second, _ = self.engine.process_cycle(first, 1, self.rng)

        assert second.history[0] is first.history[0]
        assert len(first.history) == 1
        assert len(second.history) == 2
        assert len(first.trends["economy.inflation"]) == 1
        assert first.systems is not second.systems

    def test_event_and_interventions_share_history(self):
        world, _ = self.engine.process_cycle(WorldState(), 0, self.rng)
        shocked = self.engine.apply_event(world, _make_event({"economy": {"resources": -0.1}}))
        steered = self.engine.apply_interventions(
            shocked, [_make_intervention(SystemName.STABILITY, {"overall": 0.1})]
        )
        assert steered.history[0] is world.history[0]
        assert world.events == []

    def test_trends_capped(self):
        world = WorldState()
        for cycle in range(25):
            world, _ = self.engine.process_cycle(world, cycle, self.rng)
        assert len(world.trends["economy.inflation"]) == 20
        assert world.trends["economy.inflation"][0].cycle == 5
        assert len(world.history) == 25

    def test_bounded_edge_targets_stay_in_range(self):
        world = WorldState()
        for cycle in range(30):
            world, _ = self.engine.process_cycle(world, cycle, self.rng)
            systems = world.systems
            for value in (
                systems.population.happiness,
                systems.economy.market_confidence,
                systems.stability.volatility,
                systems.technology.adoption_rate,
            ):
                assert 0.0 <= value <= 1.0
            assert systems.population.count >= 1000

    def test_feedback_reaches_legitimacy(self):
        feedback = MachineFeedback(proposed_count=2, prediction_accuracy=0.9)
        new_world, changes = self.engine.process_cycle(WorldState(), 1, self.rng, feedback)
        assert "overall_legitimacy" in changes.systems["legitimacy"]
        assert 0.0 <= new_world.systems.legitimacy.overall_legitimacy <= 1.0

    def test_same_seed_same_world(self):
        first, _ = WorldEngine().process_cycle(WorldState(), 0, np.random.default_rng(5))
        second, _ = WorldEngine().process_cycle(WorldState(), 0, np.random.default_rng(5))
        assert first.systems == second.systems


class TestApplyEvent:
    def setup_method(self):
        self.engine = WorldEngine()

    def test_magnitude_fields_scale_relatively(self):
        event = _make_event({"economy": {"resources": -0.5, "market_confidence": -0.3}})
        world = self.engine.apply_event(WorldState(), event)
        assert world.systems.economy.resources == pytest.approx(500.0)
        assert world.systems.economy.market_confidence == pytest.approx(0.5)

    def test_bounded_fields_clamped(self):
        event = _make_event({"stability": {"volatility": -2.0}})
        world = self.engine.apply_event(WorldState(), event)
        assert world.systems.stability.volatility == 0.0

    def test_event_recorded(self):
        event = _make_event({"economy": {"resources": -0.1}})
        world = self.engine.apply_event(WorldState(), event)
        assert [e.id for e in world.events] == ["economic_collapse_3"]

    def test_unknown_field_skipped(self):
        event = _make_event({"economy": {"gold_reserves": -0.5, "employment": -0.1}})
        world = self.engine.apply_event(WorldState(), event)
        assert world.systems.economy.employment == pytest.approx(0.85)

    def test_input_not_mutated(self):
        world = WorldState()
        self.engine.apply_event(world, _make_event({"economy": {"resources": -0.5}}))
        assert world.systems.economy.resources == 1000.0
        assert world.events == []


class TestApplyInterventions:
    def setup_method(self):
        self.engine = WorldEngine()

    def test_deltas_added(self):
        intervention = _make_intervention(SystemName.STABILITY, {"overall": 0.1, "political": 0.05})
        world = self.engine.apply_interventions(WorldState(), [intervention])
        assert world.systems.stability.overall == pytest.approx(0.9)
        assert world.systems.stability.political == pytest.approx(0.85)

    def test_bounded_targets_clamped(self):
        intervention = _make_intervention(SystemName.POPULATION, {"happiness": 0.5})
        world = self.engine.apply_interventions(WorldState(), [intervention])
        assert world.systems.population.happiness == 1.0

    def test_unknown_field_skipped(self):
        intervention = _make_intervention(SystemName.ENTROPY, {"chaos": 1.0, "current": -0.1})
        world = self.engine.apply_interventions(WorldState(), [intervention])
        assert world.systems.entropy.current == pytest.approx(
            WorldState().systems.entropy.current - 0.1
        )
