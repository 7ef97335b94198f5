"""Tests for Black Swan Events."""

import numpy as np
import pytest

from civ_kernel.events.black_swan import DEFAULT_EVENT_TYPES, BlackSwanEvents, sum_impacts
from civ_kernel.models.events import BlackSwanEventType
from civ_kernel.models.world import WorldState


def _event_type(name: str):
    return next(t for t in DEFAULT_EVENT_TYPES if t.name == name)


def _make_certain_event(name="Certain Shock", duration=2) -> BlackSwanEventType:
    return BlackSwanEventType(
        name=name,
        probability=1.0,
        impact={"economy": {"resources": -0.2}},
        duration=duration,
    )


class TestProbabilityAdjustment:
    def setup_method(self):
        self.events = BlackSwanEvents()

    def test_revolution_at_half_stability_equals_base(self):
        world = WorldState()
        world.systems.stability.overall = 0.5
        revolution = _event_type("Revolution")
        assert self.events.adjust_probability(revolution, world) == pytest.approx(
            revolution.probability
        )

    def test_revolution_clamped_to_three_times_base(self):
        world = WorldState()
        world.systems.stability.overall = -5.0
        revolution = _event_type("Revolution")
        assert self.events.adjust_probability(revolution, world) == pytest.approx(
            revolution.probability * 3
        )

    def test_revolution_never_negative(self):
        world = WorldState()
        world.systems.stability.overall = 2.0
        assert self.events.adjust_probability(_event_type("Revolution"), world) == 0.0

    def test_pandemic_scales_with_urbanization(self):
        world = WorldState()
        world.systems.population.urbanization = 0.4
        pandemic = _event_type("Global Pandemic")
        assert self.events.adjust_probability(pandemic, world) == pytest.approx(
            pandemic.probability * 1.0
        )

    def test_unadjusted_types_keep_base(self):
        disaster = _event_type("Natural Disaster")
        assert self.events.adjust_probability(disaster, WorldState()) == disaster.probability


class TestEventGeneration:
    def test_first_firing_type_wins(self):
        events = BlackSwanEvents([_make_certain_event("First"), _make_certain_event("Second")])
        event = events.generate_event(WorldState(), 7, np.random.default_rng(0))
        assert event.name == "First"
        assert event.id == "first_7"
        assert event.cycle_triggered == 7
        assert len(events.get_active_events()) == 1

    def test_severity_scales_impact(self):
        events = BlackSwanEvents([_make_certain_event()])
        event = events.generate_event(WorldState(), 1, np.random.default_rng(3))
        assert 0.7 <= event.severity <= 1.3
        assert event.impact["economy"]["resources"] == pytest.approx(-0.2 * event.severity)

    def test_no_event_when_improbable(self):
        events = BlackSwanEvents([
            BlackSwanEventType(name="Never", probability=0.0, impact={}, duration=3)
        ])
        assert events.generate_event(WorldState(), 1, np.random.default_rng(0)) is None
        assert events.get_active_events() == []

    def test_select_does_not_track(self):
        events = BlackSwanEvents([_make_certain_event()])
        event = events.select_event(WorldState(), 1, np.random.default_rng(0))
        assert event is not None
        assert events.get_active_events() == []
        events.track(event)
        assert events.get_active_events() == [event]

    def test_countdown_and_expiry(self):
        events = BlackSwanEvents([_make_certain_event(duration=2)])
        events.generate_event(WorldState(), 1, np.random.default_rng(0))

        assert events.update_active_events() == []
        assert events.get_active_events()[0].remaining_duration == 1

        expired = events.update_active_events()
        assert [e.name for e in expired] == ["Certain Shock"]
        assert events.get_active_events() == []

    def test_impacts_sum_across_active_events(self):
        events = BlackSwanEvents([_make_certain_event(duration=5)])
        rng = np.random.default_rng(1)
        first = events.generate_event(WorldState(), 1, rng)
        second = events.generate_event(WorldState(), 2, rng)
        impact = events.get_event_impact()
        assert impact["economy"]["resources"] == pytest.approx(
            first.impact["economy"]["resources"] + second.impact["economy"]["resources"]
        )

    def test_sum_impacts_empty(self):
        assert sum_impacts([]) == {}

    def test_catalog(self):
        names = [t.name for t in DEFAULT_EVENT_TYPES]
        assert names == [
            "Global Pandemic",
            "Technological Singularity",
            "Economic Collapse",
            "Natural Disaster",
            "Revolution",
            "Resource Discovery",
            "AI Breakthrough",
        ]
