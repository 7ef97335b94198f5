"""
Entropy subsystem — accumulated disorder.

Sources add disorder every cycle, sinks remove it. Once the current level
crosses the phase-transition threshold, disorder and chaos accelerate.
"""

from typing import Optional

import numpy as np

from civ_kernel.models.cycle import UpdateResult
from civ_kernel.models.world import EntropyState, WorldSystems
from civ_kernel.utils import clamp, diff_scalars


class EntropySystem:
    """Per-cycle transition function for EntropyState."""

    name = "entropy"

    def default_state(self) -> EntropyState:
        return EntropyState()

    def update(
        self,
        current: EntropyState,
        cycle: int,
        rng: np.random.Generator,
        previous: Optional[WorldSystems] = None,
    ) -> UpdateResult:
        e = current.model_copy(deep=True)

        production = sum(
            value * (1 + rng.uniform(-0.1, 0.1)) for value in e.entropy_sources.values()
        )
        reduction = sum(
            value * (1 + rng.uniform(-0.05, 0.05)) for value in e.entropy_sinks.values()
        )
        e.current = clamp(e.current + production - reduction, 0.01, e.max)

        e.rate_of_increase = clamp(
            e.rate_of_increase * (1 + e.current * 0.1) + rng.uniform(-0.0001, 0.0002),
            0.0005, 0.01,
        )
        e.disorder_level = clamp(
            e.disorder_level * 0.95 + e.current * 0.05 + rng.uniform(-0.01, 0.02),
            0.05, 0.95,
        )
        e.chaos_potential = clamp(
            e.chaos_potential * 0.9 + e.disorder_level * 0.1 + e.current * 0.05,
            0.05, 0.95,
        )
        e.complexity = clamp(
            e.complexity * 0.97 + e.current * 0.03 + rng.uniform(-0.01, 0.015),
            0.1, 0.95,
        )
        e.predictability = clamp(
            e.predictability * 0.98 - e.current * 0.02 + rng.uniform(-0.01, 0.01),
            0.05, 0.95,
        )
        e.order_maintenance = clamp(
            e.order_maintenance * 0.98 + (1 - e.current) * 0.02 + rng.uniform(-0.01, 0.02),
            0.1, 0.95,
        )

        e.entropy_sources = self._update_sources(e.entropy_sources, previous, rng)
        e.entropy_sinks = self._update_sinks(e.entropy_sinks, previous, rng)

        if e.current > e.phase_transition_threshold:
            e.disorder_level = min(0.95, e.disorder_level * 1.1)
            e.chaos_potential = min(0.95, e.chaos_potential * 1.05)

        return UpdateResult(e, diff_scalars(current, e))

    def _update_sources(self, sources, previous, rng):
        tech_debt = previous.technology.tech_debt if previous is not None else 0.0
        political_gap = 1 - previous.stability.political if previous is not None else 0.0

        updated = dict(sources)
        for key in ("population", "economy"):
            if key in updated:
                updated[key] = clamp(
                    updated[key] * 0.98 + rng.uniform(-0.005, 0.01), 0.01, 0.2
                )
        if "technology" in updated:
            updated["technology"] = clamp(
                updated["technology"] * 0.98 + tech_debt * 0.02 + rng.uniform(-0.005, 0.015),
                0.01, 0.25,
            )
        if "politics" in updated:
            updated["politics"] = clamp(
                updated["politics"] * 0.98 + political_gap * 0.03 + rng.uniform(-0.005, 0.01),
                0.01, 0.2,
            )
        return updated

    def _update_sinks(self, sinks, previous, rng):
        institutional = (
            previous.stability.institutional_strength if previous is not None else 0.5
        )

        updated = dict(sinks)
        if "institutions" in updated:
            updated["institutions"] = clamp(
                updated["institutions"] * 0.98 + institutional * 0.02 + rng.uniform(-0.005, 0.01),
                0.01, 0.2,
            )
        if "governance" in updated:
            updated["governance"] = clamp(
                updated["governance"] * 0.98 + institutional * 0.015 + rng.uniform(-0.005, 0.01),
                0.01, 0.2,
            )
        return updated
