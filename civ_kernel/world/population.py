"""Population subsystem — size, urbanization and wellbeing."""

from typing import Optional

import numpy as np

from civ_kernel.models.cycle import UpdateResult
from civ_kernel.models.world import PopulationState, WorldSystems
from civ_kernel.utils import clamp, diff_scalars

MIN_POPULATION = 1000


class PopulationSystem:
    """Per-cycle transition function for PopulationState."""

    name = "population"

    def default_state(self) -> PopulationState:
        return PopulationState()

    def update(
        self,
        current: PopulationState,
        cycle: int,
        rng: np.random.Generator,
        previous: Optional[WorldSystems] = None,
    ) -> UpdateResult:
        state = current.model_copy(deep=True)

        # A causal spike can push growth_rate far outside its band; read it
        # back inside [-0.05, 0.05] before compounding the head count.
        base_growth = clamp(state.growth_rate, -0.05, 0.05)
        net_growth = (
            base_growth
            + (state.happiness - 0.5) * 0.2
            + (state.health - 0.5) * 0.1
            + (state.education_level - 0.5) * 0.05
            + rng.uniform(-0.005, 0.005)
        )
        state.count = float(max(MIN_POPULATION, round(state.count * (1 + net_growth))))
        state.growth_rate = clamp(
            base_growth * 0.99 + net_growth * 0.01 + rng.uniform(-0.001, 0.001),
            -0.05, 0.05,
        )

        state.urbanization = clamp(
            state.urbanization + 0.001
            + (state.happiness - 0.5) * 0.0005
            + rng.uniform(-0.002, 0.002),
            0.1, 0.99,
        )

        economic_factor = 0.1 * (clamp(state.growth_rate, -0.2, 0.2) / 0.2)
        health_factor = (state.health - 0.5) * 0.2
        education_factor = (state.education_level - 0.5) * 0.15
        urban_factor = (state.urbanization - 0.5) * 0.05
        target_happiness = 0.5 + economic_factor + health_factor + education_factor + urban_factor
        state.happiness = clamp(
            state.happiness * 0.8 + target_happiness * 0.2 + rng.uniform(-0.05, 0.05),
            0.0, 1.0,
        )

        state.education_level = clamp(
            state.education_level + 0.0005
            + (state.happiness - 0.5) * 0.0002
            + min(0.001, state.count / 1_000_000 * 0.0001)
            + rng.uniform(-0.001, 0.001),
            0.1, 1.0,
        )

        target_health = (
            0.5
            + min(0.1, state.count / 1_000_000 * 0.02)
            + (state.education_level - 0.5) * 0.1
            + (state.happiness - 0.5) * 0.05
        )
        state.health = clamp(
            state.health * 0.9 + target_health * 0.1 + rng.uniform(-0.01, 0.01),
            0.1, 1.0,
        )

        state.diversity = clamp(
            state.diversity * 0.99 + 0.005 + rng.uniform(-0.001, 0.001),
            0.1, 1.0,
        )

        return UpdateResult(state, diff_scalars(current, state))
