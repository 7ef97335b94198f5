"""Technology subsystem — level, innovation, adoption and research spend."""

from typing import Optional

import numpy as np

from civ_kernel.models.cycle import UpdateResult
from civ_kernel.models.world import TechnologyState, WorldSystems
from civ_kernel.utils import clamp, diff_scalars


class TechnologySystem:
    """Per-cycle transition function for TechnologyState."""

    name = "technology"

    def default_state(self) -> TechnologyState:
        return TechnologyState()

    def update(
        self,
        current: TechnologyState,
        cycle: int,
        rng: np.random.Generator,
        previous: Optional[WorldSystems] = None,
    ) -> UpdateResult:
        state = current.model_copy(deep=True)

        # Share of output reinvested in research, from last cycle's markets.
        economic_factor = 0.1
        if previous is not None:
            economic_factor = clamp(previous.economy.market_confidence * 0.125, 0.0, 0.125)

        innovation = state.innovation_rate * (1 + rng.uniform(-0.1, 0.2))
        adoption = state.adoption_rate * (1 + rng.uniform(-0.05, 0.1))
        state.level = max(0.1, state.level * (1 + innovation * adoption))

        research_factor = min(0.2, state.research_investment / 1000)
        state.innovation_rate = clamp(
            state.innovation_rate * 0.9 + research_factor * 0.1 + rng.uniform(-0.01, 0.02),
            0.01, 0.5,
        )

        state.adoption_rate = clamp(
            state.adoption_rate * 0.95 + (0.7 + rng.uniform(-0.1, 0.1)) * 0.05,
            0.1, 1.0,
        )

        state.research_investment = max(
            50.0,
            state.research_investment
            * (1 + (state.innovation_rate - 0.05) * 0.5 + economic_factor * 0.3),
        )

        state.technological_gap = clamp(
            state.technological_gap * 0.9 + (1 - state.level / 10) * 0.1, 0.05, 1.0
        )

        state.innovation_capacity = clamp(
            state.innovation_capacity * 0.97
            + state.innovation_rate * 0.3
            + state.research_investment / 1000 * 0.2
            + rng.uniform(-0.01, 0.02),
            0.1, 1.0,
        )

        state.technology_tree = {
            branch: max(0.1, value * (1 + state.innovation_rate * 0.3 + rng.uniform(-0.02, 0.05)))
            for branch, value in state.technology_tree.items()
        }

        state.tech_debt = clamp(state.tech_debt * 0.95 + state.innovation_rate * 0.05, 0.0, 1.0)
        state.breakthrough_probability = clamp(
            state.innovation_rate * 0.1 + state.research_investment / 5000, 0.001, 0.1
        )
        state.knowledge_base = clamp(
            state.knowledge_base * 0.9
            + state.innovation_rate * 0.1
            + state.research_investment / 2000 * 0.1,
            0.1, 1.0,
        )

        return UpdateResult(state, diff_scalars(current, state))
