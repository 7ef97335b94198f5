"""
Simulation settings using pydantic-settings.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from civ_kernel.models.simulation import SimulationConfig


class SimulationSettings(BaseSettings):
    """Settings loaded from CIV_KERNEL_* environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="CIV_KERNEL_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # Determinism
    seed: Optional[int] = None

    # Logging
    log_level: str = "INFO"

    # Run control
    cycles_per_run: int = 1
    max_total_cycles: int = 10000
    cycle_interval_seconds: float = 0.0

    def to_config(self) -> SimulationConfig:
        return SimulationConfig(
            seed=self.seed,
            cycles_per_run=self.cycles_per_run,
            max_total_cycles=self.max_total_cycles,
            cycle_interval_seconds=self.cycle_interval_seconds,
        )


@lru_cache
def get_settings() -> SimulationSettings:
    """Get cached settings instance."""
    return SimulationSettings()
