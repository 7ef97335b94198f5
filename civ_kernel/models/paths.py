"""Addressing of individual scalar fields inside WorldSystems."""

from enum import Enum
from typing import Dict, Type

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from civ_kernel.models.world import (
    EconomyState,
    EntropyState,
    LegitimacyState,
    PopulationState,
    ResistanceState,
    StabilityState,
    TechnologyState,
    WorldSystems,
)
from civ_kernel.utils import clamp, is_bounded_field, scalar_field_names


class SystemName(str, Enum):
    ECONOMY = "economy"
    POPULATION = "population"
    TECHNOLOGY = "technology"
    STABILITY = "stability"
    ENTROPY = "entropy"
    RESISTANCE = "resistance"
    LEGITIMACY = "legitimacy"


SYSTEM_MODELS: Dict[SystemName, Type[BaseModel]] = {
    SystemName.ECONOMY: EconomyState,
    SystemName.POPULATION: PopulationState,
    SystemName.TECHNOLOGY: TechnologyState,
    SystemName.STABILITY: StabilityState,
    SystemName.ENTROPY: EntropyState,
    SystemName.RESISTANCE: ResistanceState,
    SystemName.LEGITIMACY: LegitimacyState,
}

# Quantities that are not probability-like and only have a floor.
MAGNITUDE_FIELDS = frozenset({
    "economy.resources",
    "economy.trade_volume",
    "population.count",
    "technology.research_investment",
})


def is_magnitude_field(system: str, name: str) -> bool:
    return f"{system}.{name}" in MAGNITUDE_FIELDS


class UnknownFieldPathError(ValueError):
    """Raised when a dotted path does not name a scalar world field."""


class FieldPath(BaseModel):
    """
    A validated "system.field" reference.

    Accepts either a dotted string or a {system, name} mapping. Only float
    attributes of the named system are addressable.
    """

    model_config = ConfigDict(frozen=True)

    system: SystemName
    name: str

    @model_validator(mode="before")
    @classmethod
    def _split_dotted(cls, data):
        if isinstance(data, str):
            system, sep, name = data.partition(".")
            if not sep or not name:
                raise ValueError(f"expected 'system.field', got {data!r}")
            return {"system": system, "name": name}
        return data

    @model_validator(mode="after")
    def _check_field(self) -> "FieldPath":
        if self.name not in scalar_field_names(SYSTEM_MODELS[self.system]):
            raise ValueError(
                f"{self.system.value} has no scalar field {self.name!r}"
            )
        return self

    @classmethod
    def parse(cls, path: str) -> "FieldPath":
        try:
            return cls.model_validate(path)
        except ValidationError as exc:
            raise UnknownFieldPathError(f"Unknown field path {path!r}") from exc

    def __str__(self) -> str:
        return f"{self.system.value}.{self.name}"

    @property
    def bounded(self) -> bool:
        return is_bounded_field(self.name)

    def get(self, systems: WorldSystems) -> float:
        return getattr(getattr(systems, self.system.value), self.name)

    def set(self, systems: WorldSystems, value: float) -> None:
        setattr(getattr(systems, self.system.value), self.name, value)

    def add(self, systems: WorldSystems, delta: float) -> float:
        """Add delta in place, clamping bounded fields to [0, 1]. Returns the new value."""
        value = self.get(systems) + delta
        if self.bounded:
            value = clamp(value, 0.0, 1.0)
        self.set(systems, value)
        return value
