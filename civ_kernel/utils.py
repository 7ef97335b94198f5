"""Numeric helpers shared by the world, perception and machine layers."""

from typing import Dict, Iterable, List, Type

from pydantic import BaseModel

# Field-name fragments that mark a value as probability-like (kept in [0, 1]
# whenever a causal effect or an intervention is added to it).
BOUNDED_KEYWORDS = (
    "confidence",
    "rate",
    "level",
    "ratio",
    "proportion",
    "probability",
    "happiness",
    "stability",
    "volatility",
    "resilience",
    "acceptance",
    "trust",
    "cohesion",
    "effectiveness",
    "efficiency",
    "quality",
)


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def is_bounded_field(name: str) -> bool:
    """Substring match of a field name against BOUNDED_KEYWORDS."""
    lowered = name.lower()
    return any(keyword in lowered for keyword in BOUNDED_KEYWORDS)


def mean(values: Iterable[float], default: float = 0.0) -> float:
    values = list(values)
    if not values:
        return default
    return sum(values) / len(values)


def scalar_field_names(model_cls: Type[BaseModel]) -> List[str]:
    """Names of the plain float attributes declared on a state model."""
    return [
        name for name, info in model_cls.model_fields.items()
        if info.annotation is float
    ]


def scalar_values(model: BaseModel) -> Dict[str, float]:
    """Snapshot of a state model's float attributes."""
    return {
        name: getattr(model, name)
        for name in scalar_field_names(type(model))
    }


def diff_scalars(old: BaseModel, new: BaseModel) -> Dict[str, float]:
    """Per-field delta (new - old) over the float attributes of a state model."""
    before = scalar_values(old)
    after = scalar_values(new)
    return {name: after[name] - before[name] for name in after}
