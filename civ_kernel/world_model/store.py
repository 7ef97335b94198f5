"""
Simulation Store — holds the committed world and machine snapshots.

Updated by: SimulationLoop commits (one per completed cycle)
Queried by: SimulationLoop, reporting collaborators
"""

import copy
import logging
from typing import Any, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from civ_kernel.models.cycle import MachineFeedback
from civ_kernel.models.machine import MachineState
from civ_kernel.models.world import WorldState

logger = logging.getLogger(__name__)

MAX_REPAIR_PASSES = 10

StateT = TypeVar("StateT", bound=BaseModel)


class EngineNotInitializedError(RuntimeError):
    """Raised when state is read or written before initialize()."""


class StateNormalizationError(ValueError):
    """Raised when loaded state cannot be coerced into the canonical schema."""


def _replace_with_default(data: dict, defaults: dict, loc: Tuple) -> Optional[str]:
    """
    Overwrite the deepest part of loc that the default schema knows about.

    Returns the repaired dotted path, or None when nothing could be replaced.
    """
    path = []
    default = defaults
    for key in loc:
        if not isinstance(default, dict) or key not in default:
            break
        default = default[key]
        path.append(key)
    if not path:
        return None

    target = data
    try:
        for key in path[:-1]:
            target = target[key]
        target[path[-1]] = copy.deepcopy(default)
    except (KeyError, IndexError, TypeError):
        return None
    return ".".join(str(key) for key in path)


def _normalize(model_cls: Type[StateT], data: Any) -> StateT:
    if isinstance(data, model_cls):
        return data.model_copy(deep=True)
    if not isinstance(data, dict):
        return model_cls()

    candidate = copy.deepcopy(data)
    defaults = model_cls().model_dump()
    for _ in range(MAX_REPAIR_PASSES):
        try:
            return model_cls.model_validate(candidate)
        except ValidationError as exc:
            repaired = set()
            for error in exc.errors():
                path = _replace_with_default(candidate, defaults, error["loc"])
                if path is None:
                    raise StateNormalizationError(
                        f"Invalid {model_cls.__name__}: {exc}"
                    ) from exc
                repaired.add(path)
            logger.warning(
                "Replaced malformed %s fields with defaults: %s",
                model_cls.__name__, ", ".join(sorted(repaired)),
            )
    raise StateNormalizationError(
        f"Invalid {model_cls.__name__}: still malformed after {MAX_REPAIR_PASSES} repairs"
    )


def normalize_world_state(data: Any) -> WorldState:
    """
    Merge loaded world data over the canonical defaults.

    Missing fields at any depth take their defaults, and so do malformed
    ones: each failing location is replaced by the default value at the
    deepest part of that location the schema defines, then validation is
    retried. Anything that is not a mapping yields a fresh default world.
    StateNormalizationError is raised only when the input cannot be repaired.
    """
    return _normalize(WorldState, data)


def normalize_machine_state(data: Any) -> MachineState:
    """Machine counterpart of normalize_world_state."""
    return _normalize(MachineState, data)


class SimulationStore:
    """
    In-memory snapshot holder.
    Persistence is left to callers via get_state_snapshot().
    """

    def __init__(self):
        self._world: Optional[WorldState] = None
        self._machine: Optional[MachineState] = None
        self._feedback = MachineFeedback()

    def initialize(self, world: Any = None, machine: Any = None) -> None:
        """Normalize and install the starting snapshots."""
        self._world = normalize_world_state(world)
        self._machine = normalize_machine_state(machine)
        self._feedback = MachineFeedback()

    @property
    def is_initialized(self) -> bool:
        return self._world is not None and self._machine is not None

    @property
    def world(self) -> WorldState:
        """Get the committed world snapshot."""
        self._require_initialized()
        return self._world

    @property
    def machine(self) -> MachineState:
        """Get the committed machine snapshot."""
        self._require_initialized()
        return self._machine

    @property
    def feedback(self) -> MachineFeedback:
        self._require_initialized()
        return self._feedback

    def commit(
        self,
        world: WorldState,
        machine: MachineState,
        feedback: Optional[MachineFeedback] = None,
    ) -> None:
        """Swap in a fully computed cycle."""
        self._require_initialized()
        self._world = world
        self._machine = machine
        if feedback is not None:
            self._feedback = feedback

    def get_state_snapshot(self) -> dict:
        """Get a serializable snapshot of the committed state."""
        self._require_initialized()
        return {
            "world": self._world.model_dump(mode="json"),
            "machine": self._machine.model_dump(mode="json"),
        }

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise EngineNotInitializedError(
                "SimulationStore used before initialize()"
            )
