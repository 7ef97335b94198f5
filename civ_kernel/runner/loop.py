"""
Simulation Loop — drives the world and the machine cycle by cycle.

Each cycle is computed entirely on copies:
  world step -> black swan draw -> machine step -> legitimacy gate
  -> intervention application
and only then committed to the store, after which fired events are tracked
and dispatcher events emitted. A failure at any stage leaves the last
committed cycle untouched.
"""

import asyncio
import logging
from typing import List, Optional

import numpy as np

from civ_kernel.engine.machine_engine import MachineEngine
from civ_kernel.engine.world_engine import WorldEngine
from civ_kernel.events.black_swan import sum_impacts
from civ_kernel.events.dispatcher import EventDispatcher
from civ_kernel.governance.legitimacy_gate import LegitimacyGate
from civ_kernel.log_utils import setup_logging
from civ_kernel.models.cycle import CycleResult, MachineFeedback
from civ_kernel.models.events import SimulationEvent
from civ_kernel.models.simulation import SimulationConfig
from civ_kernel.settings import SimulationSettings, get_settings
from civ_kernel.world_model.store import SimulationStore

logger = logging.getLogger(__name__)


class SimulationLoop:
    """
    The closed World <-> Machine loop.

    States:
      STOPPED -> RUNNING -> (cycle)* -> STOPPED
    """

    def __init__(
        self,
        store: SimulationStore,
        world_engine: Optional[WorldEngine] = None,
        machine_engine: Optional[MachineEngine] = None,
        gate: Optional[LegitimacyGate] = None,
        dispatcher: Optional[EventDispatcher] = None,
        config: Optional[SimulationConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or SimulationConfig()
        self.store = store
        self.world_engine = world_engine or WorldEngine()
        self.machine_engine = machine_engine or MachineEngine(self.config)
        self.gate = gate or LegitimacyGate(self.config.min_meaningful_impact)
        self.dispatcher = dispatcher or EventDispatcher(
            max_history_size=self.config.event_history_limit
        )
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self.current_cycle = 0
        self.cycles_completed = 0
        self._running = False
        if store.is_initialized:
            self._sync_cycle()

    @property
    def status(self) -> str:
        """Current loop status."""
        return "running" if self._running else "stopped"

    @property
    def exhausted(self) -> bool:
        return self.cycles_completed >= self.config.max_total_cycles

    def initialize(self, world: Optional[dict] = None, machine: Optional[dict] = None) -> None:
        """Load (or default) the starting state."""
        if machine is None:
            machine = self.machine_engine.default_state()
        self.store.initialize(world, machine)
        self._sync_cycle()
        logger.info("Simulation initialized at cycle %d", self.current_cycle)

    def run_cycle(self) -> CycleResult:
        """Compute one full cycle and commit it."""
        world = self.store.world
        machine = self.store.machine
        feedback = self.store.feedback
        cycle = self.current_cycle
        black_swans = self.dispatcher.black_swan_events

        next_world, changes = self.world_engine.process_cycle(world, cycle, self.rng, feedback)

        event = black_swans.select_event(next_world, cycle, self.rng)
        active = black_swans.get_active_events()
        if event is not None:
            next_world = self.world_engine.apply_event(next_world, event)
            changes.black_swan_event = event
            active.append(event)

        next_machine, actions = self.machine_engine.process_cycle(
            machine, next_world, cycle, self.rng, sum_impacts(active)
        )

        decision = self.gate.evaluate(actions.interventions, next_world.systems.legitimacy)
        next_world = self.world_engine.apply_interventions(next_world, decision.approved)
        next_feedback = MachineFeedback(
            applied_interventions=decision.approved,
            proposed_count=len(actions.interventions),
            prediction_accuracy=next_machine.prediction_engine.accuracy,
        )

        # Commit
        self.store.commit(next_world, next_machine, next_feedback)
        self.dispatcher.update_active_events()
        if event is not None:
            self.dispatcher.publish_black_swan(event)
        self._emit_cycle_events(cycle, changes, actions, decision)
        self.dispatcher.process_event_queue()

        self.current_cycle += 1
        self.cycles_completed += 1
        logger.info(
            "Cycle %d complete: %d interventions applied, %d dropped, legitimacy %.3f",
            cycle, len(decision.approved), len(decision.dropped),
            decision.overall_legitimacy,
        )

        return CycleResult(
            cycle=cycle,
            world_changes=changes,
            machine_actions=actions,
            applied_interventions=decision.approved,
            dropped_interventions=decision.dropped,
        )

    def run(self, cycles: Optional[int] = None) -> List[CycleResult]:
        """Run a batch of cycles, stopping early at max_total_cycles."""
        cycles = self.config.cycles_per_run if cycles is None else cycles
        results = []
        self._running = True
        try:
            for _ in range(cycles):
                if self.exhausted:
                    logger.info("Reached max_total_cycles (%d)", self.config.max_total_cycles)
                    break
                results.append(self.run_cycle())
        finally:
            self._running = False
        return results

    async def run_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Run cycles until stopped; cancellation only takes effect between cycles."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        try:
            while not stop_event.is_set() and not self.exhausted:
                self.run_cycle()
                try:
                    await asyncio.wait_for(
                        stop_event.wait(),
                        timeout=self.config.cycle_interval_seconds,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False

    def _sync_cycle(self) -> None:
        world = self.store.world
        self.current_cycle = world.cycle + 1 if world.history else world.cycle

    def _emit_cycle_events(self, cycle, changes, actions, decision) -> None:
        for violation in changes.threshold_violations:
            self.dispatcher.emit(SimulationEvent(
                type="system_alert", cycle=cycle, payload=violation.model_dump(mode="json"),
            ))
        self.dispatcher.emit(SimulationEvent(
            type="world_change",
            cycle=cycle,
            payload={"changes": changes.change_log()},
        ))
        for intervention in decision.approved:
            self.dispatcher.emit(SimulationEvent(
                type="intervention", cycle=cycle, payload=intervention.model_dump(mode="json"),
            ))
        self.dispatcher.emit(SimulationEvent(
            type="machine_action",
            cycle=cycle,
            payload={
                "interventions": [i.id for i in actions.interventions],
                "belief_formations": len(actions.beliefs.belief_formations),
                "insights": len(actions.introspections.insights),
                "mood": actions.emotions.mood,
            },
        ))


def create_simulation(
    settings: Optional[SimulationSettings] = None,
    world: Optional[dict] = None,
    machine: Optional[dict] = None,
) -> SimulationLoop:
    """Build an initialized SimulationLoop from environment settings."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    loop = SimulationLoop(SimulationStore(), config=settings.to_config())
    loop.initialize(world, machine)
    return loop
