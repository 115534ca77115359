# plant/simulation.py
from __future__ import annotations

import math
import random
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from .alerts import MSG_AUTO_RESTORED, AlertEngine, AlertLog, utc_iso
from .commands import Command, CommandResult
from .controller import ControllerConfig, PlantController
from .history import HistoryBuffer
from .process import ControlSignal, PlantProcess, RandomSource
from .state import Alert, ControlMode, HistorySample, PlantState


@dataclass
class SimulatorConfig:
    alert_capacity: int = 100
    history_capacity: int = 300
    # True reproduces the lossy mode: the rounded snapshot becomes next tick's input
    round_feedback: bool = False
    seed: Optional[int] = None


@dataclass(frozen=True)
class SimulationSnapshot:
    tick: int
    state: PlantState
    mode: ControlMode
    manual_remaining_s: Optional[float]
    rod_target: float
    eccs_confirm_pending: bool
    history: Tuple[HistorySample, ...]
    alerts: Tuple[Alert, ...]


class PlantSimulator:
    """
    Single-writer owner of PlantState, control mode, alert log and history.
    - tick() and every command run under one lock, so commands land between ticks.
    - snapshot() hands out the last published immutable snapshot without locking.
    """

    def __init__(
        self,
        state: PlantState | None = None,
        controller: PlantController | None = None,
        process: PlantProcess | None = None,
        cfg: SimulatorConfig | None = None,
        rng: RandomSource | None = None,
        clock: Callable[[], float] | None = None,
        wall_clock: Callable[[], str] = utc_iso,
    ):
        self.cfg = cfg or SimulatorConfig()
        self.process = process or PlantProcess()
        self.controller = controller or PlantController(ControllerConfig(), clock=clock or time.monotonic)
        self._rng: RandomSource = rng or random.Random(self.cfg.seed)

        self._lock = threading.RLock()
        self._state = state or PlantState()
        if state is not None:
            self.controller.set_rod_target(state.rod_position_pct)

        self.alerts = AlertLog(self.cfg.alert_capacity, now=wall_clock)
        self.alert_engine = AlertEngine(self.alerts, initial=self._state.rounded())
        self.history = HistoryBuffer(self.cfg.history_capacity)

        self._tick = 0
        self._snapshot = self._build_snapshot(self._state.rounded())

    # ======================================================
    # Readers
    # ======================================================
    @property
    def tick_count(self) -> int:
        return self._tick

    @property
    def internal_state(self) -> PlantState:
        return self._state

    def snapshot(self) -> SimulationSnapshot:
        return self._snapshot

    def _build_snapshot(self, published: PlantState) -> SimulationSnapshot:
        ctl = self.controller
        return SimulationSnapshot(
            tick=self._tick,
            state=published,
            mode=ctl.mode,
            manual_remaining_s=ctl.manual_remaining_s(),
            rod_target=ctl.rod_target,
            eccs_confirm_pending=ctl.eccs_confirm_pending,
            history=self.history.samples(),
            alerts=self.alerts.entries(),
        )

    def _publish(self) -> None:
        self._snapshot = self._build_snapshot(self._state.rounded())

    # ======================================================
    # Tick
    # ======================================================
    def tick(self) -> PlantState:
        with self._lock:
            ctl = self.controller

            if ctl.poll_reversion():
                self.alerts.add(MSG_AUTO_RESTORED, "NORMAL")

            signal = ControlSignal(mode=ctl.mode, rod_target=ctl.rod_target)
            nxt, rod_target = self.process.step(self._state, signal, self._rng)
            ctl.rod_target = rod_target

            published = nxt.rounded()
            self._state = published if self.cfg.round_feedback else nxt
            self._tick += 1

            self.alert_engine.observe(published)
            self.history.append(self._tick, published)
            self._snapshot = self._build_snapshot(published)
            return published

    def run(self, ticks: int) -> PlantState:
        published = self._snapshot.state
        for _ in range(int(ticks)):
            published = self.tick()
        return published

    # ======================================================
    # Command API
    # ======================================================
    def apply(self, cmd: Command) -> CommandResult:
        name = cmd.command
        if name == "SET_ROD_TARGET":
            try:
                position = float(cmd.value)
            except (TypeError, ValueError):
                return "NOOP"
            return self.set_rod_target(position)
        if name == "TOGGLE_PUMP":
            return self.toggle_pump(str(cmd.target))
        if name == "REQUEST_GRID_SYNC":
            return self.request_grid_sync()
        if name == "ACTIVATE_ECCS":
            return self.activate_eccs()
        if name == "ACK_ALERTS":
            return self.acknowledge_alerts()
        return "NOOP"

    def set_rod_target(self, position: float) -> CommandResult:
        if not math.isfinite(position):
            return "NOOP"
        with self._lock:
            self.controller.enter_manual()
            target = self.controller.set_rod_target(position)
            self.alerts.add(f"MANUAL OVERRIDE: Control rods set to {target:.0f}%.", "WARNING")
            self._publish()
            return "OK"

    def toggle_pump(self, pump: str) -> CommandResult:
        pump = pump.strip().upper()
        if pump not in ("A", "B"):
            return "NOOP"
        with self._lock:
            self.controller.enter_manual()
            if pump == "A":
                self._state = replace(self._state, pump_a_on=not self._state.pump_a_on)
                on = self._state.pump_a_on
            else:
                self._state = replace(self._state, pump_b_on=not self._state.pump_b_on)
                on = self._state.pump_b_on
            self.alerts.add(f"MANUAL OVERRIDE: Coolant Pump {pump} turned {'ON' if on else 'OFF'}.", "WARNING")
            self._publish()
            return "OK"

    def request_grid_sync(self) -> CommandResult:
        with self._lock:
            self.controller.enter_manual()
            result: CommandResult = "NOOP"
            if self._state.grid_sync == "DISCONNECTED":
                self._state = replace(self._state, grid_sync="SYNCHRONIZING")
                self.alert_engine.observe(self._state.rounded())
                result = "OK"
            self._publish()
            return result

    def activate_eccs(self) -> CommandResult:
        with self._lock:
            if self._state.eccs_status != "STANDBY":
                return "NOOP"
            if not self.controller.confirm_eccs():
                self._publish()
                return "PENDING_CONFIRM"

            self.controller.enter_manual()
            self.controller.set_rod_target(100.0)
            self._state = replace(self._state, eccs_status="ACTIVE")
            self.alert_engine.observe(self._state.rounded())
            self._publish()
            return "OK"

    def acknowledge_alerts(self) -> CommandResult:
        with self._lock:
            self.alerts.acknowledge()
            self._publish()
            return "OK"
