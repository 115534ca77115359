# plant/process.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol, Tuple

from .state import ControlMode, PlantState, clamp


class RandomSource(Protocol):
    def uniform(self, a: float, b: float) -> float: ...


@dataclass
class ProcessConfig:
    # first-order lag: value += (target - value) * smoothing
    smoothing: float = 0.05

    # =========================
    # Grid demand
    # =========================
    demand_step_mw: float = 5.0
    demand_min_mw: float = 250.0
    demand_max_mw: float = 1000.0

    # AUTO rod controller gain (per MW of power error)
    rod_gain: float = 0.05

    # =========================
    # Coolant
    # =========================
    pump_flow: float = 50.0             # per running pump

    # =========================
    # Core heat balance
    # =========================
    heat_gain: float = 15.0
    dissipation_temp_scale: float = 45.0
    heat_rate: float = 0.1
    min_temperature_c: float = 30.0

    # =========================
    # ECCS
    # =========================
    eccs_cooling_c: float = 50.0
    eccs_drain_pct: float = 2.0

    # =========================
    # Turbine / generator
    # =========================
    turbine_base_temp_c: float = 300.0
    turbine_rpm_per_c: float = 5.5
    generator_min_rpm: float = 1000.0
    generator_rated_rpm: float = 3600.0
    generator_rated_mw: float = 1200.0

    sync_rpm: float = 1800.0
    sync_band_rpm: float = 50.0

    # =========================
    # Containment (slow heat transfer)
    # =========================
    containment_rate: float = 0.0001
    containment_offset_c: float = 20.0

    # =========================
    # Display noise
    # =========================
    temp_noise_c: float = 0.25
    power_noise_mw: float = 0.1


@dataclass(frozen=True)
class ControlSignal:
    mode: ControlMode
    rod_target: float


class PlantProcess:
    """
    Process/Physics.
    - step() is pure: (previous state, control signal, random source) -> (next state, next rod target).
    - No alerting and no mode logic here (that is controller + alerts).
    """

    def __init__(self, cfg: ProcessConfig | None = None):
        self.cfg = cfg or ProcessConfig()

    def _lerp(self, value: float, target: float) -> float:
        return value + (target - value) * self.cfg.smoothing

    # ======================================================
    # MAIN STEP
    # ======================================================
    def step(self, prev: PlantState, signal: ControlSignal, rng: RandomSource) -> Tuple[PlantState, float]:
        cfg = self.cfg

        # 1) grid demand random walk
        demand = prev.grid_demand_mw + rng.uniform(-cfg.demand_step_mw, cfg.demand_step_mw)
        demand = clamp(demand, cfg.demand_min_mw, cfg.demand_max_mw)

        # 2) AUTO: rods follow the power/demand error; MANUAL keeps the operator target
        rod_target = clamp(float(signal.rod_target), 0.0, 100.0)
        if signal.mode == "AUTO":
            rod_target -= (demand - prev.power_mw) * cfg.rod_gain
            rod_target = clamp(rod_target, 0.0, 100.0)

        # 3) rods
        rods = clamp(self._lerp(prev.rod_position_pct, rod_target), 0.0, 100.0)

        # 4) coolant flow
        target_flow = cfg.pump_flow * int(prev.pump_a_on) + cfg.pump_flow * int(prev.pump_b_on)
        flow = self._lerp(prev.coolant_flow, target_flow)

        # 5) core heat balance
        reaction_rate = (100.0 - rods) / 100.0
        generated = reaction_rate * cfg.heat_gain
        dissipated = (flow / 100.0) * (prev.temperature_c / cfg.dissipation_temp_scale)
        temperature = prev.temperature_c + (generated - dissipated) * cfg.heat_rate

        # 6) ECCS rapid cooling drains the reservoir; depletion is the only way into FAULT
        eccs_status = prev.eccs_status
        reservoir = prev.eccs_reservoir_pct
        if eccs_status == "ACTIVE":
            temperature -= cfg.eccs_cooling_c
            reservoir -= cfg.eccs_drain_pct
            if reservoir <= 0.0:
                reservoir = 0.0
                eccs_status = "FAULT"

        temperature = max(cfg.min_temperature_c, temperature)

        # 7) turbine
        target_rpm = max(0.0, (temperature - cfg.turbine_base_temp_c) * cfg.turbine_rpm_per_c)
        rpm = self._lerp(prev.turbine_rpm, target_rpm)

        # 8) generator
        grid_sync = prev.grid_sync
        if grid_sync == "CONNECTED" and rpm > cfg.generator_min_rpm:
            target_power = (rpm / cfg.generator_rated_rpm) * cfg.generator_rated_mw
        else:
            target_power = 0.0
        power = self._lerp(prev.power_mw, target_power)

        # 9) derived quantities
        pressure = 150.0 + (temperature - 400.0) * 0.05 + (flow / 100.0) * 5.0
        radiation = 0.002 + (temperature / 100000.0) * reaction_rate
        containment_temp = prev.containment_temp_c + (
            temperature - prev.containment_temp_c - cfg.containment_offset_c
        ) * cfg.containment_rate
        containment_pressure = 1.0 + containment_temp / 1000.0

        # 10) grid synchronisation window
        if grid_sync == "SYNCHRONIZING" and abs(rpm - cfg.sync_rpm) < cfg.sync_band_rpm:
            grid_sync = "CONNECTED"

        # 11) display noise, still subject to the domain floors
        temperature += rng.uniform(-cfg.temp_noise_c, cfg.temp_noise_c)
        power += rng.uniform(-cfg.power_noise_mw, cfg.power_noise_mw)
        temperature = max(cfg.min_temperature_c, temperature)
        power = max(0.0, power)

        # 12) overall status is derived by PlantState itself
        nxt = replace(
            prev,
            temperature_c=temperature,
            pressure_bar=pressure,
            turbine_rpm=rpm,
            power_mw=power,
            radiation_msv_h=radiation,
            coolant_flow=flow,
            rod_position_pct=rods,
            grid_demand_mw=demand,
            grid_sync=grid_sync,
            containment_pressure_bar=containment_pressure,
            containment_temp_c=containment_temp,
            eccs_status=eccs_status,
            eccs_reservoir_pct=reservoir,
        )
        return nxt, rod_target
