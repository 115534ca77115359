from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Optional


OverallStatus = Literal["NORMAL", "WARNING", "CRITICAL"]
GridSync = Literal["DISCONNECTED", "SYNCHRONIZING", "CONNECTED"]
EccsStatus = Literal["STANDBY", "ACTIVE", "FAULT"]
ControlMode = Literal["AUTO", "MANUAL"]


# default clamp function
def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def derive_status(temperature_c: float, pressure_bar: float, coolant_flow: float) -> OverallStatus:
    status: OverallStatus = "NORMAL"
    if temperature_c > 850.0 or pressure_bar > 175.0 or coolant_flow < 20.0:
        status = "WARNING"
    # critical wins when both match
    if temperature_c > 950.0 or pressure_bar > 185.0 or coolant_flow < 5.0:
        status = "CRITICAL"
    return status


@dataclass(frozen=True)
class PlantState:
    temperature_c: float = 450.0
    pressure_bar: float = 155.0
    turbine_rpm: float = 1800.0
    power_mw: float = 300.0
    radiation_msv_h: float = 0.005
    coolant_flow: float = 80.0          # m3/s
    rod_position_pct: float = 50.0      # 0 = withdrawn (max power), 100 = inserted
    grid_demand_mw: float = 300.0

    pump_a_on: bool = True
    pump_b_on: bool = True
    grid_sync: GridSync = "CONNECTED"

    containment_pressure_bar: float = 1.05
    containment_temp_c: float = 25.0

    eccs_status: EccsStatus = "STANDBY"
    eccs_reservoir_pct: float = 100.0

    def __post_init__(self) -> None:
        # frozen: go through object.__setattr__ to enforce domains
        object.__setattr__(self, "rod_position_pct", clamp(float(self.rod_position_pct), 0.0, 100.0))
        object.__setattr__(self, "eccs_reservoir_pct", clamp(float(self.eccs_reservoir_pct), 0.0, 100.0))
        object.__setattr__(self, "pump_a_on", bool(self.pump_a_on))
        object.__setattr__(self, "pump_b_on", bool(self.pump_b_on))

    @property
    def overall_status(self) -> OverallStatus:
        return derive_status(self.temperature_c, self.pressure_bar, self.coolant_flow)

    def rounded(self) -> "PlantState":
        """Copy with the fixed per-field display precision."""
        return replace(
            self,
            temperature_c=round(self.temperature_c, 2),
            pressure_bar=round(self.pressure_bar, 2),
            turbine_rpm=float(round(self.turbine_rpm)),
            power_mw=round(self.power_mw, 2),
            radiation_msv_h=round(self.radiation_msv_h, 4),
            coolant_flow=round(self.coolant_flow, 2),
            rod_position_pct=round(self.rod_position_pct, 2),
            grid_demand_mw=round(self.grid_demand_mw, 2),
            containment_pressure_bar=round(self.containment_pressure_bar, 3),
            containment_temp_c=round(self.containment_temp_c, 2),
            eccs_reservoir_pct=round(self.eccs_reservoir_pct, 2),
        )

    def to_dict(self) -> dict:
        return {
            "temperature_c": self.temperature_c,
            "pressure_bar": self.pressure_bar,
            "turbine_rpm": self.turbine_rpm,
            "power_mw": self.power_mw,
            "radiation_msv_h": self.radiation_msv_h,
            "coolant_flow": self.coolant_flow,
            "rod_position_pct": self.rod_position_pct,
            "grid_demand_mw": self.grid_demand_mw,
            "pump_a_on": self.pump_a_on,
            "pump_b_on": self.pump_b_on,
            "grid_sync": self.grid_sync,
            "containment_pressure_bar": self.containment_pressure_bar,
            "containment_temp_c": self.containment_temp_c,
            "eccs_status": self.eccs_status,
            "eccs_reservoir_pct": self.eccs_reservoir_pct,
            "overall_status": self.overall_status,
        }


@dataclass(frozen=True)
class ControlModeState:
    mode: ControlMode = "AUTO"
    deadline_s: Optional[float] = None  # monotonic; only set while MANUAL


@dataclass(frozen=True)
class Alert:
    seq: int
    ts: str
    message: str
    severity: OverallStatus


@dataclass(frozen=True)
class HistorySample:
    tick: int
    state: PlantState
