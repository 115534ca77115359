from __future__ import annotations

import json
import os
from datetime import datetime
from typing import IO, Any, Dict

from .plant.alerts import utc_iso
from .plant.simulation import SimulationSnapshot


# ============================================================
# Logging
# ============================================================
def log(msg: str) -> None:
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


# ============================================================
# Helpers
# ============================================================
def ensure_dir_for_file(path: str) -> None:
    d = os.path.dirname(os.path.abspath(path))
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def write_jsonl(f: IO[str], topic: str, payload: Dict[str, Any]) -> None:
    f.write(json.dumps({"topic": topic, "payload": payload}, ensure_ascii=False) + "\n")


# ============================================================
# Payloads
# ============================================================
def build_plant_payload(snap: SimulationSnapshot, seq: int, latest_alerts: int = 5) -> Dict[str, Any]:
    s = snap.state
    remaining = snap.manual_remaining_s
    return {
        "ts": utc_iso(),
        "device_id": "reactor",
        "seq": seq,
        "tick": snap.tick,
        "plant": {
            "temperature_c": s.temperature_c,
            "pressure_bar": s.pressure_bar,
            "turbine_rpm": int(s.turbine_rpm),
            "power_mw": s.power_mw,
            "radiation_msv_h": s.radiation_msv_h,
            "coolant_flow": s.coolant_flow,
            "rod_position_pct": s.rod_position_pct,
            "grid_demand_mw": s.grid_demand_mw,
            "pump_a_on": s.pump_a_on,
            "pump_b_on": s.pump_b_on,
            "grid_sync": s.grid_sync,
            "containment_pressure_bar": s.containment_pressure_bar,
            "containment_temp_c": s.containment_temp_c,
            "overall_status": s.overall_status,
        },
        "control": {
            "mode": snap.mode,
            "rod_target": round(snap.rod_target, 2),
            "manual_remaining_s": round(remaining, 1) if remaining is not None else None,
        },
        "eccs": {
            "status": s.eccs_status,
            "reservoir_pct": s.eccs_reservoir_pct,
            "confirm_pending": snap.eccs_confirm_pending,
        },
        "alerts": {
            "count": len(snap.alerts),
            "latest": [
                {"seq": a.seq, "ts": a.ts, "message": a.message, "severity": a.severity}
                for a in snap.alerts[:latest_alerts]
            ],
        },
    }
