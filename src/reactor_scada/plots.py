#!/usr/bin/env python3
"""
Plot time-series from the gateway's telemetry JSONL.

Each line is expected as:
{"topic": "...", "payload": {...}}

This script:
- loads the file (skipping malformed lines)
- flattens plant / control / eccs metrics into a table
- writes one PNG per numeric metric, plus step plots for status and control mode

Usage:
  reactor-plots --in out/reactor_telemetry.jsonl --outdir out/plots
"""

import argparse
import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

STATUS_LEVEL = {"NORMAL": 0, "WARNING": 1, "CRITICAL": 2}
MODE_LEVEL = {"AUTO": 0, "MANUAL": 1}
ECCS_LEVEL = {"STANDBY": 0, "ACTIVE": 1, "FAULT": 2}


# ----------------------------
# Helpers
# ----------------------------
def parse_ts(ts: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(ts)
    except ValueError:
        return None


def safe_get(d: Dict[str, Any], path: str) -> Any:
    cur: Any = d
    for p in path.split("."):
        if not isinstance(cur, dict) or p not in cur:
            return None
        cur = cur[p]
    return cur


def load_jsonl(path: str) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    if not path or not os.path.exists(path):
        return rows

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(obj, dict):
                continue
            payload = obj.get("payload")
            if not isinstance(payload, dict) or payload.get("device_id") != "reactor":
                continue

            ts_raw = payload.get("ts")
            ts = parse_ts(ts_raw) if isinstance(ts_raw, str) else None
            if ts is None:
                continue
            rows.append({"ts": ts, "payload": payload})
    rows.sort(key=lambda r: r["ts"])
    return rows


def extract_metrics(payload: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}

    plant = payload.get("plant")
    if isinstance(plant, dict):
        for k, v in plant.items():
            if isinstance(v, bool):
                out[f"plant.{k}"] = int(v)
            elif is_number(v):
                out[f"plant.{k}"] = v
        out["plant.overall_status"] = STATUS_LEVEL.get(plant.get("overall_status"))

    out["control.rod_target"] = safe_get(payload, "control.rod_target")
    out["control.mode"] = MODE_LEVEL.get(safe_get(payload, "control.mode"))
    out["eccs.reservoir_pct"] = safe_get(payload, "eccs.reservoir_pct")
    out["eccs.status"] = ECCS_LEVEL.get(safe_get(payload, "eccs.status"))
    out["alerts.count"] = safe_get(payload, "alerts.count")
    return out


def is_number(x: Any) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def collect_series(rows: List[Dict[str, Any]]) -> Dict[str, Dict[str, list]]:
    series: Dict[str, Dict[str, list]] = {}
    for r in rows:
        for name, v in extract_metrics(r["payload"]).items():
            if not is_number(v):
                continue
            s = series.setdefault(name, {"ts": [], "ys": []})
            s["ts"].append(r["ts"])
            s["ys"].append(v)
    return series


def plot_series(ts: List[datetime], ys: List[float], title: str, outpath: str) -> None:
    plt.figure()
    plt.plot(ts, ys)
    plt.title(title)
    plt.xlabel("time")
    plt.ylabel(title)
    plt.tight_layout()
    plt.savefig(outpath, dpi=150)
    plt.close()


def plot_step_series(ts: List[datetime], ys: List[int], title: str, outpath: str) -> None:
    plt.figure()
    plt.step(ts, ys, where="post")
    plt.title(title)
    plt.xlabel("time")
    plt.ylabel(title)
    plt.tight_layout()
    plt.savefig(outpath, dpi=150)
    plt.close()


STEP_METRICS = ("plant.overall_status", "control.mode", "eccs.status", "plant.pump_a_on", "plant.pump_b_on")


def render(rows: List[Dict[str, Any]], outdir: str, max_points: int = 5000) -> List[str]:
    max_points = max(1, max_points)
    os.makedirs(outdir, exist_ok=True)
    written: List[str] = []

    for name, s in sorted(collect_series(rows).items()):
        ts, ys = s["ts"], s["ys"]
        if len(ts) > max_points:
            stride = len(ts) // max_points + 1
            ts, ys = ts[::stride], ys[::stride]

        outpath = os.path.join(outdir, name.replace(".", "_") + ".png")
        if name in STEP_METRICS:
            plot_step_series(ts, ys, name, outpath)
        else:
            plot_series(ts, ys, name, outpath)
        written.append(outpath)
    return written


# ----------------------------
# Main
# ----------------------------
def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--in", dest="path", default="out/reactor_telemetry.jsonl", help="Telemetry JSONL path")
    ap.add_argument("--outdir", default="out/plots", help="Where to save PNG plots")
    ap.add_argument("--max-points", type=int, default=5000, help="Cap points per metric (simple downsample)")
    args = ap.parse_args()

    rows = load_jsonl(args.path)
    if not rows:
        print(f"No reactor telemetry in {args.path}")
        return

    written = render(rows, args.outdir, max_points=args.max_points)
    print(f"Wrote {len(written)} plots to {os.path.abspath(args.outdir)}")


if __name__ == "__main__":
    main()
