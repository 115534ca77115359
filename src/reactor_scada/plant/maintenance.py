# plant/maintenance.py
from __future__ import annotations

import itertools
import random
from dataclasses import dataclass, replace
from typing import List, Literal, Optional, Tuple

from .state import OverallStatus

TaskStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED"]

_STATUS_ORDER = {"IN_PROGRESS": 1, "PENDING": 2, "COMPLETED": 3}


@dataclass(frozen=True)
class MaintenanceTask:
    id: str
    component: str
    task: str
    due: str
    status: TaskStatus = "PENDING"


INITIAL_TASKS: Tuple[MaintenanceTask, ...] = (
    MaintenanceTask("maint-001", "Primary Coolant Pump A", "Impeller Inspection", "3 Days"),
    MaintenanceTask("maint-002", "Turbine Governor", "Calibration Check", "5 Days"),
    MaintenanceTask("maint-003", "Backup Diesel Generator 1", "Fuel System Flush", "1 Week"),
    MaintenanceTask("maint-004", "Control Rod Drive Mechanism #23", "Full Diagnostic", "2 Weeks"),
    MaintenanceTask("maint-006", "Radiation Monitor System", "Sensor Calibration", "Completed", "COMPLETED"),
)

ROUTINE_TASKS: Tuple[Tuple[str, str], ...] = (
    ("Secondary Coolant Pump", "Bearing Lubrication"),
    ("Electrical Grid Switchgear", "Contact Cleaning"),
    ("Core Temperature Sensor Array", "Recalibration"),
    ("Containment Vessel Airlock B", "Seal Integrity Test"),
)


@dataclass
class MaintenanceConfig:
    period_s: float = 10.0          # host calls step() this often
    p_start: float = 0.10
    p_complete: float = 0.15
    p_new_task: float = 0.05
    max_due_days: int = 10


class MaintenanceBoard:
    """
    Random task-progression feed. Independent of the simulator: step() runs on a slow
    cadence, observe_status() on every tick to raise one urgent task per CRITICAL episode.
    """

    def __init__(self, cfg: MaintenanceConfig | None = None, rng: Optional[random.Random] = None):
        self.cfg = cfg or MaintenanceConfig()
        self._rng = rng or random.Random()
        self._tasks: List[MaintenanceTask] = list(INITIAL_TASKS)
        self._ids = itertools.count(1)
        self._critical_task_added = False

    def tasks(self) -> Tuple[MaintenanceTask, ...]:
        return tuple(sorted(self._tasks, key=lambda t: _STATUS_ORDER[t.status]))

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids):04d}"

    def add_task(self, component: str, task: str, due: str) -> MaintenanceTask:
        new = MaintenanceTask(self._next_id("maint-manual"), component, task, due)
        self._tasks.insert(0, new)
        return new

    def _replace(self, old: MaintenanceTask, new: MaintenanceTask) -> None:
        self._tasks[self._tasks.index(old)] = new

    # ======================================================
    # Periodic progression
    # ======================================================
    def step(self) -> None:
        cfg = self.cfg
        rng = self._rng

        pending = [t for t in self._tasks if t.status == "PENDING"]
        if pending and rng.random() < cfg.p_start:
            t = rng.choice(pending)
            self._replace(t, replace(t, status="IN_PROGRESS", due="In Progress"))

        in_progress = [t for t in self._tasks if t.status == "IN_PROGRESS"]
        if in_progress and rng.random() < cfg.p_complete:
            t = rng.choice(in_progress)
            self._replace(t, replace(t, status="COMPLETED", due="Completed"))

        if rng.random() < cfg.p_new_task:
            component, task = rng.choice(ROUTINE_TASKS)
            days = rng.randint(1, cfg.max_due_days)
            self._tasks.insert(0, MaintenanceTask(self._next_id("maint"), component, task, f"{days} Days"))

    def observe_status(self, overall_status: OverallStatus) -> None:
        if overall_status == "CRITICAL":
            if not self._critical_task_added:
                self._tasks.insert(0, MaintenanceTask(
                    self._next_id("maint-emergency"),
                    "Reactor Core Integrity",
                    "URGENT: Post-Criticality Inspection",
                    "Immediate",
                    "IN_PROGRESS",
                ))
                self._critical_task_added = True
        else:
            self._critical_task_added = False
