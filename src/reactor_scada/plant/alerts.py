from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, List, Optional, Tuple

from .state import Alert, OverallStatus, PlantState


def utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


MSG_WARNING = "System entered WARNING state."
MSG_CRITICAL = "SYSTEM CRITICAL. IMMEDIATE ACTION REQUIRED."
MSG_ECCS_ACTIVATED = "ECCS ACTIVATED: Manual override engaged. Emergency core cooling initiated."
MSG_ECCS_DEPLETED = "ECCS DEACTIVATED: Reservoir depleted, cooling has ceased. System entered FAULT state."
MSG_ECCS_FAULT = "ECCS FAULT: An unexpected system failure has occurred."
MSG_SYNC_STARTED = "Grid synchronization sequence initiated."
MSG_SYNC_CONNECTED = "Generator synchronized and connected to the main grid."
MSG_AUTO_RESTORED = "Control system returned to AUTO mode."
MSG_ACKNOWLEDGED = "Alarm log acknowledged and cleared by operator."


class AlertLog:
    """Bounded FIFO of alerts; the oldest entry is dropped silently on overflow."""

    def __init__(self, capacity: int = 100, now: Callable[[], str] = utc_iso):
        self.capacity = int(capacity)
        self._now = now
        self._items: Deque[Alert] = deque(maxlen=self.capacity)
        self._seq = 0

    def __len__(self) -> int:
        return len(self._items)

    def add(self, message: str, severity: OverallStatus) -> Alert:
        self._seq += 1
        alert = Alert(seq=self._seq, ts=self._now(), message=message, severity=severity)
        self._items.append(alert)
        return alert

    def acknowledge(self) -> Alert:
        # destructive clear, then one record of the acknowledgment itself
        self._items.clear()
        return self.add(MSG_ACKNOWLEDGED, "NORMAL")

    def entries(self) -> Tuple[Alert, ...]:
        """Newest first."""
        return tuple(reversed(self._items))


class AlertEngine:
    """
    Edge-triggered alerting.
    Remembers the last observed overall / ECCS / grid-sync statuses and logs
    one alert per transition, never one per tick while a condition persists.
    """

    def __init__(self, log: AlertLog, initial: Optional[PlantState] = None):
        self.log = log
        s = initial or PlantState()
        self._overall = s.overall_status
        self._eccs = s.eccs_status
        self._grid = s.grid_sync

    def observe(self, s: PlantState) -> List[Alert]:
        fired: List[Alert] = []

        overall = s.overall_status
        if overall != self._overall:
            if overall == "WARNING":
                fired.append(self.log.add(MSG_WARNING, "WARNING"))
            elif overall == "CRITICAL":
                fired.append(self.log.add(MSG_CRITICAL, "CRITICAL"))
        self._overall = overall

        eccs = s.eccs_status
        if eccs != self._eccs:
            if self._eccs == "STANDBY" and eccs == "ACTIVE":
                fired.append(self.log.add(MSG_ECCS_ACTIVATED, "CRITICAL"))
            elif self._eccs == "ACTIVE" and eccs == "FAULT":
                msg = MSG_ECCS_DEPLETED if s.eccs_reservoir_pct <= 0.0 else MSG_ECCS_FAULT
                fired.append(self.log.add(msg, "CRITICAL"))
        self._eccs = eccs

        grid = s.grid_sync
        if grid != self._grid:
            if self._grid == "DISCONNECTED" and grid == "SYNCHRONIZING":
                fired.append(self.log.add(MSG_SYNC_STARTED, "NORMAL"))
            elif self._grid == "SYNCHRONIZING" and grid == "CONNECTED":
                fired.append(self.log.add(MSG_SYNC_CONNECTED, "NORMAL"))
        self._grid = grid

        return fired
