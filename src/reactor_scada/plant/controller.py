# plant/controller.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from .state import ControlMode, ControlModeState, clamp


@dataclass
class ControllerConfig:
    manual_timeout_s: float = 20.0          # MANUAL -> AUTO after this much inactivity
    eccs_confirm_window_s: float = 5.0      # second activation request must land inside it
    initial_rod_target: float = 50.0


class PlantController:
    """
    Control-mode state machine (AUTO / MANUAL) + ECCS confirmation gate.
    - Owns the rod target the process converges to.
    - Deadlines are compared against an injected monotonic clock; each arm replaces
      the previous deadline in a single assignment, so a superseded one can never fire.
    """

    def __init__(self, cfg: ControllerConfig | None = None, clock: Callable[[], float] = time.monotonic):
        self.cfg = cfg or ControllerConfig()
        self._clock = clock

        self._mode_state = ControlModeState()
        self.rod_target: float = clamp(self.cfg.initial_rod_target, 0.0, 100.0)

        self._eccs_confirm_deadline_s: Optional[float] = None

    # ======================================================
    # Control mode
    # ======================================================
    @property
    def mode(self) -> ControlMode:
        return self._mode_state.mode

    @property
    def mode_state(self) -> ControlModeState:
        return self._mode_state

    def now(self) -> float:
        return float(self._clock())

    def manual_remaining_s(self) -> Optional[float]:
        deadline = self._mode_state.deadline_s
        if deadline is None:
            return None
        return max(0.0, deadline - self.now())

    def enter_manual(self) -> None:
        self._mode_state = ControlModeState(mode="MANUAL", deadline_s=self.now() + self.cfg.manual_timeout_s)

    def poll_reversion(self) -> bool:
        """Return True exactly once when the MANUAL window has expired."""
        ms = self._mode_state
        if ms.mode != "MANUAL" or ms.deadline_s is None:
            return False
        if self.now() < ms.deadline_s:
            return False
        self._mode_state = ControlModeState(mode="AUTO", deadline_s=None)
        return True

    def set_rod_target(self, position: float) -> float:
        self.rod_target = clamp(float(position), 0.0, 100.0)
        return self.rod_target

    # ======================================================
    # ECCS two-step confirmation
    # ======================================================
    @property
    def eccs_confirm_pending(self) -> bool:
        deadline = self._eccs_confirm_deadline_s
        return deadline is not None and self.now() < deadline

    def confirm_eccs(self) -> bool:
        """
        First call arms the confirmation and returns False.
        A second call inside the window returns True and disarms.
        An expired arm counts as no arm at all.
        """
        if self.eccs_confirm_pending:
            self._eccs_confirm_deadline_s = None
            return True
        self._eccs_confirm_deadline_s = self.now() + self.cfg.eccs_confirm_window_s
        return False

    def cancel_eccs_confirmation(self) -> None:
        self._eccs_confirm_deadline_s = None
