from __future__ import annotations

from collections import deque
from typing import Deque, Tuple

from .state import HistorySample, PlantState


class HistoryBuffer:
    """Fixed-capacity ring of published states (300 samples = 5 minutes at 1 Hz)."""

    def __init__(self, capacity: int = 300):
        self.capacity = int(capacity)
        self._samples: Deque[HistorySample] = deque(maxlen=self.capacity)

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, tick: int, state: PlantState) -> HistorySample:
        sample = HistorySample(tick=tick, state=state)
        self._samples.append(sample)
        return sample

    def samples(self) -> Tuple[HistorySample, ...]:
        """Oldest first."""
        return tuple(self._samples)

    def rows(self) -> list:
        # flat dicts for DataFrame / JSON consumers
        return [{"tick": h.tick, **h.state.to_dict()} for h in self._samples]
