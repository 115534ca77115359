import pytest

from reactor_scada.plant.controller import ControllerConfig, PlantController
from reactor_scada.plant.simulation import PlantSimulator


class FakeClock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


class MidpointRandom:
    """uniform() always lands in the middle: no demand walk, no noise."""

    def uniform(self, a, b):
        return (a + b) / 2.0


class EdgeRandom:
    def __init__(self, high: bool):
        self.high = high

    def uniform(self, a, b):
        return b if self.high else a


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return MidpointRandom()


@pytest.fixture
def make_sim(clock, rng):
    def _make(state=None, cfg=None, random_source=None, process=None):
        controller = PlantController(ControllerConfig(), clock=clock)
        return PlantSimulator(
            state=state,
            controller=controller,
            process=process,
            cfg=cfg,
            rng=random_source or rng,
            wall_clock=lambda: "2026-01-01T00:00:00+00:00",
        )
    return _make
