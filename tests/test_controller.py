import pytest

from conftest import FakeClock
from reactor_scada.plant.controller import ControllerConfig, PlantController


@pytest.fixture
def ctl(clock):
    return PlantController(ControllerConfig(), clock=clock)


def test_initial_state(ctl):
    assert ctl.mode == "AUTO"
    assert ctl.mode_state.deadline_s is None
    assert ctl.manual_remaining_s() is None
    assert ctl.rod_target == 50.0
    assert not ctl.eccs_confirm_pending


def test_manual_reverts_after_timeout(ctl, clock):
    ctl.enter_manual()
    assert ctl.mode == "MANUAL"
    assert ctl.manual_remaining_s() == pytest.approx(20.0)

    clock.advance(19.5)
    assert not ctl.poll_reversion()
    assert ctl.mode == "MANUAL"

    clock.advance(0.5)
    assert ctl.poll_reversion()
    assert ctl.mode == "AUTO"
    assert ctl.mode_state.deadline_s is None
    # fires once
    assert not ctl.poll_reversion()


def test_rearm_replaces_previous_deadline(ctl, clock):
    ctl.enter_manual()
    clock.advance(10.0)
    ctl.enter_manual()

    clock.advance(10.0)
    assert not ctl.poll_reversion()
    assert ctl.mode == "MANUAL"

    clock.advance(10.0)
    assert ctl.poll_reversion()
    assert ctl.mode == "AUTO"


def test_poll_in_auto_is_noop(ctl, clock):
    clock.advance(100.0)
    assert not ctl.poll_reversion()
    assert ctl.mode == "AUTO"


def test_rod_target_is_clamped(ctl):
    assert ctl.set_rod_target(150.0) == 100.0
    assert ctl.set_rod_target(-20.0) == 0.0
    assert ctl.set_rod_target(42.5) == 42.5


def test_eccs_confirmation_within_window(ctl, clock):
    assert ctl.confirm_eccs() is False
    assert ctl.eccs_confirm_pending

    clock.advance(4.5)
    assert ctl.confirm_eccs() is True
    assert not ctl.eccs_confirm_pending


def test_eccs_confirmation_lapses(ctl, clock):
    assert ctl.confirm_eccs() is False
    clock.advance(5.0)
    assert not ctl.eccs_confirm_pending
    # a late second call only re-arms
    assert ctl.confirm_eccs() is False
    assert ctl.eccs_confirm_pending


def test_eccs_confirmation_cancel(ctl):
    ctl.confirm_eccs()
    ctl.cancel_eccs_confirmation()
    assert not ctl.eccs_confirm_pending
    assert ctl.confirm_eccs() is False


def test_custom_timeouts():
    clock = FakeClock(0.0)
    ctl = PlantController(ControllerConfig(manual_timeout_s=2.0, eccs_confirm_window_s=1.0), clock=clock)
    ctl.enter_manual()
    clock.advance(2.0)
    assert ctl.poll_reversion()
