import dataclasses
import random

import pytest

from reactor_scada.plant.state import PlantState, clamp, derive_status


@pytest.mark.parametrize(
    "temperature, pressure, flow, expected",
    [
        (450.0, 155.0, 80.0, "NORMAL"),
        (850.0, 175.0, 20.0, "NORMAL"),      # thresholds are strict
        (851.0, 155.0, 80.0, "WARNING"),
        (450.0, 176.0, 80.0, "WARNING"),
        (450.0, 155.0, 19.0, "WARNING"),
        (951.0, 155.0, 80.0, "CRITICAL"),
        (450.0, 186.0, 80.0, "CRITICAL"),
        (450.0, 155.0, 4.0, "CRITICAL"),
        (900.0, 186.0, 10.0, "CRITICAL"),    # warning and critical both match
    ],
)
def test_derive_status_thresholds(temperature, pressure, flow, expected):
    assert derive_status(temperature, pressure, flow) == expected


def test_derive_status_for_generated_states():
    r = random.Random(7)
    for _ in range(2000):
        t = r.uniform(0.0, 1200.0)
        p = r.uniform(100.0, 220.0)
        f = r.uniform(0.0, 100.0)
        if t > 950 or p > 185 or f < 5:
            expected = "CRITICAL"
        elif t > 850 or p > 175 or f < 20:
            expected = "WARNING"
        else:
            expected = "NORMAL"
        assert derive_status(t, p, f) == expected
        assert PlantState(temperature_c=t, pressure_bar=p, coolant_flow=f).overall_status == expected


def test_defaults():
    s = PlantState()
    assert s.temperature_c == 450.0
    assert s.rod_position_pct == 50.0
    assert s.pump_a_on and s.pump_b_on
    assert s.grid_sync == "CONNECTED"
    assert s.eccs_status == "STANDBY"
    assert s.eccs_reservoir_pct == 100.0
    assert s.overall_status == "NORMAL"


def test_domains_are_clamped():
    s = PlantState(rod_position_pct=150.0, eccs_reservoir_pct=-5.0)
    assert s.rod_position_pct == 100.0
    assert s.eccs_reservoir_pct == 0.0

    s = PlantState(rod_position_pct=-3.0, eccs_reservoir_pct=120.0)
    assert s.rod_position_pct == 0.0
    assert s.eccs_reservoir_pct == 100.0


def test_overall_status_cannot_be_set():
    s = PlantState()
    with pytest.raises(AttributeError):
        s.overall_status = "CRITICAL"
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.temperature_c = 1000.0


def test_rounded_uses_per_field_precision():
    s = PlantState(
        temperature_c=450.12345,
        radiation_msv_h=0.0051234,
        containment_pressure_bar=1.0512345,
        turbine_rpm=1799.6,
        power_mw=301.456,
    ).rounded()
    assert s.temperature_c == 450.12
    assert s.radiation_msv_h == 0.0051
    assert s.containment_pressure_bar == 1.051
    assert s.turbine_rpm == 1800.0
    assert s.power_mw == 301.46


def test_to_dict_includes_derived_status():
    d = PlantState(temperature_c=900.0).to_dict()
    assert d["overall_status"] == "WARNING"
    assert d["temperature_c"] == 900.0


def test_clamp():
    assert clamp(5.0, 0.0, 10.0) == 5.0
    assert clamp(-1.0, 0.0, 10.0) == 0.0
    assert clamp(11.0, 0.0, 10.0) == 10.0
