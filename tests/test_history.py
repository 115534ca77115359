from reactor_scada.plant.history import HistoryBuffer
from reactor_scada.plant.state import PlantState


def test_history_keeps_most_recent_in_order():
    h = HistoryBuffer(300)
    for tick in range(1, 451):
        h.append(tick, PlantState(temperature_c=float(tick)))

    samples = h.samples()
    assert len(h) == 300
    assert [s.tick for s in samples] == list(range(151, 451))
    assert samples[-1].state.temperature_c == 450.0


def test_history_below_capacity():
    h = HistoryBuffer(300)
    for tick in range(1, 11):
        h.append(tick, PlantState())
    assert len(h.samples()) == 10


def test_rows_are_flat():
    h = HistoryBuffer(3)
    h.append(7, PlantState())
    (row,) = h.rows()
    assert row["tick"] == 7
    assert row["temperature_c"] == 450.0
    assert row["overall_status"] == "NORMAL"
