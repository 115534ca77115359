import json

from reactor_scada.plots import collect_series, extract_metrics, load_jsonl, render
from reactor_scada.telemetry import build_plant_payload, write_jsonl


def _write_run(path, sim, ticks):
    with open(path, "w", encoding="utf-8") as f:
        for seq in range(1, ticks + 1):
            sim.tick()
            write_jsonl(f, "reactor/reactor/telemetry", build_plant_payload(sim.snapshot(), seq))
        f.write("garbage line\n")
        f.write(json.dumps({"topic": "x", "payload": {"device_id": "other"}}) + "\n")


def test_load_jsonl_keeps_reactor_rows(tmp_path, make_sim):
    path = tmp_path / "t.jsonl"
    _write_run(path, make_sim(), 5)
    rows = load_jsonl(str(path))
    assert len(rows) == 5
    assert all(r["payload"]["device_id"] == "reactor" for r in rows)


def test_load_jsonl_missing_file(tmp_path):
    assert load_jsonl(str(tmp_path / "nope.jsonl")) == []


def test_extract_metrics_maps_statuses(make_sim):
    sim = make_sim()
    sim.toggle_pump("A")
    m = extract_metrics(build_plant_payload(sim.snapshot(), 1))
    assert m["plant.overall_status"] == 0
    assert m["control.mode"] == 1
    assert m["eccs.status"] == 0
    assert m["plant.pump_a_on"] == 0
    assert m["plant.pump_b_on"] == 1
    assert m["alerts.count"] == 1


def test_render_writes_pngs(tmp_path, make_sim):
    path = tmp_path / "t.jsonl"
    _write_run(path, make_sim(), 6)
    rows = load_jsonl(str(path))
    series = collect_series(rows)
    assert "plant.temperature_c" in series
    assert len(series["plant.temperature_c"]["ys"]) == 6

    outdir = tmp_path / "plots"
    written = render(rows, str(outdir), max_points=3)
    assert str(outdir / "plant_temperature_c.png") in written
    assert all((outdir / p.split("/")[-1]).exists() for p in written)


def test_render_with_zero_max_points(tmp_path, make_sim):
    path = tmp_path / "t.jsonl"
    _write_run(path, make_sim(), 4)
    written = render(load_jsonl(str(path)), str(tmp_path / "plots"), max_points=0)
    assert written
