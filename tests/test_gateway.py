import asyncio
import json

from reactor_scada.gateway import (
    EventBus,
    GatewayConfig,
    PlantRuntime,
    config_from_args,
    parse_args,
    run_gateway,
)
from reactor_scada.plant.simulation import PlantSimulator, SimulatorConfig
from reactor_scada.plant.state import PlantState


def test_handle_message_applies_command():
    async def main():
        bus = EventBus()
        q = bus.subscribe()
        runtime = PlantRuntime(GatewayConfig(enable_mqtt=False, seed=1), bus)

        raw = json.dumps({"command": "SET_ROD_TARGET", "target": "rods", "value": 90}).encode("utf-8")
        result = runtime.handle_message(raw)
        ev = q.get_nowait()
        return runtime, result, ev

    runtime, result, ev = asyncio.run(main())
    assert result == "OK"
    assert runtime.sim.snapshot().rod_target == 90.0
    assert ev.type == "control"
    assert ev.data["result"] == "OK"
    assert ev.seq == 1


def test_handle_message_drops_garbage():
    async def main():
        bus = EventBus()
        q = bus.subscribe()
        runtime = PlantRuntime(GatewayConfig(enable_mqtt=False), bus)
        results = [
            runtime.handle_message(b"\xff\xfe"),
            runtime.handle_message(b"not json"),
            runtime.handle_message(b'{"command": "NOPE"}'),
        ]
        return results, q.qsize(), runtime

    results, queued, runtime = asyncio.run(main())
    assert results == [None, None, None]
    assert queued == 0
    assert runtime.sim.snapshot().mode == "AUTO"


def test_runtime_tick_publishes_snapshot():
    async def main():
        bus = EventBus()
        q = bus.subscribe()
        runtime = PlantRuntime(GatewayConfig(enable_mqtt=False, seed=3), bus)
        runtime.tick()
        return q.get_nowait()

    ev = asyncio.run(main())
    assert ev.type == "tick"
    assert ev.data["snapshot"].tick == 1


def test_full_subscriber_queue_drops_events():
    async def main():
        bus = EventBus(max_queue=1)
        q = bus.subscribe()
        runtime = PlantRuntime(GatewayConfig(enable_mqtt=False), bus)
        runtime.tick()
        runtime.tick()
        return q.qsize()

    assert asyncio.run(main()) == 1


def test_gateway_writes_jsonl_without_broker(tmp_path):
    out = tmp_path / "out" / "telemetry.jsonl"
    cfg = GatewayConfig(tick_s=0.01, out_jsonl=str(out), enable_mqtt=False, seed=5)

    async def main():
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        loop.call_later(0.3, stop.set)
        return await run_gateway(cfg, stop)

    runtime = asyncio.run(main())

    lines = out.read_text(encoding="utf-8").splitlines()
    assert runtime.sim.tick_count >= 1
    assert len(lines) >= 1
    first = json.loads(lines[0])
    assert first["topic"] == "reactor/reactor/telemetry"
    assert first["payload"]["device_id"] == "reactor"
    assert first["payload"]["tick"] == 1


def test_args_to_config():
    cfg = config_from_args(parse_args(["--no-mqtt", "--tick", "0.5", "--publish-every", "0", "--base-topic", "plant1"]))
    assert cfg.enable_mqtt is False
    assert cfg.tick_s == 0.5
    assert cfg.publish_every_ticks == 1
    assert cfg.command_topic == "plant1/control/commands"
    assert cfg.telemetry_topic == "plant1/reactor/telemetry"


def test_short_critical_episode_raises_urgent_maintenance_task():
    sim = PlantSimulator(state=PlantState(temperature_c=953.0), cfg=SimulatorConfig(seed=1))
    runtime = PlantRuntime(GatewayConfig(enable_mqtt=False, maintenance_every_ticks=10), EventBus(), sim=sim)

    statuses = []
    for _ in range(5):
        runtime.tick()
        statuses.append(sim.snapshot().state.overall_status)

    assert statuses[0] == "CRITICAL"
    urgent = [t for t in runtime.maintenance.tasks() if t.component == "Reactor Core Integrity"]
    assert len(urgent) == 1
    assert urgent[0].task == "URGENT: Post-Criticality Inspection"
