#!/usr/bin/env python3
"""
Reactor plant gateway:
- runs the simulator on a fixed 1 Hz clock
- publishes telemetry to MQTT (<base>/reactor/telemetry) and JSONL
- applies operator commands from <base>/control/commands

Run:
  reactor-gateway --host 127.0.0.1 --port 1883
  reactor-gateway --no-mqtt          (JSONL only, no broker needed)
"""

import argparse
import asyncio
import json
import os
import signal
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from aiomqtt import Client, MqttError

from .plant.alerts import utc_iso
from .plant.commands import parse_command
from .plant.maintenance import MaintenanceBoard
from .plant.simulation import PlantSimulator, SimulationSnapshot, SimulatorConfig
from .scheduler import TickScheduler
from .telemetry import build_plant_payload, ensure_dir_for_file, log, write_jsonl


# ============================================================
# Event Bus
# ============================================================
@dataclass
class Event:
    type: str                 # "tick" | "control"
    ts: str                   # ISO time
    source: str               # "clock", "HMI", ...
    data: Dict[str, Any] = field(default_factory=dict)
    seq: int = 0


class EventBus:
    """
    Minimal asyncio pub/sub. Subscribers receive all events;
    a full subscriber queue drops the event for that subscriber only.
    """
    def __init__(self, max_queue: int = 1000):
        self._subs: List[asyncio.Queue] = []
        self._seq = 0
        self._max_queue = max_queue

    def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue)
        self._subs.append(q)
        return q

    def publish(self, ev: Event) -> None:
        self._seq += 1
        ev.seq = self._seq
        for q in self._subs:
            try:
                q.put_nowait(ev)
            except asyncio.QueueFull:
                pass


# ============================================================
# Config
# ============================================================
@dataclass
class GatewayConfig:
    host: str = "127.0.0.1"
    port: int = 1883
    base_topic: str = "reactor"

    tick_s: float = 1.0
    publish_every_ticks: int = 1
    maintenance_every_ticks: int = 10

    out_jsonl: str = "out/reactor_telemetry.jsonl"
    enable_mqtt: bool = True
    seed: Optional[int] = None

    @property
    def telemetry_topic(self) -> str:
        return f"{self.base_topic}/reactor/telemetry"

    @property
    def command_topic(self) -> str:
        return f"{self.base_topic}/control/commands"


# ============================================================
# Plant runtime (clock side)
# ============================================================
class PlantRuntime:
    """Ticks the simulator and the maintenance board, pushes snapshots onto the bus."""

    def __init__(self, cfg: GatewayConfig, bus: EventBus, sim: Optional[PlantSimulator] = None):
        self.cfg = cfg
        self.bus = bus
        self.sim = sim or PlantSimulator(cfg=SimulatorConfig(seed=cfg.seed))
        self.maintenance = MaintenanceBoard()

    def tick(self) -> None:
        published = self.sim.tick()
        self.maintenance.observe_status(published.overall_status)
        if self.sim.tick_count % max(1, self.cfg.maintenance_every_ticks) == 0:
            self.maintenance.step()
        self.bus.publish(Event(type="tick", ts=utc_iso(), source="clock", data={"snapshot": self.sim.snapshot()}))

    def handle_message(self, raw: bytes) -> Optional[str]:
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        cmd = parse_command(data)
        if cmd is None:
            return None

        result = self.sim.apply(cmd)
        self.bus.publish(Event(
            type="control",
            ts=utc_iso(),
            source=cmd.source,
            data={"command": cmd.command, "target": cmd.target, "value": cmd.value, "result": result},
        ))
        return result


# ============================================================
# Tasks
# ============================================================
async def control_listener(cfg: GatewayConfig, runtime: PlantRuntime, stop_event: asyncio.Event) -> None:
    topic = cfg.command_topic

    while not stop_event.is_set():
        try:
            async with Client(hostname=cfg.host, port=cfg.port) as client:
                await client.subscribe(topic)
                log(f"[CTL] subscribed {topic}")

                async for msg in client.messages:
                    if stop_event.is_set():
                        break
                    result = runtime.handle_message(bytes(msg.payload))
                    if result is not None:
                        log(f"[CTL] command applied -> {result}")

        except MqttError as e:
            log(f"[CTL] MQTT error: {repr(e)} retry 1s")
            await asyncio.sleep(1.0)
        except Exception as e:
            log(f"[CTL] Unexpected error: {repr(e)} retry 1s")
            await asyncio.sleep(1.0)


async def _write_snapshot(f, client: Optional[Client], cfg: GatewayConfig, snap: SimulationSnapshot, seq: int) -> None:
    payload = build_plant_payload(snap, seq)
    write_jsonl(f, cfg.telemetry_topic, payload)
    f.flush()
    if client is not None:
        await client.publish(cfg.telemetry_topic, json.dumps(payload).encode("utf-8"), qos=0)


async def publisher(cfg: GatewayConfig, bus: EventBus, stop_event: asyncio.Event) -> None:
    ensure_dir_for_file(cfg.out_jsonl)
    q = bus.subscribe()
    seq = 0

    while not stop_event.is_set():
        client: Optional[Client] = None
        try:
            if cfg.enable_mqtt:
                log(f"[PUB] connecting to mqtt://{cfg.host}:{cfg.port}")
                client = Client(hostname=cfg.host, port=cfg.port)
                await client.__aenter__()
                log("[PUB] connected")

            with open(cfg.out_jsonl, "a", encoding="utf-8") as f:
                log(f"[PUB] writing to {os.path.abspath(cfg.out_jsonl)}")

                while not stop_event.is_set():
                    try:
                        ev: Event = await asyncio.wait_for(q.get(), timeout=0.5)
                    except asyncio.TimeoutError:
                        continue

                    if ev.type == "control":
                        d = ev.data
                        log(f"[PUB] control {d.get('command')} target={d.get('target')} value={d.get('value')} -> {d.get('result')}")
                        continue
                    if ev.type != "tick":
                        continue

                    snap: SimulationSnapshot = ev.data["snapshot"]
                    if cfg.publish_every_ticks > 1 and (snap.tick % cfg.publish_every_ticks != 0):
                        continue

                    seq += 1
                    await _write_snapshot(f, client, cfg, snap, seq)

        except MqttError as e:
            log(f"[PUB] MQTT error: {repr(e)} (retry in 1s)")
            await asyncio.sleep(1.0)
        except Exception as e:
            log(f"[PUB] Unexpected error: {repr(e)} (retry in 1s)")
            await asyncio.sleep(1.0)
        finally:
            if client is not None:
                try:
                    await client.__aexit__(None, None, None)
                except MqttError:
                    pass


# ============================================================
# Main
# ============================================================
def install_signal_handlers(stop_event: asyncio.Event) -> None:
    def _handler(*_):
        stop_event.set()

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except ValueError:
        # not in the main thread
        pass


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Reactor plant simulator gateway (MQTT + JSONL)")
    p.add_argument("--host", default="127.0.0.1", help="MQTT broker host")
    p.add_argument("--port", default=1883, type=int, help="MQTT broker port")
    p.add_argument("--base-topic", default="reactor", help="Base topic")
    p.add_argument("--tick", type=float, default=1.0, help="Tick seconds")
    p.add_argument("--publish-every", type=int, default=1, help="Publish telemetry every N ticks")
    p.add_argument("--out", default="out/reactor_telemetry.jsonl", help="Output JSONL")
    p.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible run")
    p.add_argument("--no-mqtt", action="store_true", help="Disable MQTT (JSONL only, no command topic)")
    return p.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> GatewayConfig:
    return GatewayConfig(
        host=args.host,
        port=args.port,
        base_topic=args.base_topic,
        tick_s=args.tick,
        publish_every_ticks=max(1, args.publish_every),
        out_jsonl=args.out,
        enable_mqtt=not args.no_mqtt,
        seed=args.seed,
    )


async def run_gateway(cfg: GatewayConfig, stop_event: Optional[asyncio.Event] = None) -> PlantRuntime:
    stop_event = stop_event or asyncio.Event()

    bus = EventBus()
    runtime = PlantRuntime(cfg, bus)
    clock = TickScheduler(runtime.tick, period_s=cfg.tick_s)

    tasks: List[asyncio.Task] = [
        asyncio.create_task(publisher(cfg, bus, stop_event)),
        asyncio.create_task(clock.run(stop_event)),
    ]
    if cfg.enable_mqtt:
        tasks.append(asyncio.create_task(control_listener(cfg, runtime, stop_event)))

    log(f"[MAIN] telemetry={cfg.telemetry_topic} commands={cfg.command_topic} tick={cfg.tick_s}s")
    log(f"[MAIN] out={os.path.abspath(cfg.out_jsonl)}")
    if not cfg.enable_mqtt:
        log("[MAIN] MQTT disabled (--no-mqtt). Writing JSONL only.")

    await stop_event.wait()

    for t in tasks:
        t.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    return runtime


async def _main_async(cfg: GatewayConfig) -> None:
    stop_event = asyncio.Event()
    install_signal_handlers(stop_event)
    await run_gateway(cfg, stop_event)


def main(argv: Optional[List[str]] = None) -> None:
    cfg = config_from_args(parse_args(argv))
    try:
        asyncio.run(_main_async(cfg))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
