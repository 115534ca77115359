#!/usr/bin/env python3
"""
Operator panel: publish one command to the gateway's control topic.

Examples:
  reactor-panel rods 80
  reactor-panel pump A
  reactor-panel sync
  reactor-panel eccs          (twice within 5 s to confirm)
  reactor-panel ack
"""

import argparse
import json
from typing import Any, Dict, List, Optional

from paho.mqtt import client as mqtt

from .plant.commands import DEFAULT_TARGETS


def mqtt_publish(host: str, port: int, topic: str, payload: Dict[str, Any]) -> None:
    c = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
    c.connect(host, port, keepalive=30)
    c.loop_start()
    info = c.publish(topic, json.dumps(payload).encode("utf-8"), qos=1)
    info.wait_for_publish(timeout=5.0)
    c.loop_stop()
    c.disconnect()


def build_command(command: str, target: Optional[str] = None, value: Any = None) -> Dict[str, Any]:
    return {
        "command": command,
        "target": target if target is not None else DEFAULT_TARGETS[command],
        "value": value,
        "source": "PANEL",
    }


def command_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    if args.action == "rods":
        return build_command("SET_ROD_TARGET", value=args.position)
    if args.action == "pump":
        return build_command("TOGGLE_PUMP", target=args.pump.upper())
    if args.action == "sync":
        return build_command("REQUEST_GRID_SYNC")
    if args.action == "eccs":
        return build_command("ACTIVATE_ECCS")
    return build_command("ACK_ALERTS")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Send an operator command to the reactor gateway")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=1883)
    p.add_argument("--base-topic", default="reactor")

    sub = p.add_subparsers(dest="action", required=True)
    rods = sub.add_parser("rods", help="Set control-rod target (0..100 %%, clamped)")
    rods.add_argument("position", type=float)
    pump = sub.add_parser("pump", help="Toggle a coolant pump")
    pump.add_argument("pump", choices=["A", "B", "a", "b"])
    sub.add_parser("sync", help="Request grid synchronisation")
    sub.add_parser("eccs", help="Activate ECCS (send twice within 5 s)")
    sub.add_parser("ack", help="Acknowledge and clear the alarm log")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    payload = command_from_args(args)
    mqtt_publish(args.host, args.port, f"{args.base_topic}/control/commands", payload)
    print(f"sent {payload['command']} target={payload['target']} value={payload['value']}")


if __name__ == "__main__":
    main()
