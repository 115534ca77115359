from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

CommandName = Literal["SET_ROD_TARGET", "TOGGLE_PUMP", "REQUEST_GRID_SYNC", "ACTIVATE_ECCS", "ACK_ALERTS"]
CommandResult = Literal["OK", "NOOP", "PENDING_CONFIRM"]

COMMANDS = ("SET_ROD_TARGET", "TOGGLE_PUMP", "REQUEST_GRID_SYNC", "ACTIVATE_ECCS", "ACK_ALERTS")

# default MQTT target per command (only TOGGLE_PUMP really needs one)
DEFAULT_TARGETS: Dict[str, str] = {
    "SET_ROD_TARGET": "rods",
    "TOGGLE_PUMP": "A",
    "REQUEST_GRID_SYNC": "grid",
    "ACTIVATE_ECCS": "eccs",
    "ACK_ALERTS": "alerts",
}


@dataclass(frozen=True)
class Command:
    command: CommandName
    target: str = ""
    value: Any = None
    source: str = "HMI"


def parse_command(data: Any) -> Optional[Command]:
    """
    Build a Command from a decoded control message:
        {"command": "SET_ROD_TARGET", "target": "rods", "value": 75, "source": "HMI"}
    Anything malformed returns None (ignored, never an error).
    """
    if not isinstance(data, dict):
        return None

    cmd = data.get("command")
    if not isinstance(cmd, str):
        return None
    cmd = cmd.strip().upper()
    if cmd not in COMMANDS:
        return None

    target = data.get("target", DEFAULT_TARGETS[cmd])
    if target is None:
        target = DEFAULT_TARGETS[cmd]
    if not isinstance(target, str):
        return None

    value = data.get("value")
    if cmd == "SET_ROD_TARGET":
        try:
            value = float(value)
        except (TypeError, ValueError):
            return None
        if value != value:  # NaN
            return None

    source = data.get("source", "HMI")
    return Command(command=cmd, target=target.strip().upper() if cmd == "TOGGLE_PUMP" else target,
                   value=value, source=str(source))
