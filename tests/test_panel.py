from reactor_scada.panel import command_from_args, parse_args
from reactor_scada.plant.commands import parse_command


def test_rods_command():
    payload = command_from_args(parse_args(["rods", "80"]))
    assert payload == {"command": "SET_ROD_TARGET", "target": "rods", "value": 80.0, "source": "PANEL"}


def test_pump_command_is_uppercased():
    payload = command_from_args(parse_args(["pump", "b"]))
    assert payload["command"] == "TOGGLE_PUMP"
    assert payload["target"] == "B"


def test_panel_payloads_parse_on_the_gateway_side():
    for argv in (["rods", "12.5"], ["pump", "A"], ["sync"], ["eccs"], ["ack"]):
        cmd = parse_command(command_from_args(parse_args(argv)))
        assert cmd is not None
        assert cmd.source == "PANEL"
