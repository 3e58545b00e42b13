import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import SPEC_PATH
from ebrt_core.cli import app
from ebrt_core.io.drive_cycle import load_drive_cycle
from ebrt_core.services.signing import serialize_payload, verify_signature


runner = CliRunner()
CYCLE_CSV = Path(__file__).parent / "data" / "custom_cycle.csv"


def test_cli_build_and_sign(tmp_path: Path):
    input_path = tmp_path / "input.json"
    input_path.write_text(
        json.dumps({"userId": "u1", "inputData": {"Driving_Cycle": {"driveCycleTypeId": 6}, "Charger_data": {"depot-charging": "no"}}})
    )
    payload_path = tmp_path / "out" / "payload.json"

    result_build = runner.invoke(
        app,
        [
            "build",
            "--spec",
            str(SPEC_PATH),
            "--input",
            str(input_path),
            "--cycle-csv",
            str(CYCLE_CSV),
            "--out",
            str(payload_path),
        ],
    )
    assert result_build.exit_code == 0, result_build.stdout
    payload = json.loads(payload_path.read_text())
    cycle = payload["Driving_Cycle"]
    assert cycle["Cycle_Type"] == 6
    assert cycle["Time_s"] == [0.0, 1.0, 2.0, 3.0, 4.0]
    assert cycle["Altitude_m"][0] == 10.0
    assert payload["Charger_data"]["Depot_Charging_Flag"] == 0
    assert "Scenario_data" not in payload

    result_sign = runner.invoke(app, ["sign", "--input", str(payload_path), "--secret", "s3cret"])
    assert result_sign.exit_code == 0, result_sign.stdout
    signature = result_sign.stdout.strip()
    assert verify_signature(serialize_payload(payload), signature, "s3cret")


def test_cli_build_prints_payload(tmp_path: Path):
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps({"Driving_Cycle": {"Cycle_Type": 0}}))
    result = runner.invoke(app, ["build", "--spec", str(SPEC_PATH), "--input", str(input_path)])
    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert "Altitude_m" not in payload["Driving_Cycle"]


def test_cli_build_rejects_invalid_scenario(tmp_path: Path):
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps({"Driving_Cycle": {"Cycle_Type": 1, "ECO_Options": 2}}))
    result = runner.invoke(app, ["build", "--spec", str(SPEC_PATH), "--input", str(input_path)])
    assert result.exit_code == 1


def test_cli_rejects_malformed_spec(tmp_path: Path):
    spec_path = tmp_path / "spec.json"
    spec_path.write_text(json.dumps({"ui_schema": {}}))
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps({"Driving_Cycle": {"Cycle_Type": 1}}))
    result = runner.invoke(app, ["build", "--spec", str(spec_path), "--input", str(input_path)])
    assert result.exit_code == 2


def test_cli_spec_summary():
    result = runner.invoke(app, ["spec", "--spec", str(SPEC_PATH)])
    assert result.exit_code == 0, result.stdout
    assert "WLTC" in result.stdout
    assert "ECO threshold option code: 2" in result.stdout


def test_drive_cycle_must_increase(tmp_path: Path):
    csv_path = tmp_path / "cycle.csv"
    csv_path.write_text("Time_s,Speed_mps\n0,0\n2,1\n1,2\n")
    with pytest.raises(ValueError, match="strictly increasing"):
        load_drive_cycle(csv_path)


def test_drive_cycle_without_altitude(tmp_path: Path):
    csv_path = tmp_path / "cycle.csv"
    csv_path.write_text("Time_s,Speed_mps\n0,0\n1,2.5\n")
    assert load_drive_cycle(csv_path) == {"Speed_mps": [0.0, 2.5], "Time_s": [0.0, 1.0]}


def test_cli_build_rejects_malformed_cycle_type(tmp_path: Path):
    input_path = tmp_path / "input.json"
    input_path.write_text(json.dumps({"Driving_Cycle": {"Cycle_Type": "--1"}}))
    result = runner.invoke(app, ["build", "--spec", str(SPEC_PATH), "--input", str(input_path)])
    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
