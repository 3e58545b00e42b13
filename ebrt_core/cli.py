from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ebrt_core.domain.errors import InvalidScenario, MalformedSpec, MissingRequiredField
from ebrt_core.io import config as config_io
from ebrt_core.io import drive_cycle as drive_cycle_io
from ebrt_core.io.spec import load_spec_index
from ebrt_core.services import payload_builder
from ebrt_core.services.signing import serialize_payload, sign_payload

app = typer.Typer(help="eBRT payload tools: inspect a specification, build and sign validator payloads offline.")


def _save_json(path: Path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def _load_spec(path: Path):
    try:
        return load_spec_index(path)
    except MalformedSpec as exc:
        typer.echo(f"Invalid specification: {exc}", err=True)
        raise typer.Exit(code=2) from exc


@app.command()
def spec(
    spec_path: Path = typer.Option(..., "--spec", help="Specification document (JSON)"),
):
    """Summarize groups, calculated fields and cycle types of a specification."""
    index = _load_spec(spec_path)
    console = Console()

    groups = Table(title="Template groups")
    groups.add_column("Group")
    groups.add_column("Fields", justify="right")
    groups.add_column("UI renames", justify="right")
    groups.add_column("Calculated")
    for group, defaults in index.template.items():
        calculated = sorted(d.backend_key for d in index.fields if d.group == group and d.calculated)
        groups.add_row(group, str(len(defaults)), str(len(index.field_map.get(group, {}))), ", ".join(calculated))
    console.print(groups)

    cycles = Table(title="Cycle types")
    cycles.add_column("Code", justify="right")
    cycles.add_column("Name")
    cycles.add_column("Scenario")
    for code in sorted(index.cycles.codes):
        scenario = payload_builder.classify_cycle(index, code)
        cycles.add_row(str(code), index.enum_name("cycle_types", code) or "", scenario.value)
    console.print(cycles)
    console.print(f"ECO threshold option code: [bold]{index.eco_threshold_code}[/bold]")


@app.command()
def build(
    spec_path: Path = typer.Option(..., "--spec", help="Specification document (JSON)"),
    input_path: Path = typer.Option(..., "--input", help="inputData JSON (bare or {userId, inputData})"),
    cycle_csv: Optional[Path] = typer.Option(None, help="Custom drive cycle CSV with Time_s,Speed_mps[,Altitude_m]"),
    out: Optional[Path] = typer.Option(None, help="Output path for the prepared payload JSON"),
):
    """Map and normalize caller input into the validator payload."""
    index = _load_spec(spec_path)
    input_data = config_io.load_input_data(input_path)
    if cycle_csv:
        cycle = dict(input_data.get("Driving_Cycle") or {})
        cycle.update(drive_cycle_io.load_drive_cycle(cycle_csv))
        input_data = {**input_data, "Driving_Cycle": cycle}

    try:
        payload = payload_builder.build_payload(index, input_data)
    except InvalidScenario as exc:
        typer.echo(f"Invalid scenario ({exc.rule}): {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except MissingRequiredField as exc:
        typer.echo(f"Missing required field {exc.field}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if out:
        _save_json(out, payload)
        typer.echo(f"Prepared payload written to {out}")
    else:
        typer.echo(json.dumps(payload, indent=2))


@app.command()
def sign(
    input_path: Path = typer.Option(..., "--input", help="Prepared payload JSON"),
    secret: str = typer.Option(..., envvar="EBRT_SHARED_SECRET", help="Shared HMAC secret"),
):
    """Print the X-Signature header the gateway attaches to this payload."""
    with input_path.open("r", encoding="utf-8") as f:
        payload = json.load(f)
    typer.echo(sign_payload(serialize_payload(payload), secret))


if __name__ == "__main__":
    app()
