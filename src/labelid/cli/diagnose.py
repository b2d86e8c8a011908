"""labelid diagnose: capture-readiness check for a single frame."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml  # type: ignore[import-untyped]
from rich.console import Console

from labelid.core.quality import diagnose_image, format_report
from labelid.io.candidates_io import write_json
from labelid.models.config import GateConfig, load_config

console = Console()


def diagnose(
    image: str = typer.Argument(..., help="Image file to analyze"),
    config_path: Optional[str] = typer.Option(None, "-c", "--config", help="Config YAML"),
    estimate_skew: bool = typer.Option(
        False, "--estimate-skew", help="Estimate skew instead of assuming 0 degrees"
    ),
    output: Optional[str] = typer.Option(None, "-o", "--json", help="Write report JSON here"),
) -> None:
    """Score a frame and say whether it is worth decoding.

    Exit code 0 = ready for capture, exit code 2 = not ready.
    """
    for path in (image, config_path):
        if path and not Path(path).is_file():
            typer.echo(f"Error: {path} is not a file", err=True)
            raise typer.Exit(1)

    try:
        gate_config = load_config(config_path)[0] if config_path else GateConfig()
    except (yaml.YAMLError, TypeError) as e:
        typer.echo(f"Error: invalid config {config_path}: {e}", err=True)
        raise typer.Exit(1)
    if estimate_skew:
        gate_config.estimate_skew = True

    report = diagnose_image(image, gate_config)

    color = "green" if report.is_ready_for_capture else "red"
    console.print(f"\n[bold]Frame quality: {image}[/bold]\n")
    console.print(format_report(report), markup=False, highlight=False)
    console.print()
    verdict = "READY" if report.is_ready_for_capture else "NOT READY"
    console.print(f"[bold {color}]Capture: {verdict}[/bold {color}]")

    if output:
        write_json(output, report.to_dict())
        console.print(f"[green]Saved to {output}[/green]")

    if not report.is_ready_for_capture:
        raise typer.Exit(2)
