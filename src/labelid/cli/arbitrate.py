"""labelid arbitrate and tokens: resolve serial and part numbers from candidates."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Optional

import typer
import yaml  # type: ignore[import-untyped]
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from labelid.core.arbitration import extract_serial_and_part, rank_candidates
from labelid.core.text_candidates import candidates_from_text
from labelid.io.candidates_io import read_candidates, write_json
from labelid.models.candidate import SCAN_MODES, DecodeCandidate, ScanMode
from labelid.models.config import ArbitrationConfig, load_config

console = Console()

_mode_opt = typer.Option("serial", "--mode", help="Primary scan mode: serial or part")
_threshold_opt = typer.Option(None, "--threshold", help="Acceptance threshold override")
_config_opt = typer.Option(None, "-c", "--config", help="Config YAML")
_output_opt = typer.Option(None, "-o", "--json", help="Write result JSON here")


def _require_file(path: str) -> None:
    if not Path(path).is_file():
        typer.echo(f"Error: {path} is not a file", err=True)
        raise typer.Exit(1)


def _check_mode(mode: str) -> ScanMode:
    if mode not in SCAN_MODES:
        console.print(f"[red]Unknown mode {mode!r}, expected one of {', '.join(SCAN_MODES)}.[/red]")
        raise typer.Exit(1)
    return mode  # type: ignore[return-value]


def _load_threshold(threshold: Optional[float], config_path: Optional[str]) -> float:
    if config_path:
        _require_file(config_path)
    if threshold is not None:
        return threshold
    if not config_path:
        return ArbitrationConfig().threshold
    try:
        value = float(load_config(config_path)[1].threshold)
    except (yaml.YAMLError, TypeError, ValueError) as e:
        typer.echo(f"Error: invalid config {config_path}: {e}", err=True)
        raise typer.Exit(1)
    if not math.isfinite(value):
        typer.echo(f"Error: invalid threshold in {config_path}", err=True)
        raise typer.Exit(1)
    return value


def _resolve(
    candidates: list[DecodeCandidate],
    mode: ScanMode,
    threshold: float,
    output: Optional[str],
) -> None:
    result = extract_serial_and_part(candidates, mode, threshold)

    for scan_mode in SCAN_MODES:
        ranked = rank_candidates(candidates, scan_mode)
        table = Table(title=f"{scan_mode} candidates", border_style="blue")
        table.add_column("Value", style="bold")
        table.add_column("Score", justify="right")
        table.add_column("Votes", justify="right")
        for d in ranked[:10]:
            table.add_row(escape(d.value), f"{d.score:.3f}", str(d.votes))
        if ranked:
            console.print(table)

    console.print(f"\n[bold]Candidates:[/bold] {len(candidates):,} (threshold {threshold:.2f})")
    for label, value in (
        ("Serial number", result.serial_number),
        ("Part number", result.part_number),
    ):
        if value:
            shown = f"[green]{escape(value)}[/green]"
        else:
            shown = "[yellow](none, manual entry)[/yellow]"
        console.print(f"  {label}: {shown}")

    if output:
        write_json(output, result.to_dict())
        console.print(f"[green]Saved to {output}[/green]")

    primary = result.decisions[mode]
    if primary is None:
        raise typer.Exit(2)


def arbitrate(
    candidates_path: str = typer.Argument(..., help="Candidates as JSON array or JSONL"),
    mode: str = _mode_opt,
    threshold: Optional[float] = _threshold_opt,
    config_path: Optional[str] = _config_opt,
    output: Optional[str] = _output_opt,
) -> None:
    """Fuse decode candidates into one serial number and one part number.

    Exit code 0 = the primary mode was resolved, exit code 2 = manual entry needed.
    """
    scan_mode = _check_mode(mode)
    _require_file(candidates_path)
    floor = _load_threshold(threshold, config_path)
    _resolve(read_candidates(candidates_path), scan_mode, floor, output)


def tokens(
    text_path: str = typer.Argument(..., help="Text file with raw OCR output"),
    backend: str = typer.Option("ocr", "--backend", help="Backend name to tag candidates with"),
    confidence: float = typer.Option(..., "--confidence", help="Backend confidence, 0-1"),
    mode: str = _mode_opt,
    threshold: Optional[float] = _threshold_opt,
    config_path: Optional[str] = _config_opt,
    output: Optional[str] = _output_opt,
) -> None:
    """Harvest candidates from OCR text and arbitrate them."""
    scan_mode = _check_mode(mode)
    _require_file(text_path)
    floor = _load_threshold(threshold, config_path)
    text = Path(text_path).read_text(encoding="utf-8", errors="replace")
    candidates = candidates_from_text(text, backend, confidence)
    _resolve(candidates, scan_mode, floor, output)
