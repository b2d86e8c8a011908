"""Root Typer app with global options."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

app = typer.Typer(
    name="labelid",
    help="Frame quality gating and serial/part number arbitration for label photos.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        from labelid import __version__

        typer.echo(f"labelid {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=_version_callback, is_eager=True, help="Show version."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log diagnostics to stderr."),
) -> None:
    """Identify label-bearing units from their photos."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# Import and register commands
from labelid.cli.diagnose import diagnose  # noqa: E402
from labelid.cli.arbitrate import arbitrate, tokens  # noqa: E402

app.command()(diagnose)
app.command()(arbitrate)
app.command()(tokens)
