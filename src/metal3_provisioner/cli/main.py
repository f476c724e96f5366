"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from metal3_provisioner import __version__
from metal3_provisioner.cli.commands import apply, delete, render, status
from metal3_provisioner.logging.config import configure_logging

app = typer.Typer(
    name="metal3-provisioner",
    help="Render and reconcile the metal3 bare-metal provisioning Deployment.",
    add_completion=True,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"metal3-provisioner version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit console logs as JSON.",
    ),
) -> None:
    """Metal3 provisioner - render and apply the metal3 workload."""
    configure_logging(verbose=verbose, debug=debug, json_output=json_logs)


app.command()(render.render)
app.command()(apply.apply)
app.command()(status.status)
app.command()(delete.delete)


if __name__ == "__main__":
    app()
