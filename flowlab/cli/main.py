"""FlowLab CLI — Typer application."""

import logging

import typer
from rich.console import Console

from flowlab.config import config
from flowlab.version import __version__

app = typer.Typer(
    name="flowlab",
    help="FlowLab — check and dry-run learner-built automation workflows against lesson scenarios.",
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
    log_level: str = typer.Option(config.log_level, "--log-level", "-l", help="Logging level (DEBUG, INFO, WARNING)"),
):
    """FlowLab CLI."""
    if version:
        console.print(f"FlowLab v{__version__}")
        raise typer.Exit()
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


# ── Workflow commands ──────────────────────────────────────────────────────────
from flowlab.cli.commands import check, simulate  # noqa: E402

app.command(name="check", help="Check a workflow against a scenario's requirements")(check.check_workflow)
app.command(name="simulate", help="Dry-run a scenario's test cases against a workflow")(simulate.simulate_workflow)

# ── Reference commands ─────────────────────────────────────────────────────────
from flowlab.cli.commands import catalog, config as config_cmd  # noqa: E402

app.command(name="catalog", help="List the node types learners can use")(catalog.catalog_list)
app.command(name="config", help="Show resolved configuration")(config_cmd.config_show)


if __name__ == "__main__":
    app()
