"""flowlab check — Static requirement check of a workflow graph."""

from pathlib import Path

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console()

_severity_color = {"error": "red", "warning": "yellow"}


def load_inputs(graph_path: Path, scenario_path: Path):
    """Load the scenario, then one graph (or a `{workflowId: graph}` map for bundles).

    Exits with code 2 when either file cannot be loaded.
    """
    from flowlab.config import config
    from flowlab.config.loader import load_graph, load_graphs, load_scenario
    from flowlab.exceptions import ScenarioLoadError
    from flowlab.types import ScenarioBundle

    try:
        scenario = load_scenario(scenario_path, search_dir=Path(config.scenario_dir))
        if isinstance(scenario, ScenarioBundle):
            graphs = load_graphs(graph_path)
        else:
            graphs = load_graph(graph_path)
    except ScenarioLoadError as exc:
        console.print(f"[red]Could not load input:[/red] {exc}")
        for err in exc.details.get("errors", [])[:10]:
            loc = ".".join(str(p) for p in err.get("loc", ()))
            console.print(f"  [dim]{loc}[/dim] {err.get('msg', '')}")
        raise typer.Exit(2)
    return graphs, scenario


def check_workflow(
    graph_path: Path = typer.Argument(..., help="Workflow graph file (.json/.yaml)"),
    scenario_path: Path = typer.Argument(..., help="Scenario or bundle file (.json/.yaml)"),
    fmt: str = typer.Option("table", "--format", "-f", help="Output format: table or json"),
):
    """Check a workflow graph against a scenario's requirements.

    Lists every issue with the step and field it points at. Exits non-zero
    when any error-level issue is found.

    Example:
        flowlab check my_workflow.json welcome.yaml
    """
    from flowlab.types import ScenarioBundle
    from flowlab.workflows import ScenarioRunner
    from flowlab.workflows.hints import summarize_requirement

    graphs, scenario = load_inputs(graph_path, scenario_path)
    runner = ScenarioRunner()
    is_bundle = isinstance(scenario, ScenarioBundle)
    if is_bundle:
        result = runner.validate_bundle(graphs, scenario)
    else:
        result = runner.validate(graphs, scenario)

    if fmt == "json":
        console.print_json(result.model_dump_json())
        if not result.passed:
            raise typer.Exit(1)
        return

    console.print()
    console.print(f"[bold]Scenario:[/bold] {scenario.title or scenario.module_id or scenario_path.name}")
    if not is_bundle:
        for req in scenario.requirements:
            console.print(f"  [dim]•[/dim] {summarize_requirement(req, runner.catalog)}")
    console.print()

    if result.issues:
        table = Table(box=box.ROUNDED, header_style="bold dim", show_lines=False)
        table.add_column("#", width=4, justify="right")
        if is_bundle:
            table.add_column("Workflow", style="cyan", width=16)
        table.add_column("Severity", width=9)
        table.add_column("Category", width=15, style="dim")
        table.add_column("Step", style="cyan", width=16)
        table.add_column("Field", width=12, style="dim")
        table.add_column("Message", width=60)

        for i, issue in enumerate(result.issues, start=1):
            color = _severity_color.get(issue.severity.value, "white")
            row = [str(i)]
            if is_bundle:
                row.append(issue.workflow_id or "")
            row += [
                f"[{color}]{issue.severity.value}[/{color}]",
                issue.category.value,
                issue.node_id or "",
                issue.field_key or "",
                escape(issue.message),
            ]
            table.add_row(*row)
        console.print(table)
        console.print()

    if result.passed:
        body = "[bold green]✓ ALL CHECKS PASSED[/bold green]"
        if result.warnings:
            body += f"\n\n[dim]{len(result.warnings)} warning(s) to look at.[/dim]"
        console.print(Panel(body, border_style="green", title="[bold]Check[/bold]"))
    else:
        console.print(Panel(
            f"[bold red]✗ {len(result.errors)} ISSUE(S) TO FIX[/bold red]",
            border_style="red",
            title="[bold]Check[/bold]",
        ))
        raise typer.Exit(1)
