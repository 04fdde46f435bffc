"""flowlab simulate — Dry-run a scenario's test cases against a workflow graph."""

from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from flowlab.cli.commands.check import load_inputs

console = Console()


def _effect_summary(effect) -> str:
    data = effect.model_dump(exclude={"type", "node_id"})
    parts = [f"{k}={v!r}" for k, v in data.items() if v not in ("", None)]
    return f"{effect.type}  " + ", ".join(parts)


def _select(scenario, case: Optional[str]):
    """Keep only the named test case; exit 2 when no test case has that name."""
    if case is None:
        return scenario
    picked = [tc for tc in scenario.test_cases if tc.name == case]
    if not picked:
        names = ", ".join(tc.name for tc in scenario.test_cases) or "(none)"
        console.print(f"[red]No test case named[/red] '{case}'. Available: {names}")
        raise typer.Exit(2)
    return scenario.model_copy(update={"test_cases": picked})


def simulate_workflow(
    graph_path: Path = typer.Argument(..., help="Workflow graph file (.json/.yaml)"),
    scenario_path: Path = typer.Argument(..., help="Scenario or bundle file (.json/.yaml)"),
    case: Optional[str] = typer.Option(None, "--case", "-c", help="Run only the test case with this name"),
    trace: bool = typer.Option(False, "--trace", "-t", help="Show the path and effects of every run"),
    fmt: str = typer.Option("table", "--format", "-f", help="Output format: table or json"),
):
    """Run every test case of a scenario through the workflow.

    Nothing is sent: each action is recorded as an effect and compared with
    what the test case expects. Exits non-zero when any test case fails.

    Example:
        flowlab simulate my_workflow.json welcome.yaml --case "has phone"
    """
    from flowlab.types import ScenarioBundle
    from flowlab.workflows import ScenarioRunner

    graphs, scenario = load_inputs(graph_path, scenario_path)
    runner = ScenarioRunner()
    if isinstance(scenario, ScenarioBundle):
        if case is not None:
            scenario = scenario.model_copy(update={"workflows": [
                w.model_copy(update={"scenario": w.scenario.model_copy(update={
                    "test_cases": [tc for tc in w.scenario.test_cases if tc.name == case],
                })})
                for w in scenario.workflows
            ]})
        report = runner.simulate_bundle(graphs, scenario)
    else:
        report = runner.simulate(graphs, _select(scenario, case))

    if fmt == "json":
        console.print_json(report.model_dump_json())
        if not report.passed:
            raise typer.Exit(1)
        return

    for issue in report.issues:
        console.print(f"[red]✗[/red] {escape(issue.message)}")

    table = Table(box=box.ROUNDED, header_style="bold dim", show_lines=True)
    table.add_column("Test case", style="cyan", width=24)
    table.add_column("Result", width=8)
    table.add_column("Assertion", width=44)
    table.add_column("Why", width=24, style="dim")

    for result in report.results:
        name = f"{result.workflow_id} / {result.name}" if result.workflow_id else result.name
        verdict = "[green]pass[/green]" if result.passed else "[red]fail[/red]"
        assertions = result.comparison.assertions
        if not assertions:
            why = "" if result.passed else result.trace.status.value
            table.add_row(escape(name), verdict, "[dim](no expectations)[/dim]", why)
            continue
        lines = []
        reasons = []
        for a in assertions:
            mark = "[green]✓[/green]" if a.passed else "[red]✗[/red]"
            lines.append(f"{mark} {escape(a.label)}")
            reasons.append(a.reason or "")
        table.add_row(escape(name), verdict, "\n".join(lines), "\n".join(reasons))

    console.print()
    console.print(table)

    if trace:
        for result in report.results:
            console.print()
            console.print(f"[bold]{escape(result.name)}[/bold] [dim]({result.trace.status.value})[/dim]")
            path = " → ".join(
                f"{s.node_id}[{s.branch}]" if s.branch else s.node_id for s in result.trace.path
            )
            console.print(f"  [dim]path:[/dim] {escape(path) or '(did not fire)'}")
            for effect in result.trace.effects:
                console.print(f"  [dim]effect:[/dim] {escape(_effect_summary(effect))}")
            for diag in result.trace.diagnostics:
                console.print(f"  [yellow]note:[/yellow] {escape(diag.message)}")

    passed = sum(1 for r in report.results if r.passed)
    console.print()
    color = "green" if report.passed else "red"
    console.print(f"[{color}]{passed}/{len(report.results)} test case(s) passed[/{color}]")
    if not report.passed:
        raise typer.Exit(1)
