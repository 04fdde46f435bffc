"""flowlab catalog — List the node types learners can place in a workflow."""

from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

console = Console()

_kind_color = {"trigger": "magenta", "action": "cyan", "logic": "yellow"}


def catalog_list(
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Only show one kind: trigger, action or logic"),
):
    """List the built-in node types with their config fields.

    Required fields are marked with *.

    Example:
        flowlab catalog --kind action
    """
    from flowlab.catalog import default_catalog
    from flowlab.types import NodeKind

    try:
        wanted = NodeKind(kind.lower()) if kind else None
    except ValueError:
        console.print(f"[red]Unknown kind:[/red] {kind}")
        raise typer.Exit(2)

    definitions = default_catalog().list_definitions(wanted)

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        show_lines=False,
        title=f"[bold]{len(definitions)} Node Types[/bold]",
    )
    table.add_column("Type", style="cyan", width=26)
    table.add_column("Kind", width=8)
    table.add_column("Label", width=22)
    table.add_column("Fields", width=34)
    table.add_column("Effect", width=18, style="dim")

    for d in definitions:
        color = _kind_color.get(d.kind.value, "white")
        fields = ", ".join(f"{f.key}*" if f.required else f.key for f in d.config_fields)
        effect = d.effect.value if d.effect else ("branches: " + "/".join(d.branches) if d.branches else "")
        table.add_row(
            d.type,
            f"[{color}]{d.kind.value}[/{color}]",
            d.label,
            fields or "[dim]—[/dim]",
            effect,
        )

    console.print()
    console.print(table)
