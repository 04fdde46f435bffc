"""flowlab config — Show resolved FlowLab configuration."""

from rich import box
from rich.console import Console
from rich.table import Table

console = Console()


def config_show():
    """Show the resolved FlowLab configuration.

    Reads from environment variables and .env file.

    Example:
        flowlab config
    """
    from flowlab.config import FlowLabConfig
    cfg = FlowLabConfig()

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        show_lines=False,
        title="[bold]FlowLab Configuration[/bold]",
    )
    table.add_column("Key", style="cyan", width=20)
    table.add_column("Value", width=30)
    table.add_column("Env Var", style="dim", width=26)

    sections = [
        ("App", ["app_name", "debug", "log_level"]),
        ("Engine", ["max_walk_steps"]),
        ("Content", ["scenario_dir"]),
    ]

    first = True
    for section_name, fields in sections:
        if not first:
            table.add_row("", "", "")
        first = False
        table.add_row(f"[bold dim]── {section_name} ──[/bold dim]", "", "")
        for attr in fields:
            val = getattr(cfg, attr, None)
            display = "[dim](not set)[/dim]" if val is None else str(val)
            table.add_row(f"  {attr}", display, f"FLOWLAB_{attr.upper()}")

    console.print()
    console.print(table)
    console.print()
    console.print("[dim]Source: environment variables + .env file (prefix: FLOWLAB_)[/dim]")
