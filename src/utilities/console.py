"""Rich console output helpers."""

from rich.console import Console
from rich.table import Table

console = Console()


def header(msg: str):
    """Print bold header."""
    console.print(f"\n[bold]{msg}[/bold]")


def print_node_counts(counts, report=None):
    """Table of node counts per type, plus the reconstruction outcome if given."""
    table = Table(title="Node classification")
    table.add_column("Type")
    table.add_column("Nodes", justify="right")
    for kind, n in counts.items():
        table.add_row(kind.name.lower().replace("_", " "), str(n))
    console.print(table)

    if report is None:
        return
    if report.ok:
        console.print(f"  [green]✓[/green] {report.n_reconstructed}/{report.n_attempted} nodes reconstructed")
    else:
        console.print(f"  [red]✗[/red] {len(report.failures)}/{report.n_attempted} nodes failed")
        for f in report.failures:
            console.print(f"  [dim]{f.kind}: {f.reason} at {f.node}, geometry {f.geometry}[/dim]")
