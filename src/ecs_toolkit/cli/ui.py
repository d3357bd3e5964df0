"""Shared Rich console and report rendering for the CLI."""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ecs_toolkit.core.deployments.aws_ecs.models import DeploymentReport, Outcome

console = Console()

OUTCOME_STYLES = {
    Outcome.SUCCEEDED: "green",
    Outcome.SKIPPED: "yellow",
    Outcome.FAILED: "red",
    Outcome.PENDING: "dim",
}


def build_report_table(report: DeploymentReport) -> Table:
    """Build a summary table with one row per deployment unit.

    Args:
        report: Results of a deployment run.

    Returns:
        The rendered table.
    """
    table = Table(title="Deployment summary")
    table.add_column("Stage")
    table.add_column("Kind")
    table.add_column("Name")
    table.add_column("Outcome")
    table.add_column("Task definition")
    table.add_column("Detail", overflow="fold")

    for result in report.stages:
        for unit in result.units:
            style = OUTCOME_STYLES[unit.outcome]
            table.add_row(
                result.stage.label,
                unit.kind.value,
                unit.name,
                f"[{style}]{unit.outcome.value}[/{style}]",
                unit.task_definition or "-",
                escape(unit.error or ""),
            )
    return table


def print_deployment_report(report: DeploymentReport) -> None:
    """Print the summary table and one count line per stage."""
    if not any(result.units for result in report.stages):
        console.print("[yellow]Nothing was deployed.[/yellow]")
        return

    console.print(build_report_table(report))
    for result in report.stages:
        style = "green" if result.batch.ok else "red"
        console.print(f"[{style}]{result.stage.label}[/{style}]: {result.batch.summary()}")
