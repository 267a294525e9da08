"""
Grievance Portal operator CLI.

Usage:
    python -m app.cli summary [--start-date YYYY-MM-DD] [--end-date ...] [--city ...]
    python -m app.cli sweep
    python -m app.cli sla <issue-id>
"""

import argparse
import asyncio
from datetime import date

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from app.database import AsyncSessionLocal, close_db
from app.services import AnalyticsFilter, IssueServiceError, get_analytics_service, get_issue_service
from app.tasks import background_worker

console = Console()

SLA_COLORS = {"on_time": "green", "pending": "white", "at_risk": "yellow", "breached": "red"}


def _count_table(title: str, label: str, counts: dict) -> Table:
    table = Table(title=title)
    table.add_column(label, style="bold")
    table.add_column("Count", justify="right")
    for key, count in counts.items():
        table.add_row(str(key), str(count))
    return table


async def cmd_summary(args):
    """Print the analytics summary."""
    analytics_filter = AnalyticsFilter(
        start_date=args.start_date,
        end_date=args.end_date,
        city=args.city,
        cluster=args.cluster,
    )
    async with AsyncSessionLocal() as db:
        summary = await get_analytics_service(db).get_analytics(analytics_filter)

    console.print(Panel.fit(
        f"[bold]Issues:[/bold] {summary.total}  |  "
        f"[bold]Resolution rate:[/bold] {summary.resolution_rate:.0%}  |  "
        f"[bold]SLA breached:[/bold] {summary.sla_breached_count}",
        title="Grievance Portal Summary",
        border_style="blue"
    ))

    if summary.total == 0:
        console.print("\n[yellow]No issues match the filter.[/yellow]")
        return

    console.print(
        f"Average resolution: {summary.average_resolution_hours} working hours, "
        f"first response: {summary.average_first_response_hours} working hours"
    )
    if summary.data_integrity_errors:
        console.print(
            f"[red]{summary.data_integrity_errors} issues have unusable timestamps[/red]"
        )

    console.print(_count_table("Issues by Status", "Status", summary.by_status))
    console.print(_count_table("Issues by Priority", "Priority", summary.by_priority))
    console.print(_count_table("Issues by Type", "Type", summary.by_type))
    console.print(_count_table("Issues by City", "City", summary.by_city))


async def cmd_sweep(args):
    """Run the SLA breach sweep once."""
    console.print("\nRunning SLA sweep...\n")
    result = await background_worker.run_sla_sweep()
    console.print(
        f"[green]Done.[/green] Checked {result['checked']}, "
        f"breached {result['breached']}, escalated {result['escalated']}"
    )
    if result["integrity_errors"]:
        console.print(f"[red]{result['integrity_errors']} issues have unusable timestamps[/red]")


async def cmd_sla(args):
    """Print the SLA evaluation of one issue."""
    async with AsyncSessionLocal() as db:
        try:
            evaluation = await get_issue_service(db).evaluate_sla(args.issue_id)
        except IssueServiceError as e:
            console.print(f"[red]{e}[/red]")
            return

    color = SLA_COLORS.get(evaluation.status, "white")
    table = Table(title=f"SLA for issue {evaluation.issue_id}")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Priority", evaluation.priority)
    table.add_row("Status", f"[{color}]{evaluation.status}[/{color}]")
    table.add_row("First response (h)", str(evaluation.first_response_hours or "-"))
    table.add_row("First response breached", str(evaluation.first_response_breached))
    table.add_row("Resolution (h)", str(evaluation.resolution_hours or "-"))
    table.add_row("Resolution breached", str(evaluation.resolution_breached))
    table.add_row("Deadline", evaluation.deadline.isoformat() if evaluation.deadline else "-")
    console.print(table)

    if evaluation.data_integrity_error:
        console.print(f"[red]Data integrity error: {evaluation.data_integrity_error}[/red]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Grievance Portal - issue lifecycle and SLA operations"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    summary_parser = subparsers.add_parser("summary", help="Print the analytics summary")
    summary_parser.add_argument("--start-date", type=date.fromisoformat, help="YYYY-MM-DD")
    summary_parser.add_argument("--end-date", type=date.fromisoformat, help="YYYY-MM-DD")
    summary_parser.add_argument("--city", help="Only issues from this city")
    summary_parser.add_argument("--cluster", help="Only issues from this cluster")

    subparsers.add_parser("sweep", help="Run the SLA breach sweep once")

    sla_parser = subparsers.add_parser("sla", help="Show the SLA evaluation of an issue")
    sla_parser.add_argument("issue_id", help="Issue UUID")

    return parser


async def _run(command, args):
    try:
        await command(args)
    finally:
        await close_db()


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    commands = {
        "summary": cmd_summary,
        "sweep": cmd_sweep,
        "sla": cmd_sla,
    }

    asyncio.run(_run(commands[args.command], args))


if __name__ == "__main__":
    main()
