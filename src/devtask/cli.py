"""Command-line interface for DevTask reports."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .config import ConfigModel, Config, get_config
from .errors import ReportGenerationError, StoreError
from .seed import seed_sample_data
from .services import DateRange, ExportFormat, ExportManager, Report, ReportGenerator
from .storage import Storage
from .utils.datetime import ensure_aware, format_date, format_timestamp

console = Console()

DATE_FORMATS = ["%Y-%m-%d"]
MOMENT_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


def configure_logging(level: str, verbose: bool = False):
    """Send log records to stderr at the configured level."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def get_storage(ctx) -> Storage:
    """Get initialized storage instance."""
    return Storage(ctx.obj['config'])


def build_date_range(start: Optional[datetime], end: Optional[datetime]) -> Optional[DateRange]:
    """Turn --start/--end dates into an inclusive range; the end date covers its whole day."""
    if start is None and end is None:
        return None
    if end is not None:
        end = end.replace(hour=23, minute=59, second=59, microsecond=999999)
    try:
        return DateRange(ensure_aware(start), ensure_aware(end))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--start/--end")


def generate_report(ctx, start, end, now) -> Report:
    generator = ReportGenerator(get_storage(ctx))
    try:
        return generator.generate(now=ensure_aware(now), date_range=build_date_range(start, end))
    except ReportGenerationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def date_options(func):
    """Shared --start/--end/--now options."""
    func = click.option(
        "--now", type=click.DateTime(formats=MOMENT_FORMATS),
        help="Reference time for the report (default: current time)",
    )(func)
    func = click.option(
        "--end", type=click.DateTime(formats=DATE_FORMATS),
        help="Only include tasks created on or before this date",
    )(func)
    func = click.option(
        "--start", type=click.DateTime(formats=DATE_FORMATS),
        help="Only include tasks created on or after this date",
    )(func)
    return func


@click.group()
@click.option("--config", type=click.Path(), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config, verbose):
    """DevTask Reports - summaries and exports for projects, users and tasks."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    # Load configuration
    try:
        if config:
            settings = Config.reload(Path(config))
        else:
            settings = get_config()
    except (OSError, ValueError) as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(1)

    ctx.obj['config'] = settings
    configure_logging(settings.log_level, verbose)


@main.command()
@click.pass_context
def seed(ctx):
    """Load sample data into an empty store."""
    storage = get_storage(ctx)
    try:
        created = seed_sample_data(storage)
    except StoreError as e:
        console.print(f"[red]Could not seed store: {e}[/red]")
        sys.exit(1)

    if created:
        console.print(f"[green]✅ Sample data written to {storage.path}[/green]")
    else:
        console.print("[yellow]Store already contains data; nothing seeded.[/yellow]")


def _summary_table(title: str, rows) -> Table:
    table = Table(title=title, show_header=False, title_justify="left")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for label, value in rows:
        table.add_row(label, str(value))
    return table


def _counts_table(title: str, counts) -> Table:
    table = Table(title=title, title_justify="left")
    table.add_column("Label", style="cyan")
    table.add_column("Tasks", justify="right")
    for label, count in sorted(counts.items()):
        table.add_row(label or "(none)", str(count))
    return table


@main.command()
@date_options
@click.pass_context
def report(ctx, start, end, now):
    """Show project, user and task summaries."""
    result = generate_report(ctx, start, end, now)
    config: ConfigModel = ctx.obj['config']

    console.print(f"[bold]{config.report_title} Report[/bold]")
    console.print(f"[dim]Generated {format_timestamp(result.generated_at)}[/dim]")

    p = result.projects_summary
    console.print(_summary_table("Projects", [
        ("Total Projects", p.total_projects),
        ("Projects with Tasks", p.projects_with_tasks),
        ("Projects without Tasks", p.projects_without_tasks),
        ("Total Tasks Across All Projects", p.total_tasks_across_projects),
        ("Average Tasks per Project", f"{p.average_tasks_per_project:.1f}"),
        ("Oldest Project", format_date(p.oldest_project, fmt=config.date_format)),
        ("Newest Project", format_date(p.newest_project, fmt=config.date_format)),
    ]))

    u = result.users_summary
    console.print(_summary_table("Users", [
        ("Total Users", u.total_users),
        ("Users with Tasks", u.users_with_tasks),
        ("Users without Tasks", u.users_without_tasks),
        ("Total Tasks Assigned", u.total_tasks_assigned),
        ("Average Tasks per User", f"{u.average_tasks_per_user:.1f}"),
        ("Most Active User", f"{u.most_active_user or 'N/A'} ({u.most_active_user_task_count})"),
    ]))

    t = result.tasks_summary
    console.print(_summary_table("Tasks", [
        ("Total Tasks", t.total_tasks),
        ("Unassigned", t.unassigned_tasks),
        ("In Progress", t.in_progress_tasks),
        ("Completed", t.completed_tasks),
        ("Deferred", t.deferred_tasks),
        ("Completion Rate", f"{t.completion_rate:.1f}%"),
        ("Completed This Week", t.completed_this_week),
        ("Completed This Month", t.completed_this_month),
    ]))
    console.print(_counts_table("Tasks by Type", t.tasks_by_type))
    console.print(_counts_table("Tasks by Priority", t.tasks_by_priority))


@main.command()
@click.argument("format_type", type=click.Choice([fmt.value for fmt in ExportFormat]))
@click.option("--output", "-o", type=click.Path(), help="Output file path")
@date_options
@click.pass_context
def export(ctx, format_type, output, start, end, now):
    """Export the full report as text, CSV or PDF.

    Examples:
      devtask export text
      devtask export csv -o ~/reports/devtask.csv
      devtask export pdf --start 2026-01-01 --end 2026-03-31
    """
    config: ConfigModel = ctx.obj['config']
    result = generate_report(ctx, start, end, now)
    export_manager = ExportManager(config)
    export_format = ExportFormat(format_type)

    if not output:
        output = str(config.get_export_path(export_manager.default_filename(result, export_format)))

    try:
        export_manager.export(result, export_format, output_path=output)
    except OSError as e:
        console.print(f"[red]Export failed: {e}[/red]")
        sys.exit(1)

    if export_format is ExportFormat.PDF:
        for warning in export_manager.warnings:
            console.print(f"[yellow]Warning: {warning}[/yellow]")

    console.print(f"[green]✅ Exported {format_type.upper()} report to {output}[/green]")
    console.print(
        f"[dim]{result.projects_summary.total_projects} projects, "
        f"{result.users_summary.total_users} users, "
        f"{result.tasks_summary.total_tasks} tasks[/dim]"
    )


if __name__ == "__main__":
    main()
