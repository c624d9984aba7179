"""
Usage Graph CLI - inspect and rebuild the content usage ledger
"""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .bootstrap import build_usage_graph
from .report import Grouped, list_sources, list_targets, total_count
from .settings import settings
from .snapshots import SnapshotStore

console = Console()


def _configure_logging() -> None:
    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _edge_table(title: str, grouped: Grouped) -> Table:
    table = Table(title=title)
    table.add_column("Type", style="blue")
    table.add_column("Id", style="cyan")
    table.add_column("Locale", style="green")
    table.add_column("Version", style="magenta")
    table.add_column("Method")
    table.add_column("Slot")
    table.add_column("Count", justify="right")

    for type_, ids in grouped.items():
        for id_, edges in ids.items():
            for e in edges:
                table.add_row(type_, id_, e.source_locale, e.source_version or "-", e.method, e.slot_name, str(e.count))
    return table


@click.group()
@click.option("--db", "db_path", default=None, help="Ledger database (defaults to USAGE_GRAPH_DB_PATH)")
@click.pass_context
def cli(ctx, db_path):
    """Usage Graph - who references what"""
    _configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


@cli.command()
@click.pass_context
def extractors(ctx):
    """List registered reference extractors"""
    graph = build_usage_graph(db_path=ctx.obj["db_path"])

    table = Table(title="Reference extractors")
    table.add_column("Method", style="cyan")
    table.add_column("Label", style="green")
    table.add_column("Slot kinds", style="blue")
    table.add_column("Enabled")
    table.add_column("Description", overflow="fold")
    for e in graph.registry.all():
        enabled = graph.tracking.is_method_enabled(e.method)
        table.add_row(
            e.method,
            e.label,
            ", ".join(e.slot_kinds),
            "[green]yes[/green]" if enabled else "[red]no[/red]",
            e.description,
        )
    console.print(table)


@cli.command()
@click.argument("target_type")
@click.argument("target_id")
@click.pass_context
def sources(ctx, target_type, target_id):
    """Show every source referencing TARGET_TYPE TARGET_ID"""
    graph = build_usage_graph(db_path=ctx.obj["db_path"])
    grouped = list_sources(graph.ledger, target_id, target_type)
    if not grouped:
        console.print(f"[yellow]No usage recorded for {target_type}:{target_id}[/yellow]")
        return
    console.print(_edge_table(f"Sources of {target_type}:{target_id}", grouped))
    console.print(f"Total usages: [bold]{total_count(grouped)}[/bold]")


@cli.command()
@click.argument("source_type")
@click.argument("source_id")
@click.pass_context
def targets(ctx, source_type, source_id):
    """Show every target referenced by SOURCE_TYPE SOURCE_ID"""
    graph = build_usage_graph(db_path=ctx.obj["db_path"])
    grouped = list_targets(graph.ledger, source_id, source_type)
    if not grouped:
        console.print(f"[yellow]{source_type}:{source_id} references nothing[/yellow]")
        return
    console.print(_edge_table(f"Targets of {source_type}:{source_id}", grouped))
    console.print(f"Total usages: [bold]{total_count(grouped)}[/bold]")


@cli.command()
@click.option("--items", "items_file", required=True, type=click.Path(exists=True, dir_okay=False), help="JSON snapshot export")
@click.option("--type", "types", multiple=True, help="Only rebuild these source types")
@click.option("--batch-size", default=None, type=click.IntRange(min=1), help="Items per batch")
@click.pass_context
def recompute(ctx, items_file, types, batch_size):
    """Rebuild the ledger from a snapshot export"""
    items = SnapshotStore.from_json_file(items_file)
    graph = build_usage_graph(items, db_path=ctx.obj["db_path"])
    if batch_size:
        graph.batch_size = batch_size
    driver = graph.recompute_driver()

    def report(progress):
        console.print(
            f"  [cyan]{progress.source_type}[/cyan] {progress.processed} of {progress.total} "
            f"({progress.finished:.0%})"
        )

    results = driver.run(list(types) or None, on_progress=report)

    table = Table(title="Recompute")
    table.add_column("Source type", style="cyan")
    table.add_column("Items", justify="right")
    table.add_column("Edges", justify="right")
    table.add_column("Status")
    for p in results:
        table.add_row(p.source_type, str(p.processed), str(p.edges), "[green]done[/green]" if p.done else "[yellow]stopped[/yellow]")
    console.print(table)
    console.print(
        Panel.fit(
            f"Recreated usage for {sum(p.processed for p in results)} item(s)",
            title="Finished",
            border_style="green",
        )
    )


@cli.command()
@click.option("--target-type", default=None, help="Drop every row targeting this type")
@click.option("--source-type", default=None, help="Drop every row from this source type")
@click.pass_context
def purge(ctx, target_type, source_type):
    """Bulk-delete usage rows by target or source type"""
    if not target_type and not source_type:
        raise click.UsageError("Pass --target-type and/or --source-type")
    graph = build_usage_graph(db_path=ctx.obj["db_path"])
    if target_type:
        n = graph.tracker.bulk_delete_by_target_type(target_type)
        console.print(f"[green]✓ Removed {n} row(s) targeting {target_type}[/green]")
    if source_type:
        n = graph.tracker.bulk_delete_by_source_type(source_type)
        console.print(f"[green]✓ Removed {n} row(s) from {source_type}[/green]")


@cli.command()
@click.option("--host", default=None, help="Bind host")
@click.option("--port", default=None, type=int, help="Bind port")
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP API"""
    from .service.server import main

    main(host=host, port=port, db_path=ctx.obj["db_path"])


if __name__ == "__main__":
    cli()
