"""Storage maintenance CLI commands."""

import click
import msgspec
from rich.progress import BarColumn, Progress, TextColumn

from quickbite.cli.formatters import print_migration_stats
from quickbite.cli.helpers import get_backend
from quickbite.storage import BACKENDS, DocumentBackend, MigrationManager, create_backend


# Command: migrate
@click.command()
@click.option(
    "--to",
    "target_kind",
    type=click.Choice(BACKENDS),
    required=True,
    help="Backend to copy the storefront into",
)
@click.option("--to-database", help="SQLite file for the target")
@click.option("--to-mongo-uri", help="MongoDB URI for the target")
@click.option("--to-mongo-database", help="MongoDB database name for the target")
@click.option(
    "--merge",
    is_flag=True,
    help="Copy into a target that already has a menu or orders",
)
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def migrate(
    ctx: click.Context,
    target_kind: str,
    to_database: str | None,
    to_mongo_uri: str | None,
    to_mongo_database: str | None,
    merge: bool,
    as_json: bool,
) -> None:
    """Copy every user, menu item, cart and order into another backend.

    The target must not have a menu or orders yet unless --merge is given,
    and it cannot be the store being copied.
    """
    console = ctx.obj.console
    source = get_backend(ctx)

    target_config = dict(ctx.obj.config)
    target_config["backend"] = target_kind
    if to_database:
        target_config["database"] = to_database
    if to_mongo_uri:
        target_config["mongo_uri"] = to_mongo_uri
    if to_mongo_database:
        target_config["mongo_database"] = to_mongo_database

    manager = MigrationManager(ctx.obj.event_bus)
    with create_backend(target_config) as target:
        if as_json:
            stats = manager.migrate(source, target, merge=merge)
        else:
            with Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                console=console,
                transient=True,
            ) as progress:
                tasks = {}

                def on_progress(entity: str, current: int, total: int) -> None:
                    if entity not in tasks:
                        tasks[entity] = progress.add_task(
                            entity.replace("_", " "), total=total
                        )
                    progress.update(tasks[entity], completed=current)

                manager.set_progress_callback(on_progress)
                stats = manager.migrate(source, target, merge=merge)

    report = stats.to_dict()
    if as_json:
        click.echo(msgspec.json.encode(report).decode())
    else:
        console.print(f"\n[bold]{source.name} → {target_kind}[/bold]\n")
        print_migration_stats(console, report)

    if any(stats.failed.values()):
        ctx.exit(1)


# Command: reconcile-ids
@click.command(name="reconcile-ids")
@click.pass_context
def reconcile_ids(ctx: click.Context) -> None:
    """Give documents created outside QuickBite numeric identifiers.

    Only meaningful for the mongo backend. References from carts and orders
    are rewritten to follow the new ids.
    """
    console = ctx.obj.console
    backend = get_backend(ctx)
    if not isinstance(backend, DocumentBackend):
        raise click.UsageError(
            f"reconcile-ids needs the mongo backend, not {backend.name}"
        )

    report = MigrationManager(ctx.obj.event_bus).reconcile(backend)
    if report.total_remapped == 0:
        console.print("[green]✓[/green] All identifiers are already numeric")
    else:
        for collection, ids in report.remapped.items():
            if ids:
                console.print(f"{collection}: {len(ids)} remapped")
        console.print(
            f"[green]✓[/green] Remapped {report.total_remapped} documents, "
            f"updated {report.references_updated} references"
        )
    if report.unresolved_references:
        console.print(
            f"[yellow]{len(report.unresolved_references)} references point at "
            f"missing records[/yellow]"
        )
        for reference in report.unresolved_references:
            console.print(f"  {reference}")
