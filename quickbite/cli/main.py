"""Main CLI entry point and application setup."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click
from click.exceptions import Exit
from rich.console import Console

from quickbite import __version__
from quickbite.cli.commands import cart, menu, order, storage, user
from quickbite.cli.config import load_config
from quickbite.cli.formatters import print_statistics
from quickbite.core.exceptions import QuickBiteError
from quickbite.core.seed import DEFAULT_ADMIN_PASSWORD
from quickbite.operations import AuthService, StorefrontService
from quickbite.storage import BACKENDS, EventBus, StorageBackend, create_backend


@dataclass
class Context:
    """CLI context that holds shared resources."""

    backend: StorageBackend
    auth: AuthService
    storefront: StorefrontService
    console: Console
    event_bus: EventBus
    config: dict[str, Any] = field(default_factory=dict)
    debug: bool = False


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
        if not debug
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_console(no_color: bool = False, width: int | None = None) -> Console:
    """Create Rich console with appropriate settings."""
    return Console(
        no_color=no_color,
        width=width or 120,
        highlight=not no_color,
        color_system=None if no_color else "auto",
    )


class QuickBiteGroup(click.Group):
    """Group that turns storefront errors into a message and exit code 1."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print("[yellow]Interrupted[/yellow]")
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except QuickBiteError as e:
            debug = getattr(ctx.obj, "debug", False) if ctx.obj else False
            if debug:
                raise
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print(f"[red]Error:[/red] {e}")
            else:
                click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


@click.group(cls=QuickBiteGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--backend",
    "-b",
    type=click.Choice(BACKENDS),
    help="Storage backend (overrides configuration)",
)
@click.option(
    "--database",
    "-d",
    help="SQLite database file (overrides configuration)",
)
@click.option("--mongo-uri", help="MongoDB connection URI (overrides configuration)")
@click.version_option(
    version=__version__, prog_name="quickbite", message="quickbite version %(version)s"
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config_path: Path | None,
    backend: str | None,
    database: str | None,
    mongo_uri: str | None,
) -> None:
    """QuickBite food ordering storefront.

    Manage the menu, customer carts and orders on a memory, SQLite or
    MongoDB backend.
    """
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    console = create_console(no_color=no_color)

    config = load_config(config_path)
    if backend:
        config["backend"] = backend
    if database:
        config["database"] = database
    if mongo_uri:
        config["mongo_uri"] = mongo_uri

    store = create_backend(config)
    ctx.call_on_close(store.close)

    event_bus = EventBus()
    storefront = StorefrontService(store, event_bus)
    if config.get("seed") and store.name == "memory":
        # A memory storefront starts empty on every run
        storefront.seed()

    ctx.obj = Context(
        backend=store,
        auth=AuthService(store, event_bus),
        storefront=storefront,
        console=console,
        event_bus=event_bus,
        config=config,
        debug=debug,
    )


# Command: init
@cli.command()
@click.option("--no-seed", is_flag=True, help="Create the schema without demo data")
@click.option(
    "--admin-password",
    default=DEFAULT_ADMIN_PASSWORD,
    help="Password for the seeded admin account",
)
@click.pass_context
def init(ctx: click.Context, no_seed: bool, admin_password: str) -> None:
    """Initialize storage and load the demo menu."""
    console = ctx.obj.console
    backend = ctx.obj.backend

    console.print(f"[green]✓[/green] Initialized {backend.name} storage")
    if no_seed:
        return

    if ctx.obj.storefront.seed(admin_password):
        console.print("[green]✓[/green] Loaded admin account and demo menu")
    else:
        console.print("[yellow]Menu already has items; skipped demo data[/yellow]")


# Command: status
@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show storage status and statistics."""
    console = ctx.obj.console
    console.print("\n[bold]Storefront Status[/bold]\n")
    print_statistics(console, ctx.obj.backend.get_statistics())


# Register command groups
cli.add_command(menu.menu)
cli.add_command(user.user)
cli.add_command(cart.cart)
cli.add_command(order.order)
cli.add_command(storage.migrate)
cli.add_command(storage.reconcile_ids)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
