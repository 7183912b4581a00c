"""User account CLI commands."""

import click
from rich.table import Table

from quickbite.cli.formatters import print_user
from quickbite.cli.helpers import get_auth, resolve_user


@click.group()
def user():
    """Manage customer and admin accounts."""
    pass


# Command: add
@user.command()
@click.argument("username")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Account password",
)
@click.option("--name", "-n", help="Display name")
@click.option("--email", "-e", help="Email address")
@click.option("--admin", "is_admin", is_flag=True, help="Grant admin rights")
@click.pass_context
def add(
    ctx: click.Context,
    username: str,
    password: str,
    name: str | None,
    email: str | None,
    is_admin: bool,
) -> None:
    """Register a new account."""
    account = get_auth(ctx).register(
        username, password, name=name, email=email, is_admin=is_admin
    )
    role = "admin" if account.is_admin else "customer"
    ctx.obj.console.print(
        f"[green]✓[/green] Created {role} '{account.username}' (id {account.id})"
    )


# Command: show
@user.command()
@click.argument("username")
@click.pass_context
def show(ctx: click.Context, username: str) -> None:
    """Show an account."""
    print_user(ctx.obj.console, resolve_user(ctx, username))


# Command: list
@user.command(name="list")
@click.pass_context
def list_users(ctx: click.Context) -> None:
    """List all accounts."""
    console = ctx.obj.console
    users = ctx.obj.backend.get_all_users()
    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Username")
    table.add_column("Name")
    table.add_column("Admin", justify="center")
    for account in users:
        table.add_row(
            str(account.id),
            account.username,
            account.name or "",
            "✓" if account.is_admin else "",
        )
    console.print(table)


# Command: login
@user.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
@click.pass_context
def login(ctx: click.Context, username: str, password: str) -> None:
    """Check credentials and open a session."""
    account, session_id = get_auth(ctx).login(username, password)
    ctx.obj.console.print(f"[green]✓[/green] Logged in as {account.username}")
    ctx.obj.console.print(f"Session: {session_id}")


# Command: logout
@user.command()
@click.argument("session_id")
@click.pass_context
def logout(ctx: click.Context, session_id: str) -> None:
    """End a session."""
    if get_auth(ctx).logout(session_id):
        ctx.obj.console.print("[green]✓[/green] Logged out")
    else:
        ctx.obj.console.print("[yellow]No such session[/yellow]")
