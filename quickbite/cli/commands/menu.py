"""Menu CLI commands."""

import click
from rich.prompt import Confirm

from quickbite.cli.formatters import money, print_menu_item, print_menu_table
from quickbite.cli.helpers import admin_option, get_storefront, resolve_admin
from quickbite.core.exceptions import NotFoundError
from quickbite.core.models import NewMenuItem


@click.group()
def menu():
    """Browse and manage the menu."""
    pass


# Command: list
@menu.command(name="list")
@click.option("--category", "-c", help="Only show items in this category")
@click.option("--popular", is_flag=True, help="Only show popular items")
@click.pass_context
def list_items(ctx: click.Context, category: str | None, popular: bool) -> None:
    """List menu items."""
    console = ctx.obj.console
    storefront = get_storefront(ctx)

    items = storefront.menu(category)
    if popular:
        items = [item for item in items if item.is_popular]

    if not items:
        console.print("[yellow]No menu items found[/yellow]")
        return

    title = f"Menu: {category}" if category else "Menu"
    console.print(f"\n[bold]{title}[/bold]\n")
    print_menu_table(console, items)


# Command: categories
@menu.command()
@click.pass_context
def categories(ctx: click.Context) -> None:
    """List menu categories."""
    console = ctx.obj.console
    names = get_storefront(ctx).categories()
    if not names:
        console.print("[yellow]No categories found[/yellow]")
        return
    for name in names:
        console.print(name)


# Command: show
@menu.command()
@click.argument("item_id", type=int)
@click.pass_context
def show(ctx: click.Context, item_id: int) -> None:
    """Show one menu item."""
    item = ctx.obj.backend.get_menu_item(item_id)
    if item is None:
        raise NotFoundError("Menu item", item_id)
    print_menu_item(ctx.obj.console, item)


# Command: add
@menu.command()
@click.option("--name", "-n", required=True, help="Item name")
@click.option("--description", "-d", required=True, help="Item description")
@click.option("--price", "-p", type=float, required=True, help="Price")
@click.option("--category", "-c", required=True, help="Category")
@click.option("--image-url", required=True, help="Image URL")
@click.option("--popular", is_flag=True, help="Feature as a popular item")
@admin_option
@click.pass_context
def add(
    ctx: click.Context,
    name: str,
    description: str,
    price: float,
    category: str,
    image_url: str,
    popular: bool,
    admin_username: str,
) -> None:
    """Add a menu item."""
    console = ctx.obj.console
    actor = resolve_admin(ctx, admin_username)

    item = get_storefront(ctx).add_menu_item(
        actor,
        NewMenuItem(
            name=name,
            description=description,
            price=price,
            category=category,
            image_url=image_url,
            is_popular=popular,
        ),
    )
    console.print(
        f"[green]✓[/green] Added menu item {item.id}: {item.name} ({money(item.price)})"
    )


# Command: update
@menu.command()
@click.argument("item_id", type=int)
@click.option("--name", "-n", help="Item name")
@click.option("--description", "-d", help="Item description")
@click.option("--price", "-p", type=float, help="Price")
@click.option("--category", "-c", help="Category")
@click.option("--image-url", help="Image URL")
@click.option("--popular/--not-popular", default=None, help="Popular flag")
@admin_option
@click.pass_context
def update(ctx: click.Context, item_id: int, admin_username: str, **changes) -> None:
    """Update fields of a menu item; unspecified fields are kept."""
    console = ctx.obj.console
    actor = resolve_admin(ctx, admin_username)

    current = ctx.obj.backend.get_menu_item(item_id)
    if current is None:
        raise NotFoundError("Menu item", item_id)

    popular = changes.pop("popular")
    fields = {key: value for key, value in changes.items() if value is not None}
    if not fields and popular is None:
        console.print("[yellow]Nothing to update[/yellow]")
        return

    replacement = NewMenuItem(
        name=fields.get("name", current.name),
        description=fields.get("description", current.description),
        price=fields.get("price", current.price),
        category=fields.get("category", current.category),
        image_url=fields.get("image_url", current.image_url),
        is_popular=current.is_popular if popular is None else popular,
    )
    item = get_storefront(ctx).update_menu_item(actor, item_id, replacement)
    console.print(f"[green]✓[/green] Updated menu item {item.id}: {item.name}")


# Command: delete
@menu.command()
@click.argument("item_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@admin_option
@click.pass_context
def delete(ctx: click.Context, item_id: int, yes: bool, admin_username: str) -> None:
    """Remove a menu item.

    Existing orders keep their copy of the item's name and price.
    """
    console = ctx.obj.console
    actor = resolve_admin(ctx, admin_username)

    item = ctx.obj.backend.get_menu_item(item_id)
    if item is None:
        raise NotFoundError("Menu item", item_id)

    if not yes and not Confirm.ask(f"Delete '{item.name}'?", console=console):
        console.print("[yellow]Cancelled[/yellow]")
        return

    get_storefront(ctx).delete_menu_item(actor, item_id)
    console.print(f"[green]✓[/green] Deleted menu item {item_id}")
