"""Shopping cart CLI commands."""

import click

from quickbite.cli.formatters import print_cart
from quickbite.cli.helpers import get_storefront, resolve_user, user_option


@click.group()
def cart():
    """View and change a customer's cart."""
    pass


# Command: show
@cart.command()
@user_option
@click.pass_context
def show(ctx: click.Context, username: str) -> None:
    """Show the cart with current menu prices."""
    console = ctx.obj.console
    customer = resolve_user(ctx, username)
    storefront = get_storefront(ctx)

    rows = storefront.cart(customer.id)
    if not rows:
        console.print(f"[yellow]Cart for {customer.username} is empty[/yellow]")
        return

    console.print(f"\n[bold]Cart for {customer.username}[/bold]\n")
    print_cart(console, rows, storefront.cart_total(customer.id))


# Command: add
@cart.command()
@click.argument("menu_item_id", type=int)
@click.option("--quantity", "-q", type=int, default=1, show_default=True)
@user_option
@click.pass_context
def add(ctx: click.Context, menu_item_id: int, quantity: int, username: str) -> None:
    """Add a menu item; adding it again increases the quantity."""
    customer = resolve_user(ctx, username)
    item = get_storefront(ctx).add_to_cart(customer.id, menu_item_id, quantity)
    ctx.obj.console.print(
        f"[green]✓[/green] Cart item {item.id}: menu item {item.menu_item_id} "
        f"x{item.quantity}"
    )


# Command: set
@cart.command(name="set")
@click.argument("cart_item_id", type=int)
@click.argument("quantity", type=int)
@user_option
@click.pass_context
def set_quantity(
    ctx: click.Context, cart_item_id: int, quantity: int, username: str
) -> None:
    """Set the quantity of a cart item."""
    customer = resolve_user(ctx, username)
    item = get_storefront(ctx).set_quantity(customer.id, cart_item_id, quantity)
    ctx.obj.console.print(f"[green]✓[/green] Cart item {item.id} x{item.quantity}")


# Command: remove
@cart.command()
@click.argument("cart_item_id", type=int)
@user_option
@click.pass_context
def remove(ctx: click.Context, cart_item_id: int, username: str) -> None:
    """Remove one cart item."""
    customer = resolve_user(ctx, username)
    get_storefront(ctx).remove_from_cart(customer.id, cart_item_id)
    ctx.obj.console.print(f"[green]✓[/green] Removed cart item {cart_item_id}")


# Command: clear
@cart.command()
@user_option
@click.pass_context
def clear(ctx: click.Context, username: str) -> None:
    """Empty the cart."""
    customer = resolve_user(ctx, username)
    get_storefront(ctx).clear_cart(customer.id)
    ctx.obj.console.print(f"[green]✓[/green] Cleared cart for {customer.username}")
