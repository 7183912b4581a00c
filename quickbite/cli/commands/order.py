"""Order CLI commands."""

import click

from quickbite.cli.formatters import money, print_order, print_orders, styled_status
from quickbite.cli.helpers import (
    admin_option,
    get_storefront,
    resolve_admin,
    resolve_user,
    user_option,
)
from quickbite.core.models import CheckoutDetails, OrderStatus


@click.group()
def order():
    """Place and manage orders."""
    pass


# Command: checkout
@order.command()
@user_option
@click.option("--name", required=True, help="Recipient name")
@click.option("--address", required=True, help="Street address")
@click.option("--city", required=True, help="City")
@click.option("--zip", "zip_code", required=True, help="Postal code")
@click.option("--phone", required=True, help="Contact phone number")
@click.option("--payment-id", help="Payment reference to store with the order")
@click.pass_context
def checkout(
    ctx: click.Context,
    username: str,
    name: str,
    address: str,
    city: str,
    zip_code: str,
    phone: str,
    payment_id: str | None,
) -> None:
    """Place an order for everything in the cart."""
    customer = resolve_user(ctx, username)
    placed = get_storefront(ctx).checkout(
        customer.id,
        CheckoutDetails(
            name=name, address=address, city=city, zip_code=zip_code, phone=phone
        ),
        payment_id=payment_id,
    )
    ctx.obj.console.print(
        f"[green]✓[/green] Placed order #{placed.id} for {money(placed.total)}"
    )


# Command: list
@order.command(name="list")
@click.option("--user", "-u", "username", help="Only this customer's orders")
@admin_option
@click.pass_context
def list_orders(ctx: click.Context, username: str | None, admin_username: str) -> None:
    """List orders, newest first.

    Without --user every order is listed, which needs an administrator.
    """
    console = ctx.obj.console
    storefront = get_storefront(ctx)

    if username:
        customer = resolve_user(ctx, username)
        orders = [detail.order for detail in storefront.orders_for(customer.id)]
    else:
        orders = storefront.all_orders(resolve_admin(ctx, admin_username))

    if not orders:
        console.print("[yellow]No orders found[/yellow]")
        return
    print_orders(console, orders)


# Command: show
@order.command()
@click.argument("order_id", type=int)
@user_option
@click.pass_context
def show(ctx: click.Context, order_id: int, username: str) -> None:
    """Show an order with its items."""
    viewer = resolve_user(ctx, username)
    print_order(ctx.obj.console, get_storefront(ctx).order_for(viewer, order_id))


# Command: status
@order.command()
@click.argument("order_id", type=int)
@click.argument("new_status", type=click.Choice([s.value for s in OrderStatus]))
@admin_option
@click.pass_context
def status(
    ctx: click.Context, order_id: int, new_status: str, admin_username: str
) -> None:
    """Move an order to a new status."""
    actor = resolve_admin(ctx, admin_username)
    updated = get_storefront(ctx).update_order_status(actor, order_id, new_status)
    ctx.obj.console.print(
        f"[green]✓[/green] Order #{updated.id} is now {styled_status(updated.status)}"
    )


# Command: cancel
@order.command()
@click.argument("order_id", type=int)
@user_option
@click.pass_context
def cancel(ctx: click.Context, order_id: int, username: str) -> None:
    """Cancel a pending order."""
    customer = resolve_user(ctx, username)
    get_storefront(ctx).cancel_order(customer.id, order_id)
    ctx.obj.console.print(f"[green]✓[/green] Cancelled order #{order_id}")
