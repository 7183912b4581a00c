"""Rich renderers for storefront records."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from quickbite.core.models import (
    CartItemWithDetails,
    MenuItem,
    Order,
    OrderStatus,
    OrderWithItems,
    User,
)

STATUS_STYLES = {
    OrderStatus.PENDING: "yellow",
    OrderStatus.PROCESSING: "cyan",
    OrderStatus.DELIVERING: "blue",
    OrderStatus.DELIVERED: "green",
    OrderStatus.CANCELLED: "red",
}


def money(amount: float) -> str:
    return f"${amount:,.2f}"


def styled_status(status: OrderStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def print_menu_table(console: Console, items: list[MenuItem]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Category", style="magenta")
    table.add_column("Price", justify="right")
    table.add_column("Rating", justify="right")
    table.add_column("Popular", justify="center")

    for item in items:
        table.add_row(
            str(item.id),
            item.name,
            item.category,
            money(item.price),
            f"{item.rating:.1f}",
            "★" if item.is_popular else "",
        )

    console.print(table)


def print_menu_item(console: Console, item: MenuItem) -> None:
    """Show one menu item as a key/value panel."""
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan", width=12)
    table.add_column("Value", style="white")

    table.add_row("ID", str(item.id))
    table.add_row("Category", item.category)
    table.add_row("Price", money(item.price))
    table.add_row("Rating", f"{item.rating:.1f}")
    table.add_row("Popular", "yes" if item.is_popular else "no")
    table.add_row("Description", item.description)
    table.add_row("Image", item.image_url)

    console.print(Panel(table, title=f"[bold]{item.name}[/bold]", expand=False))


def print_user(console: Console, user: User) -> None:
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan", width=12)
    table.add_column("Value", style="white")

    table.add_row("ID", str(user.id))
    table.add_row("Username", user.username)
    table.add_row("Name", user.name or "-")
    table.add_row("Email", user.email or "-")
    table.add_row("Admin", "yes" if user.is_admin else "no")

    console.print(table)


def print_cart(console: Console, rows: list[CartItemWithDetails], total: float) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Cart ID", style="cyan", justify="right")
    table.add_column("Item", style="white")
    table.add_column("Price", justify="right")
    table.add_column("Qty", justify="right")
    table.add_column("Subtotal", justify="right")

    for row in rows:
        table.add_row(
            str(row.item.id),
            row.menu_item.name,
            money(row.menu_item.price),
            str(row.item.quantity),
            money(row.subtotal),
        )

    console.print(table)
    console.print(f"[bold]Total:[/bold] {money(total)}")


def print_orders(console: Console, orders: list[Order]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Order", style="cyan", justify="right")
    table.add_column("Customer", justify="right")
    table.add_column("Placed", style="dim")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Status")

    for order in orders:
        table.add_row(
            str(order.id),
            str(order.user_id),
            order.created_at.strftime("%Y-%m-%d %H:%M"),
            str(sum(line.quantity for line in order.items)),
            money(order.total),
            styled_status(order.status),
        )

    console.print(table)


def print_order(console: Console, detail: OrderWithItems) -> None:
    """Show an order with its line items.

    Lines whose menu item has since been removed are marked, but still
    show the name and price captured at checkout.
    """
    order = detail.order
    console.print(
        f"\n[bold]Order #{order.id}[/bold]  {styled_status(order.status)}  "
        f"[dim]{order.created_at.strftime('%Y-%m-%d %H:%M')}[/dim]"
    )
    if order.address:
        console.print(f"Deliver to: {order.address}")
    if order.payment_id:
        console.print(f"Payment: {order.payment_id}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Item", style="white")
    table.add_column("Price", justify="right")
    table.add_column("Qty", justify="right")
    table.add_column("Subtotal", justify="right")

    for entry in detail.items:
        name = entry.line.name
        if entry.menu_item is None:
            name += " [dim](no longer on menu)[/dim]"
        table.add_row(
            name,
            money(entry.line.price),
            str(entry.line.quantity),
            money(entry.line.subtotal),
        )

    console.print(table)
    console.print(f"[bold]Total:[/bold] {money(order.total)}")


def print_statistics(console: Console, stats: dict[str, Any]) -> None:
    console.print(f"Backend: [cyan]{stats['backend']}[/cyan]")
    console.print(f"Users: {stats['users']}")
    console.print(f"Menu items: {stats['menu_items']}")
    console.print(f"Orders: {stats['orders']}")

    by_status = {k: v for k, v in stats.get("orders_by_status", {}).items() if v}
    if by_status:
        console.print("\nOrders by status:")
        for status, count in by_status.items():
            console.print(f"  {status}: {count}")

    console.print(f"\nRevenue: {money(stats['revenue'])}")


def print_migration_stats(console: Console, stats: dict[str, Any]) -> None:
    table = Table(title="Migration", show_header=True, header_style="bold")
    table.add_column("Entity", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Migrated", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")

    for entity, total in stats["totals"].items():
        table.add_row(
            entity.replace("_", " "),
            str(total),
            str(stats["migrated"][entity]),
            str(stats["failed"][entity]),
        )

    console.print(table)
    console.print(f"Success rate: {stats['success_rate']:.1f}%")
    for error in stats["errors"]:
        console.print(f"[yellow]•[/yellow] {error}")
