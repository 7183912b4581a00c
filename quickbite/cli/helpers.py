"""CLI helper functions."""

from __future__ import annotations

import click

from quickbite.core.exceptions import NotFoundError, PermissionDeniedError
from quickbite.core.models import User


def get_backend(ctx: click.Context):
    """Get the storage backend from context."""
    return ctx.obj.backend


def get_storefront(ctx: click.Context):
    """Get the storefront service from context."""
    return ctx.obj.storefront


def get_auth(ctx: click.Context):
    """Get the auth service from context."""
    return ctx.obj.auth


def resolve_user(ctx: click.Context, username: str) -> User:
    """Look up the account a command acts on behalf of."""
    user = get_backend(ctx).get_user_by_username(username)
    if user is None:
        raise NotFoundError("User", username)
    return user


def resolve_admin(ctx: click.Context, username: str) -> User:
    user = resolve_user(ctx, username)
    if not user.is_admin:
        raise PermissionDeniedError(f"User {user.username} is not an administrator")
    return user


def user_option(func):
    """Add the ``--user`` option naming the customer to act as."""
    return click.option(
        "--user",
        "-u",
        "username",
        required=True,
        help="Username of the customer",
    )(func)


def admin_option(func):
    """Add the ``--admin`` option naming the administrator to act as."""
    return click.option(
        "--admin",
        "admin_username",
        default="admin",
        show_default=True,
        help="Administrator account performing the change",
    )(func)
