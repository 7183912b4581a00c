"""Core domain models, validation and exceptions for the storefront."""

from quickbite.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DuplicateUserError,
    IdentifierError,
    NotFoundError,
    PermissionDeniedError,
    QuickBiteError,
    StorageError,
    ValidationError,
)
from quickbite.core.models import (
    CartItem,
    CartItemWithDetails,
    CheckoutDetails,
    MenuItem,
    NewCartItem,
    NewMenuItem,
    NewOrder,
    NewUser,
    Order,
    OrderItemDetail,
    OrderLine,
    OrderStatus,
    OrderWithItems,
    User,
)

__all__ = [
    # Models
    "User",
    "NewUser",
    "MenuItem",
    "NewMenuItem",
    "CartItem",
    "NewCartItem",
    "CartItemWithDetails",
    "Order",
    "NewOrder",
    "OrderLine",
    "OrderStatus",
    "OrderItemDetail",
    "OrderWithItems",
    "CheckoutDetails",
    # Exceptions
    "QuickBiteError",
    "ValidationError",
    "NotFoundError",
    "DuplicateUserError",
    "StorageError",
    "IdentifierError",
    "AuthenticationError",
    "PermissionDeniedError",
    "ConfigurationError",
]
