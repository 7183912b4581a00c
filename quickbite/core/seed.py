"""Demo data loaded into an empty storefront."""

from .models import NewMenuItem, NewUser

DEFAULT_ADMIN_PASSWORD = "admin_password"


def default_admin(password_hash: str) -> NewUser:
    return NewUser(
        username="admin",
        password=password_hash,
        name="Admin User",
        email="admin@quickbite.com",
        is_admin=True,
    )


_IMAGE = "https://images.unsplash.com/{}?ixlib=rb-1.2.1&auto=format&fit=crop&w=500&q=80"

DEMO_MENU: tuple[NewMenuItem, ...] = (
    NewMenuItem(
        name="Pepperoni Pizza",
        description="Classic pepperoni pizza with mozzarella and our special sauce",
        price=12.99,
        image_url=_IMAGE.format("photo-1513104890138-7c749659a591"),
        category="Pizza",
        is_popular=True,
    ),
    NewMenuItem(
        name="Deluxe Burger",
        description="Juicy beef patty with cheese, lettuce, tomato and special sauce",
        price=10.99,
        image_url=_IMAGE.format("photo-1568901346375-23c9450c58cd"),
        category="Burgers",
        is_popular=True,
    ),
    NewMenuItem(
        name="Salmon Sushi Roll",
        description="Fresh salmon, avocado, cucumber wrapped in seaweed and rice",
        price=14.99,
        image_url=_IMAGE.format("photo-1579871494447-9811cf80d66c"),
        category="Sushi",
        is_popular=True,
    ),
    NewMenuItem(
        name="Pasta Carbonara",
        description="Creamy pasta with bacon, egg, parmesan cheese and black pepper",
        price=13.99,
        image_url=_IMAGE.format("photo-1473093295043-cdd812d0e601"),
        category="Pasta",
        is_popular=True,
    ),
    NewMenuItem(
        name="Margherita Pizza",
        description="Classic pizza with tomato sauce, mozzarella cheese, and fresh basil",
        price=11.99,
        image_url=_IMAGE.format("photo-1565299624946-b28f40a0ae38"),
        category="Pizza",
    ),
    NewMenuItem(
        name="Chicken Salad",
        description="Fresh vegetables with grilled chicken, avocado and vinaigrette",
        price=9.99,
        image_url=_IMAGE.format("photo-1532465614-6cc8d45f647f"),
        category="Salads",
    ),
    NewMenuItem(
        name="Spicy Wings",
        description="Crispy chicken wings tossed in our special hot sauce",
        price=8.99,
        image_url=_IMAGE.format("photo-1563729784474-d77dbb933a9e"),
        category="Chicken",
    ),
    NewMenuItem(
        name="Chocolate Cake",
        description="Rich chocolate cake with ganache frosting and berries",
        price=6.99,
        image_url=_IMAGE.format("photo-1529042410759-befb1204b468"),
        category="Desserts",
    ),
)
