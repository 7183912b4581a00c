"""Pytest configuration and fixtures."""

import os

import pytest

from quickbite.core.models import NewMenuItem, NewUser

# Cheap stand-in for a real hash where tests never log in
FAKE_HASH = "0" * 128 + "." + "1" * 32


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Isolate environment variables for each test.

    Configuration is read from the environment and from the user's
    config directory, so both are pointed away from the real ones.
    """
    original_env = os.environ.copy()
    for variable in (
        "QUICKBITE_BACKEND",
        "QUICKBITE_DATABASE",
        "QUICKBITE_MONGO_DATABASE",
        "QUICKBITE_SESSION_TTL",
        "MONGODB_URI",
    ):
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def new_user():
    """Factory for user payloads."""

    def make(username: str = "alice", **overrides) -> NewUser:
        fields = {
            "username": username,
            "password": FAKE_HASH,
            "name": username.title(),
            "email": f"{username}@example.com",
        }
        fields.update(overrides)
        return NewUser(**fields)

    return make


@pytest.fixture
def new_menu_item():
    """Factory for menu item payloads."""

    def make(name: str = "Pepperoni Pizza", **overrides) -> NewMenuItem:
        fields = {
            "name": name,
            "description": f"House {name.lower()}",
            "price": 12.99,
            "category": "Pizza",
            "image_url": "https://example.com/pizza.jpg",
        }
        fields.update(overrides)
        return NewMenuItem(**fields)

    return make
