"""Account registration and session-based login."""

from __future__ import annotations

import logging

from ..core.exceptions import (
    AuthenticationError,
    PermissionDeniedError,
    ValidationError,
)
from ..core.models import NewUser, User
from ..core.security import hash_password, verify_password
from ..storage.backends.base import StorageBackend
from ..storage.events import EventBus, EventPublisher, EventType

logger = logging.getLogger(__name__)


class AuthService(EventPublisher):
    """Registers users and manages their login sessions."""

    def __init__(self, backend: StorageBackend, event_bus: EventBus | None = None):
        super().__init__(event_bus)
        self.backend = backend

    def register(
        self,
        username: str,
        password: str,
        confirm_password: str | None = None,
        name: str | None = None,
        email: str | None = None,
        is_admin: bool = False,
    ) -> User:
        """Create an account with a hashed password.

        Args:
            username: Login name, unique ignoring case
            password: Plaintext password
            confirm_password: If given, must equal ``password``
            name: Display name
            email: Contact address
            is_admin: Grant back-office rights

        Returns:
            The stored user
        """
        if not password:
            raise ValidationError("password", "is required")
        if confirm_password is not None and confirm_password != password:
            raise ValidationError("confirm_password", "Passwords don't match")

        user = self.backend.create_user(
            NewUser(
                username=username,
                password=hash_password(password),
                name=name,
                email=email,
                is_admin=is_admin,
            )
        )
        logger.info(f"Registered user {user.username}")
        self._publish_event(EventType.USER_REGISTERED, user_id=user.id)
        return user

    def authenticate(self, username: str, password: str) -> User:
        """Check credentials without opening a session."""
        if not username or not password:
            raise AuthenticationError("Username and password are required")
        user = self.backend.get_user_by_username(username)
        if user is None or not verify_password(password, user.password):
            raise AuthenticationError("Invalid username or password")
        return user

    def login(self, username: str, password: str) -> tuple[User, str]:
        """Check credentials and open a session.

        Returns:
            The user and the new session id
        """
        user = self.authenticate(username, password)
        session_id = self.backend.sessions.create(user.id)
        logger.info(f"User {user.username} logged in")
        self._publish_event(EventType.USER_LOGGED_IN, user_id=user.id)
        return user, session_id

    def logout(self, session_id: str) -> bool:
        user_id = self.backend.sessions.get(session_id)
        ended = self.backend.sessions.destroy(session_id)
        if ended and user_id is not None:
            self._publish_event(EventType.USER_LOGGED_OUT, user_id=user_id)
        return ended

    def current_user(self, session_id: str) -> User:
        """Resolve a session to its user, refreshing the session's expiry."""
        user_id = self.backend.sessions.get(session_id)
        if user_id is None:
            raise AuthenticationError("Session expired or unknown")
        user = self.backend.get_user(user_id)
        if user is None:
            self.backend.sessions.destroy(session_id)
            raise AuthenticationError("Session user no longer exists")
        self.backend.sessions.touch(session_id)
        return user

    def require_admin(self, session_id: str) -> User:
        user = self.current_user(session_id)
        if not user.is_admin:
            raise PermissionDeniedError(f"User {user.username} is not an administrator")
        return user
