"""Authentication flow and token persistence."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from ..db import LocalStorage
from .client import NutriCartClient
from .errors import AuthRequiredError, NutriCartError
from .models import User

logger = logging.getLogger(__name__)

TOKEN_KEY = "nutriCart_token"
USER_KEY = "nutriCart_user"

# Demo tokens end in "-<epoch ms>"; older than this they are discarded
TOKEN_MAX_AGE_MS = 7 * 24 * 60 * 60 * 1000


@dataclass
class AuthSession:
    """Holds an authenticated NutriCart session."""

    token: str
    user: User


class Authenticator:
    """Logs users in and out and keeps the token in local storage.

    The client's bearer token follows the session: it is set on login or
    restore and cleared on logout.
    """

    def __init__(self, client: NutriCartClient, storage: LocalStorage) -> None:
        self._client = client
        self._storage = storage
        self._session: AuthSession | None = None

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def user(self) -> User | None:
        return self._session.user if self._session else None

    @property
    def token(self) -> str | None:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    async def login(self, email: str, password: str) -> AuthSession:
        """Authenticate and persist the token.

        Raises:
            APIError: If the backend rejects the credentials.
            NetworkError: If the backend is unreachable.
        """
        response = await self._client.login(email, password)
        return self._start_session(response)

    async def register(self, user_data: dict) -> AuthSession:
        response = await self._client.register(user_data)
        return self._start_session(response)

    def _start_session(self, response: dict) -> AuthSession:
        token = response["token"]
        user = User.from_dict(response["user"])
        self._storage.set_item(TOKEN_KEY, token)
        self._storage.set_json(USER_KEY, user.to_dict())
        self._client.token = token
        self._session = AuthSession(token=token, user=user)
        logger.info("Logged in as %s", user.email or user.id)
        return self._session

    def restore(self, now_ms: int | None = None) -> AuthSession | None:
        """Restore a previous session from local storage, if still valid."""
        token = self._storage.get_item(TOKEN_KEY)
        if not token:
            logger.debug("No stored authentication found")
            return None

        try:
            user_data = self._storage.get_json(USER_KEY)
        except ValueError:
            logger.exception("Stored user data is corrupt; clearing authentication")
            self._clear_storage()
            return None
        if not user_data:
            return None

        if _token_expired(token, now_ms):
            logger.info("Token expired, clearing authentication")
            self._clear_storage()
            return None

        self._client.token = token
        self._session = AuthSession(token=token, user=User.from_dict(user_data))
        logger.info("Restored authentication from local storage")
        return self._session

    def logout(self) -> None:
        self._clear_storage()
        self._client.token = None
        self._session = None
        logger.info("Logged out")

    def _clear_storage(self) -> None:
        self._storage.remove_item(TOKEN_KEY)
        self._storage.remove_item(USER_KEY)

    async def update_profile(self, profile_data: dict) -> User:
        """Update the profile and merge the server's answer into the stored user.

        Raises:
            AuthRequiredError: If no user is logged in.
        """
        if self._session is None or not self._session.user.id:
            raise AuthRequiredError("User ID not found. Please login again.")

        updated = await self._client.update_profile(profile_data)
        merged = {**self._session.user.to_dict(), **(updated or {})}
        return self._replace_user(User.from_dict(merged))

    async def change_password(self, current_password: str, new_password: str) -> None:
        if self._session is None:
            raise AuthRequiredError("Please login to change your password.")
        await self._client.change_password(current_password, new_password)

    async def refresh_user(self) -> User | None:
        """Re-fetch the current user. A failed refresh logs the user out."""
        if self._session is None or not self._session.user.id:
            return None
        try:
            fresh = await self._client.me()
        except NutriCartError:
            logger.exception("Error refreshing user data")
            self.logout()
            return None

        merged = {**self._session.user.to_dict(), **fresh.raw}
        if fresh.subscription is not None:
            merged["subscription"] = fresh.subscription.to_dict()
        return self._replace_user(User.from_dict(merged))

    def _replace_user(self, user: User) -> User:
        assert self._session is not None
        self._session = AuthSession(token=self._session.token, user=user)
        self._storage.set_json(USER_KEY, user.to_dict())
        return user


def _token_expired(token: str, now_ms: int | None = None) -> bool:
    parts = token.split("-")
    if len(parts) < 3:
        return False
    try:
        issued_ms = int(parts[-1])
    except ValueError:
        return False
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return now_ms - issued_ms > TOKEN_MAX_AGE_MS
