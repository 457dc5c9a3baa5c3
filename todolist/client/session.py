"""Session côté client: token + identité en cache, register/login/logout."""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from httpx import TransportError

from todolist.client.api import ApiClient, ApiError

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self, storage, token_key: str = "authToken", user_key: str = "currentUser"):
        self.storage = storage
        self.token_key = token_key
        self.user_key = user_key

    def get_token(self) -> Optional[str]:
        return self.storage.get_item(self.token_key)

    def set_token(self, token) -> None:
        if token and isinstance(token, str):
            self.storage.set_item(self.token_key, token)

    def get_user(self) -> Optional[dict]:
        raw = self.storage.get_item(self.user_key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Stored user data is not valid JSON")
            return None

    def set_user(self, user) -> None:
        if user and isinstance(user, dict):
            self.storage.set_item(self.user_key, json.dumps(user))

    def clear(self) -> None:
        self.storage.remove_item(self.token_key)
        self.storage.remove_item(self.user_key)

    def is_authenticated(self) -> bool:
        # présence d'un token non vide; sa validité se découvre au premier 401
        return bool(self.get_token())


@dataclass
class AuthResult:
    success: bool
    token: Optional[str] = None
    user: Optional[dict] = None
    error: Optional[str] = None


class AuthService:
    def __init__(self, api: ApiClient, session: SessionManager):
        self.api = api
        self.session = session

    async def _authenticate(self, endpoint: str, email: str, password: str, action: str) -> AuthResult:
        try:
            data = await self.api.post(endpoint, {"email": email, "password": password})
        except ApiError as exc:
            return AuthResult(success=False, error=str(exc) or f"{action.capitalize()} failed")
        except TransportError as exc:
            logger.warning("Network error on %s: %s", endpoint, exc)
            return AuthResult(success=False, error=f"Network error during {action}")

        self.session.set_token(data["token"])
        self.session.set_user(data["user"])
        self.api.set_auth_token(data["token"])
        return AuthResult(success=True, token=data["token"], user=data["user"])

    async def register(self, email: str, password: str) -> AuthResult:
        return await self._authenticate("auth/register", email, password, "registration")

    async def login(self, email: str, password: str) -> AuthResult:
        return await self._authenticate("auth/login", email, password, "login")

    def logout(self) -> None:
        self.session.clear()
        self.api.clear_auth_token()

    def restore(self) -> bool:
        """Réinjecte le token stocké dans l'ApiClient (rechargement de page)."""
        if not self.session.is_authenticated():
            return False
        self.api.set_auth_token(self.session.get_token())
        return True
