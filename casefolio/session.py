from __future__ import annotations

import hmac
import secrets
import time
from typing import Any, MutableMapping, Protocol

SESSION_NAME = "admin_session"
SESSION_EXPIRES = "admin_session_expires"
SESSION_LIFETIME = 24 * 60 * 60


class LoginError(Exception):
    pass


class MissingPasswordError(LoginError):
    pass


class InvalidPasswordError(LoginError):
    pass


class SessionGate(Protocol):
    def is_authorized(self, context: Any) -> bool: ...


class LocalGate:
    def is_authorized(self, context: Any) -> bool:
        return True


class PasswordGate:
    def __init__(self, password: str, lifetime: float = SESSION_LIFETIME):
        self.password = password
        self.lifetime = lifetime

    def check_password(self, password: str | None) -> bool:
        if not password:
            return False
        return hmac.compare_digest(password.encode("utf-8"), self.password.encode("utf-8"))

    def grant(self, context: MutableMapping[str, Any]) -> None:
        context[SESSION_NAME] = secrets.token_urlsafe(32)
        context[SESSION_EXPIRES] = time.time() + self.lifetime

    def login(self, context: MutableMapping[str, Any], password: str | None) -> None:
        if not password:
            raise MissingPasswordError("Password is required")
        if not self.check_password(password):
            raise InvalidPasswordError("Invalid password")
        self.grant(context)

    def logout(self, context: MutableMapping[str, Any]) -> None:
        context.pop(SESSION_NAME, None)
        context.pop(SESSION_EXPIRES, None)

    def is_authorized(self, context: Any) -> bool:
        if not context or not context.get(SESSION_NAME):
            return False
        expires = context.get(SESSION_EXPIRES) or 0
        return time.time() < expires
