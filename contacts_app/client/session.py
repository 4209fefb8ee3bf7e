"""
Single owner of the client's session state.

Components receive a SessionProvider instead of reaching for a shared client:
they read `current_session()` and `subscribe()` to changes.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, List, Optional
from urllib.parse import parse_qs

from contacts_app import schemas
from contacts_app.client.api import ApiError, AuthClient

logger = logging.getLogger(__name__)


class AuthEvent(str, enum.Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    USER_UPDATED = "USER_UPDATED"


Listener = Callable[[AuthEvent, Optional[schemas.Session]], None]


class SessionProvider:
    def __init__(self, auth: AuthClient):
        self.auth = auth
        self._session: Optional[schemas.Session] = None
        self._listeners: List[Listener] = []

    def current_session(self) -> Optional[schemas.Session]:
        return self._session

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Реєструє `listener` і одразу передає йому поточну сесію
        як INITIAL_SESSION.

        :return: Функція для відписки.
        """
        self._listeners.append(listener)
        listener(AuthEvent.INITIAL_SESSION, self._session)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _set_session(self, event: AuthEvent, session: Optional[schemas.Session]) -> None:
        self._session = session
        self.auth.platform.access_token = session.access_token if session else None
        for listener in list(self._listeners):
            listener(event, session)

    async def get_user(self) -> Optional[schemas.User]:
        """
        Запитує у платформи власника поточного токена.

        :return: Користувач або None, якщо сесії немає. Прострочений або
            відкликаний токен скидає локальну сесію.
        """
        if self._session is None:
            return None
        try:
            user = await self.auth.get_user(self._session.access_token)
        except ApiError as exc:
            if exc.status_code == 401:
                logger.info("Stored session rejected, signing out locally")
                self._set_session(AuthEvent.SIGNED_OUT, None)
                return None
            raise
        return user

    async def sign_in_with_password(self, email: str, password: str) -> schemas.Session:
        session = await self.auth.sign_in_with_password(email, password)
        self._set_session(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_up(self, email: str, password: str) -> schemas.Session:
        await self.auth.sign_up(email, password)
        return await self.sign_in_with_password(email, password)

    async def sign_out(self) -> None:
        """Відкликає токен на платформі. Локальна сесія скидається навіть при помилці."""
        session = self._session
        try:
            if session is not None:
                await self.auth.sign_out(session.access_token)
        except ApiError as exc:
            logger.warning("Remote sign-out failed: %s", exc.message)
        finally:
            self._set_session(AuthEvent.SIGNED_OUT, None)

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        await self.auth.reset_password_for_email(email, redirect_to)

    async def exchange_recovery_fragment(self, fragment: str) -> Optional[schemas.Session]:
        """
        Обмінює `access_token=...&type=recovery` з посилання в листі
        на сесію відновлення. Фрагменти інших типів ігноруються.
        """
        params = parse_qs(fragment.lstrip("#"))
        token = params.get("access_token", [None])[0]
        if not token or params.get("type", [None])[0] != "recovery":
            return None
        session = await self.auth.verify_recovery(token)
        self._set_session(AuthEvent.PASSWORD_RECOVERY, session)
        return session

    async def update_password(self, password: str) -> schemas.User:
        if self._session is None:
            raise ApiError("Auth session missing!", 401)
        user = await self.auth.update_user(self._session.access_token, password)
        self._set_session(
            AuthEvent.USER_UPDATED, self._session.model_copy(update={"user": user})
        )
        return user
