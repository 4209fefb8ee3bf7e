"""
Сторінки відновлення пароля: запит посилання та встановлення нового пароля.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from contacts_app.client import messages, navigation
from contacts_app.client.api import ApiError
from contacts_app.client.guard import InFlight
from contacts_app.client.navigation import Navigator
from contacts_app.client.notifications import ERROR, SUCCESS
from contacts_app.client.session import SessionProvider
from contacts_app.config import get_settings
from contacts_app.schemas import MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)

REDIRECT_DELAY_SECONDS = 2.0


class FormStatus(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    DONE = "done"


@dataclass(frozen=True)
class FormMessage:
    text: str
    kind: str


class _Form:
    def __init__(self):
        self.status = FormStatus.IDLE
        self.message: Optional[FormMessage] = None
        self._in_flight = InFlight()

    @property
    def submit_disabled(self) -> bool:
        return self._in_flight.active

    def _start(self) -> None:
        self.status = FormStatus.SUBMITTING
        self.message = None

    def _done(self, text: str, kind: str) -> None:
        self.status = FormStatus.DONE
        self.message = FormMessage(text, kind)


class RequestResetForm(_Form):
    """`/forgot-password`: отримує email і просить платформу надіслати посилання."""

    def __init__(self, session: SessionProvider, site_url: str | None = None):
        super().__init__()
        self.session = session
        self.site_url = (site_url or get_settings().site_url).rstrip("/")

    @property
    def callback_url(self) -> str:
        return f"{self.site_url}{navigation.UPDATE_PASSWORD}"

    async def submit(self, email: str) -> None:
        with self._in_flight.claim() as acquired:
            if not acquired:
                return
            self._start()
            try:
                await self.session.reset_password_for_email(email, self.callback_url)
            except ApiError as exc:
                logger.info("Reset email request failed: %s", exc.message)
                self._done(exc.message, ERROR)
                return
            self._done(messages.RESET_EMAIL_SENT, SUCCESS)


class UpdatePasswordForm(_Form):
    """
    `/update-password`: сторінка, на яку веде посилання з листа, поки
    платформа тримає відвідувача в режимі відновлення.
    """

    min_length = MIN_PASSWORD_LENGTH

    def __init__(
        self,
        session: SessionProvider,
        navigator: Navigator,
        redirect_delay: float = REDIRECT_DELAY_SECONDS,
    ):
        super().__init__()
        self.session = session
        self.navigator = navigator
        self.redirect_delay = redirect_delay
        self._redirect: Optional[asyncio.TimerHandle] = None

    async def mount(self, fragment: str = "") -> None:
        if not fragment:
            return
        try:
            await self.session.exchange_recovery_fragment(fragment)
        except ApiError as exc:
            logger.info("Recovery link rejected: %s", exc.message)
            self._done(exc.message, ERROR)

    def unmount(self) -> None:
        if self._redirect is not None:
            self._redirect.cancel()
            self._redirect = None

    async def submit(self, password: str, confirmation: str) -> None:
        if password != confirmation:
            self._done(messages.PASSWORDS_DO_NOT_MATCH, ERROR)
            return

        with self._in_flight.claim() as acquired:
            if not acquired:
                return
            self._start()
            try:
                await self.session.update_password(password)
            except ApiError as exc:
                logger.info("Password update failed: %s", exc.message)
                self._done(exc.message or messages.PASSWORD_UPDATE_ERROR, ERROR)
                return
            self._done(messages.PASSWORD_UPDATED, SUCCESS)
            self._redirect = self.navigator.push_later(navigation.LOGIN, self.redirect_delay)
