from __future__ import annotations

import logging
from typing import Optional

from contacts_app.client import messages, navigation
from contacts_app.client.api import ApiError
from contacts_app.client.guard import InFlight
from contacts_app.client.navigation import Navigator
from contacts_app.client.session import SessionProvider

logger = logging.getLogger(__name__)


class LoginForm:
    """`/login`: вхід або реєстрація, потім перехід на дашборд."""

    def __init__(self, session: SessionProvider, navigator: Navigator):
        self.session = session
        self.navigator = navigator
        self.error: Optional[str] = None
        self._in_flight = InFlight()

    @property
    def submit_disabled(self) -> bool:
        return self._in_flight.active

    async def sign_in(self, email: str, password: str) -> bool:
        return await self._run(self.session.sign_in_with_password, email, password)

    async def sign_up(self, email: str, password: str) -> bool:
        return await self._run(self.session.sign_up, email, password)

    async def _run(self, action, email: str, password: str) -> bool:
        with self._in_flight.claim() as acquired:
            if not acquired:
                return False
            self.error = None
            try:
                await action(email, password)
            except ApiError as exc:
                logger.info("Login failed: %s", exc.message)
                self.error = exc.message or messages.LOGIN_ERROR
                return False
        self.navigator.push(navigation.DASHBOARD)
        return True
