from __future__ import annotations

import logging

from contacts_app.client import messages, navigation
from contacts_app.client.api import ApiError
from contacts_app.client.navigation import Navigator
from contacts_app.client.session import SessionProvider

logger = logging.getLogger(__name__)


class SessionGate:
    """Маршрут `/`: відправляє відвідувача на дашборд або на логін."""

    def __init__(self, session: SessionProvider, navigator: Navigator):
        self.session = session
        self.navigator = navigator

    async def mount(self) -> str:
        try:
            user = await self.session.get_user()
        except ApiError as exc:
            logger.info("Session lookup failed, treating as signed out: %s", exc.message)
            user = None

        target = navigation.DASHBOARD if user else navigation.LOGIN
        self.navigator.push(target)
        return target

    def render(self) -> str:
        return messages.LOADING
