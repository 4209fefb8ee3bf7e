"""
Збирає клієнт: одне зʼєднання з платформою, один SessionProvider,
один Navigator та один Toaster, спільні для всіх сторінок.
"""

from __future__ import annotations

import logging

import httpx

from contacts_app.client.api import AuthClient, ContactsTable, PlatformClient
from contacts_app.client.contacts import Confirm, ContactListView
from contacts_app.client.gate import SessionGate
from contacts_app.client.login import LoginForm
from contacts_app.client.navbar import Navbar
from contacts_app.client.navigation import Navigator
from contacts_app.client.notifications import Toaster
from contacts_app.client.recovery import RequestResetForm, UpdatePasswordForm
from contacts_app.client.session import SessionProvider

logger = logging.getLogger(__name__)


class ClientApp:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        site_url: str | None = None,
    ):
        self.platform = PlatformClient(base_url, transport=transport)
        self.session = SessionProvider(AuthClient(self.platform))
        self.table = ContactsTable(self.platform)
        self.navigator = Navigator(on_full_reload=self._on_full_reload)
        self.toaster = Toaster()
        self.site_url = site_url

    def _on_full_reload(self, path: str) -> None:
        # Повне перезавантаження сторінки: лишається тільки сесія на платформі.
        logger.debug("Discarding client state for full load of %s", path)
        self.toaster.clear()

    def gate(self) -> SessionGate:
        return SessionGate(self.session, self.navigator)

    def navbar(self) -> Navbar:
        return Navbar(self.session, self.navigator)

    def login(self) -> LoginForm:
        return LoginForm(self.session, self.navigator)

    def dashboard(self, confirm: Confirm) -> ContactListView:
        return ContactListView(self.session, self.table, self.navigator, self.toaster, confirm)

    def forgot_password(self) -> RequestResetForm:
        return RequestResetForm(self.session, self.site_url)

    def update_password(self, redirect_delay: float | None = None) -> UpdatePasswordForm:
        if redirect_delay is None:
            return UpdatePasswordForm(self.session, self.navigator)
        return UpdatePasswordForm(self.session, self.navigator, redirect_delay=redirect_delay)

    async def aclose(self) -> None:
        await self.platform.aclose()

    async def __aenter__(self) -> "ClientApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
