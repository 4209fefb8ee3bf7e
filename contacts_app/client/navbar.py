from __future__ import annotations

from typing import Callable, Optional

from contacts_app import schemas
from contacts_app.client import messages, navigation
from contacts_app.client.navigation import Navigator
from contacts_app.client.session import AuthEvent, SessionProvider


class Navbar:
    """
    Верхня панель з кнопкою виходу.

    Використовується як контекстний менеджер: підписка на сесію діє
    рівно стільки, скільки блок `with`.
    """

    def __init__(self, session: SessionProvider, navigator: Navigator):
        self.session = session
        self.navigator = navigator
        self.user: Optional[schemas.User] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def __enter__(self) -> "Navbar":
        self.mount()
        return self

    def __exit__(self, *exc_info) -> None:
        self.unmount()

    def mount(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.session.subscribe(self._on_session_change)

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_session_change(self, event: AuthEvent, session: Optional[schemas.Session]) -> None:
        self.user = session.user if session else None

    async def sign_out(self) -> None:
        await self.session.sign_out()
        self.navigator.assign(navigation.LOGIN)

    def render(self) -> Optional[dict]:
        if self.user is None:
            return None
        return {"title": messages.APP_TITLE, "sign_out": messages.SIGN_OUT, "email": self.user.email}
