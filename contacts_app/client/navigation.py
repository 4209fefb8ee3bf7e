"""
Маршрутизація на боці клієнта.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

ROOT = "/"
LOGIN = "/login"
DASHBOARD = "/dashboard"
FORGOT_PASSWORD = "/forgot-password"
UPDATE_PASSWORD = "/update-password"


@dataclass(frozen=True)
class Visit:
    path: str
    full_reload: bool = False


class Navigator:
    """
    Запамʼятовує, куди відправлено клієнта.

    `push` це перехід без перезавантаження. `assign` це повне завантаження
    сторінки: викликається `on_full_reload`, і власник скидає стан у памʼяті.
    """

    def __init__(self, on_full_reload: Optional[Callable[[str], None]] = None):
        self.history: List[Visit] = []
        self.on_full_reload = on_full_reload

    @property
    def current(self) -> Optional[str]:
        return self.history[-1].path if self.history else None

    def push(self, path: str) -> None:
        logger.debug("navigate -> %s", path)
        self.history.append(Visit(path))

    def assign(self, path: str) -> None:
        logger.debug("full navigation -> %s", path)
        self.history.append(Visit(path, full_reload=True))
        if self.on_full_reload is not None:
            self.on_full_reload(path)

    def push_later(self, path: str, delay: float) -> asyncio.TimerHandle:
        """
        Планує перехід через `delay` секунд у поточному event loop.

        :return: TimerHandle; `cancel()` скасовує перехід.
        """
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self.push, path)
