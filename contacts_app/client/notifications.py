from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class Toast:
    kind: str
    message: str


class Toaster:
    """Тимчасові сповіщення поверх поточної сторінки."""

    def __init__(self):
        self.toasts: List[Toast] = []

    def success(self, message: str) -> None:
        self.toasts.append(Toast(SUCCESS, message))

    def error(self, message: str) -> None:
        logger.info("error toast: %s", message)
        self.toasts.append(Toast(ERROR, message))

    @property
    def last(self) -> Toast | None:
        return self.toasts[-1] if self.toasts else None

    def clear(self) -> None:
        self.toasts.clear()
