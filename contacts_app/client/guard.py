from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator


class InFlight:
    """
    Прапорець зайнятості для однієї дії користувача.

    `claim()` повертає False, якщо дія вже виконується, тож повторний клік
    ігнорується. Прапорець знімається за будь-якого завершення дії.
    """

    def __init__(self):
        self.active = False

    @contextmanager
    def claim(self) -> Iterator[bool]:
        if self.active:
            yield False
            return
        self.active = True
        try:
            yield True
        finally:
            self.active = False
