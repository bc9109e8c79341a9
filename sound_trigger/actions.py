"""Trigger actions that act on the rest of the desktop."""

from __future__ import annotations

import logging
from typing import Any

log = logging.getLogger(__name__)


class KeyPressAction:
    """Tap a keyboard key every time it is called.

    ``key`` is either a single character or the name of a special key as
    understood by :class:`pynput.keyboard.Key` (``"space"``, ``"enter"``,
    ``"right"``, ...).
    """

    def __init__(self, key: str, kb: Any = None) -> None:
        if kb is None:
            from pynput.keyboard import Controller

            kb = Controller()
        self.kb = kb
        self.key = self._resolve(key)

    @staticmethod
    def _resolve(key: str) -> Any:
        if not key:
            raise ValueError("key must not be empty")
        if len(key) == 1:
            return key
        from pynput.keyboard import Key as OSKey

        try:
            return OSKey[key.lower()]
        except KeyError:
            raise ValueError(f"Unknown key name {key!r}") from None

    def __call__(self) -> None:
        log.debug("Tapping %s", self.key)
        self.kb.press(self.key)
        self.kb.release(self.key)
