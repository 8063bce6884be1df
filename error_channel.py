"""Single slot carrying the most recent user-visible error."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from errors import ERROR_MESSAGES, ERROR_SUBSYSTEMS
from models import ErrorSlot

logger = logging.getLogger(__name__)


class SessionErrorChannel:
    def __init__(self, on_change: Optional[Callable[[ErrorSlot], None]] = None) -> None:
        self._slot = ErrorSlot()
        self._on_change = on_change

    @property
    def message(self) -> Optional[str]:
        return self._slot.message

    @property
    def code(self) -> str:
        return self._slot.code

    @property
    def subsystem(self) -> str:
        return self._slot.subsystem

    def snapshot(self) -> ErrorSlot:
        return ErrorSlot(self._slot.message, self._slot.code, self._slot.subsystem)

    def set(self, code: str, message: Optional[str] = None) -> None:
        """Overwrite the slot; last write wins."""
        text = message or ERROR_MESSAGES.get(code, code)
        self._slot = ErrorSlot(text, code, ERROR_SUBSYSTEMS.get(code, ""))
        logger.info("error %s: %s", code, text)
        self._notify()

    def clear(self) -> None:
        if self._slot.message is None:
            return
        self._slot = ErrorSlot()
        self._notify()

    def recover(self, subsystem: str) -> None:
        """Clear the slot only if it holds an error from ``subsystem``."""
        if self._slot.message is not None and self._slot.subsystem == subsystem:
            self.clear()

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self.snapshot())
