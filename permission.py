"""Microphone permission probe."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class SoundDeviceMicrophonePermission:
    """Opens an input stream and closes it straight away.

    Opening the stream is what makes the OS ask the user for access; if it
    fails, access is treated as denied. Nothing stays open afterwards; the
    recognition engine does its own capture.
    """

    def __init__(self, sample_rate: int = 16000, device: Optional[int] = None) -> None:
        self.sample_rate = sample_rate
        self.device = device

    def request(self, on_result: Callable[[bool], None]) -> None:
        threading.Thread(target=lambda: on_result(self.check()), daemon=True).start()

    def check(self) -> bool:
        if sd is None:
            return False
        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="int16",
                device=self.device,
            )
            stream.close()
        except Exception as exc:
            logger.warning("microphone unavailable: %s", exc)
            return False
        return True
