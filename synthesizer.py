"""Speech synthesis using gTTS, decoded with soundfile and played with sounddevice."""

from __future__ import annotations

import io
import logging
import threading
from typing import Optional

from interfaces import PlaybackEventCallback
from models import PlaybackEvent, PlaybackEventKind, Utterance

try:
    from gtts import gTTS
except Exception:  # pragma: no cover
    gTTS = None  # type: ignore

try:
    import soundfile as sf
except Exception:  # pragma: no cover
    sf = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)

# gTTS wants a region for Chinese.
GTTS_LANGUAGES = {"zh": "zh-CN"}


class GTTSSynthesizer:
    """Plays one utterance at a time; ``cancel`` silences the current one.

    Callbacks of a cancelled utterance are suppressed.
    """

    def __init__(self, slow_below_rate: float = 0.75, device: Optional[int] = None) -> None:
        self.slow_below_rate = slow_below_rate
        self.device = device
        self._lock = threading.Lock()
        self._current: Optional[object] = None

    def is_available(self) -> bool:
        return gTTS is not None and sf is not None and sd is not None

    def speak(self, utterance: Utterance, on_event: PlaybackEventCallback) -> None:
        if not self.is_available():
            raise RuntimeError("gTTS, soundfile and sounddevice are required for playback")
        token = object()
        with self._lock:
            self._current = token
        threading.Thread(target=self._worker, args=(utterance, on_event, token), daemon=True).start()

    def cancel(self) -> None:
        with self._lock:
            self._current = None
            if sd is not None:
                sd.stop()

    def _worker(self, utterance: Utterance, on_event: PlaybackEventCallback, token: object) -> None:
        try:
            buf = io.BytesIO()
            gTTS(
                text=utterance.text,
                lang=GTTS_LANGUAGES.get(utterance.language, utterance.language),
                slow=utterance.rate < self.slow_below_rate,
            ).write_to_fp(buf)
            buf.seek(0)
            data, sample_rate = sf.read(buf)
            with self._lock:
                if self._current is not token:
                    return
                sd.play(data, sample_rate, device=self.device)
            on_event(PlaybackEvent(kind=PlaybackEventKind.START.value))
            sd.wait()
        except Exception as exc:
            logger.warning("speech synthesis failed: %s", exc)
            with self._lock:
                failed = self._current is token
                if failed:
                    self._current = None
            if failed:
                on_event(PlaybackEvent(kind=PlaybackEventKind.ERROR.value, message=str(exc)))
            return
        with self._lock:
            finished = self._current is token
            if finished:
                self._current = None
        if finished:
            on_event(PlaybackEvent(kind=PlaybackEventKind.END.value))
