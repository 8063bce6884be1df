"""Microphone capture feeding a recognition engine."""

from __future__ import annotations

import logging
import threading
import time
from queue import Full, Queue
from typing import Any, Optional

from models import AudioFrame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class SoundDeviceRecorder:
    """Pushes 16-bit PCM blocks into a sink queue while capturing.

    ``stop`` closes the stream and, if capture was active, ends the sink
    with ``None`` so the consumer can finish its last utterance.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        device: Optional[int] = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.device = device
        self.dropped_chunks = 0
        self._lock = threading.Lock()
        self._stream: Any = None
        self._sink: Optional[Queue[AudioFrame | None]] = None

    @property
    def running(self) -> bool:
        return self._sink is not None

    @property
    def block_size(self) -> int:
        return int(self.sample_rate * self.chunk_ms / 1000)

    def is_available(self) -> bool:
        return sd is not None and np is not None

    def start(self, sink: Queue[AudioFrame | None]) -> None:
        with self._lock:
            if self._sink is not None:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=self.block_size,
                device=self.device,
                callback=self._on_audio,
            )
            self.dropped_chunks = 0
            self._sink = sink
            self._stream = stream
            stream.start()

    def stop(self) -> None:
        with self._lock:
            sink, self._sink = self._sink, None
            stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()
        if sink is None:
            return
        if self.dropped_chunks:
            logger.info("capture dropped %d blocks", self.dropped_chunks)
        try:
            sink.put_nowait(None)
        except Full:
            logger.warning("capture queue full, end of capture not signalled")

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        sink = self._sink
        if sink is None or np is None:
            return
        if status:
            logger.debug("input stream status: %s", status)
        try:
            sink.put_nowait(
                AudioFrame(
                    pcm16_bytes=np.asarray(indata, dtype=np.int16).tobytes(),
                    sample_rate=self.sample_rate,
                    channels=self.channels,
                    timestamp_ms=int(time.time() * 1000),
                )
            )
        except Full:
            self.dropped_chunks += 1
