"""Continuous speech recognition engine using DashScope qwen3-asr-flash.

qwen3-asr-flash only accepts complete audio, so the engine cuts the
microphone stream into utterances on silence (``UtteranceSegmenter``) and
sends each one as a base64 WAV with ``stream=True``. Streamed chunks are
reported as interim results and the last one as the final result, in the
same cumulative ``results`` shape a browser recognition engine uses.

Like browser engines, a sub-session ends on its own after a stretch of
silence or a maximum duration; ``end`` is emitted whenever the worker
exits, including after ``stop()``.
"""

from __future__ import annotations

import base64
import io
import logging
import os
import threading
import time
import wave
from queue import Empty, Queue
from typing import Callable, List, Optional

from interfaces import EngineEventCallback
from models import (
    AudioFrame,
    EngineEvent,
    EngineEventKind,
    RecognitionAlternative,
    RecognitionConfig,
    RecognitionResult,
)
from recorder import SoundDeviceRecorder

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

logger = logging.getLogger(__name__)

# Error codes reported in EngineEvent.code
NETWORK = "network"
AUTH_FAILED = "auth-failed"
SERVICE_UNAVAILABLE = "service-unavailable"
AUDIO_CAPTURE = "audio-capture"
BAD_RESPONSE = "bad-response"


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return base64.b64encode(buf.getvalue()).decode("ascii")


def frame_level(pcm: bytes) -> float:
    """RMS amplitude of 16-bit PCM."""
    if np is None or len(pcm) < 2:
        return 0.0
    samples = np.frombuffer(pcm[: len(pcm) - len(pcm) % 2], dtype=np.int16).astype(np.float64)
    return float(np.sqrt(np.mean(np.square(samples))))


class UtteranceSegmenter:
    """Collects voiced audio and releases it once the speaker pauses."""

    def __init__(
        self,
        silence_threshold: float = 500.0,
        min_silence_ms: int = 700,
        max_utterance_ms: int = 15000,
    ) -> None:
        self.silence_threshold = silence_threshold
        self.min_silence_ms = min_silence_ms
        self.max_utterance_ms = max_utterance_ms
        self.sample_rate = 16000
        self.channels = 1
        self._buffer = bytearray()
        self._voiced = False
        self._silence_ms = 0.0
        self._length_ms = 0.0

    @property
    def has_speech(self) -> bool:
        return self._voiced

    def push(self, frame: AudioFrame) -> Optional[bytes]:
        self.sample_rate = frame.sample_rate
        self.channels = frame.channels
        samples = len(frame.pcm16_bytes) // (2 * max(frame.channels, 1))
        duration_ms = samples * 1000.0 / frame.sample_rate

        if frame_level(frame.pcm16_bytes) >= self.silence_threshold:
            self._voiced = True
            self._silence_ms = 0.0
        elif self._voiced:
            self._silence_ms += duration_ms
        else:
            return None

        self._buffer.extend(frame.pcm16_bytes)
        self._length_ms += duration_ms
        if self._silence_ms >= self.min_silence_ms or self._length_ms >= self.max_utterance_ms:
            return self.flush()
        return None

    def flush(self) -> Optional[bytes]:
        pcm = bytes(self._buffer) if self._voiced else None
        self._buffer = bytearray()
        self._voiced = False
        self._silence_ms = 0.0
        self._length_ms = 0.0
        return pcm


class DashscopeRecognitionEngine:
    def __init__(
        self,
        api_key: str,
        recorder: Optional[SoundDeviceRecorder] = None,
        model: str = "qwen3-asr-flash",
        request_timeout_s: float = 10.0,
        idle_timeout_s: float = 8.0,
        max_session_s: float = 60.0,
        segmenter_factory: Callable[[], UtteranceSegmenter] = UtteranceSegmenter,
        queue_maxsize: int = 100,
    ) -> None:
        self._api_key = api_key
        self._recorder = recorder or SoundDeviceRecorder()
        self._model = model
        self._request_timeout_s = request_timeout_s
        self._idle_timeout_s = idle_timeout_s
        self._max_session_s = max_session_s
        self._segmenter_factory = segmenter_factory
        self._queue_maxsize = queue_maxsize
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def is_available(self) -> bool:
        return dashscope is not None and self._recorder.is_available()

    def start(self, config: RecognitionConfig, on_event: EngineEventCallback) -> None:
        if self._thread and self._thread.is_alive() and not self._stop_event.is_set():
            # The previous worker has already reported ``end`` and is exiting.
            self._thread.join(timeout=1.0)
            if self._thread.is_alive():
                raise RuntimeError("recognition is already running")
        audio_queue: Queue[AudioFrame | None] = Queue(maxsize=self._queue_maxsize)
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._recorder.start(audio_queue)
        self._thread = threading.Thread(
            target=self._worker,
            args=(config, audio_queue, on_event, stop_event),
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        self._recorder.stop()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=0.5)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(
        self,
        config: RecognitionConfig,
        audio_queue: Queue[AudioFrame | None],
        on_event: EngineEventCallback,
        stop_event: threading.Event,
    ) -> None:
        segmenter = self._segmenter_factory()
        results: List[RecognitionResult] = []
        started = time.monotonic()
        last_speech = started
        try:
            while not stop_event.is_set():
                now = time.monotonic()
                if now - started >= self._max_session_s or now - last_speech >= self._idle_timeout_s:
                    break
                try:
                    frame = audio_queue.get(timeout=0.2)
                except Empty:
                    continue
                if frame is None:
                    break
                pcm = segmenter.push(frame)
                if segmenter.has_speech:
                    last_speech = time.monotonic()
                if pcm and not self._recognize(pcm, segmenter, config, results, on_event, stop_event):
                    return

            if not stop_event.is_set():
                # Session limit reached: finish what the speaker already said.
                pcm = segmenter.flush()
                if pcm:
                    self._recognize(pcm, segmenter, config, results, on_event, stop_event)
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("recognition worker failed")
            on_event(EngineEvent(kind=EngineEventKind.ERROR.value, code=AUDIO_CAPTURE, message=str(exc)))
        finally:
            if self._stop_event is stop_event:
                self._recorder.stop()
            on_event(EngineEvent(kind=EngineEventKind.END.value))

    def _recognize(
        self,
        pcm: bytes,
        segmenter: UtteranceSegmenter,
        config: RecognitionConfig,
        results: List[RecognitionResult],
        on_event: EngineEventCallback,
        stop_event: threading.Event,
    ) -> bool:
        """Stream one utterance; returns False if the session must end."""
        if dashscope is None:
            on_event(
                EngineEvent(
                    kind=EngineEventKind.ERROR.value,
                    code=SERVICE_UNAVAILABLE,
                    message="dashscope is not installed",
                )
            )
            return False

        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            on_event(
                EngineEvent(
                    kind=EngineEventKind.ERROR.value,
                    code=AUTH_FAILED,
                    message="No API key configured",
                )
            )
            return False

        wav_b64 = _pcm_to_wav_base64(pcm, segmenter.sample_rate, segmenter.channels)
        index = len(results)
        latest_text = ""
        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": wav_b64}]},
                ],
                result_format="message",
                asr_options={"enable_itn": False, "language": config.language.split("-")[0]},
                stream=True,
                timeout=self._request_timeout_s,
            )
            for chunk in response:
                if stop_event.is_set():
                    return False
                text = self._extract_text(chunk)
                if text and config.interim_results:
                    latest_text = text
                    interim = RecognitionResult([RecognitionAlternative(text)], is_final=False)
                    on_event(
                        EngineEvent(
                            kind=EngineEventKind.RESULT.value,
                            result_index=index,
                            results=results + [interim],
                        )
                    )
                elif text:
                    latest_text = text
        except Exception as exc:
            on_event(self._to_error_event(exc))
            return False

        if stop_event.is_set():
            return False
        results.append(RecognitionResult([RecognitionAlternative(latest_text, 1.0)], is_final=True))
        on_event(
            EngineEvent(kind=EngineEventKind.RESULT.value, result_index=index, results=list(results))
        )
        return True

    def _extract_text(self, chunk: object) -> str:
        """Pull text from a dashscope streaming chunk dict."""
        if isinstance(chunk, dict):
            output = chunk.get("output", {})
            choices = output.get("choices", [])
            if not choices:
                return ""
            message = choices[0].get("message", {})
            content = message.get("content", [])
            if not content:
                return ""
            value = content[0]
            if isinstance(value, dict):
                return str(value.get("text", ""))
        return ""

    def _to_error_event(self, exc: Exception) -> EngineEvent:
        """Map an SDK/network exception to an engine error event."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low:
            code = AUTH_FAILED
        elif "timeout" in low or "network" in low or "connection" in low:
            code = NETWORK
        else:
            code = BAD_RESPONSE
        return EngineEvent(kind=EngineEventKind.ERROR.value, code=code, message=message)
