"""Session object and single-threaded event dispatcher."""

from __future__ import annotations

import logging
from queue import Empty, Queue
from typing import Callable, Optional

from error_channel import SessionErrorChannel
from errors import RECOGNITION_UNSUPPORTED
from interfaces import MicrophonePermission, RecognitionEngine, SpeechSynthesizer, TranslationProvider
from language_pair import LanguagePair
from languages import DEFAULT_INPUT_LOCALE, DEFAULT_OUTPUT_CODE
from models import (
    EngineMessage,
    PermissionResolved,
    PlaybackMessage,
    RecognitionState,
    SessionSnapshot,
    TranslationCompleted,
)
from playback import PlaybackController
from recognition_session import InterimCallback, RecognitionSession
from transcript import TranscriptAccumulator
from translation_coordinator import TranslationCoordinator

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[SessionSnapshot], None]


class SessionController:
    """Owns every piece of session state and applies all transitions.

    Adapters report completions from their own threads through ``post``;
    ``dispatch_pending`` then applies them one at a time on the caller's
    thread, so no component ever sees a transition interleaved with another.
    """

    def __init__(
        self,
        engine: Optional[RecognitionEngine],
        permission: MicrophonePermission,
        translator: TranslationProvider,
        synthesizer: SpeechSynthesizer,
        input_language: str = DEFAULT_INPUT_LOCALE,
        output_language: str = DEFAULT_OUTPUT_CODE,
        discard_stale_translations: bool = True,
        speech_rate: float = 0.9,
        on_change: Optional[ChangeCallback] = None,
        on_interim: Optional[InterimCallback] = None,
    ) -> None:
        self._events: Queue[object] = Queue()
        self._on_change = on_change

        self.errors = SessionErrorChannel()
        self.languages = LanguagePair(input_language, output_language)
        self.transcript = TranscriptAccumulator()
        self.translation = TranslationCoordinator(
            provider=translator,
            language_pair=self.languages,
            transcript=self.transcript,
            errors=self.errors,
            post=self.post,
            discard_stale=discard_stale_translations,
        )
        self.playback = PlaybackController(
            synthesizer=synthesizer,
            language_pair=self.languages,
            errors=self.errors,
            post=self.post,
            rate=speech_rate,
        )
        self.recognition = RecognitionSession(
            engine=engine,
            permission=permission,
            language_pair=self.languages,
            transcript=self.transcript,
            translator=self.translation,
            errors=self.errors,
            post=self.post,
            on_interim=on_interim,
        )
        self.languages.on_input_change = self._on_input_change

        if not self.recognition.supported:
            self.errors.set(RECOGNITION_UNSUPPORTED)

    # ------------------------------------------------------------------
    # Event queue
    # ------------------------------------------------------------------

    def post(self, message: object) -> None:
        """Queue a completion message; safe to call from any thread."""
        self._events.put(message)

    def dispatch_pending(self) -> int:
        """Apply every queued message in arrival order."""
        count = 0
        while True:
            try:
                message = self._events.get_nowait()
            except Empty:
                break
            self._dispatch(message)
            count += 1
        if count:
            self._notify()
        return count

    def dispatch_next(self, timeout: Optional[float] = None) -> bool:
        """Block for one message and apply it; False on timeout."""
        try:
            message = self._events.get(timeout=timeout)
        except Empty:
            return False
        self._dispatch(message)
        self._notify()
        return True

    def _dispatch(self, message: object) -> None:
        if isinstance(message, EngineMessage):
            self.recognition.handle_engine_event(message)
        elif isinstance(message, PermissionResolved):
            self.recognition.handle_permission(message)
        elif isinstance(message, TranslationCompleted):
            self.translation.handle_completed(message)
        elif isinstance(message, PlaybackMessage):
            self.playback.handle_event(message)
        else:
            logger.warning("unknown session message: %r", message)

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    @property
    def is_listening(self) -> bool:
        return self.recognition.state == RecognitionState.LISTENING

    @property
    def can_speak(self) -> bool:
        return bool(self.transcript.translated_text) and not self.playback.is_speaking

    def start_listening(self) -> None:
        self.recognition.start()
        self._notify()

    def stop_listening(self) -> None:
        self.recognition.stop()
        self._notify()

    def toggle_listening(self) -> None:
        if self.recognition.state in (RecognitionState.LISTENING, RecognitionState.AWAITING_PERMISSION):
            self.stop_listening()
        else:
            self.start_listening()

    def set_input_language(self, locale: str) -> None:
        self.languages.set_input(locale)
        self._notify()

    def set_output_language(self, code: str) -> None:
        self.languages.set_output(code)
        self._notify()

    def swap_languages(self) -> bool:
        swapped = self.languages.swap()
        self._notify()
        return swapped

    def speak_translation(self) -> bool:
        """Speak the current translation unless there is none or playback is busy."""
        if not self.can_speak:
            return False
        self.playback.speak(self.transcript.translated_text)
        self._notify()
        return True

    def clear(self) -> None:
        self.transcript.clear()
        self.translation.reset()
        self.errors.clear()
        self._notify()

    def shutdown(self) -> None:
        self.recognition.stop()
        self.playback.cancel()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            recognition_state=self.recognition.state,
            playback_state=self.playback.state,
            input_language=self.languages.input_locale,
            output_language=self.languages.output_code,
            transcript=self.transcript.snapshot(),
            translation=self.translation.state(),
            error=self.errors.snapshot(),
            can_speak=self.can_speak,
        )

    def _on_input_change(self, previous: str, current: str) -> None:
        self.recognition.reconfigure()

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self.snapshot())
