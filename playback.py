"""Speech playback of the current translation."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from error_channel import SessionErrorChannel
from errors import PLAYBACK_ERROR, SUBSYSTEM_PLAYBACK
from interfaces import SpeechSynthesizer
from language_pair import LanguagePair
from models import PlaybackEventKind, PlaybackMessage, PlaybackState, Utterance

logger = logging.getLogger(__name__)

StateCallback = Callable[[PlaybackState, PlaybackState], None]
Post = Callable[[object], None]


class PlaybackController:
    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        language_pair: LanguagePair,
        errors: SessionErrorChannel,
        post: Post,
        rate: float = 0.9,
        on_state_change: Optional[StateCallback] = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._pair = language_pair
        self._errors = errors
        self._post = post
        self.rate = rate
        self._on_state_change = on_state_change

        self._state = PlaybackState.IDLE
        self._utterance_id = 0
        self._active_id: Optional[int] = None

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_speaking(self) -> bool:
        return self._state == PlaybackState.SPEAKING

    def speak(self, text: str) -> Optional[int]:
        """Speak ``text`` in the output language, replacing any utterance in progress."""
        if not text or not text.strip():
            return None
        self.cancel()
        self._utterance_id += 1
        utterance_id = self._utterance_id
        utterance = Utterance(text=text, language=self._pair.output_code, rate=self.rate)
        self._active_id = utterance_id
        self._transition(PlaybackState.SPEAKING)
        try:
            self._synthesizer.speak(
                utterance,
                lambda event: self._post(PlaybackMessage(utterance_id=utterance_id, event=event)),
            )
        except Exception as exc:
            logger.warning("speech synthesis failed to start: %s", exc)
            self._finish(error=True)
        return utterance_id

    def cancel(self) -> None:
        if self._active_id is None:
            return
        self._active_id = None
        try:
            self._synthesizer.cancel()
        except Exception as exc:  # pragma: no cover - defensive
            logger.debug("synthesizer cancel raised: %s", exc)
        self._transition(PlaybackState.IDLE)

    def handle_event(self, message: PlaybackMessage) -> None:
        if message.utterance_id != self._active_id:
            return
        kind = message.event.kind
        if kind == PlaybackEventKind.START.value:
            self._errors.recover(SUBSYSTEM_PLAYBACK)
        elif kind == PlaybackEventKind.END.value:
            self._finish()
        elif kind == PlaybackEventKind.ERROR.value:
            logger.warning("playback error: %s", message.event.message)
            self._finish(error=True)

    def _finish(self, error: bool = False) -> None:
        self._active_id = None
        self._transition(PlaybackState.IDLE)
        if error:
            self._errors.set(PLAYBACK_ERROR)

    def _transition(self, to_state: PlaybackState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
