"""Continuous speech recognition session with auto-restart."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from error_channel import SessionErrorChannel
from errors import (
    ENGINE_AUTH_CODES,
    ENGINE_PERMISSION_CODES,
    PERMISSION_DENIED,
    RECOGNITION_AUTH_FAILED,
    RECOGNITION_ENGINE_ERROR,
    RECOGNITION_START_FAILED,
    RECOGNITION_UNSUPPORTED,
    SUBSYSTEM_RECOGNITION,
    engine_error_message,
)
from interfaces import MicrophonePermission, RecognitionEngine
from language_pair import LanguagePair
from models import (
    EngineEvent,
    EngineEventKind,
    EngineMessage,
    PermissionResolved,
    RecognitionConfig,
    RecognitionState,
)
from transcript import TranscriptAccumulator
from translation_coordinator import TranslationCoordinator

logger = logging.getLogger(__name__)

StateCallback = Callable[[RecognitionState, RecognitionState], None]
InterimCallback = Callable[[str], None]
Post = Callable[[object], None]


class RecognitionSession:
    """Owns the listening state and the single live engine handle.

    Every engine sub-session gets a new generation number. Stopping,
    reconfiguring and auto-restarting all retire the current generation, so
    late callbacks from an engine that was already told to stop are dropped
    on dispatch.
    """

    def __init__(
        self,
        engine: Optional[RecognitionEngine],
        permission: MicrophonePermission,
        language_pair: LanguagePair,
        transcript: TranscriptAccumulator,
        translator: TranslationCoordinator,
        errors: SessionErrorChannel,
        post: Post,
        on_state_change: Optional[StateCallback] = None,
        on_interim: Optional[InterimCallback] = None,
    ) -> None:
        self._engine = engine
        self._permission = permission
        self._pair = language_pair
        self._transcript = transcript
        self._translator = translator
        self._errors = errors
        self._post = post
        self._on_state_change = on_state_change
        self._on_interim = on_interim

        self._state = RecognitionState.IDLE
        self._generation = 0
        self._permission_ticket = 0
        self.restart_count = 0

    @property
    def state(self) -> RecognitionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def supported(self) -> bool:
        return self._engine is not None and self._engine.is_available()

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._state in (RecognitionState.AWAITING_PERMISSION, RecognitionState.LISTENING):
            return
        if not self.supported:
            self._errors.set(RECOGNITION_UNSUPPORTED)
            return
        self._errors.recover(SUBSYSTEM_RECOGNITION)
        self._permission_ticket += 1
        ticket = self._permission_ticket
        self._transition(RecognitionState.AWAITING_PERMISSION)
        self._permission.request(
            lambda granted: self._post(PermissionResolved(ticket=ticket, granted=granted))
        )

    def stop(self) -> None:
        if self._state == RecognitionState.LISTENING:
            self._transition(RecognitionState.IDLE)
            self._stop_engine()
        elif self._state in (RecognitionState.AWAITING_PERMISSION, RecognitionState.ERROR):
            self._transition(RecognitionState.IDLE)

    def reconfigure(self) -> None:
        """Tear down and rebuild the engine for the current input locale."""
        if self._state != RecognitionState.LISTENING:
            return
        logger.info("restarting recognition for %s", self._pair.input_locale)
        self._stop_engine()
        try:
            self._start_engine()
        except Exception as exc:
            logger.warning("recognition restart failed: %s", exc)
            self._fail(RECOGNITION_START_FAILED)

    # ------------------------------------------------------------------
    # Dispatched events
    # ------------------------------------------------------------------

    def handle_permission(self, message: PermissionResolved) -> None:
        if message.ticket != self._permission_ticket:
            return
        if self._state != RecognitionState.AWAITING_PERMISSION:
            return
        if not message.granted:
            self._errors.set(PERMISSION_DENIED)
            self._transition(RecognitionState.IDLE)
            return
        try:
            self._start_engine()
        except Exception as exc:
            logger.warning("failed to start recognition: %s", exc)
            self._errors.set(RECOGNITION_START_FAILED)
            self._transition(RecognitionState.IDLE)
            return
        self._transition(RecognitionState.LISTENING)

    def handle_engine_event(self, message: EngineMessage) -> None:
        if message.generation != self._generation:
            return
        event = message.event
        if event.kind == EngineEventKind.END.value:
            self._handle_end()
            return
        if self._state != RecognitionState.LISTENING:
            return
        if event.kind == EngineEventKind.RESULT.value:
            self._handle_results(event)
        elif event.kind == EngineEventKind.ERROR.value:
            logger.warning("recognition engine error %s: %s", event.code, event.message)
            if event.code in ENGINE_PERMISSION_CODES:
                self._fail(PERMISSION_DENIED)
            elif event.code in ENGINE_AUTH_CODES:
                self._fail(RECOGNITION_AUTH_FAILED)
            else:
                self._fail(RECOGNITION_ENGINE_ERROR, engine_error_message(event.code))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _handle_results(self, event: EngineEvent) -> None:
        interim: List[str] = []
        for result in event.results[event.result_index:]:
            text = result.transcript
            if not result.is_final:
                interim.append(text)
                continue
            if not text.strip():
                continue
            full_text = self._transcript.append(text)
            self._translator.translate(full_text)
        if self._on_interim:
            self._on_interim("".join(interim))

    def _handle_end(self) -> None:
        if self._state != RecognitionState.LISTENING:
            return
        # The engine ended on its own (session limit, silence); keep listening.
        self.restart_count += 1
        logger.debug("engine session ended, restarting (%d)", self.restart_count)
        try:
            self._start_engine()
        except Exception as exc:
            logger.warning("recognition auto-restart failed: %s", exc)
            self._fail(RECOGNITION_ENGINE_ERROR, engine_error_message("restart-failed"))

    def _start_engine(self) -> None:
        if self._engine is None:
            raise RuntimeError("no recognition engine configured")
        self._generation += 1
        generation = self._generation
        config = RecognitionConfig(language=self._pair.input_locale)
        self._engine.start(
            config,
            lambda event: self._post(EngineMessage(generation=generation, event=event)),
        )

    def _stop_engine(self) -> None:
        self._generation += 1
        if self._engine is None:
            return
        try:
            self._engine.stop()
        except Exception as exc:  # pragma: no cover - defensive
            logger.debug("engine stop raised: %s", exc)

    def _fail(self, code: str, message: Optional[str] = None) -> None:
        self._transition(RecognitionState.ERROR)
        self._errors.set(code, message)
        self._stop_engine()

    def _transition(self, to_state: RecognitionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("recognition %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
