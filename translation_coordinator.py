"""Issues translation requests and reconciles their responses."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Set

from error_channel import SessionErrorChannel
from errors import SUBSYSTEM_TRANSLATION, TRANSLATION_UNAVAILABLE
from interfaces import TranslationProvider
from language_pair import LanguagePair
from models import TranslationCompleted, TranslationRequestState
from transcript import TranscriptAccumulator

logger = logging.getLogger(__name__)

Post = Callable[[object], None]


class TranslationCoordinator:
    """Translate the cumulative transcript, one request per final segment.

    Requests are never debounced or cancelled, so several may be in flight
    at once. Each gets a sequence number; with ``discard_stale`` a response
    older than the newest one already applied is dropped. Without it the
    last response to arrive wins, whatever its order of issue.
    """

    def __init__(
        self,
        provider: TranslationProvider,
        language_pair: LanguagePair,
        transcript: TranscriptAccumulator,
        errors: SessionErrorChannel,
        post: Post,
        discard_stale: bool = True,
    ) -> None:
        self._provider = provider
        self._pair = language_pair
        self._transcript = transcript
        self._errors = errors
        self._post = post
        self.discard_stale = discard_stale

        self._sequence = 0
        self._applied_sequence = 0
        self._floor = 0
        self._pending: Set[int] = set()
        self._requested_text: Optional[str] = None

    @property
    def in_flight(self) -> bool:
        return bool(self._pending)

    @property
    def requested_text(self) -> Optional[str]:
        return self._requested_text

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def state(self) -> TranslationRequestState:
        return TranslationRequestState(in_flight=self.in_flight, requested_text=self._requested_text)

    def translate(self, text: str) -> Optional[int]:
        """Issue one request for ``text``; returns its sequence number."""
        if not text or not text.strip():
            return None
        self._sequence += 1
        sequence = self._sequence
        source = self._pair.source_code
        target = self._pair.output_code
        self._pending.add(sequence)
        self._requested_text = text
        logger.debug("translation #%d %s|%s (%d chars)", sequence, source, target, len(text))
        try:
            self._provider.request(
                text,
                source,
                target,
                lambda outcome: self._post(TranslationCompleted(sequence=sequence, outcome=outcome)),
            )
        except Exception as exc:
            logger.warning("translation #%d could not be issued: %s", sequence, exc)
            self._pending.discard(sequence)
            self._errors.set(TRANSLATION_UNAVAILABLE)
        return sequence

    def handle_completed(self, message: TranslationCompleted) -> None:
        sequence = message.sequence
        outcome = message.outcome
        self._pending.discard(sequence)

        if self._is_stale(sequence):
            logger.debug("discarding stale translation #%d", sequence)
            return

        if outcome.success:
            self._applied_sequence = max(self._applied_sequence, sequence)
            self._transcript.set_translation(outcome.translated_text)
            self._errors.recover(SUBSYSTEM_TRANSLATION)
            return

        logger.warning("translation #%d failed (%s): %s", sequence, outcome.code, outcome.message)
        self._errors.set(outcome.code or TRANSLATION_UNAVAILABLE)

    def reset(self) -> None:
        """Make every request issued so far stale."""
        self._floor = self._sequence
        self._requested_text = None

    def _is_stale(self, sequence: int) -> bool:
        if sequence <= self._floor:
            return True
        return self.discard_stale and sequence < self._applied_sequence

