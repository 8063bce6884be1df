"""Running original-language transcript and its latest translation."""

from __future__ import annotations

from models import TranscriptState


class TranscriptAccumulator:
    SEPARATOR = " "

    def __init__(self) -> None:
        self._state = TranscriptState()

    @property
    def original_text(self) -> str:
        return self._state.original_text

    @property
    def translated_text(self) -> str:
        return self._state.translated_text

    def append(self, segment: str) -> str:
        """Append one final segment and return the whole transcript."""
        self._state.original_text += segment + self.SEPARATOR
        return self._state.original_text

    def set_translation(self, text: str) -> None:
        self._state.translated_text = text

    def clear(self) -> None:
        self._state = TranscriptState()

    def snapshot(self) -> TranscriptState:
        return TranscriptState(self._state.original_text, self._state.translated_text)
