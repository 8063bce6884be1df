"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class RecognitionState(str, Enum):
    IDLE = "IDLE"
    AWAITING_PERMISSION = "AWAITING_PERMISSION"
    LISTENING = "LISTENING"
    ERROR = "ERROR"


class PlaybackState(str, Enum):
    IDLE = "IDLE"
    SPEAKING = "SPEAKING"


class EngineEventKind(str, Enum):
    RESULT = "result"
    ERROR = "error"
    END = "end"


class PlaybackEventKind(str, Enum):
    START = "start"
    END = "end"
    ERROR = "error"


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class RecognitionConfig:
    language: str
    continuous: bool = True
    interim_results: bool = True


@dataclass
class RecognitionAlternative:
    transcript: str
    confidence: float = 0.0


@dataclass
class RecognitionResult:
    alternatives: List[RecognitionAlternative] = field(default_factory=list)
    is_final: bool = False

    @property
    def transcript(self) -> str:
        if not self.alternatives:
            return ""
        return self.alternatives[0].transcript


@dataclass
class EngineEvent:
    """One callback from a recognition engine.

    ``results`` holds every result of the engine sub-session so far;
    ``result_index`` is the first one that changed in this event.
    """

    kind: str
    result_index: int = 0
    results: List[RecognitionResult] = field(default_factory=list)
    code: str = ""
    message: str = ""


@dataclass
class TranscriptState:
    original_text: str = ""
    translated_text: str = ""


@dataclass
class TranslationRequestState:
    in_flight: bool = False
    requested_text: Optional[str] = None


@dataclass
class TranslationOutcome:
    success: bool
    translated_text: str = ""
    code: str = ""
    message: str = ""


@dataclass
class Utterance:
    text: str
    language: str
    rate: float = 0.9


@dataclass
class PlaybackEvent:
    kind: str
    message: str = ""


@dataclass
class ErrorSlot:
    message: Optional[str] = None
    code: str = ""
    subsystem: str = ""


# ----------------------------------------------------------------------
# Dispatcher messages: one per external completion callback
# ----------------------------------------------------------------------


@dataclass
class PermissionResolved:
    ticket: int
    granted: bool


@dataclass
class EngineMessage:
    generation: int
    event: EngineEvent


@dataclass
class TranslationCompleted:
    sequence: int
    outcome: TranslationOutcome


@dataclass
class PlaybackMessage:
    utterance_id: int
    event: PlaybackEvent


@dataclass
class SessionSnapshot:
    recognition_state: RecognitionState
    playback_state: PlaybackState
    input_language: str
    output_language: str
    transcript: TranscriptState
    translation: TranslationRequestState
    error: ErrorSlot
    can_speak: bool = False
