"""Protocol interfaces used by SessionController."""

from __future__ import annotations

from typing import Callable, Protocol

from models import EngineEvent, PlaybackEvent, RecognitionConfig, TranslationOutcome, Utterance

EngineEventCallback = Callable[[EngineEvent], None]
PermissionCallback = Callable[[bool], None]
TranslationCallback = Callable[[TranslationOutcome], None]
PlaybackEventCallback = Callable[[PlaybackEvent], None]


class RecognitionEngine(Protocol):
    def is_available(self) -> bool: ...

    def start(self, config: RecognitionConfig, on_event: EngineEventCallback) -> None: ...

    def stop(self) -> None: ...


class MicrophonePermission(Protocol):
    def request(self, on_result: PermissionCallback) -> None: ...


class TranslationProvider(Protocol):
    def request(
        self,
        text: str,
        source: str,
        target: str,
        on_done: TranslationCallback,
    ) -> None: ...


class SpeechSynthesizer(Protocol):
    def speak(self, utterance: Utterance, on_event: PlaybackEventCallback) -> None: ...

    def cancel(self) -> None: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_input_language(self) -> str: ...

    def set_input_language(self, locale: str) -> None: ...

    def get_output_language(self) -> str: ...

    def set_output_language(self, code: str) -> None: ...

    def get_speech_rate(self) -> float: ...

    def get_translation_email(self) -> str: ...

    def get_discard_stale_translations(self) -> bool: ...
