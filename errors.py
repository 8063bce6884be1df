"""Shared error codes and user-facing messages."""

from __future__ import annotations

RECOGNITION_UNSUPPORTED = "RECOGNITION_UNSUPPORTED"
PERMISSION_DENIED = "PERMISSION_DENIED"
RECOGNITION_ENGINE_ERROR = "RECOGNITION_ENGINE_ERROR"
RECOGNITION_START_FAILED = "RECOGNITION_START_FAILED"
RECOGNITION_AUTH_FAILED = "RECOGNITION_AUTH_FAILED"
TRANSLATION_UNAVAILABLE = "TRANSLATION_UNAVAILABLE"
TRANSLATION_REJECTED = "TRANSLATION_REJECTED"
PLAYBACK_ERROR = "PLAYBACK_ERROR"

SUBSYSTEM_RECOGNITION = "recognition"
SUBSYSTEM_TRANSLATION = "translation"
SUBSYSTEM_PLAYBACK = "playback"

_TRANSLATION_FAILED = (
    "Translation failed. Please check your internet connection and try again."
)

ERROR_MESSAGES = {
    RECOGNITION_UNSUPPORTED: "Speech recognition is not available on this system.",
    PERMISSION_DENIED: (
        "Microphone access denied. Please allow microphone access "
        "in your system settings and try again."
    ),
    RECOGNITION_ENGINE_ERROR: "Speech recognition error.",
    RECOGNITION_START_FAILED: "Failed to start recording. Please try again.",
    RECOGNITION_AUTH_FAILED: "Speech recognition API key is missing or invalid.",
    TRANSLATION_UNAVAILABLE: _TRANSLATION_FAILED,
    TRANSLATION_REJECTED: _TRANSLATION_FAILED,
    PLAYBACK_ERROR: "Audio playback failed",
}

ERROR_SUBSYSTEMS = {
    RECOGNITION_UNSUPPORTED: SUBSYSTEM_RECOGNITION,
    PERMISSION_DENIED: SUBSYSTEM_RECOGNITION,
    RECOGNITION_ENGINE_ERROR: SUBSYSTEM_RECOGNITION,
    RECOGNITION_START_FAILED: SUBSYSTEM_RECOGNITION,
    RECOGNITION_AUTH_FAILED: SUBSYSTEM_RECOGNITION,
    TRANSLATION_UNAVAILABLE: SUBSYSTEM_TRANSLATION,
    TRANSLATION_REJECTED: SUBSYSTEM_TRANSLATION,
    PLAYBACK_ERROR: SUBSYSTEM_PLAYBACK,
}

# Engine codes that mean the user has not granted microphone access.
ENGINE_PERMISSION_CODES = frozenset({"not-allowed", "service-not-allowed"})
ENGINE_AUTH_CODES = frozenset({"auth-failed"})


def engine_error_message(code: str) -> str:
    return f"Speech recognition error: {code}"
