"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

from languages import DEFAULT_INPUT_LOCALE, DEFAULT_OUTPUT_CODE, is_supported_code, is_supported_locale


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "meditranslate" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        return str(self._read_all().get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self._update("api_key", key)

    def get_input_language(self) -> str:
        value = str(self._read_all().get("input_language", DEFAULT_INPUT_LOCALE))
        return value if is_supported_locale(value) else DEFAULT_INPUT_LOCALE

    def set_input_language(self, locale: str) -> None:
        self._update("input_language", locale)

    def get_output_language(self) -> str:
        value = str(self._read_all().get("output_language", DEFAULT_OUTPUT_CODE))
        return value if is_supported_code(value) else DEFAULT_OUTPUT_CODE

    def set_output_language(self, code: str) -> None:
        self._update("output_language", code)

    def get_speech_rate(self) -> float:
        try:
            return float(self._read_all().get("speech_rate", 0.9))
        except (TypeError, ValueError):
            return 0.9

    def get_translation_email(self) -> str:
        return str(self._read_all().get("translation_email", ""))

    def get_discard_stale_translations(self) -> bool:
        return bool(self._read_all().get("discard_stale_translations", True))

    def _update(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
