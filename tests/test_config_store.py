from __future__ import annotations

from pathlib import Path

from config import JsonConfigStore


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_api_key() == ""
    assert store.get_input_language() == "en-US"
    assert store.get_output_language() == "es"
    assert store.get_speech_rate() == 0.9
    assert store.get_translation_email() == ""
    assert store.get_discard_stale_translations() is True

    store.set_api_key("abc")
    store.set_input_language("fr-FR")
    store.set_output_language("ja")

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_api_key() == "abc"
    assert reloaded.get_input_language() == "fr-FR"
    assert reloaded.get_output_language() == "ja"


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_api_key() == ""
    assert store.get_input_language() == "en-US"


def test_unsupported_languages_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        '{"input_language": "it-IT", "output_language": "it", "speech_rate": "fast"}',
        encoding="utf-8",
    )

    store = JsonConfigStore(path=path)
    assert store.get_input_language() == "en-US"
    assert store.get_output_language() == "es"
    assert store.get_speech_rate() == 0.9
