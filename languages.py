"""Static catalog of the languages the translator supports."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class Language:
    locale: str
    name: str
    code: str
    flag: str


# Keyed by recognition locale tag; ``code`` is the ISO-639 code used for
# translation and synthesis.
LANGUAGES: Mapping[str, Language] = MappingProxyType(
    {
        "en-US": Language("en-US", "English (US)", "en", "🇺🇸"),
        "es-ES": Language("es-ES", "Spanish", "es", "🇪🇸"),
        "fr-FR": Language("fr-FR", "French", "fr", "🇫🇷"),
        "de-DE": Language("de-DE", "German", "de", "🇩🇪"),
        "zh-CN": Language("zh-CN", "Chinese", "zh", "🇨🇳"),
        "ar-SA": Language("ar-SA", "Arabic", "ar", "🇸🇦"),
        "hi-IN": Language("hi-IN", "Hindi", "hi", "🇮🇳"),
        "pt-BR": Language("pt-BR", "Portuguese", "pt", "🇧🇷"),
        "ru-RU": Language("ru-RU", "Russian", "ru", "🇷🇺"),
        "ja-JP": Language("ja-JP", "Japanese", "ja", "🇯🇵"),
    }
)

DEFAULT_INPUT_LOCALE = "en-US"
DEFAULT_OUTPUT_CODE = "es"


def get_language(locale: str) -> Optional[Language]:
    return LANGUAGES.get(locale)


def language_for_code(code: str) -> Optional[Language]:
    """Find the catalog entry whose translation code is ``code``."""
    for language in LANGUAGES.values():
        if language.code == code:
            return language
    return None


def code_for_locale(locale: str) -> str:
    language = LANGUAGES.get(locale)
    if language is None:
        raise ValueError(f"unsupported input language: {locale}")
    return language.code


def locale_for_code(code: str) -> Optional[str]:
    language = language_for_code(code)
    return language.locale if language else None


def is_supported_locale(locale: str) -> bool:
    return locale in LANGUAGES


def is_supported_code(code: str) -> bool:
    return language_for_code(code) is not None


def get_language_name(identifier: str) -> str:
    """Display name for a locale tag or a translation code."""
    language = LANGUAGES.get(identifier) or language_for_code(identifier)
    if language:
        return language.name
    return identifier.upper()


def get_language_flag(identifier: str) -> str:
    language = LANGUAGES.get(identifier) or language_for_code(identifier)
    if language:
        return language.flag
    return "🌐"
