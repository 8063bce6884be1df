"""Translation provider backed by the MyMemory HTTP API."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import requests

from errors import TRANSLATION_REJECTED, TRANSLATION_UNAVAILABLE
from interfaces import TranslationCallback
from models import TranslationOutcome

logger = logging.getLogger(__name__)

MYMEMORY_URL = "https://api.mymemory.translated.net/get"


class MyMemoryTranslationProvider:
    """``GET ?q=<text>&langpair=<src>|<tgt>``, run on a small thread pool.

    Requests are independent: nothing here serializes or cancels them.
    """

    def __init__(
        self,
        url: str = MYMEMORY_URL,
        timeout_s: float = 10.0,
        email: str = "",
        max_workers: int = 4,
        session: Optional[Any] = None,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_s
        self._email = email
        self._session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="translate")

    def request(self, text: str, source: str, target: str, on_done: TranslationCallback) -> None:
        self._executor.submit(self._run, text, source, target, on_done)

    def translate(self, text: str, source: str, target: str) -> TranslationOutcome:
        params = {"q": text, "langpair": f"{source}|{target}"}
        if self._email:
            params["de"] = self._email
        try:
            response = self._session.get(self._url, params=params, timeout=self._timeout_s)
        except requests.RequestException as exc:
            return TranslationOutcome(success=False, code=TRANSLATION_UNAVAILABLE, message=str(exc))

        if not response.ok:
            return TranslationOutcome(
                success=False,
                code=TRANSLATION_UNAVAILABLE,
                message=f"HTTP {response.status_code}",
            )

        try:
            data = response.json()
        except ValueError as exc:
            return TranslationOutcome(success=False, code=TRANSLATION_REJECTED, message=f"invalid JSON: {exc}")

        return self._parse(data)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self._session.close()

    def _run(self, text: str, source: str, target: str, on_done: TranslationCallback) -> None:
        try:
            outcome = self.translate(text, source, target)
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("translation request crashed")
            outcome = TranslationOutcome(success=False, code=TRANSLATION_UNAVAILABLE, message=str(exc))
        on_done(outcome)

    @staticmethod
    def _parse(data: object) -> TranslationOutcome:
        if not isinstance(data, dict):
            return TranslationOutcome(success=False, code=TRANSLATION_REJECTED, message="malformed body")
        status = data.get("responseStatus")
        payload = data.get("responseData")
        if str(status) != "200" or not isinstance(payload, dict):
            detail = data.get("responseDetails") or f"responseStatus {status}"
            return TranslationOutcome(success=False, code=TRANSLATION_REJECTED, message=str(detail))
        translated = payload.get("translatedText")
        if not isinstance(translated, str):
            return TranslationOutcome(success=False, code=TRANSLATION_REJECTED, message="missing translatedText")
        return TranslationOutcome(success=True, translated_text=translated)
