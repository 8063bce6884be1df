"""Currently selected input/output languages."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from languages import (
    DEFAULT_INPUT_LOCALE,
    DEFAULT_OUTPUT_CODE,
    code_for_locale,
    is_supported_code,
    is_supported_locale,
    locale_for_code,
)

logger = logging.getLogger(__name__)

InputChangeCallback = Callable[[str, str], None]


class LanguagePair:
    def __init__(
        self,
        input_locale: str = DEFAULT_INPUT_LOCALE,
        output_code: str = DEFAULT_OUTPUT_CODE,
        on_input_change: Optional[InputChangeCallback] = None,
    ) -> None:
        self._check_input(input_locale)
        self._check_output(output_code)
        self._input_locale = input_locale
        self._output_code = output_code
        self.on_input_change = on_input_change

    @property
    def input_locale(self) -> str:
        return self._input_locale

    @property
    def output_code(self) -> str:
        return self._output_code

    @property
    def source_code(self) -> str:
        """Translation code of the input locale."""
        return code_for_locale(self._input_locale)

    def set_input(self, locale: str) -> None:
        self._check_input(locale)
        previous = self._input_locale
        if previous == locale:
            return
        self._input_locale = locale
        logger.debug("input language %s -> %s", previous, locale)
        if self.on_input_change:
            self.on_input_change(previous, locale)

    def set_output(self, code: str) -> None:
        self._check_output(code)
        self._output_code = code

    def swap(self) -> bool:
        """Exchange input and output roles.

        Returns False and leaves both sides untouched when the output code
        has no locale in the catalog.
        """
        new_input = locale_for_code(self._output_code)
        if new_input is None:
            logger.warning("cannot swap: no locale for %s", self._output_code)
            return False
        new_output = code_for_locale(self._input_locale)
        self._output_code = new_output
        self.set_input(new_input)
        return True

    @staticmethod
    def _check_input(locale: str) -> None:
        if not is_supported_locale(locale):
            raise ValueError(f"unsupported input language: {locale}")

    @staticmethod
    def _check_output(code: str) -> None:
        if not is_supported_code(code):
            raise ValueError(f"unsupported output language: {code}")
