"""Application entrypoint."""

from __future__ import annotations

import logging
import os
import sys

from config import JsonConfigStore
from languages import LANGUAGES
from models import PlaybackState, RecognitionState, SessionSnapshot
from permission import SoundDeviceMicrophonePermission
from recognizer import DashscopeRecognitionEngine
from session_controller import SessionController
from synthesizer import GTTSSynthesizer
from translator import MyMemoryTranslationProvider

try:
    from PySide6.QtCore import QTimer
    from PySide6.QtWidgets import (
        QApplication,
        QComboBox,
        QHBoxLayout,
        QInputDialog,
        QLabel,
        QPushButton,
        QTextEdit,
        QVBoxLayout,
        QWidget,
    )
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)

DISPATCH_INTERVAL_MS = 30


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()

        self.translator = MyMemoryTranslationProvider(email=self.config_store.get_translation_email())
        self.controller = SessionController(
            engine=DashscopeRecognitionEngine(api_key=self.config_store.get_api_key()),
            permission=SoundDeviceMicrophonePermission(),
            translator=self.translator,
            synthesizer=GTTSSynthesizer(),
            input_language=self.config_store.get_input_language(),
            output_language=self.config_store.get_output_language(),
            discard_stale_translations=self.config_store.get_discard_stale_translations(),
            speech_rate=self.config_store.get_speech_rate(),
            on_change=self._render,
            on_interim=self._on_interim,
        )

        self.window = QWidget()
        self.window.setWindowTitle("MediTranslate")
        self.window.resize(900, 600)
        self._build_widgets()

        # All session transitions happen here, on the Qt thread.
        self.timer = QTimer()
        self.timer.timeout.connect(self.controller.dispatch_pending)
        self.timer.start(DISPATCH_INTERVAL_MS)

        self._render(self.controller.snapshot())

    def _build_widgets(self) -> None:
        self.input_combo = QComboBox()
        self.output_combo = QComboBox()
        for language in LANGUAGES.values():
            label = f"{language.flag} {language.name}"
            self.input_combo.addItem(label, language.locale)
            self.output_combo.addItem(label, language.code)
        self.input_combo.activated.connect(self._on_input_selected)
        self.output_combo.activated.connect(self._on_output_selected)

        swap_button = QPushButton("Swap Languages")
        swap_button.clicked.connect(self._swap)
        api_button = QPushButton("Set API Key")
        api_button.clicked.connect(self._set_api_key)

        self.listen_button = QPushButton()
        self.listen_button.clicked.connect(self.controller.toggle_listening)
        clear_button = QPushButton("Clear All")
        clear_button.clicked.connect(self.controller.clear)
        self.speak_button = QPushButton("Speak Translation")
        self.speak_button.clicked.connect(self.controller.speak_translation)

        self.error_label = QLabel()
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: #b91c1c; font-weight: bold;")

        self.original_view = QTextEdit()
        self.original_view.setReadOnly(True)
        self.interim_label = QLabel()
        self.interim_label.setStyleSheet("color: gray; font-style: italic;")
        self.translated_view = QTextEdit()
        self.translated_view.setReadOnly(True)
        self.status_label = QLabel()

        languages_row = QHBoxLayout()
        languages_row.addWidget(self.input_combo)
        languages_row.addWidget(swap_button)
        languages_row.addWidget(self.output_combo)
        languages_row.addWidget(api_button)

        controls_row = QHBoxLayout()
        controls_row.addWidget(self.listen_button)
        controls_row.addWidget(clear_button)
        controls_row.addWidget(self.speak_button)

        original_column = QVBoxLayout()
        original_column.addWidget(QLabel("Original Text"))
        original_column.addWidget(self.original_view)
        original_column.addWidget(self.interim_label)
        translated_column = QVBoxLayout()
        translated_column.addWidget(QLabel("Translation"))
        translated_column.addWidget(self.translated_view)

        transcripts_row = QHBoxLayout()
        transcripts_row.addLayout(original_column)
        transcripts_row.addLayout(translated_column)

        layout = QVBoxLayout()
        layout.addLayout(languages_row)
        layout.addLayout(controls_row)
        layout.addWidget(self.error_label)
        layout.addLayout(transcripts_row)
        layout.addWidget(self.status_label)
        self.window.setLayout(layout)

    # ------------------------------------------------------------------
    # Widget handlers
    # ------------------------------------------------------------------

    def _on_input_selected(self, index: int) -> None:
        locale = self.input_combo.itemData(index)
        self.controller.set_input_language(locale)
        self.config_store.set_input_language(locale)

    def _on_output_selected(self, index: int) -> None:
        code = self.output_combo.itemData(index)
        self.controller.set_output_language(code)
        self.config_store.set_output_language(code)

    def _swap(self) -> None:
        if self.controller.swap_languages():
            self.config_store.set_input_language(self.controller.languages.input_locale)
            self.config_store.set_output_language(self.controller.languages.output_code)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.status_label.setText("API key saved. Restart the app to apply.")

    def _on_interim(self, text: str) -> None:
        self.interim_label.setText(text)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render(self, snapshot: SessionSnapshot) -> None:
        listening = snapshot.recognition_state in (
            RecognitionState.LISTENING,
            RecognitionState.AWAITING_PERMISSION,
        )
        self.listen_button.setText("Stop Recording" if listening else "Start Recording")
        self.speak_button.setEnabled(snapshot.can_speak)
        self.error_label.setText(snapshot.error.message or "")

        self.input_combo.setCurrentIndex(self.input_combo.findData(snapshot.input_language))
        self.output_combo.setCurrentIndex(self.output_combo.findData(snapshot.output_language))

        if self.original_view.toPlainText() != snapshot.transcript.original_text:
            self.original_view.setPlainText(snapshot.transcript.original_text)
        if self.translated_view.toPlainText() != snapshot.transcript.translated_text:
            self.translated_view.setPlainText(snapshot.transcript.translated_text)
        if not listening:
            self.interim_label.setText("")

        status = []
        if snapshot.recognition_state == RecognitionState.LISTENING:
            status.append("LIVE")
        if snapshot.translation.in_flight:
            status.append("Translating...")
        if snapshot.playback_state == PlaybackState.SPEAKING:
            status.append("Speaking...")
        self.status_label.setText("  ".join(status))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.window.show()
        try:
            return self.app.exec()
        finally:
            self.quit()

    def quit(self) -> None:
        self.timer.stop()
        self.controller.shutdown()
        self.translator.close()


def main() -> int:
    logging.basicConfig(
        level=os.getenv("MEDITRANSLATE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
