from __future__ import annotations

import threading

from errors import (
    ERROR_MESSAGES,
    PERMISSION_DENIED,
    PLAYBACK_ERROR,
    RECOGNITION_AUTH_FAILED,
    RECOGNITION_UNSUPPORTED,
    TRANSLATION_UNAVAILABLE,
)
from fakes import FakeEngine, FakePermission, FakeSynthesizer, FakeTranslator
from models import (
    EngineEvent,
    EngineEventKind,
    PlaybackEventKind,
    PlaybackState,
    RecognitionAlternative,
    RecognitionResult,
    RecognitionState,
    SessionSnapshot,
)
from session_controller import SessionController


def _make_controller(**kwargs):  # noqa: ANN003, ANN202
    engine = kwargs.pop("engine", FakeEngine())
    permission = kwargs.pop("permission", FakePermission())
    translator = kwargs.pop("translator", FakeTranslator())
    synthesizer = kwargs.pop("synthesizer", FakeSynthesizer())
    controller = SessionController(
        engine=engine,
        permission=permission,
        translator=translator,
        synthesizer=synthesizer,
        **kwargs,
    )
    return controller, engine, permission, translator, synthesizer


def _listening_controller(**kwargs):  # noqa: ANN003, ANN202
    parts = _make_controller(**kwargs)
    controller = parts[0]
    controller.start_listening()
    controller.dispatch_pending()
    assert controller.recognition.state == RecognitionState.LISTENING
    return parts


def test_start_listening_after_permission_granted() -> None:
    controller, engine, permission, _, _ = _make_controller(input_language="fr-FR")

    controller.start_listening()
    assert controller.recognition.state == RecognitionState.AWAITING_PERMISSION

    controller.dispatch_pending()

    assert controller.recognition.state == RecognitionState.LISTENING
    assert permission.requests == 1
    assert engine.start_calls == 1
    config = engine.configs[0]
    assert config.language == "fr-FR"
    assert config.continuous is True
    assert config.interim_results is True


def test_scenario_two_final_batches_accumulate_and_translate_cumulative_text() -> None:
    controller, engine, _, translator, _ = _listening_controller()

    first = RecognitionResult([RecognitionAlternative("Hello")], is_final=True)
    second = RecognitionResult([RecognitionAlternative("how are you")], is_final=True)
    engine.emit(EngineEvent(kind=EngineEventKind.RESULT.value, result_index=0, results=[first]))
    engine.emit(
        EngineEvent(kind=EngineEventKind.RESULT.value, result_index=1, results=[first, second])
    )
    controller.dispatch_pending()

    assert controller.transcript.original_text == "Hello how are you "
    assert [r[0] for r in translator.requests] == ["Hello ", "Hello how are you "]
    assert translator.requests[0][1:] == ("en", "es")


def test_completed_translation_replaces_translated_text() -> None:
    controller, engine, _, translator, _ = _listening_controller()
    engine.emit_final("Where does it hurt?")
    controller.dispatch_pending()
    assert controller.translation.in_flight is True

    translator.succeed(0, "¿Dónde le duele?")
    controller.dispatch_pending()

    assert controller.transcript.translated_text == "¿Dónde le duele?"
    assert controller.translation.in_flight is False


def test_scenario_translation_http_500_keeps_previous_translation() -> None:
    controller, engine, _, translator, _ = _listening_controller()
    engine.emit_final("Hello")
    controller.dispatch_pending()
    translator.succeed(0, "Hola")
    controller.dispatch_pending()

    engine.emit_final("thank you")
    controller.dispatch_pending()
    translator.fail(1, TRANSLATION_UNAVAILABLE, "HTTP 500")
    controller.dispatch_pending()

    assert controller.transcript.translated_text == "Hola"
    assert controller.errors.code == TRANSLATION_UNAVAILABLE
    assert controller.errors.message == ERROR_MESSAGES[TRANSLATION_UNAVAILABLE]
    assert controller.translation.in_flight is False


def test_scenario_permission_denied_stays_idle_without_engine_session() -> None:
    controller, engine, _, _, _ = _make_controller(permission=FakePermission(granted=False))

    controller.start_listening()
    controller.dispatch_pending()

    assert controller.recognition.state == RecognitionState.IDLE
    assert controller.errors.code == PERMISSION_DENIED
    assert engine.start_calls == 0


def test_stop_then_late_end_does_not_resume_listening() -> None:
    controller, engine, _, _, _ = _listening_controller()

    controller.stop_listening()
    engine.emit_end()
    controller.dispatch_pending()

    assert controller.recognition.state == RecognitionState.IDLE
    assert engine.start_calls == 1
    assert engine.stop_calls == 1


def test_engine_end_while_listening_restarts_engine() -> None:
    controller, engine, _, _, _ = _listening_controller()

    engine.emit_end()
    controller.dispatch_pending()

    assert controller.recognition.state == RecognitionState.LISTENING
    assert engine.start_calls == 2
    assert controller.recognition.restart_count == 1


def test_input_language_change_while_listening_rebuilds_engine() -> None:
    controller, engine, _, translator, _ = _listening_controller()

    controller.set_input_language("de-DE")

    assert engine.stop_calls == 1
    assert engine.start_calls == 2
    assert engine.configs[-1].language == "de-DE"

    # A result from the old engine session is not attributed to the new one.
    engine.emit_final("stale words", callback_index=0)
    engine.emit_final("Guten Tag", callback_index=1)
    controller.dispatch_pending()

    assert controller.transcript.original_text == "Guten Tag "
    assert translator.requests == [("Guten Tag ", "de", "es")]


def test_input_language_change_while_idle_only_updates_pair() -> None:
    controller, engine, _, _, _ = _make_controller()

    controller.set_input_language("ja-JP")

    assert controller.languages.input_locale == "ja-JP"
    assert engine.start_calls == 0
    assert engine.stop_calls == 0


def test_swap_languages_while_listening_rebuilds_engine() -> None:
    controller, engine, _, _, _ = _listening_controller(input_language="en-US", output_language="ru")

    assert controller.swap_languages() is True

    assert controller.languages.input_locale == "ru-RU"
    assert controller.languages.output_code == "en"
    assert engine.configs[-1].language == "ru-RU"


def test_scenario_speak_twice_cancels_first_utterance() -> None:
    controller, engine, _, translator, synthesizer = _listening_controller()
    engine.emit_final("Hello")
    controller.dispatch_pending()
    translator.succeed(0, "Hola")
    controller.dispatch_pending()

    controller.playback.speak("Hola")
    controller.playback.speak("Hola")

    assert synthesizer.cancel_calls == 1
    assert len(synthesizer.utterances) == 2
    assert controller.playback.state == PlaybackState.SPEAKING

    # The cancelled utterance finishing late must not end the current one.
    synthesizer.emit(0, PlaybackEventKind.END)
    controller.dispatch_pending()
    assert controller.playback.state == PlaybackState.SPEAKING

    synthesizer.emit(1, PlaybackEventKind.END)
    controller.dispatch_pending()
    assert controller.playback.state == PlaybackState.IDLE


def test_speak_translation_is_gated() -> None:
    controller, engine, _, translator, synthesizer = _listening_controller(output_language="fr")

    assert controller.can_speak is False
    assert controller.speak_translation() is False

    engine.emit_final("Good morning")
    controller.dispatch_pending()
    translator.succeed(0, "Bonjour")
    controller.dispatch_pending()

    assert controller.speak_translation() is True
    assert synthesizer.utterances[0].text == "Bonjour"
    assert synthesizer.utterances[0].language == "fr"
    assert synthesizer.utterances[0].rate == 0.9

    assert controller.can_speak is False
    assert controller.speak_translation() is False
    assert len(synthesizer.utterances) == 1


def test_playback_error_sets_error_and_returns_to_idle() -> None:
    controller, engine, _, translator, synthesizer = _listening_controller()
    engine.emit_final("Hello")
    controller.dispatch_pending()
    translator.succeed(0, "Hola")
    controller.dispatch_pending()

    controller.speak_translation()
    synthesizer.emit(0, PlaybackEventKind.ERROR, "device lost")
    controller.dispatch_pending()

    assert controller.playback.state == PlaybackState.IDLE
    assert controller.errors.code == PLAYBACK_ERROR


def test_clear_resets_transcript_and_error_and_ignores_late_translation() -> None:
    controller, engine, _, translator, _ = _listening_controller()
    engine.emit_final("Hello")
    engine.emit_final("I feel dizzy")
    controller.dispatch_pending()
    translator.fail(0, TRANSLATION_UNAVAILABLE)
    controller.dispatch_pending()
    assert controller.errors.message is not None

    controller.clear()
    translator.succeed(1, "Hola me siento mareado")
    controller.dispatch_pending()

    snapshot = controller.snapshot()
    assert snapshot.transcript.original_text == ""
    assert snapshot.transcript.translated_text == ""
    assert snapshot.error.message is None
    assert snapshot.recognition_state == RecognitionState.LISTENING


def test_clear_ignores_late_translation_in_last_arrival_mode() -> None:
    controller, engine, _, translator, _ = _listening_controller(discard_stale_translations=False)
    engine.emit_final("Hello")
    controller.dispatch_pending()

    controller.clear()
    translator.succeed(0, "Hola")
    controller.dispatch_pending()

    assert controller.transcript.translated_text == ""
    assert controller.can_speak is False


def test_missing_api_key_is_not_reported_as_microphone_denial() -> None:
    controller, engine, _, _, _ = _listening_controller()

    engine.emit(
        EngineEvent(kind=EngineEventKind.ERROR.value, code="auth-failed", message="No API key configured")
    )
    controller.dispatch_pending()

    assert controller.errors.code == RECOGNITION_AUTH_FAILED
    assert controller.errors.message != ERROR_MESSAGES[PERMISSION_DENIED]
    assert controller.recognition.state == RecognitionState.ERROR


def test_unsupported_engine_is_reported_and_start_is_refused() -> None:
    controller, engine, permission, _, _ = _make_controller(engine=FakeEngine(available=False))

    assert controller.errors.code == RECOGNITION_UNSUPPORTED

    controller.errors.clear()
    controller.start_listening()

    assert controller.errors.code == RECOGNITION_UNSUPPORTED
    assert controller.recognition.state == RecognitionState.IDLE
    assert permission.requests == 0


def test_missing_engine_is_reported() -> None:
    controller, _, _, _, _ = _make_controller(engine=None)

    assert controller.errors.code == RECOGNITION_UNSUPPORTED
    assert controller.recognition.supported is False


def test_toggle_listening() -> None:
    controller, engine, _, _, _ = _make_controller()

    controller.toggle_listening()
    controller.dispatch_pending()
    assert controller.is_listening is True

    controller.toggle_listening()
    assert controller.is_listening is False
    assert engine.stop_calls == 1


def test_on_change_receives_snapshots() -> None:
    snapshots: list[SessionSnapshot] = []
    controller, _, _, _, _ = _make_controller(on_change=snapshots.append)

    controller.start_listening()
    controller.dispatch_pending()

    assert snapshots[0].recognition_state == RecognitionState.AWAITING_PERMISSION
    assert snapshots[-1].recognition_state == RecognitionState.LISTENING


def test_interim_text_is_forwarded_but_not_accumulated() -> None:
    interim: list[str] = []
    controller, engine, _, translator, _ = _listening_controller(on_interim=interim.append)

    engine.emit(
        EngineEvent(
            kind=EngineEventKind.RESULT.value,
            results=[RecognitionResult([RecognitionAlternative("my chest")], is_final=False)],
        )
    )
    controller.dispatch_pending()

    assert interim == ["my chest"]
    assert controller.transcript.original_text == ""
    assert translator.requests == []


def test_post_from_worker_thread_is_applied_on_dispatch() -> None:
    controller, engine, _, translator, _ = _listening_controller()
    callback = engine.on_event

    worker = threading.Thread(
        target=callback,
        args=(
            EngineEvent(
                kind=EngineEventKind.RESULT.value,
                results=[RecognitionResult([RecognitionAlternative("Hello")], is_final=True)],
            ),
        ),
    )
    worker.start()
    worker.join()

    assert controller.transcript.original_text == ""
    assert controller.dispatch_next(timeout=1.0) is True
    assert controller.transcript.original_text == "Hello "
    assert controller.dispatch_next(timeout=0.01) is False


def test_shutdown_stops_recognition_and_playback() -> None:
    controller, engine, _, translator, synthesizer = _listening_controller()
    engine.emit_final("Hello")
    controller.dispatch_pending()
    translator.succeed(0, "Hola")
    controller.dispatch_pending()
    controller.speak_translation()

    controller.shutdown()

    assert controller.recognition.state == RecognitionState.IDLE
    assert controller.playback.state == PlaybackState.IDLE
    assert synthesizer.cancel_calls == 1
