"""
Tests for the TokioAI engine facade.
"""

import pytest

from tokioai import EngineEvent, SecureCodec, TokioAI
from tokioai.analysis import TextReportRenderer
from tokioai.core.config import AnalysisConfig, SecurityConfig, TokioAIConfig
from tokioai.core.exceptions import (
    ConfigurationError,
    EngineClosedError,
    InsufficientDataError,
    ValidationError,
)
from tokioai.core.models import Dominant
from tokioai.security.keys import KeyStore

SAMPLE_BATCH = [12, 35, 3, 26, 0, 32, 15, 19, 4, 21, 2, 25]


class Recorder:
    def __init__(self):
        self.received = []

    def __call__(self, event, payload):
        self.received.append((event, payload))

    def events(self):
        return [event for event, _ in self.received]


class TestCapture:
    """Capturing outcomes through the engine."""

    def test_capture_updates_ledger_and_statistics(self, engine: TokioAI):
        outcome = engine.capture(17)

        assert outcome.value == 17
        assert engine.results == [outcome]
        stats = engine.get_statistics()
        assert stats.current_results == 1
        assert stats.total_results == 1

    def test_rejected_value_changes_nothing(self, engine: TokioAI):
        engine.capture(5)
        recorder = Recorder()
        engine.on(recorder)

        with pytest.raises(ValidationError):
            engine.capture(37)

        assert engine.get_statistics().current_results == 1
        assert recorder.received == []

    def test_capture_many_stops_at_first_rejection(self, engine: TokioAI):
        with pytest.raises(ValidationError):
            engine.capture_many([1, 2, "x", 4])

        assert [o.value for o in engine.results] == [1, 2]

    def test_capture_emits_event(self, engine: TokioAI):
        recorder = Recorder()
        engine.on(recorder)

        outcome = engine.capture(9)

        assert recorder.received == [(EngineEvent.RESULT_CAPTURED, outcome)]

    def test_recent_defaults_to_configured_limit(self, codec: SecureCodec):
        config = TokioAIConfig(analysis=AnalysisConfig(auto_analyze=False, recent_limit=3))
        engine = TokioAI(codec, config=config)
        engine.capture_many(range(10))

        assert [o.value for o in engine.recent()] == [7, 8, 9]
        assert [o.value for o in engine.recent(5)] == [5, 6, 7, 8, 9]


class TestAnalysis:
    """Explicit and automatic analysis."""

    def test_analyze_reference_batch(self, engine: TokioAI):
        engine.capture_many(SAMPLE_BATCH)

        report = engine.analyze(12)

        assert report.dominant == Dominant.HIGH
        assert report.most_frequent == 0
        assert report.average == pytest.approx(194 / 12)
        assert engine.last_analysis == report
        assert engine.get_statistics().total_analyses == 1

    def test_default_window_is_batch_size(self, engine: TokioAI):
        engine.capture_many(SAMPLE_BATCH)

        assert engine.analyze().batch_size == 10

    def test_window_shrinks_to_available(self, engine: TokioAI):
        engine.capture_many([4, 5])

        assert engine.analyze(10).batch_size == 2

    def test_empty_ledger_rejected(self, engine: TokioAI):
        with pytest.raises(InsufficientDataError):
            engine.analyze()
        assert engine.get_statistics().total_analyses == 0

    def test_auto_analysis_on_full_batch(self, codec: SecureCodec):
        config = TokioAIConfig(analysis=AnalysisConfig(batch_size=3, auto_analyze=True))
        engine = TokioAI(codec, config=config)
        recorder = Recorder()
        engine.on(recorder, events=[EngineEvent.ANALYSIS_COMPLETE])

        engine.capture_many([1, 2, 3, 4, 5])
        assert len(recorder.received) == 1
        assert recorder.received[0][1].frequencies == {1: 1, 2: 1, 3: 1}

        engine.capture(6)
        assert len(recorder.received) == 2
        assert engine.get_statistics().total_analyses == 2

    def test_suggestion_locale_from_config(self, codec: SecureCodec):
        config = TokioAIConfig(
            analysis=AnalysisConfig(auto_analyze=False, suggestion_locale="en")
        )
        engine = TokioAI(codec, config=config)
        engine.capture_many([1, 1])

        assert engine.analyze().suggestion.startswith("Number 1 appeared 2 times")


class TestLifecycle:
    """Clearing, closing and construction."""

    def test_clear_all(self, engine: TokioAI):
        engine.capture_many([1, 2, 3])
        engine.analyze()
        recorder = Recorder()
        engine.on(recorder)

        removed = engine.clear_all()

        assert removed == 3
        assert engine.results == []
        assert engine.last_analysis is None
        stats = engine.get_statistics()
        assert stats.current_results == 0
        assert stats.total_results == 3
        assert recorder.received == [(EngineEvent.RESULTS_CLEARED, {"removed": 3})]
        with pytest.raises(InsufficientDataError):
            engine.analyze()

    def test_close_rejects_further_operations(self, codec: SecureCodec, test_config):
        engine = TokioAI(codec, config=test_config)
        recorder = Recorder()
        engine.on(recorder)
        engine.capture(3)

        engine.close()

        assert engine.closed
        assert recorder.events()[-1] == EngineEvent.CLOSED
        for operation in (
            lambda: engine.capture(1),
            lambda: engine.analyze(),
            lambda: engine.clear_all(),
        ):
            with pytest.raises(EngineClosedError):
                operation()

    def test_close_is_idempotent(self, codec: SecureCodec, test_config):
        engine = TokioAI(codec, config=test_config)
        engine.close()
        engine.close()
        assert engine.closed

    def test_context_manager_closes(self, codec: SecureCodec, test_config):
        with TokioAI(codec, config=test_config) as engine:
            engine.capture(1)
        assert engine.closed

    def test_codec_required(self, test_config):
        with pytest.raises(ConfigurationError):
            TokioAI(None, config=test_config)

    def test_from_config_without_key_source(self):
        with pytest.raises(ConfigurationError):
            TokioAI.from_config(TokioAIConfig(security=SecurityConfig()))

    def test_from_config_with_key_hex(self):
        codec = SecureCodec.generate()
        config = TokioAIConfig(security=SecurityConfig(key_hex=codec.export_key()))

        engine = TokioAI.from_config(config)

        assert engine.codec.fingerprint() == codec.fingerprint()

    def test_from_config_generates_and_stores_key(self, temp_dir):
        key_file = temp_dir / "tokioai.key"
        config = TokioAIConfig(
            security=SecurityConfig(key_file=str(key_file), generate_key=True)
        )

        engine = TokioAI.from_config(config)
        again = TokioAI.from_config(config)

        assert KeyStore(key_file).exists()
        assert again.codec.fingerprint() == engine.codec.fingerprint()


class TestReports:
    """Report generation through a renderer."""

    def test_report_covers_last_analysis(self, engine: TokioAI, temp_dir):
        engine.capture_many(SAMPLE_BATCH)
        engine.analyze(4)

        path = engine.generate_report(TextReportRenderer(), temp_dir / "report.txt", True)

        text = path.read_text(encoding="utf-8")
        assert "Outcomes Listed: 4" in text
        assert "SESSION STATISTICS" in text

    def test_report_without_analysis(self, engine: TokioAI, temp_dir):
        engine.capture_many([1, 2])

        path = engine.generate_report(TextReportRenderer(), temp_dir / "report.txt")

        assert "No analysis available." in path.read_text(encoding="utf-8")
