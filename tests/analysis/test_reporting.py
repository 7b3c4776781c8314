"""
Tests for text and JSON analysis reports.
"""

import json
from datetime import datetime, timezone

import pytest

from tokioai.analysis import BatchAnalyzer, ReportGenerator, TextReportRenderer
from tokioai.core.models import Outcome, Statistics


@pytest.fixture
def outcomes():
    instant = datetime(2024, 3, 9, 14, 5, 7, tzinfo=timezone.utc)
    return [Outcome.at(v, instant) for v in (7, 8, 9, 8)]


@pytest.fixture
def statistics():
    return Statistics(current_results=4, total_results=6, total_analyses=2, uptime_ms=1500)


class TestReportGenerator:
    """Report content."""

    def test_text_report_sections(self, outcomes, statistics):
        analysis = BatchAnalyzer().analyze(outcomes, 4)

        text = ReportGenerator().generate_text_report(outcomes, analysis, statistics)

        assert "TOKIOAI OUTCOME ANALYSIS REPORT" in text
        assert "Outcomes Listed: 4" in text
        assert "09/03/2024" in text
        assert "Dominant Trend: LOW" in text
        assert "Most Frequent: 8 (2 occurrences)" in text
        assert "7 -> 8 -> 9 -> 8" in text
        assert f"Suggestion: {analysis.suggestion}" in text
        assert "Total Analyses: 2" in text

    def test_text_report_without_analysis(self, outcomes):
        text = ReportGenerator().generate_text_report(outcomes, None)

        assert "No analysis available." in text
        assert "SESSION STATISTICS" not in text

    def test_json_report(self, outcomes, statistics):
        analysis = BatchAnalyzer().analyze(outcomes, 4)

        data = json.loads(ReportGenerator().generate_json_report(outcomes, analysis, statistics))

        assert [entry["resultado"] for entry in data["results"]] == [7, 8, 9, 8]
        assert data["analysis"]["batchSize"] == 4
        assert data["analysis"]["trends"]["mostFrequent"] == 8
        assert data["statistics"]["totalResults"] == 6


class TestTextReportRenderer:
    """Report files."""

    def test_writes_text_file(self, temp_dir, outcomes):
        path = TextReportRenderer().render(outcomes, None, False, temp_dir / "report.txt")

        assert path.read_text(encoding="utf-8").startswith("=" * 80)

    def test_statistics_only_when_requested(self, temp_dir, outcomes, statistics):
        renderer = TextReportRenderer(fmt="json")

        path = renderer.render(outcomes, None, False, temp_dir / "r.json", statistics=statistics)

        assert "statistics" not in json.loads(path.read_text(encoding="utf-8"))

    def test_file_errors_propagate(self, temp_dir, outcomes):
        with pytest.raises(OSError):
            TextReportRenderer().render(outcomes, None, False, temp_dir / "missing" / "r.txt")

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError):
            TextReportRenderer(fmt="pdf")
