"""
Analysis Reporting

Formats captured outcomes and analysis reports for people and for the host
transport, and defines the renderer interface used for report files.
"""

import json
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from ..core.logging import get_logger
from ..core.models import Outcome, Statistics
from .analyzer import AnalysisReport

logger = get_logger(__name__)


class ReportGenerator:
    """
    Generates outcome analysis reports.

    Produces a human-readable text report and a machine-readable JSON report
    from the captured outcomes, the latest analysis and session statistics.
    """

    def generate_text_report(
        self,
        results: Sequence[Outcome],
        analysis: Optional[AnalysisReport],
        statistics: Optional[Statistics] = None,
    ) -> str:
        """
        Generate a human-readable text report.

        Args:
            results: Outcomes to list
            analysis: Latest analysis, if any
            statistics: Session statistics to append, if any

        Returns:
            Formatted text report
        """
        lines = []
        lines.append("=" * 80)
        lines.append("TOKIOAI OUTCOME ANALYSIS REPORT")
        lines.append("=" * 80)
        lines.append(
            f"Generated: {datetime.now(UTC).strftime('%Y-%m-%d %H:%M:%S UTC')}"
        )
        lines.append(f"Outcomes Listed: {len(results)}")
        lines.append("")

        # Outcome table
        lines.append("-" * 80)
        lines.append("OUTCOMES")
        lines.append("-" * 80)
        lines.append(f"{'Value':>8}  {'Probability':>12}  {'Date':<12}  {'Time':<10}")

        probabilities = analysis.probabilities if analysis else {}
        for outcome in results:
            probability = probabilities.get(outcome.value, 0.0)
            lines.append(
                f"{outcome.value:>8}  {probability:>12.2%}  "
                f"{outcome.display_date:<12}  {outcome.display_time:<10}"
            )
        lines.append("")

        # Analysis
        lines.append("-" * 80)
        lines.append("ANALYSIS")
        lines.append("-" * 80)

        if analysis:
            lines.append(f"Batch Size: {analysis.batch_size}")
            lines.append(f"Dominant Trend: {analysis.dominant.value.upper()}")
            lines.append(
                f"Most Frequent: {analysis.most_frequent} "
                f"({analysis.max_frequency} occurrences)"
            )
            lines.append(f"Average: {analysis.average:.2f}")
            lines.append(f"Sequences: {len(analysis.sequences)}")
            for run in analysis.sequences[:5]:
                lines.append(f"  - {' -> '.join(str(v) for v in run)}")
            lines.append(f"Repeated Values: {len(analysis.repetitions)}")
            lines.append("")
            lines.append(f"Suggestion: {analysis.suggestion}")
        else:
            lines.append("No analysis available.")

        lines.append("")

        if statistics:
            lines.append("-" * 80)
            lines.append("SESSION STATISTICS")
            lines.append("-" * 80)
            lines.append(f"Current Results: {statistics.current_results}")
            lines.append(f"Total Results: {statistics.total_results}")
            lines.append(f"Total Analyses: {statistics.total_analyses}")
            lines.append(f"Uptime: {statistics.uptime_ms / 1000:.1f}s")
            lines.append("")

        lines.append("=" * 80)

        return "\n".join(lines)

    def generate_json_report(
        self,
        results: Sequence[Outcome],
        analysis: Optional[AnalysisReport],
        statistics: Optional[Statistics] = None,
    ) -> str:
        """
        Generate a machine-readable JSON report.

        Returns:
            JSON string
        """
        report_dict: Dict[str, Any] = {
            "generated_at": datetime.now(UTC).isoformat(),
            "results": [outcome.to_json() for outcome in results],
            "analysis": analysis.to_dict() if analysis else None,
        }
        if statistics:
            report_dict["statistics"] = statistics.to_json()

        return json.dumps(report_dict, indent=2, ensure_ascii=False)


class ReportRenderer(Protocol):
    """
    Renders a report file from outcomes and an optional analysis.

    File system failures propagate to the caller unmodified.
    """

    def render(
        self,
        results: List[Outcome],
        analysis: Optional[AnalysisReport],
        include_statistics: bool,
        output_path: Union[str, Path],
        statistics: Optional[Statistics] = None,
    ) -> Path: ...


class TextReportRenderer:
    """Report renderer writing the plain-text or JSON report to a file."""

    def __init__(self, generator: Optional[ReportGenerator] = None, fmt: str = "text"):
        if fmt not in {"text", "json"}:
            raise ValueError(f"Unsupported report format: {fmt}")
        self.generator = generator or ReportGenerator()
        self.fmt = fmt

    def render(
        self,
        results: List[Outcome],
        analysis: Optional[AnalysisReport],
        include_statistics: bool,
        output_path: Union[str, Path],
        statistics: Optional[Statistics] = None,
    ) -> Path:
        stats = statistics if include_statistics else None

        if self.fmt == "json":
            content = self.generator.generate_json_report(results, analysis, stats)
        else:
            content = self.generator.generate_text_report(results, analysis, stats)

        path = Path(output_path)
        path.write_text(content + "\n", encoding="utf-8")
        logger.info(f"Wrote {self.fmt} report with {len(results)} outcomes to {path}")
        return path
