"""
Suggestion text for analysis reports.

Suggestions are advisory display text templated from a report's numeric
fields. They make no predictive claim.
"""

from typing import TYPE_CHECKING, Dict, List

from ..core.models import Dominant

if TYPE_CHECKING:
    from .analyzer import AnalysisReport


TEMPLATES: Dict[str, Dict[str, str]] = {
    "es": {
        "most_frequent_one": "El número {value} ha aparecido {count} vez (mayor frecuencia)",
        "most_frequent_many": "El número {value} ha aparecido {count} veces (mayor frecuencia)",
        "high": "Tendencia hacia números altos (promedio: {average:.2f})",
        "low": "Tendencia hacia números bajos (promedio: {average:.2f})",
        "neutral": "Sin tendencia dominante entre altos y bajos (promedio: {average:.2f})",
        "sequences": "Se detectaron {count} secuencias consecutivas",
        "repetitions": "Se detectaron {count} números repetidos",
    },
    "en": {
        "most_frequent_one": "Number {value} appeared {count} time (highest frequency)",
        "most_frequent_many": "Number {value} appeared {count} times (highest frequency)",
        "high": "Trend towards high numbers (average: {average:.2f})",
        "low": "Trend towards low numbers (average: {average:.2f})",
        "neutral": "No dominant trend between high and low numbers (average: {average:.2f})",
        "sequences": "{count} consecutive sequences detected",
        "repetitions": "{count} repeated numbers detected",
    },
}


class SuggestionFormatter:
    """Renders the suggestion string of an analysis report."""

    def __init__(self, locale: str = "es"):
        """
        Initialize suggestion formatter.

        Args:
            locale: Template language, "es" or "en"
        """
        locale = locale.lower()
        if locale not in TEMPLATES:
            raise ValueError(f"Unsupported suggestion locale: {locale}")
        self.locale = locale
        self.templates = TEMPLATES[locale]

    def format(self, report: "AnalysisReport") -> str:
        """
        Build the suggestion for a report.

        The same numeric fields always produce the same text.
        """
        parts: List[str] = []

        key = "most_frequent_one" if report.max_frequency == 1 else "most_frequent_many"
        parts.append(
            self.templates[key].format(
                value=report.most_frequent, count=report.max_frequency
            )
        )

        parts.append(
            self.templates[Dominant(report.dominant).value].format(
                average=report.average
            )
        )

        if report.sequences:
            parts.append(self.templates["sequences"].format(count=len(report.sequences)))

        if report.repetitions:
            parts.append(
                self.templates["repetitions"].format(count=len(report.repetitions))
            )

        return ". ".join(parts) + "."
