"""
Batch Analyzer

Computes frequency, trend and pattern statistics over a window of outcomes.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..core.config import DomainConfig
from ..core.exceptions import InsufficientDataError, ValidationError
from ..core.models import Dominant, Outcome
from .patterns import PatternDetector
from .suggestions import SuggestionFormatter


@dataclass(frozen=True)
class AnalysisReport:
    """
    Result of analysing one window of outcomes.

    Every field except ``suggestion`` is a pure function of the window;
    ``suggestion`` is display text rendered from the numeric fields.
    """

    batch_size: int
    frequencies: Dict[int, int]
    dominant: Dominant
    most_frequent: int
    max_frequency: int
    average: float
    probabilities: Dict[int, float]
    sequences: List[List[int]] = field(default_factory=list)
    repetitions: Dict[int, int] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self):
        """Validate report."""
        if self.batch_size < 1:
            raise ValueError("batch_size must be positive")
        if sum(self.frequencies.values()) != self.batch_size:
            raise ValueError("frequencies must add up to batch_size")
        for value, probability in self.probabilities.items():
            if not 0 <= probability <= 1:
                raise ValueError(
                    f"Probability for {value} must be between 0 and 1, got {probability}"
                )

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation consumed by the REST/WebSocket host."""
        return {
            "batchSize": self.batch_size,
            "trends": {
                "dominant": self.dominant.value,
                "mostFrequent": self.most_frequent,
                "maxFrequency": self.max_frequency,
                "average": self.average,
                "frequencies": dict(self.frequencies),
            },
            "probabilities": dict(self.probabilities),
            "patterns": {
                "sequences": [list(run) for run in self.sequences],
                "repetitions": dict(self.repetitions),
            },
            "suggestion": self.suggestion,
        }


class BatchAnalyzer:
    """
    Analysis engine for windows of captured outcomes.

    Computes:
    - Per-value frequencies and probabilities
    - The most frequent value (ties go to the smallest value)
    - The dominant half of the domain (low/high/neutral)
    - Average value
    - Adjacent-value sequences and repetitions
    """

    def __init__(
        self,
        domain: Optional[DomainConfig] = None,
        batch_size: int = 10,
        formatter: Optional[SuggestionFormatter] = None,
    ):
        """
        Initialize batch analyzer.

        Args:
            domain: Outcome domain and low/high split (single-zero wheel if None)
            batch_size: Default window size
            formatter: Suggestion formatter (Spanish templates if None)
        """
        if batch_size < 1:
            raise ValueError("batch_size must be positive")

        self.domain = domain or DomainConfig()
        self.batch_size = batch_size
        self.formatter = formatter or SuggestionFormatter()
        self.pattern_detector = PatternDetector()

    def analyze(
        self, window: Sequence[Union[Outcome, int]], size: Optional[int] = None
    ) -> AnalysisReport:
        """
        Analyze the most recent ``size`` entries of a window.

        Args:
            window: Outcomes (or bare values) in capture order
            size: Number of trailing entries to analyze (batch_size if None)

        Returns:
            AnalysisReport for the analyzed entries

        Raises:
            InsufficientDataError: If the window is empty
            ValidationError: If a value lies outside the domain
        """
        size = self.batch_size if size is None else size
        if size < 1:
            raise ValidationError(f"Analysis size must be positive, got {size}")

        values = [self._value_of(entry) for entry in list(window)[-size:]]
        if not values:
            raise InsufficientDataError("No outcomes available to analyze")

        frequencies = self.calculate_frequencies(values)
        most_frequent, max_frequency = self.find_most_frequent(frequencies)
        patterns = self.pattern_detector.detect(values)

        report = AnalysisReport(
            batch_size=len(values),
            frequencies=frequencies,
            dominant=self.classify_dominant(values),
            most_frequent=most_frequent,
            max_frequency=max_frequency,
            average=sum(values) / len(values),
            probabilities=self.calculate_probabilities(frequencies, len(values)),
            sequences=patterns.sequences,
            repetitions=patterns.repetitions,
        )

        return replace(report, suggestion=self.formatter.format(report))

    def calculate_frequencies(self, values: Sequence[int]) -> Dict[int, int]:
        """Count occurrences of each distinct value, ordered by value."""
        counts = Counter(values)
        return {value: counts[value] for value in sorted(counts)}

    def find_most_frequent(self, frequencies: Dict[int, int]) -> Tuple[int, int]:
        """
        Find the most frequent value.

        Ties are broken by the smallest value, independent of capture order.
        """
        value = min(frequencies, key=lambda v: (-frequencies[v], v))
        return value, frequencies[value]

    def calculate_probabilities(
        self, frequencies: Dict[int, int], total: int
    ) -> Dict[int, float]:
        """Relative frequency of every value present in the window."""
        return {value: count / total for value, count in frequencies.items()}

    def classify_dominant(self, values: Sequence[int]) -> Dominant:
        """
        Classify a window by the half of the domain it favours.

        Zero values count towards neither half. Equal counts are neutral.
        """
        low = sum(1 for v in values if self.domain.in_low(v))
        high = sum(1 for v in values if self.domain.in_high(v))

        if high > low:
            return Dominant.HIGH
        if low > high:
            return Dominant.LOW
        return Dominant.NEUTRAL

    def _value_of(self, entry: Union[Outcome, int]) -> int:
        value = entry.value if isinstance(entry, Outcome) else entry
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Outcome value must be an integer, got {value!r}")
        if not self.domain.contains(value):
            raise ValidationError(
                f"Outcome value {value} is outside the domain",
                details={"min": self.domain.min_value, "max": self.domain.max_value},
            )
        return value
