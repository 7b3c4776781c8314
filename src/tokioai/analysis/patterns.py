"""
Outcome Pattern Detection

Detects runs of numerically adjacent captures and repeated values in a window.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence


@dataclass
class PatternSummary:
    """Patterns found in one window of outcome values."""

    sequences: List[List[int]] = field(default_factory=list)
    repetitions: Dict[int, int] = field(default_factory=dict)

    def __post_init__(self):
        """Validate summary."""
        for run in self.sequences:
            if len(run) < 2:
                raise ValueError(f"A sequence needs at least two values, got {run}")
        for value, count in self.repetitions.items():
            if count < 2:
                raise ValueError(
                    f"Repetition count for {value} must be greater than 1, got {count}"
                )


class PatternDetector:
    """
    Detects patterns in an ordered window of outcome values.

    A sequence is a maximal run of consecutive captures where each value
    differs from the previous one by exactly 1, in either direction
    (``[7, 8, 9]``, ``[20, 19]``, ``[3, 4, 3]``). Captures that do not belong
    to such a run are ignored. A repetition is a value captured more than
    once anywhere in the window.
    """

    def detect(self, values: Sequence[int]) -> PatternSummary:
        """
        Detect all patterns in a window.

        Args:
            values: Outcome values in capture order

        Returns:
            PatternSummary with sequences and repetitions
        """
        return PatternSummary(
            sequences=self.find_sequences(values),
            repetitions=self.find_repetitions(values),
        )

    def find_sequences(self, values: Sequence[int]) -> List[List[int]]:
        """Find maximal runs of numerically adjacent consecutive captures."""
        sequences: List[List[int]] = []
        run: List[int] = []

        for value in values:
            if run and abs(value - run[-1]) == 1:
                run.append(value)
                continue

            if len(run) > 1:
                sequences.append(run)
            run = [value]

        if len(run) > 1:
            sequences.append(run)

        return sequences

    def find_repetitions(self, values: Sequence[int]) -> Dict[int, int]:
        """Count values captured more than once, ordered by value."""
        counts = Counter(values)
        return {value: counts[value] for value in sorted(counts) if counts[value] > 1}
