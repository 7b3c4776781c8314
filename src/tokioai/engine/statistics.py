"""
Statistics Tracker

Session counters for captures and analyses.
"""

import time
from datetime import datetime, UTC
from typing import Any, Callable, Dict, Optional

from ..core.models import Statistics


class StatisticsTracker:
    """
    Tracks session counters.

    ``uptime_ms`` is never stored: it is computed on every read from the
    tracker's creation instant. The tracker holds no persistence logic; the
    persistence gateway embeds ``snapshot()`` in encrypted files.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        """
        Initialize the tracker.

        Args:
            clock: Monotonic clock in seconds (time.monotonic if None)
        """
        self._clock = clock or time.monotonic
        self._created = self._clock()
        self.current_results = 0
        self.total_results = 0
        self.total_analyses = 0
        self.last_analysis_at: Optional[datetime] = None

    def record_capture(self) -> None:
        self.current_results += 1
        self.total_results += 1

    def record_analysis(self) -> None:
        self.total_analyses += 1
        self.last_analysis_at = datetime.now(UTC)

    def reset_current(self) -> None:
        self.current_results = 0

    @property
    def uptime_ms(self) -> int:
        return int((self._clock() - self._created) * 1000)

    def read(self) -> Statistics:
        """Return the counters with uptime computed now."""
        return Statistics(
            current_results=self.current_results,
            total_results=self.total_results,
            total_analyses=self.total_analyses,
            uptime_ms=self.uptime_ms,
            last_analysis_at=self.last_analysis_at,
        )

    def snapshot(self) -> Dict[str, Any]:
        """Serializable counters for an encrypted snapshot."""
        return {
            "currentResults": self.current_results,
            "totalResults": self.total_results,
            "totalAnalyses": self.total_analyses,
            "lastAnalysis": (
                self.last_analysis_at.isoformat() if self.last_analysis_at else None
            ),
        }

    def restore(
        self,
        current_results: int,
        total_results: int,
        total_analyses: int,
        last_analysis_at: Optional[datetime] = None,
    ) -> None:
        """Replace every counter; the creation instant is kept."""
        self.current_results = current_results
        self.total_results = total_results
        self.total_analyses = total_analyses
        self.last_analysis_at = last_analysis_at
