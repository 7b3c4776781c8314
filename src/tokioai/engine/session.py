"""
TokioAI Engine

Session facade wiring the ledger, analyzer, statistics, codec, persistence
and event channel together for a host transport.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ..analysis.analyzer import AnalysisReport, BatchAnalyzer
from ..analysis.reporting import ReportRenderer
from ..analysis.suggestions import SuggestionFormatter
from ..core.config import TokioAIConfig, get_config
from ..core.exceptions import ConfigurationError, EngineClosedError
from ..core.logging import get_logger
from ..core.models import EncryptedBlob, Outcome, Statistics
from ..security.encryption import SecureCodec
from ..security.keys import KeyStore
from ..storage.persistence import PersistenceGateway
from .events import EngineEvent, EventCallback, EventChannel
from .ledger import ResultLedger
from .statistics import StatisticsTracker

logger = get_logger(__name__)


class TokioAI:
    """
    Roulette outcome analysis engine.

    Each instance exclusively owns its ledger, statistics, codec key and
    event channel. Operations run to completion before returning.
    """

    def __init__(
        self,
        codec: SecureCodec,
        config: Optional[TokioAIConfig] = None,
        clock: Optional[Callable[[], float]] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            codec: Codec holding the encryption key (required)
            config: Engine configuration (global configuration if None)
            clock: Monotonic clock for uptime (time.monotonic if None)
            now: Wall clock used to timestamp captures (local time if None)

        Raises:
            ConfigurationError: If no codec is supplied
        """
        if codec is None:
            raise ConfigurationError(
                "TokioAI requires a SecureCodec; use SecureCodec.generate() "
                "or TokioAI.from_config()"
            )

        self.config = config or get_config()
        self.codec = codec
        self.ledger = ResultLedger(self.config.domain, now=now)
        self.tracker = StatisticsTracker(clock=clock)
        self.analyzer = BatchAnalyzer(
            domain=self.config.domain,
            batch_size=self.config.analysis.batch_size,
            formatter=SuggestionFormatter(self.config.analysis.suggestion_locale),
        )
        self.events = EventChannel()
        self.persistence = PersistenceGateway(self.ledger, self.tracker, codec)

        self._last_analysis: Optional[AnalysisReport] = None
        self._closed = False

        logger.info(
            f"TokioAI engine ready (batch size {self.analyzer.batch_size}, "
            f"key {codec.fingerprint()})"
        )

    @classmethod
    def from_config(cls, config: Optional[TokioAIConfig] = None, **kwargs: Any) -> "TokioAI":
        """
        Build an engine whose codec comes from the security configuration.

        The key is taken from ``security.key_hex``, then ``security.key_file``.
        A new key is generated only when ``security.generate_key`` is set.

        Raises:
            ConfigurationError: If no key source is configured
        """
        config = config or get_config()
        security = config.security

        if security.key_hex:
            codec = SecureCodec.from_hex(security.key_hex)
        elif security.key_file and KeyStore(security.key_file).exists():
            codec = KeyStore(security.key_file).load()
        elif security.generate_key:
            codec = SecureCodec.generate()
            if security.key_file:
                KeyStore(security.key_file).save(codec)
        else:
            raise ConfigurationError(
                "No encryption key configured",
                details={
                    "hint": "set security.key_hex, security.key_file or security.generate_key"
                },
            )

        return cls(codec, config=config, **kwargs)

    def _ensure_open(self) -> None:
        if self._closed:
            raise EngineClosedError("TokioAI engine is closed")

    # Event registration

    def on(
        self, callback: EventCallback, events: Optional[Iterable[EngineEvent]] = None
    ) -> None:
        """Register an event callback (see EventChannel.register)."""
        self.events.register(callback, events)

    def off(self, callback: EventCallback) -> None:
        """Unregister an event callback."""
        self.events.unregister(callback)

    # Capture

    def capture(self, value: Any) -> Outcome:
        """
        Capture one outcome.

        When auto-analysis is enabled and the ledger length reaches a multiple
        of the batch size, the latest batch is analyzed right away.

        Raises:
            ValidationError: If the value is rejected; no state changes
        """
        self._ensure_open()
        outcome = self.ledger.append(value)
        self.tracker.record_capture()
        self.events.emit(EngineEvent.RESULT_CAPTURED, outcome)

        if (
            self.config.analysis.auto_analyze
            and len(self.ledger) % self.analyzer.batch_size == 0
        ):
            self.analyze()

        return outcome

    def capture_many(self, values: Iterable[Any]) -> List[Outcome]:
        """
        Capture several outcomes in order.

        Values are captured one by one; a rejected value stops the run and
        the outcomes captured before it are kept.
        """
        return [self.capture(value) for value in values]

    # Reads

    @property
    def results(self) -> List[Outcome]:
        """Full capture history, oldest first."""
        return self.ledger.outcomes()

    def recent(self, limit: Optional[int] = None) -> List[Outcome]:
        """Most recent outcomes (configured recent limit if None)."""
        if limit is None:
            limit = self.config.analysis.recent_limit
        return self.ledger.tail(limit)

    @property
    def last_analysis(self) -> Optional[AnalysisReport]:
        return self._last_analysis

    def get_statistics(self) -> Statistics:
        return self.tracker.read()

    # Analysis

    def analyze(self, count: Optional[int] = None) -> AnalysisReport:
        """
        Analyze the most recent ``count`` outcomes (batch size if None).

        Raises:
            InsufficientDataError: If the ledger is empty
        """
        self._ensure_open()
        size = self.analyzer.batch_size if count is None else count
        report = self.analyzer.analyze(self.ledger.tail(size), size)

        self._last_analysis = report
        self.tracker.record_analysis()
        self.events.emit(EngineEvent.ANALYSIS_COMPLETE, report)

        logger.debug(
            f"Analyzed {report.batch_size} outcomes: dominant={report.dominant.value}, "
            f"most_frequent={report.most_frequent}"
        )
        return report

    # Persistence

    def save_encrypted(self, destination: Union[str, Path]) -> Dict[str, str]:
        """Write an encrypted snapshot; returns its ``iv`` and ``authTag``."""
        self._ensure_open()
        return self.persistence.save_encrypted(destination)

    async def save_encrypted_async(self, destination: Union[str, Path]) -> Dict[str, str]:
        """Write an encrypted snapshot with the file I/O off the event loop."""
        self._ensure_open()
        return await self.persistence.save_encrypted_async(destination)

    def export_encrypted(self) -> EncryptedBlob:
        """Encrypt a snapshot and hand the blob back instead of writing a file."""
        self._ensure_open()
        return self.persistence.export_encrypted()

    def load_encrypted(self, source: Union[str, Path, EncryptedBlob, Dict[str, Any]]) -> int:
        """
        Replace the session state with an encrypted snapshot.

        ``source`` is a file path, or a blob held in memory such as the one
        ``export_encrypted`` returns.

        The last analysis is discarded; it is recomputed on the next analyze.

        Returns:
            Number of outcomes restored
        """
        self._ensure_open()
        restored = self.persistence.load_encrypted(source)
        self._last_analysis = None
        self.events.emit(EngineEvent.DATA_LOADED, {"resultCount": restored})
        return restored

    # Reports

    def generate_report(
        self,
        renderer: ReportRenderer,
        output_path: Union[str, Path],
        include_statistics: bool = False,
    ) -> Path:
        """
        Render a report of the latest analysed batch through ``renderer``.

        Without a prior analysis, the recent outcomes are listed with no
        analysis section. File system errors propagate unchanged.
        """
        self._ensure_open()
        analysis = self._last_analysis
        if analysis:
            results = self.ledger.tail(analysis.batch_size)
        else:
            results = self.recent()

        return renderer.render(
            results,
            analysis,
            include_statistics,
            output_path,
            statistics=self.get_statistics() if include_statistics else None,
        )

    # Lifecycle

    def clear_all(self) -> int:
        """
        Remove every captured outcome and the last analysis.

        Returns:
            Number of outcomes removed
        """
        self._ensure_open()
        removed = self.ledger.clear()
        self.tracker.reset_current()
        self._last_analysis = None
        self.events.emit(EngineEvent.RESULTS_CLEARED, {"removed": removed})
        logger.info(f"Cleared {removed} outcomes")
        return removed

    def close(self) -> None:
        """Release the session state. Further operations raise EngineClosedError."""
        if self._closed:
            return
        self.ledger.clear()
        self.tracker.reset_current()
        self._last_analysis = None
        self._closed = True
        self.events.emit(EngineEvent.CLOSED)
        self.events.clear()
        logger.info("TokioAI engine closed")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "TokioAI":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
