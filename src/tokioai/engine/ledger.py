"""
Result Ledger

Append-only, in-memory history of captured outcomes.
"""

from datetime import datetime
from typing import Any, Callable, Iterable, Iterator, List, Optional

from ..core.config import DomainConfig
from ..core.exceptions import ValidationError
from ..core.logging import get_logger
from ..core.models import Outcome

logger = get_logger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ResultLedger:
    """
    Holds every outcome captured during an engine's lifetime.

    The ledger never truncates itself; readers that want a recent window ask
    for a tail slice. ``clear`` is the only destructive operation.
    """

    def __init__(
        self,
        domain: Optional[DomainConfig] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialize the ledger.

        Args:
            domain: Valid outcome domain (single-zero wheel if None)
            now: Clock used to timestamp captures (local time if None)
        """
        self.domain = domain or DomainConfig()
        self._now = now or _local_now
        self._outcomes: List[Outcome] = []

    def __len__(self) -> int:
        return len(self._outcomes)

    def __iter__(self) -> Iterator[Outcome]:
        return iter(list(self._outcomes))

    def validate(self, value: Any) -> int:
        """
        Validate a raw outcome value against the domain.

        Integers and strings holding an integer are accepted.

        Returns:
            The value as an int

        Raises:
            ValidationError: If the value is malformed or out of domain
        """
        if isinstance(value, bool):
            raise ValidationError(f"Outcome value must be an integer, got {value!r}")

        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                raise ValidationError(f"Outcome value is not an integer: {value!r}")
        elif not isinstance(value, int):
            raise ValidationError(
                f"Outcome value must be an integer, got {type(value).__name__}"
            )

        if not self.domain.contains(value):
            raise ValidationError(
                f"Outcome value {value} is outside the domain",
                details={"min": self.domain.min_value, "max": self.domain.max_value},
            )

        return value

    def append(self, value: Any, captured_at: Optional[datetime] = None) -> Outcome:
        """
        Validate and record a new outcome.

        Args:
            value: Raw outcome value
            captured_at: Capture instant (now if None)

        Returns:
            The recorded Outcome

        Raises:
            ValidationError: If the value is rejected; the ledger is unchanged
        """
        outcome = Outcome.at(self.validate(value), captured_at or self._now())
        self._outcomes.append(outcome)
        return outcome

    def tail(self, count: int) -> List[Outcome]:
        """Return up to ``count`` most recent outcomes, oldest first."""
        if count < 0:
            raise ValidationError(f"Tail size must not be negative, got {count}")
        if count == 0:
            return []
        return self._outcomes[-count:]

    def outcomes(self) -> List[Outcome]:
        """Return a copy of the full capture history."""
        return list(self._outcomes)

    def replace(self, outcomes: Iterable[Outcome]) -> None:
        """
        Replace the whole history.

        All outcomes are validated before anything is swapped in.

        Raises:
            ValidationError: If any outcome lies outside the domain
        """
        staged = list(outcomes)
        for outcome in staged:
            self.validate(outcome.value)
        self._outcomes = staged

    def clear(self) -> int:
        """
        Remove every outcome.

        Returns:
            Number of outcomes removed
        """
        removed = len(self._outcomes)
        self._outcomes = []
        logger.debug(f"Cleared {removed} outcomes from ledger")
        return removed
