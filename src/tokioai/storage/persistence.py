"""
TokioAI Persistence Gateway

Saves and restores the ledger and statistics as one encrypted JSON snapshot.
"""

import asyncio
import json
import logging
import os
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import CorruptionError, ValidationError
from ..core.logging import get_logger, log_structured
from ..core.models import EncryptedBlob, Outcome
from ..engine.ledger import ResultLedger
from ..engine.statistics import StatisticsTracker
from ..security.encryption import SecureCodec

logger = get_logger(__name__)

SNAPSHOT_VERSION = 1

PathLike = Union[str, Path]
BlobSource = Union[str, Path, EncryptedBlob, Dict[str, Any]]


def write_atomic(path: Path, text: str) -> None:
    """
    Write text to ``path`` through a temporary file in the same directory.

    The destination is either left untouched or replaced with the complete
    text; a failed write never leaves partial content under ``path``.
    """
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def read_blob(source: PathLike) -> EncryptedBlob:
    """
    Read an encrypted blob file.

    Raises:
        OSError: If the file cannot be read
        CorruptionError: If the file is not a well-formed blob document
    """
    path = Path(source)
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise CorruptionError(f"Encrypted file is not UTF-8 text: {path}")

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptionError(f"Encrypted file is not valid JSON: {path}", {"error": str(e)})

    return parse_blob(document, origin=str(path))


def parse_blob(document: Any, origin: str = "in-memory blob") -> EncryptedBlob:
    """
    Validate a decoded ``{ciphertext, iv, authTag}`` document.

    Raises:
        CorruptionError: If the document is not a well-formed blob
    """
    if not isinstance(document, dict):
        raise CorruptionError(f"Encrypted document is not a JSON object: {origin}")

    try:
        return EncryptedBlob.model_validate(document)
    except PydanticValidationError as e:
        raise CorruptionError(
            f"Encrypted document has an invalid shape: {origin}",
            {"errors": [err["msg"] for err in e.errors()]},
        )


class PersistenceGateway:
    """
    Moves session state between memory and an encrypted blob or file.

    The snapshot is always taken synchronously from the ledger and tracker;
    the gateway never mutates them except when a load fully succeeds.
    """

    def __init__(
        self, ledger: ResultLedger, tracker: StatisticsTracker, codec: SecureCodec
    ) -> None:
        self.ledger = ledger
        self.tracker = tracker
        self.codec = codec

    def snapshot(self) -> Dict[str, Any]:
        """Capture the current ledger and statistics as plain JSON data."""
        return {
            "version": SNAPSHOT_VERSION,
            "results": [outcome.to_json() for outcome in self.ledger.outcomes()],
            "stats": self.tracker.snapshot(),
            "timestamp": int(time.time() * 1000),
        }

    def _seal(self) -> EncryptedBlob:
        return self.codec.encrypt(self.snapshot())

    def _audit(self, blob: EncryptedBlob) -> Dict[str, str]:
        return {"iv": blob.iv, "authTag": blob.auth_tag}

    def save_encrypted(self, destination: PathLike) -> Dict[str, str]:
        """
        Encrypt the current state and write it to ``destination``.

        Args:
            destination: Target file path

        Returns:
            The blob's ``iv`` and ``authTag`` for caller-side audit

        Raises:
            OSError: If the file cannot be written
        """
        path = Path(destination)
        blob = self._seal()
        write_atomic(path, json.dumps(blob.to_json()))

        log_structured(
            logger,
            logging.INFO,
            "Saved encrypted snapshot",
            path=str(path),
            results=len(self.ledger),
            key=self.codec.fingerprint(),
        )
        return self._audit(blob)

    async def save_encrypted_async(self, destination: PathLike) -> Dict[str, str]:
        """
        Save like ``save_encrypted`` with the file write in a worker thread.

        The snapshot is sealed before the first await, so captures made while
        the write is in flight are not part of this file.
        """
        path = Path(destination)
        blob = self._seal()
        await asyncio.to_thread(write_atomic, path, json.dumps(blob.to_json()))

        logger.info(f"Saved encrypted snapshot asynchronously to {path}")
        return self._audit(blob)

    def export_encrypted(self) -> EncryptedBlob:
        """
        Encrypt the current state without writing it anywhere.

        The host decides where the blob goes; ``load_encrypted`` accepts it
        back as-is or as its ``to_json()`` document.
        """
        blob = self._seal()
        logger.debug(f"Exported encrypted snapshot of {len(self.ledger)} outcomes")
        return blob

    def load_encrypted(self, source: BlobSource) -> int:
        """
        Replace the in-memory ledger and statistics with a saved snapshot.

        Nothing is merged with existing state. If any step fails, the current
        state is left exactly as it was.

        Args:
            source: Encrypted file path, an EncryptedBlob, or a blob document
                such as the one ``EncryptedBlob.to_json()`` returns

        Returns:
            Number of outcomes restored

        Raises:
            OSError: If the file cannot be read
            AuthenticationError: If the tag does not verify (tampering or wrong key)
            CorruptionError: If the file, document or decoded snapshot is malformed
        """
        if isinstance(source, EncryptedBlob):
            blob, origin = source, "in-memory blob"
        elif isinstance(source, dict):
            blob, origin = parse_blob(source), "in-memory blob"
        else:
            blob, origin = read_blob(source), str(source)

        payload = self.codec.decrypt(blob)
        outcomes, stats = self._parse_snapshot(payload)

        try:
            self.ledger.replace(outcomes)
        except ValidationError as e:
            raise CorruptionError(f"Snapshot holds an invalid outcome: {e.message}")

        self.tracker.restore(
            current_results=len(outcomes),
            total_results=stats["total_results"],
            total_analyses=stats["total_analyses"],
            last_analysis_at=stats["last_analysis_at"],
        )

        log_structured(
            logger,
            logging.INFO,
            "Loaded encrypted snapshot",
            source=origin,
            results=len(outcomes),
        )
        return len(outcomes)

    def _parse_snapshot(self, payload: Any) -> Tuple[List[Outcome], Dict[str, Any]]:
        if not isinstance(payload, dict):
            raise CorruptionError("Decrypted snapshot is not a JSON object")

        results = payload.get("results")
        if not isinstance(results, list):
            raise CorruptionError("Decrypted snapshot has no results list")

        stats = payload.get("stats", {})
        if not isinstance(stats, dict):
            raise CorruptionError("Decrypted snapshot has an invalid stats section")

        try:
            outcomes = [Outcome.from_json(entry) for entry in results]
        except ValueError as e:
            raise CorruptionError(f"Snapshot holds a malformed outcome: {e}")

        for outcome in outcomes:
            if not self.ledger.domain.contains(outcome.value):
                raise CorruptionError(
                    f"Snapshot outcome {outcome.value} is outside the domain"
                )

        total_results = stats.get("totalResults", len(outcomes))
        total_analyses = stats.get("totalAnalyses", 0)
        for name, value in (
            ("totalResults", total_results),
            ("totalAnalyses", total_analyses),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise CorruptionError(f"Snapshot counter {name} is invalid: {value!r}")

        last_analysis = stats.get("lastAnalysis")
        last_analysis_at = None
        if last_analysis is not None:
            try:
                last_analysis_at = datetime.fromisoformat(last_analysis)
            except (TypeError, ValueError):
                raise CorruptionError(
                    f"Snapshot lastAnalysis is not a timestamp: {last_analysis!r}"
                )

        return outcomes, {
            "total_results": max(total_results, len(outcomes)),
            "total_analyses": total_analyses,
            "last_analysis_at": last_analysis_at,
        }
