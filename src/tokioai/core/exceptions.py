"""
TokioAI Exception Hierarchy

Defines the exception hierarchy shared by the engine, codec and persistence layers.
"""

from typing import Any, Dict, Optional


class TokioAIException(Exception):
    """Base exception for all TokioAI errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ValidationError(TokioAIException):
    """Out-of-domain or malformed outcome values."""

    pass


class InsufficientDataError(TokioAIException):
    """Analysis requested over an empty window."""

    pass


class SecurityError(TokioAIException):
    """Security-related errors (keys, encryption)."""

    pass


class AuthenticationError(SecurityError):
    """AEAD tag mismatch: the data was tampered with or the key is wrong."""

    pass


class StorageError(TokioAIException):
    """Encrypted snapshot storage and retrieval errors."""

    pass


class CorruptionError(StorageError):
    """Malformed encrypted file or decoded snapshot shape."""

    pass


class ConfigurationError(TokioAIException):
    """Configuration-related errors."""

    pass


class EngineClosedError(TokioAIException):
    """Operation attempted on an engine after close()."""

    pass
