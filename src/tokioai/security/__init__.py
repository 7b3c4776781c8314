"""
TokioAI Security Module

Authenticated encryption of state snapshots and key file handling.
"""

from .encryption import SecureCodec, sha256_hex
from .keys import KeyStore

__all__ = [
    "SecureCodec",
    "sha256_hex",
    "KeyStore",
]
