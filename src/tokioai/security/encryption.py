"""
TokioAI Secure Codec

Authenticated encryption (AES-256-GCM) of JSON-serializable payloads for the
encrypted state snapshots, plus SHA-256 fingerprint helpers.
"""

import hashlib
import json
import secrets
from typing import Any, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CorruptionError,
    ValidationError,
)
from ..core.logging import get_logger
from ..core.models import IV_SIZE, TAG_SIZE, EncryptedBlob

logger = get_logger(__name__)

KEY_SIZE = 32


def sha256_hex(data: Union[str, bytes]) -> str:
    """
    Compute a SHA-256 digest for integrity fingerprints.

    Args:
        data: Data to hash (strings are UTF-8 encoded)

    Returns:
        Hex-encoded digest
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def _coerce_key(key: Any) -> bytes:
    if key is None:
        raise ConfigurationError(
            "An encryption key is required; use SecureCodec.generate() to create one"
        )
    if not isinstance(key, (bytes, bytearray)):
        raise ConfigurationError(
            f"Encryption key must be bytes, got {type(key).__name__}"
        )
    if len(key) != KEY_SIZE:
        raise ConfigurationError(
            f"Encryption key must be {KEY_SIZE} bytes",
            details={"length": len(key)},
        )
    return bytes(key)


def _check_keys(payload: Any) -> None:
    if isinstance(payload, dict):
        for key, value in payload.items():
            if not isinstance(key, str):
                raise ValidationError(
                    f"Payload mapping keys must be strings, got {type(key).__name__} {key!r}"
                )
            _check_keys(value)
    elif isinstance(payload, (list, tuple)):
        for item in payload:
            _check_keys(item)


def _key_from_hex(key_hex: str) -> bytes:
    try:
        key = bytes.fromhex(key_hex.strip())
    except (AttributeError, ValueError):
        raise ConfigurationError("Encryption key is not valid hexadecimal")
    return _coerce_key(key)


class SecureCodec:
    """
    AES-256-GCM codec with a 128-bit authentication tag.

    Every encryption draws a fresh random 128-bit IV and no method accepts a
    caller-supplied IV, so an IV cannot be reused under the codec's key.
    Decryption verifies the tag before any plaintext is returned.
    """

    def __init__(self, key: bytes) -> None:
        """
        Initialize the codec.

        Args:
            key: 32-byte AES key

        Raises:
            ConfigurationError: If the key is missing or has the wrong size
        """
        self._key = _coerce_key(key)

    @classmethod
    def generate(cls) -> "SecureCodec":
        """Create a codec with a freshly generated random key."""
        codec = cls(secrets.token_bytes(KEY_SIZE))
        logger.info(f"Generated new encryption key {codec.fingerprint()}")
        return codec

    @classmethod
    def from_hex(cls, key_hex: str) -> "SecureCodec":
        """Create a codec from a hex-encoded key."""
        return cls(_key_from_hex(key_hex))

    def export_key(self) -> str:
        """Export the key as a hex string for external safekeeping."""
        return self._key.hex()

    def import_key(self, key_hex: str) -> None:
        """
        Replace the active key with a hex-encoded one.

        Blobs encrypted under the previous key no longer decrypt.
        """
        self._key = _key_from_hex(key_hex)
        logger.info(f"Imported encryption key {self.fingerprint()}")

    def fingerprint(self) -> str:
        """Short SHA-256 fingerprint identifying the key without revealing it."""
        return sha256_hex(self._key)[:16]

    def encrypt_bytes(self, plaintext: bytes) -> EncryptedBlob:
        """
        Encrypt raw bytes.

        Args:
            plaintext: Data to encrypt

        Returns:
            EncryptedBlob with hex ciphertext, IV and tag
        """
        iv = secrets.token_bytes(IV_SIZE)
        encryptor = Cipher(algorithms.AES(self._key), modes.GCM(iv)).encryptor()
        ciphertext = encryptor.update(plaintext) + encryptor.finalize()

        return EncryptedBlob(
            ciphertext=ciphertext.hex(),
            iv=iv.hex(),
            auth_tag=encryptor.tag.hex(),
        )

    def decrypt_bytes(self, blob: EncryptedBlob) -> bytes:
        """
        Decrypt and authenticate a blob.

        Args:
            blob: Blob produced by encrypt_bytes/encrypt

        Returns:
            Decrypted plaintext

        Raises:
            AuthenticationError: If the tag does not verify under this key
            CorruptionError: If the IV, tag or ciphertext cannot be decoded
        """
        try:
            decryptor = Cipher(
                algorithms.AES(self._key),
                modes.GCM(bytes.fromhex(blob.iv), bytes.fromhex(blob.auth_tag), TAG_SIZE),
            ).decryptor()
            ciphertext = bytes.fromhex(blob.ciphertext)
        except ValueError as e:
            raise CorruptionError(f"Encrypted blob has malformed parameters: {e}")

        try:
            # update() output is discarded unless finalize() verifies the tag
            plaintext = decryptor.update(ciphertext)
            plaintext += decryptor.finalize()
        except InvalidTag:
            raise AuthenticationError(
                "Authentication tag mismatch: data was tampered with or the key is wrong"
            )

        return plaintext

    def encrypt(self, payload: Any) -> EncryptedBlob:
        """
        Encrypt a JSON-serializable payload.

        Tuples decrypt as lists. Mapping keys must be strings, since JSON
        would otherwise turn them into strings and break the round trip.

        Args:
            payload: Any JSON-serializable value

        Returns:
            EncryptedBlob for the JSON text of the payload

        Raises:
            ValidationError: If the payload cannot be serialized as JSON or
                holds a non-string mapping key
        """
        try:
            text = json.dumps(payload, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Payload is not JSON-serializable: {e}")
        _check_keys(payload)

        return self.encrypt_bytes(text.encode("utf-8"))

    def decrypt(self, blob: EncryptedBlob) -> Any:
        """
        Decrypt a blob and decode its payload.

        The recovered text is parsed as JSON; text that is not JSON is
        returned unchanged as a string.

        Raises:
            AuthenticationError: If the tag does not verify under this key
            CorruptionError: If the authenticated plaintext is not UTF-8
        """
        plaintext = self.decrypt_bytes(blob)

        try:
            text = plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise CorruptionError("Decrypted payload is not valid UTF-8 text")

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
