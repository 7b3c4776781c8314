"""
Key file storage for the secure codec.

Keys are kept as a single line of hex in a file readable only by its owner.
"""

import os
from pathlib import Path
from typing import Union

from ..core.exceptions import ConfigurationError
from ..core.logging import get_logger
from .encryption import SecureCodec

logger = get_logger(__name__)


class KeyStore:
    """Persists a codec key as hex outside the encrypted snapshot."""

    def __init__(self, key_file: Union[str, Path]) -> None:
        self.key_file = Path(key_file).expanduser()

    def exists(self) -> bool:
        return self.key_file.is_file()

    def save(self, codec: SecureCodec, overwrite: bool = False) -> Path:
        """
        Write the codec key to the key file with owner-only permissions.

        Args:
            codec: Codec whose key is exported
            overwrite: Replace an existing key file

        Returns:
            Path of the written key file
        """
        if self.exists() and not overwrite:
            raise ConfigurationError(
                f"Key file already exists: {self.key_file}",
                details={"hint": "pass overwrite=True to replace it"},
            )

        self.key_file.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

        fd = os.open(self.key_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="ascii") as f:
            f.write(codec.export_key() + "\n")
        os.chmod(self.key_file, 0o600)

        logger.info(f"Saved key {codec.fingerprint()} to {self.key_file}")
        return self.key_file

    def load(self) -> SecureCodec:
        """
        Load a codec from the key file.

        Raises:
            ConfigurationError: If the file is missing or does not hold a valid key
        """
        if not self.exists():
            raise ConfigurationError(f"Key file not found: {self.key_file}")

        codec = SecureCodec.from_hex(self.key_file.read_text(encoding="utf-8").strip())
        logger.debug(f"Loaded key {codec.fingerprint()} from {self.key_file}")
        return codec
