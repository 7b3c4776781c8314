"""
TokioAI Core Data Models

Defines the core data structures shared by the ledger, codec and persistence layers.
"""

import re
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from pydantic.alias_generators import to_camel

# es-ES rendering used by the capturing host
DISPLAY_DATE_FORMAT = "%d/%m/%Y"
DISPLAY_TIME_FORMAT = "%H:%M:%S"

IV_SIZE = 16
TAG_SIZE = 16

HEX_PATTERN = re.compile(r"(?:[0-9a-fA-F]{2})*")


class Dominant(str, Enum):
    """Dominant half of the outcome domain within a window."""

    HIGH = "high"
    LOW = "low"
    NEUTRAL = "neutral"


class Outcome(BaseModel):
    """One captured roulette result."""

    value: StrictInt = Field(description="Captured outcome value")
    captured_at: datetime = Field(description="Capture instant")
    display_date: str = Field(description="Capture date as shown to users")
    display_time: str = Field(description="Capture time as shown to users")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def at(cls, value: int, captured_at: datetime) -> "Outcome":
        """Build an outcome whose display fields are rendered from ``captured_at``."""
        return cls(
            value=value,
            captured_at=captured_at,
            display_date=captured_at.strftime(DISPLAY_DATE_FORMAT),
            display_time=captured_at.strftime(DISPLAY_TIME_FORMAT),
        )

    @property
    def timestamp_ms(self) -> int:
        return round(self.captured_at.timestamp() * 1000)

    def to_json(self) -> Dict[str, Any]:
        """Wire representation consumed by the REST/WebSocket host."""
        return {
            "resultado": self.value,
            "fecha": self.display_date,
            "hora": self.display_time,
            "timestamp": self.timestamp_ms,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Outcome":
        """
        Rebuild an outcome from its wire representation.

        Raises:
            ValueError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Outcome must be an object, got {type(data).__name__}")

        missing = {"resultado", "fecha", "hora", "timestamp"} - data.keys()
        if missing:
            raise ValueError(f"Outcome is missing fields: {sorted(missing)}")

        timestamp = data["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValueError(f"Invalid outcome timestamp: {timestamp!r}")
        try:
            captured_at = datetime.fromtimestamp(timestamp / 1000, UTC)
        except (OverflowError, OSError):
            raise ValueError(f"Outcome timestamp out of range: {timestamp}")

        return cls(
            value=data["resultado"],
            captured_at=captured_at,
            display_date=data["fecha"],
            display_time=data["hora"],
        )


class EncryptedBlob(BaseModel):
    """AES-GCM ciphertext with its IV and authentication tag, all hex-encoded."""

    ciphertext: str = Field(description="Hex-encoded ciphertext")
    iv: str = Field(description="Hex-encoded 128-bit IV")
    auth_tag: str = Field(alias="authTag", description="Hex-encoded 128-bit tag")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("ciphertext", "iv", "auth_tag")
    @classmethod
    def validate_hex(cls, v: str) -> str:
        if not HEX_PATTERN.fullmatch(v):
            raise ValueError("Value is not an even-length hexadecimal string")
        return v.lower()

    @field_validator("iv")
    @classmethod
    def validate_iv_size(cls, v: str) -> str:
        size = len(bytes.fromhex(v))
        if size != IV_SIZE:
            raise ValueError(f"IV must be {IV_SIZE} bytes, got {size}")
        return v

    @field_validator("auth_tag")
    @classmethod
    def validate_tag_size(cls, v: str) -> str:
        size = len(bytes.fromhex(v))
        if size != TAG_SIZE:
            raise ValueError(f"Tag must be {TAG_SIZE} bytes, got {size}")
        return v

    def to_json(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


class Statistics(BaseModel):
    """Read-time view of the session counters."""

    current_results: int = Field(description="Outcomes currently held by the ledger")
    total_results: int = Field(description="Outcomes captured over the session")
    total_analyses: int = Field(description="Successful analyses over the session")
    uptime_ms: int = Field(description="Milliseconds since engine creation")
    last_analysis_at: Optional[datetime] = Field(
        default=None, description="Instant of the most recent analysis"
    )

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
