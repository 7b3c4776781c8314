"""
TokioAI Configuration Management

Provides centralized configuration management with validation and environment support.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Logging level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    max_file_size: int = Field(
        default=10_000_000, description="Max log file size in bytes"
    )
    backup_count: int = Field(default=5, description="Number of backup log files")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class DomainConfig(BaseModel):
    """
    Outcome value domain and the low/high split used for trend classification.

    The defaults describe a single-zero wheel (0-36) split into 1-18 and 19-36
    with 0 belonging to neither half. A double-zero wheel can be modelled by
    widening ``max_value`` and listing the extra slot in ``zero_values``.
    """

    min_value: int = Field(default=0, description="Smallest valid outcome")
    max_value: int = Field(default=36, description="Largest valid outcome")
    zero_values: List[int] = Field(
        default_factory=lambda: [0], description="Values excluded from both halves"
    )
    low_range: Tuple[int, int] = Field(
        default=(1, 18), description="Inclusive bounds of the low half"
    )
    high_range: Tuple[int, int] = Field(
        default=(19, 36), description="Inclusive bounds of the high half"
    )

    @model_validator(mode="after")
    def validate_split(self) -> "DomainConfig":
        if self.min_value > self.max_value:
            raise ValueError(
                f"min_value {self.min_value} is greater than max_value {self.max_value}"
            )

        for name, (start, end) in (
            ("low_range", self.low_range),
            ("high_range", self.high_range),
        ):
            if start > end:
                raise ValueError(f"{name} is empty: {start} > {end}")
            if start < self.min_value or end > self.max_value:
                raise ValueError(
                    f"{name} ({start}, {end}) falls outside the domain "
                    f"[{self.min_value}, {self.max_value}]"
                )

        low_start, low_end = self.low_range
        high_start, high_end = self.high_range
        if low_start <= high_end and high_start <= low_end:
            raise ValueError("low_range and high_range must not overlap")

        for zero in self.zero_values:
            if not self.min_value <= zero <= self.max_value:
                raise ValueError(f"Zero value {zero} falls outside the domain")
            if self.in_low(zero) or self.in_high(zero):
                raise ValueError(f"Zero value {zero} must not belong to either half")

        return self

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value

    def in_low(self, value: int) -> bool:
        return self.low_range[0] <= value <= self.low_range[1]

    def in_high(self, value: int) -> bool:
        return self.high_range[0] <= value <= self.high_range[1]


class AnalysisConfig(BaseModel):
    """Batch analysis configuration."""

    batch_size: int = Field(default=10, description="Default analysis window size")
    auto_analyze: bool = Field(
        default=True, description="Analyze whenever the ledger fills a batch"
    )
    recent_limit: int = Field(
        default=50, description="Default number of outcomes exposed by recent reads"
    )
    suggestion_locale: str = Field(
        default="es", description="Language of suggestion text (es or en)"
    )

    @field_validator("batch_size", "recent_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be a positive integer, got {v}")
        return v

    @field_validator("suggestion_locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        if v.lower() not in {"es", "en"}:
            raise ValueError(f"Unsupported suggestion locale: {v}")
        return v.lower()


class SecurityConfig(BaseModel):
    """
    Security configuration.

    No key is ever generated implicitly: either ``key_hex`` or ``key_file``
    must be supplied, or ``generate_key`` must be set explicitly.
    """

    key_hex: Optional[str] = Field(
        default=None, description="AES-256 key as 64 hex characters"
    )
    key_file: Optional[str] = Field(default=None, description="Path of a hex key file")
    generate_key: bool = Field(
        default=False, description="Generate a fresh key when none is supplied"
    )

    @field_validator("key_hex")
    @classmethod
    def validate_key_hex(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if len(v) != 64:
            raise ValueError("key_hex must be 64 hex characters (256 bits)")
        try:
            bytes.fromhex(v)
        except ValueError:
            raise ValueError("key_hex is not valid hexadecimal")
        return v.lower()


class PersistenceConfig(BaseModel):
    """Encrypted snapshot configuration."""

    state_path: str = Field(
        default="./tokioai_state.json", description="Encrypted snapshot file path"
    )


class TokioAIConfig(BaseSettings):
    """Main TokioAI configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    domain: DomainConfig = Field(default_factory=DomainConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)

    model_config = SettingsConfigDict(
        env_prefix="TOKIOAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )


# Process-wide configuration, read by engines at construction only
_config: Optional[TokioAIConfig] = None


def get_config() -> TokioAIConfig:
    """
    Get the global configuration instance.

    Returns:
        The global TokioAIConfig instance
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def load_config(config_file: Optional[Path] = None) -> TokioAIConfig:
    """
    Load configuration from an env file and environment variables.

    Args:
        config_file: Optional path to a dotenv-style configuration file

    Returns:
        Loaded configuration instance
    """
    if config_file and config_file.exists():
        return TokioAIConfig(_env_file=str(config_file))

    return TokioAIConfig()
