"""
Pytest configuration and shared fixtures for TokioAI tests.
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import pytest

from tokioai.core.config import AnalysisConfig, PersistenceConfig, TokioAIConfig
from tokioai.engine.session import TokioAI
from tokioai.security.encryption import SecureCodec


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def test_config(temp_dir: Path) -> TokioAIConfig:
    """Provide a test configuration with auto-analysis disabled."""
    return TokioAIConfig(
        analysis=AnalysisConfig(auto_analyze=False),
        persistence=PersistenceConfig(state_path=str(temp_dir / "state.json")),
        logging={"level": "DEBUG"},
    )


@pytest.fixture
def codec() -> SecureCodec:
    """Provide a codec with a fresh random key."""
    return SecureCodec.generate()


@pytest.fixture
def fixed_now():
    """Provide a wall clock pinned to a known instant."""
    instant = datetime(2024, 3, 9, 14, 5, 7, tzinfo=timezone.utc)
    return lambda: instant


@pytest.fixture
def engine(codec: SecureCodec, test_config: TokioAIConfig, fixed_now) -> Generator[TokioAI, None, None]:
    """Provide an engine without auto-analysis."""
    instance = TokioAI(codec, config=test_config, now=fixed_now)
    yield instance
    instance.close()
