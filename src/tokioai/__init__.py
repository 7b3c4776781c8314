"""
TokioAI - roulette outcome pattern analysis with encrypted session snapshots.
"""

from .engine import EngineEvent, TokioAI
from .security import SecureCodec

__version__ = "0.1.0"

__all__ = ["TokioAI", "EngineEvent", "SecureCodec", "__version__"]
