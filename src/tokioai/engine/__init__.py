"""
TokioAI Engine Module

Outcome ledger, session statistics, event channel and the engine facade.
"""

from .events import EngineEvent, EventChannel
from .ledger import ResultLedger
from .statistics import StatisticsTracker
from .session import TokioAI

__all__ = [
    "EngineEvent",
    "EventChannel",
    "ResultLedger",
    "StatisticsTracker",
    "TokioAI",
]
