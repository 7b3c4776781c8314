"""
TokioAI Analysis Module

Batch statistics, pattern detection and report formatting for captured outcomes.
"""

from .analyzer import AnalysisReport, BatchAnalyzer
from .patterns import PatternDetector, PatternSummary
from .reporting import ReportGenerator, ReportRenderer, TextReportRenderer
from .suggestions import SuggestionFormatter

__all__ = [
    "AnalysisReport",
    "BatchAnalyzer",
    "PatternDetector",
    "PatternSummary",
    "ReportGenerator",
    "ReportRenderer",
    "TextReportRenderer",
    "SuggestionFormatter",
]
