from __future__ import annotations

from .engine import simulate
from .input_track import InputCursor, InputTrack
from .result import ResultDocument, SimulationResult, decode_result_json, encode_result_json, result_document
from .runner import Analysis, analyze, analyze_files
from .stats import StatisticsAggregator, compute_accuracy

__all__ = [
    "Analysis",
    "InputCursor",
    "InputTrack",
    "ResultDocument",
    "SimulationResult",
    "StatisticsAggregator",
    "analyze",
    "analyze_files",
    "compute_accuracy",
    "decode_result_json",
    "encode_result_json",
    "result_document",
    "simulate",
]
