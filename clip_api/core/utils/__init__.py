"""Utility components shared by evaluation handlers."""

from .metrics_recorder import MetricsRecorder
from .result_builder import ResultBuilder

__all__ = [
    "MetricsRecorder",
    "ResultBuilder",
]
