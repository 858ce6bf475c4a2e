"""Scoring strategies - heuristic simulation and delegated external process."""

from .base import ScoringStrategy
from .external import ExternalProcessScorer
from .factory import ScorerFactory
from .heuristic import HeuristicScorer

__all__ = [
    "ScoringStrategy",
    "HeuristicScorer",
    "ExternalProcessScorer",
    "ScorerFactory",
]
