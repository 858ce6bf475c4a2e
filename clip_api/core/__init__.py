from .scoring import ExternalProcessScorer, HeuristicScorer, ScorerFactory, ScoringStrategy
from .types import EvaluationResult, ScoreResult

__all__ = [
    "EvaluationResult",
    "ScoreResult",
    "ScoringStrategy",
    "HeuristicScorer",
    "ExternalProcessScorer",
    "ScorerFactory",
]
