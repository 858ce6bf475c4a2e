import shlex

from clip_api.config import AppSettings
from clip_api.core.exceptions import ConfigurationError
from clip_api.core.utils.metrics_recorder import MetricsRecorder

from .base import ScoringStrategy
from .external import ExternalProcessScorer
from .heuristic import HeuristicScorer


class ScorerFactory:
    """Factory for creating scoring strategies from settings"""

    _SCORER_REGISTRY: dict[str, type[ScoringStrategy]] = {
        HeuristicScorer.name: HeuristicScorer,
        ExternalProcessScorer.name: ExternalProcessScorer,
    }

    @classmethod
    def available(cls) -> list[str]:
        return list(cls._SCORER_REGISTRY)

    @classmethod
    def create_scorer(cls, name: str, settings: AppSettings) -> ScoringStrategy:
        """
        Create a scoring strategy.

        Args:
            name: Registered strategy name ("heuristic" or "external")
            settings: Application settings

        Raises:
            ConfigurationError: If the strategy name is unknown
        """
        if name not in cls._SCORER_REGISTRY:
            raise ConfigurationError(f"Unknown scoring strategy: {name}. Available: {cls.available()}")

        scoring = settings.scoring
        if name == HeuristicScorer.name:
            return HeuristicScorer(model=settings.model_id, probe_timeout=scoring.probe_timeout)

        extra_env = {"HF_TOKEN": settings.huggingface_token} if settings.huggingface_token else None
        command = shlex.split(scoring.external_command) if scoring.external_command else None
        return ExternalProcessScorer(
            command=command,
            timeout=scoring.external_timeout,
            model=settings.model_id,
            extra_env=extra_env,
            metrics_recorder=MetricsRecorder(enabled=settings.observability.enable_metrics),
        )
