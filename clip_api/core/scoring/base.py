from abc import ABC, abstractmethod

from clip_api.core.types import ScoreResult


class ScoringStrategy(ABC):
    """
    Abstract base class for similarity scoring strategies.

    Handlers only talk to this interface, so a strategy can be swapped
    through configuration without touching the routes.

    Extension pattern:
    1. Inherit from ScoringStrategy
    2. Set ``name`` and implement ``evaluate``
    3. Register the class in ``ScorerFactory``
    """

    name: str = "abstract"

    def __init__(self, model: str):
        self._model = model

    @property
    def model(self) -> str:
        """Model identifier reported with scores"""
        return self._model

    @abstractmethod
    async def evaluate(self, image_url: str, text: str) -> ScoreResult:
        """
        Score a single image-text pair.

        Args:
            image_url: Absolute http(s) URL of the image
            text: Text description to compare

        Returns:
            ScoreResult with the similarity score and model identifier

        Raises:
            EvaluationError: If the pair could not be scored
        """
