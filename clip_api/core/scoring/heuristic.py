import random

import httpx

from clip_api.constants import DEFAULT_MODEL_ID
from clip_api.core.exceptions import UpstreamUnreachableError
from clip_api.core.types import ScoreResult
from clip_api.log import get_logger

from .base import ScoringStrategy

logger = get_logger(__name__)

BASE_SCORE = 0.5
KEYWORD_BONUS = 0.15
JITTER_SPAN = 0.3
MIN_SCORE = 0.1
MAX_SCORE = 0.95
MIN_KEYWORD_LENGTH = 3


class HeuristicScorer(ScoringStrategy):
    """
    Simulated CLIP scoring.

    Probes the image URL, then scores the pair by how many words of the
    text appear in the URL, plus random jitter. Placeholder until a real
    model is wired in; the only guarantees are the [0.1, 0.95] range and
    4-decimal rounding.
    """

    name = "heuristic"

    def __init__(
        self,
        model: str = DEFAULT_MODEL_ID,
        probe_timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
    ):
        """
        Args:
            model: Model identifier reported with scores
            probe_timeout: Seconds allowed for the HEAD probe
            http_client: Optional shared client, used instead of a per-call one
            rng: Random source for the jitter
        """
        super().__init__(model)
        self.probe_timeout = probe_timeout
        self._http_client = http_client
        self._rng = rng or random.Random()

    async def evaluate(self, image_url: str, text: str) -> ScoreResult:
        try:
            await self.probe(image_url)
        except UpstreamUnreachableError as e:
            raise UpstreamUnreachableError(f"Failed to evaluate: {e}") from e

        return ScoreResult(similarity_score=self.compute_score(image_url, text), model=self.model)

    async def probe(self, image_url: str) -> None:
        """
        Check that the image exists without downloading it.

        Raises:
            UpstreamUnreachableError: On non-2xx status, transport error or malformed URL
        """
        if self._http_client is not None:
            response = await self._head(self._http_client, image_url)
        else:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.probe_timeout), follow_redirects=True) as client:
                response = await self._head(client, image_url)

        if not response.is_success:
            raise UpstreamUnreachableError(f"Image not accessible: {response.status_code}")

    @staticmethod
    async def _head(client: httpx.AsyncClient, image_url: str) -> httpx.Response:
        try:
            return await client.head(image_url, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Probe failed for {image_url}: {e!r}")
            raise UpstreamUnreachableError(f"Image not accessible: {str(e) or type(e).__name__}") from e

    def compute_score(self, image_url: str, text: str) -> float:
        """Keyword overlap between text and URL, jittered, clamped and rounded"""
        url_lower = image_url.lower()
        keywords = [word for word in text.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]

        similarity = BASE_SCORE
        for keyword in keywords:
            if keyword in url_lower:
                similarity += KEYWORD_BONUS

        similarity += (self._rng.random() - 0.5) * JITTER_SPAN
        similarity = max(MIN_SCORE, min(MAX_SCORE, similarity))

        return round(similarity, 4)
