import httpx
import pytest

from clip_api.core.exceptions import UpstreamUnreachableError
from clip_api.core.scoring import HeuristicScorer, ScoringStrategy
from clip_api.core.types import ScoreResult


class StubScorer(ScoringStrategy):
    """Scores every pair with a fixed value; URLs listed in failures raise instead"""

    name = "stub"

    def __init__(self, score: float = 0.42, failures: dict[str, Exception] | None = None, model: str = "stub-model"):
        super().__init__(model)
        self.score = score
        self.failures = failures or {}
        self.calls: list[tuple[str, str]] = []

    async def evaluate(self, image_url: str, text: str) -> ScoreResult:
        self.calls.append((image_url, text))
        if image_url in self.failures:
            raise self.failures[image_url]
        return ScoreResult(similarity_score=self.score, model=self.model)


class FixedRandom:
    """Random source returning one value, so the jitter is predictable"""

    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value


def image_transport(status_by_url: dict[str, int] | None = None, default_status: int = 200) -> httpx.MockTransport:
    """Answer HEAD probes with a status per URL"""
    status_by_url = status_by_url or {}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_by_url.get(str(request.url), default_status))

    return httpx.MockTransport(handler)


@pytest.fixture
def stub_scorer() -> StubScorer:
    return StubScorer(failures={"https://example.com/missing.png": UpstreamUnreachableError("Image not accessible: 404")})


@pytest.fixture
def fixed_random() -> FixedRandom:
    return FixedRandom(0.5)


@pytest.fixture
def probe_client():
    """HTTP client where /missing.png answers 404 and everything else 200"""
    transport = image_transport({"https://example.com/missing.png": 404})
    return httpx.AsyncClient(transport=transport, follow_redirects=True)


@pytest.fixture
def heuristic_scorer(probe_client, fixed_random) -> HeuristicScorer:
    """Heuristic scorer with a mocked network and no jitter"""
    return HeuristicScorer(model="openai/clip-vit-base-patch32", http_client=probe_client, rng=fixed_random)
