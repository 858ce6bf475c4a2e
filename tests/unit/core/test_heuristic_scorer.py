import random

import httpx
import pytest

from clip_api.core.exceptions import EvaluationError, UpstreamUnreachableError
from clip_api.core.scoring import HeuristicScorer
from tests.fixtures.scorer_fixtures import FixedRandom, image_transport


class TestHeuristicScoreComputation:
    """Keyword heuristic without network access"""

    def test_base_score_without_keyword_hits(self):
        scorer = HeuristicScorer(rng=FixedRandom(0.5))
        assert scorer.compute_score("https://example.com/image.png", "a red bicycle") == 0.5

    def test_keyword_in_url_adds_bonus(self):
        scorer = HeuristicScorer(rng=FixedRandom(0.5))
        # "cute" misses, "cat" hits, "a" is too short to count
        assert scorer.compute_score("https://example.com/cat.png", "a cute cat") == 0.65

    def test_matching_is_case_insensitive(self):
        scorer = HeuristicScorer(rng=FixedRandom(0.5))
        assert scorer.compute_score("https://example.com/CAT.png", "Cat") == 0.65

    def test_short_tokens_are_ignored(self):
        scorer = HeuristicScorer(rng=FixedRandom(0.5))
        assert scorer.compute_score("https://example.com/an/ox.png", "an ox") == 0.5

    def test_repeated_keywords_count_each_time(self):
        scorer = HeuristicScorer(rng=FixedRandom(0.5))
        assert scorer.compute_score("https://example.com/cat.png", "cat cat") == 0.8

    def test_score_clamped_to_upper_bound(self):
        scorer = HeuristicScorer(rng=FixedRandom(0.99))
        score = scorer.compute_score("https://example.com/cat-dog-bird.png", "cat dog bird example")
        assert score == 0.95

    @pytest.mark.parametrize("draw,expected", [(0.0, 0.35), (0.999999, 0.65)])
    def test_jitter_bounds(self, draw, expected):
        scorer = HeuristicScorer(rng=FixedRandom(draw))
        assert scorer.compute_score("https://example.com/image.png", "nothing matches") == pytest.approx(expected, abs=1e-4)

    def test_scores_stay_in_range_and_rounded(self):
        rng = random.Random(1234)
        scorer = HeuristicScorer(rng=rng)
        words = ["cat", "dog", "a", "photo", "of", "example", "png", "https", "blue", "sky"]

        for _ in range(500):
            text = " ".join(rng.choice(words) for _ in range(rng.randint(1, 8)))
            score = scorer.compute_score("https://example.com/photo-of-cat.png", text)
            assert 0.1 <= score <= 0.95
            assert round(score, 4) == score


class TestHeuristicProbe:
    """Reachability probe before scoring"""

    @pytest.mark.asyncio
    async def test_reachable_image_is_scored(self, heuristic_scorer):
        result = await heuristic_scorer.evaluate("https://example.com/cat.png", "a cute cat")
        assert result.similarity_score == 0.65
        assert result.model == "openai/clip-vit-base-patch32"

    @pytest.mark.asyncio
    async def test_probe_uses_head_request(self, fixed_random):
        methods = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        scorer = HeuristicScorer(http_client=client, rng=fixed_random)

        await scorer.evaluate("https://example.com/cat.png", "cat")
        assert methods == ["HEAD"]

    @pytest.mark.asyncio
    async def test_non_success_status_fails(self, heuristic_scorer):
        with pytest.raises(UpstreamUnreachableError, match="Failed to evaluate: Image not accessible: 404"):
            await heuristic_scorer.evaluate("https://example.com/missing.png", "a cute cat")

    @pytest.mark.asyncio
    async def test_server_error_status_fails(self, fixed_random):
        client = httpx.AsyncClient(transport=image_transport(default_status=503))
        scorer = HeuristicScorer(http_client=client, rng=fixed_random)

        with pytest.raises(EvaluationError, match="503"):
            await scorer.evaluate("https://example.com/cat.png", "cat")

    @pytest.mark.asyncio
    async def test_redirect_to_image_is_followed(self, fixed_random):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old.png":
                return httpx.Response(301, headers={"Location": "https://example.com/new.png"})
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        scorer = HeuristicScorer(http_client=client, rng=fixed_random)

        result = await scorer.evaluate("https://example.com/old.png", "picture")
        assert result.similarity_score == 0.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("timed out"),
            httpx.InvalidURL("bad url"),
        ],
    )
    async def test_transport_errors_fail(self, fixed_random, error):
        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        scorer = HeuristicScorer(http_client=client, rng=fixed_random)

        with pytest.raises(UpstreamUnreachableError, match="Image not accessible"):
            await scorer.evaluate("https://example.com/cat.png", "cat")
