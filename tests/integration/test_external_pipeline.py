"""
End-to-end checks of the model-backed endpoints with a stand-in scoring process.

The child is a short Python snippet configured through EXTERNAL_COMMAND, so
these run without downloading model weights.
"""

import shlex
import sys

from clip_api.config import ScoringConfig
from clip_api.core.scoring import ScorerFactory
from tests.fixtures.settings_fixtures import build_settings

# Echoes the forwarded token as the model name; fails for URLs containing "broken"
RUNNER_SNIPPET = """
import json, os, sys
url = sys.argv[sys.argv.index('--image-url') + 1]
if 'broken' in url:
    print('image could not be decoded', file=sys.stderr)
    sys.exit(1)
print(json.dumps({'success': True, 'similarity_score': 24.5, 'model': os.environ.get('HF_TOKEN')}))
"""


def external_settings():
    command = shlex.join([sys.executable, "-c", RUNNER_SNIPPET])
    return build_settings(
        token="hf_integration",
        scoring=ScoringConfig(external_command=command, external_timeout=30),
    )


def install_external(override_handlers, settings):
    scorer = ScorerFactory.create_scorer("external", settings)
    return override_handlers(scorer, settings=settings)


class TestExternalPipeline:
    def test_single_evaluation(self, test_client, override_handlers):
        install_external(override_handlers, external_settings())

        response = test_client.post(
            "/api/evaluate/text-image", json={"image_url": "https://example.com/cat.png", "text": "a cat"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["similarity_score"] == 24.5
        assert data["model"] == "hf_integration"

    def test_process_failure_is_500(self, test_client, override_handlers):
        install_external(override_handlers, external_settings())

        response = test_client.post(
            "/api/evaluate/text-image", json={"image_url": "https://example.com/broken.png", "text": "a cat"}
        )

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to evaluate image-text similarity"
        assert "image could not be decoded" in data["message"]

    def test_batch_mixes_outcomes(self, test_client, override_handlers):
        install_external(override_handlers, external_settings())
        evaluations = [
            {"image_url": "https://example.com/cat.png", "text": "a cat"},
            {"image_url": "https://example.com/broken.png", "text": "a cat"},
            {"text": "no image"},
        ]

        response = test_client.post("/api/batch-evaluate", json={"evaluations": evaluations})

        assert response.status_code == 200
        data = response.json()
        assert [r["success"] for r in data["results"]] == [True, False, False]
        assert data["summary"] == {
            "total": 3,
            "successful": 1,
            "failed": 2,
            "processing_time": data["summary"]["processing_time"],
        }
