import asyncio
import os
import sys
import time

import pytest

from clip_api.core.exceptions import ExternalProcessError, ExternalProcessTimeoutError
from clip_api.core.scoring import ExternalProcessScorer
from clip_api.core.scoring.external import DEFAULT_COMMAND


def python_command(code: str) -> list[str]:
    """Command running a small Python snippet; scorer arguments land in sys.argv[1:]"""
    return [sys.executable, "-c", code]


PRINT_SCORE = "import json; print(json.dumps({'similarity_score': 27.5, 'model': 'ViT-B-32'}))"


class TestExternalProcessScorer:
    """Scoring through a child process"""

    def test_default_command_runs_bundled_runner(self):
        scorer = ExternalProcessScorer()
        assert scorer.command == list(DEFAULT_COMMAND)
        assert scorer.build_command("https://example.com/cat.png", "a cat")[-4:] == [
            "--image-url",
            "https://example.com/cat.png",
            "--text",
            "a cat",
        ]

    def test_zero_timeout_disables_deadline(self):
        assert ExternalProcessScorer(timeout=0).timeout is None

    @pytest.mark.asyncio
    async def test_successful_process_output_is_parsed(self):
        scorer = ExternalProcessScorer(command=python_command(PRINT_SCORE))

        result = await scorer.evaluate("https://example.com/cat.png", "a cat")

        assert result.similarity_score == 27.5
        assert result.model == "ViT-B-32"

    @pytest.mark.asyncio
    async def test_arguments_are_passed_verbatim(self):
        code = "import json, sys; print(json.dumps({'similarity_score': 1, 'model': '|'.join(sys.argv[1:])}))"
        scorer = ExternalProcessScorer(command=python_command(code))
        text = 'a "quoted" cat; rm -rf /'

        result = await scorer.evaluate("https://example.com/cat.png", text)

        assert result.model == f"--image-url|https://example.com/cat.png|--text|{text}"

    @pytest.mark.asyncio
    async def test_missing_model_falls_back_to_configured_id(self):
        code = "import json; print(json.dumps({'similarity_score': 3}))"
        scorer = ExternalProcessScorer(command=python_command(code), model="configured-model")

        result = await scorer.evaluate("https://example.com/cat.png", "cat")

        assert result.similarity_score == 3.0
        assert result.model == "configured-model"

    @pytest.mark.asyncio
    async def test_extra_env_is_forwarded(self):
        code = "import json, os; print(json.dumps({'similarity_score': 1, 'model': os.environ['HF_TOKEN']}))"
        scorer = ExternalProcessScorer(command=python_command(code), extra_env={"HF_TOKEN": "secret"})

        result = await scorer.evaluate("https://example.com/cat.png", "cat")

        assert result.model == "secret"

    @pytest.mark.asyncio
    async def test_non_zero_exit_reports_stderr(self):
        code = "import sys; sys.stderr.write('CUDA out of memory'); sys.exit(2)"
        scorer = ExternalProcessScorer(command=python_command(code))

        with pytest.raises(ExternalProcessError, match="External process failed: CUDA out of memory"):
            await scorer.evaluate("https://example.com/cat.png", "cat")

    @pytest.mark.asyncio
    async def test_non_zero_exit_without_stderr_reports_stdout(self):
        code = "import sys; print('model download failed'); sys.exit(1)"
        scorer = ExternalProcessScorer(command=python_command(code))

        with pytest.raises(ExternalProcessError, match="model download failed"):
            await scorer.evaluate("https://example.com/cat.png", "cat")

    @pytest.mark.asyncio
    async def test_unparseable_output_fails(self):
        scorer = ExternalProcessScorer(command=python_command("print('not json')"))

        with pytest.raises(ExternalProcessError, match="Failed to parse external process output"):
            await scorer.evaluate("https://example.com/cat.png", "cat")

    @pytest.mark.asyncio
    async def test_missing_executable_fails_to_start(self):
        scorer = ExternalProcessScorer(command=["/nonexistent/clip-runner"])

        with pytest.raises(ExternalProcessError, match="Failed to start external process"):
            await scorer.evaluate("https://example.com/cat.png", "cat")

    @pytest.mark.asyncio
    async def test_deadline_kills_hung_process(self):
        scorer = ExternalProcessScorer(command=python_command("import time; time.sleep(30)"), timeout=0.5)

        start = time.monotonic()
        with pytest.raises(ExternalProcessTimeoutError, match="timed out after 0.5s"):
            await scorer.evaluate("https://example.com/cat.png", "cat")

        assert time.monotonic() - start < 10

    @pytest.mark.asyncio
    async def test_cancellation_kills_and_reaps_process(self, tmp_path):
        pid_file = tmp_path / "child.pid"
        code = f"import os, time; open({str(pid_file)!r}, 'w').write(str(os.getpid())); time.sleep(30)"
        scorer = ExternalProcessScorer(command=python_command(code), timeout=0)

        task = asyncio.create_task(scorer.evaluate("https://example.com/cat.png", "cat"))
        deadline = time.monotonic() + 10
        while not (pid_file.exists() and pid_file.read_text()):
            assert time.monotonic() < deadline, "child process never started"
            await asyncio.sleep(0.05)
        pid = int(pid_file.read_text())

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)


class TestParseOutput:
    """JSON contract of the external process"""

    @pytest.fixture
    def scorer(self):
        return ExternalProcessScorer(model="fallback")

    def test_surrounding_whitespace_is_ignored(self, scorer):
        result = scorer.parse_output('\n  {"similarity_score": -2.5, "model": "m"}  \n')
        assert result.similarity_score == -2.5

    @pytest.mark.parametrize(
        "stdout",
        [
            "[1, 2, 3]",
            '{"model": "m"}',
            '{"similarity_score": "high"}',
            '{"similarity_score": true}',
            "",
        ],
    )
    def test_invalid_payloads_are_rejected(self, scorer, stdout):
        with pytest.raises(ExternalProcessError, match="Failed to parse external process output"):
            scorer.parse_output(stdout)

    def test_reported_failure_is_an_error(self, scorer):
        with pytest.raises(ExternalProcessError, match="External process failed: image decode error"):
            scorer.parse_output('{"success": false, "error": "image decode error"}')
