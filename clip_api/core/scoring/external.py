import asyncio
from collections.abc import Sequence
import contextlib
import json
import os
import sys
import time

from clip_api.constants import DEFAULT_MODEL_ID
from clip_api.core.exceptions import ExternalProcessError, ExternalProcessTimeoutError
from clip_api.core.types import ScoreResult
from clip_api.core.utils.metrics_recorder import MetricsRecorder
from clip_api.log import get_logger

from .base import ScoringStrategy

logger = get_logger(__name__)

DEFAULT_COMMAND = (sys.executable, "-m", "clip_api.core.ml.clip_runner")


class ExternalProcessScorer(ScoringStrategy):
    """
    Delegates scoring to a separate process.

    The process receives ``--image-url`` and ``--text`` as arguments and must
    print exactly one JSON object with a numeric ``similarity_score`` and exit 0.
    A non-zero exit is a failure described by its stderr.
    """

    name = "external"

    def __init__(
        self,
        command: Sequence[str] | None = None,
        timeout: float | None = 120.0,
        model: str = DEFAULT_MODEL_ID,
        extra_env: dict[str, str] | None = None,
        metrics_recorder: MetricsRecorder | None = None,
    ):
        """
        Args:
            command: Program and leading arguments; defaults to the bundled CLIP runner
            timeout: Deadline in seconds; None or 0 waits forever
            model: Model identifier used when the process does not report one
            extra_env: Variables added to the inherited environment of the process
            metrics_recorder: Optional metrics recorder
        """
        super().__init__(model)
        self.command = list(command or DEFAULT_COMMAND)
        self.timeout = timeout or None
        self.extra_env = extra_env or {}
        self.metrics_recorder = metrics_recorder or MetricsRecorder()

    def build_command(self, image_url: str, text: str) -> list[str]:
        return [*self.command, "--image-url", image_url, "--text", text]

    async def evaluate(self, image_url: str, text: str) -> ScoreResult:
        start_time = time.time()
        outcome = "error"
        try:
            returncode, stdout, stderr = await self._run(self.build_command(image_url, text))
            if returncode != 0:
                raise ExternalProcessError(f"External process failed: {stderr.strip() or stdout.strip()}")

            result = self.parse_output(stdout)
            outcome = "success"
            return result
        except ExternalProcessTimeoutError:
            outcome = "timeout"
            raise
        except asyncio.CancelledError:
            outcome = "cancelled"
            raise
        finally:
            self.metrics_recorder.record_external_process_time(time.time() - start_time, outcome)

    async def _run(self, command: list[str]) -> tuple[int, str, str]:
        """Run the process to completion, capturing both streams"""
        env = {**os.environ, **self.extra_env} if self.extra_env else None

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise ExternalProcessError(f"Failed to start external process: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"External process {process.pid} exceeded {self.timeout}s, killing it")
            await self._terminate(process)
            raise ExternalProcessTimeoutError(f"External process timed out after {self.timeout}s") from e
        except asyncio.CancelledError:
            logger.warning(f"Evaluation cancelled, killing external process {process.pid}")
            await self._terminate(process)
            raise

        return process.returncode, stdout.decode(errors="replace"), stderr.decode(errors="replace")

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Kill the process if still running and reap it"""
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        await process.wait()

    def parse_output(self, stdout: str) -> ScoreResult:
        """Parse the single JSON object printed by the process"""
        try:
            payload = json.loads(stdout.strip())
        except json.JSONDecodeError as e:
            raise ExternalProcessError(f"Failed to parse external process output: {e}") from e

        if not isinstance(payload, dict):
            raise ExternalProcessError("Failed to parse external process output: expected a JSON object")

        if payload.get("success") is False:
            raise ExternalProcessError(f"External process failed: {payload.get('error', 'unknown error')}")

        score = payload.get("similarity_score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ExternalProcessError("Failed to parse external process output: missing numeric similarity_score")

        return ScoreResult(similarity_score=float(score), model=str(payload.get("model") or self.model))
