from datetime import datetime, timezone
import time
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError as PydanticValidationError

from clip_api.__version__ import __version__
from clip_api.config import AppSettings, get_settings
from clip_api.constants import APP_TITLE
from clip_api.core.exceptions import ConfigurationError, ServiceError, ValidationError
from clip_api.core.scoring import ScorerFactory, ScoringStrategy
from clip_api.core.types import EvaluationResult
from clip_api.core.utils import MetricsRecorder, ResultBuilder
from clip_api.log import get_logger

from .schema import (
    BatchEvaluationResponse,
    BatchSummary,
    EvaluationItemResult,
    EvaluationRequest,
    EvaluationResponse,
    HealthResponse,
)

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields: image_url and text"
MISSING_ITEM_FIELDS_MESSAGE = "Missing image_url or text"
INVALID_URL_MESSAGE = "Invalid image_url: expected an absolute http(s) URL"
TOKEN_NOT_CONFIGURED_MESSAGE = "Hugging Face API token not configured"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(start_time: float) -> int:
    return round((time.time() - start_time) * 1000)


class EvaluationHandler:
    """Async handler for evaluation requests backed by one scoring strategy"""

    def __init__(
        self,
        scorer: ScoringStrategy,
        settings: AppSettings,
        result_builder: ResultBuilder | None = None,
        metrics_recorder: MetricsRecorder | None = None,
    ):
        self.scorer = scorer
        self.settings = settings
        self.result_builder = result_builder or ResultBuilder()
        self.metrics_recorder = metrics_recorder or MetricsRecorder(enabled=settings.observability.enable_metrics)

    def _ensure_token(self) -> None:
        if not self.settings.token_configured:
            raise ConfigurationError(TOKEN_NOT_CONFIGURED_MESSAGE)

    @staticmethod
    def _is_url(value: str) -> bool:
        parsed = urlparse(value)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    def _validate_pair(self, image_url: str | None, text: str | None, missing_message: str) -> tuple[str, str]:
        """Reject missing, blank or malformed fields"""
        if not image_url or not text or not text.strip():
            raise ValidationError(missing_message)
        if not self._is_url(image_url):
            raise ValidationError(INVALID_URL_MESSAGE)
        return image_url, text

    async def evaluate_single(self, request: EvaluationRequest) -> EvaluationResponse:
        """Handle single evaluation request; scoring failures propagate as EvaluationError"""
        image_url, text = self._validate_pair(request.image_url, request.text, MISSING_FIELDS_MESSAGE)
        self._ensure_token()

        start_time = time.time()
        try:
            score = await self.scorer.evaluate(image_url, text)
        except ServiceError as e:
            self.metrics_recorder.record_error(e, self.scorer.name)
            raise

        self.metrics_recorder.record_success(score.similarity_score, self.scorer.name)
        return EvaluationResponse(
            similarity_score=score.similarity_score,
            text=text,
            image_url=image_url,
            model=score.model,
            processing_time=_elapsed_ms(start_time),
            timestamp=_timestamp(),
        )

    async def evaluate_batch(self, entries: list[Any] | None) -> BatchEvaluationResponse:
        """
        Handle batch evaluation request.

        Entries are scored one after another in input order. A failing entry
        yields a failed result and the batch continues.
        """
        if entries is None:
            raise ValidationError("evaluations must be an array")
        if len(entries) > self.settings.api.max_batch_size:
            raise ValidationError(
                f"Batch of {len(entries)} exceeds the maximum of {self.settings.api.max_batch_size} evaluations"
            )
        self._ensure_token()

        start_time = time.time()
        results = []
        for entry in entries:
            results.append(await self._evaluate_entry(entry))

        summary = self.result_builder.summarize(results, (time.time() - start_time) * 1000)
        self.metrics_recorder.record_batch_size(len(entries))
        logger.info(
            f"Batch of {summary['total']} finished: {summary['successful']} successful, {summary['failed']} failed"
        )

        return BatchEvaluationResponse(
            results=[EvaluationItemResult(**result.to_dict()) for result in results],
            summary=BatchSummary(**summary),
            total=summary["total"],
            model=self.scorer.model,
            timestamp=_timestamp(),
        )

    async def _evaluate_entry(self, entry: Any) -> EvaluationResult:
        """Score one batch entry, converting every failure into a failed result"""
        if not isinstance(entry, dict):
            return self.result_builder.create_failed_result(None, None, MISSING_ITEM_FIELDS_MESSAGE, "validation_error")

        image_url, text = entry.get("image_url"), entry.get("text")
        try:
            request = EvaluationRequest.model_validate(entry)
            image_url, text = self._validate_pair(request.image_url, request.text, MISSING_ITEM_FIELDS_MESSAGE)
            score = await self.scorer.evaluate(image_url, text)
        except PydanticValidationError as e:
            return self.result_builder.create_failed_result(
                image_url, text, f"Invalid evaluation item: {e.error_count()} field error(s)", "validation_error"
            )
        except ServiceError as e:
            logger.error(f"Evaluation failed for {image_url}: {e}")
            self.metrics_recorder.record_error(e, self.scorer.name)
            return self.result_builder.create_failed_result(image_url, text, str(e), e.error_type)
        except Exception as e:
            logger.exception(f"Unexpected error evaluating {image_url}")
            self.metrics_recorder.record_error(e, self.scorer.name)
            return self.result_builder.create_failed_result(image_url, text, str(e))

        self.metrics_recorder.record_success(score.similarity_score, self.scorer.name)
        return self.result_builder.create_success_result(image_url, text, score)

    async def health_check(self) -> HealthResponse:
        """Health check; available whether or not the token is configured"""
        return HealthResponse(
            status="healthy",
            service=APP_TITLE,
            version=__version__,
            model=self.scorer.model,
            strategy=self.scorer.name,
            timestamp=_timestamp(),
        )


_handlers: dict[str, EvaluationHandler] = {}


def get_handler(strategy: str, settings: AppSettings | None = None) -> EvaluationHandler:
    """Get or create the handler for a scoring strategy"""
    if strategy not in _handlers:
        settings = settings or get_settings()
        _handlers[strategy] = EvaluationHandler(ScorerFactory.create_scorer(strategy, settings), settings)
    return _handlers[strategy]


def get_clip_evaluate_handler() -> EvaluationHandler:
    """Handler behind /api/clip-evaluate"""
    return get_handler(get_settings().scoring.clip_evaluate_strategy)


def get_evaluate_handler() -> EvaluationHandler:
    """Handler behind /api/evaluate/text-image and /api/batch-evaluate"""
    return get_handler(get_settings().scoring.evaluate_strategy)
