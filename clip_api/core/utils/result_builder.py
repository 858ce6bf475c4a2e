from typing import Any

from clip_api.core.types import EvaluationResult, ScoreResult


class ResultBuilder:
    """
    Handles creation and formatting of evaluation results.

    Responsibilities:
    - Create successful evaluation results from a strategy score
    - Create failed evaluation results with consistent error handling
    - Summarize batch outcomes
    """

    @staticmethod
    def create_success_result(image_url: str, text: str, score: ScoreResult) -> EvaluationResult:
        """
        Create result for successful evaluation.

        Args:
            image_url: Image URL as sent by the client
            text: Text as sent by the client
            score: Score returned by the scoring strategy

        Returns:
            EvaluationResult with success data
        """
        return EvaluationResult(
            success=True,
            text=text,
            image_url=image_url,
            similarity_score=score.similarity_score,
            model=score.model,
        )

    @staticmethod
    def create_failed_result(
        image_url: Any, text: Any, error_message: str, error_type: str | None = None
    ) -> EvaluationResult:
        """
        Create result for failed evaluation.

        Args:
            image_url: Image URL as sent by the client, possibly missing
            text: Text as sent by the client, possibly missing
            error_message: Error description
            error_type: Optional categorized error type

        Returns:
            EvaluationResult with error information
        """
        return EvaluationResult(
            success=False,
            text=text,
            image_url=image_url,
            error=error_message,
            error_type=error_type,
        )

    @staticmethod
    def summarize(results: list[EvaluationResult], processing_time_ms: float) -> dict[str, Any]:
        """Aggregate counts for a finished batch"""
        successful = sum(1 for result in results if result.success)
        return {
            "total": len(results),
            "successful": successful,
            "failed": len(results) - successful,
            "processing_time": round(processing_time_ms),
        }
