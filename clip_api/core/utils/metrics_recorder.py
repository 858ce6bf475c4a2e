from clip_api.core.exceptions import ServiceError
from clip_api.core.observability import get_metrics_middleware
from clip_api.log import get_logger

logger = get_logger(__name__)


class MetricsRecorder:
    """
    Handles metrics recording for evaluations.

    Metrics are optional: when the Prometheus middleware is not installed
    every call is a no-op.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def record_success(self, similarity_score: float, strategy: str) -> None:
        if not self.enabled:
            return

        try:
            get_metrics_middleware().record_similarity_score(similarity_score, strategy)
        except RuntimeError as e:
            logger.debug(f"Metrics recording failed: {e}")

    def record_error(self, exception: Exception, strategy: str) -> None:
        """
        Record metrics for evaluation errors.

        Args:
            exception: The exception that occurred
            strategy: Name of the scoring strategy in use
        """
        if not self.enabled:
            return

        try:
            error_name = self.extract_error_type(exception) or type(exception).__name__
            get_metrics_middleware().record_evaluation_error(error_name, strategy)
        except RuntimeError as e:
            logger.debug(f"Metrics recording failed: {e}")

    def record_batch_size(self, batch_size: int) -> None:
        if not self.enabled:
            return

        try:
            get_metrics_middleware().record_batch_size(batch_size)
        except RuntimeError as e:
            logger.debug(f"Metrics recording failed: {e}")

    def record_external_process_time(self, duration: float, outcome: str) -> None:
        if not self.enabled:
            return

        try:
            get_metrics_middleware().record_external_process_time(duration, outcome)
        except RuntimeError as e:
            logger.debug(f"Metrics recording failed: {e}")

    @staticmethod
    def extract_error_type(exception: Exception) -> str | None:
        """
        Extract error type from exception for consistent metrics.

        Returns:
            Error type string for service errors, None otherwise
        """
        return getattr(exception, "error_type", None) if isinstance(exception, ServiceError) else None
