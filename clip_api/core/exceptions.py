from fastapi import status


class ServiceError(Exception):
    """Base exception for service errors with built-in HTTP status mapping"""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "service_error"

    def __init__(self, message: str = "", http_status: int | None = None):
        super().__init__(message)
        if http_status is not None:
            self.http_status = http_status


class ValidationError(ServiceError):
    """Missing or malformed request fields"""

    http_status: int = status.HTTP_400_BAD_REQUEST
    error_type: str = "validation_error"


class ConfigurationError(ServiceError):
    """Required external configuration is missing or invalid"""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "configuration_error"


class NotFoundError(ServiceError):
    """No route matches the request"""

    http_status: int = status.HTTP_404_NOT_FOUND
    error_type: str = "not_found"


class EvaluationError(ServiceError):
    """Scoring of an image-text pair failed"""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "evaluation_error"


class UpstreamUnreachableError(EvaluationError):
    """Image URL probe failed"""

    error_type: str = "upstream_unreachable"


class ExternalProcessError(EvaluationError):
    """External scoring process failed to start, exited non-zero or printed garbage"""

    error_type: str = "external_process_error"


class ExternalProcessTimeoutError(ExternalProcessError):
    """External scoring process exceeded its deadline and was killed"""

    error_type: str = "external_process_timeout"
