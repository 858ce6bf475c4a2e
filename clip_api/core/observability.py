from collections.abc import Callable
import logging
import time
from typing import Any

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
import psutil
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse

from clip_api.__version__ import __version__
from clip_api.constants import APP_NAME

logger = logging.getLogger(__name__)

UNMATCHED_PATH = "<unmatched>"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Prometheus middleware for FastAPI with evaluation-specific metrics
    """

    _instance: "PrometheusMiddleware | None" = None
    _metrics_initialized = False

    def __init__(self, app: Any, app_name: str = APP_NAME) -> None:
        super().__init__(app)
        self.app_name = app_name

        # Collectors live in the global registry, so register them once per process
        if not PrometheusMiddleware._metrics_initialized:
            self._initialize_metrics()
            PrometheusMiddleware._metrics_initialized = True
            PrometheusMiddleware._instance = self
        else:
            self._share_metrics(PrometheusMiddleware._instance)

    def _share_metrics(self, other: "PrometheusMiddleware") -> None:
        """Reuse collectors registered by an earlier instance"""
        for name, value in vars(other).items():
            if name.isupper():
                setattr(self, name, value)

    def _initialize_metrics(self) -> None:
        """Initialize Prometheus metrics (called once)"""
        self.REQUEST_COUNT = Counter(
            "clip_api_requests_total",
            "Total requests processed",
            ["method", "path", "app_name"],
        )

        self.RESPONSE_COUNT = Counter(
            "clip_api_responses_total",
            "Total responses sent",
            ["method", "path", "status_code", "app_name"],
        )

        self.REQUEST_DURATION = Histogram(
            "clip_api_requests_duration_seconds",
            "Request processing time",
            ["method", "path", "app_name"],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0, 30.0],
        )

        self.REQUESTS_IN_PROGRESS = Gauge(
            "clip_api_requests_in_progress",
            "Active requests being processed",
            ["method", "app_name"],
        )

        self.EXCEPTION_COUNT = Counter(
            "clip_api_exceptions_total",
            "Total exceptions raised during request processing",
            ["exception_type", "method", "path", "app_name"],
        )

        self.SIMILARITY_SCORE_DISTRIBUTION = Histogram(
            "clip_api_similarity_scores",
            "Distribution of similarity scores",
            ["strategy", "app_name"],
            buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0, 10, 20, 30, 40],
        )

        self.EVALUATION_ERRORS = Counter(
            "clip_api_evaluation_errors_total",
            "Total evaluation errors by type",
            ["error_type", "strategy", "app_name"],
        )

        self.BATCH_SIZE_DISTRIBUTION = Histogram(
            "clip_api_batch_sizes",
            "Distribution of batch sizes processed",
            ["app_name"],
            buckets=[0, 1, 2, 4, 8, 16, 32, 64, 100],
        )

        self.EXTERNAL_PROCESS_DURATION = Histogram(
            "clip_api_external_process_seconds",
            "Wall time of external scoring processes",
            ["outcome", "app_name"],
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
        )

        self.SYSTEM_CPU_USAGE = Gauge(
            "clip_api_cpu_usage_percent",
            "CPU usage percentage",
            ["app_name"],
        )

        self.SYSTEM_MEMORY_USAGE = Gauge(
            "clip_api_memory_usage_bytes",
            "Memory usage in bytes",
            ["memory_type", "app_name"],  # rss, vms
        )

        self.APP_INFO = Gauge(
            "clip_api_app_info",
            "Application information",
            ["app_name", "version"],
        )
        self.APP_INFO.labels(app_name=self.app_name, version=__version__).set(1)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Count and time the request under its route template"""
        labels = {"method": request.method, "app_name": self.app_name}
        in_progress = self.REQUESTS_IN_PROGRESS.labels(**labels)

        start_time = time.perf_counter()
        in_progress.inc()
        try:
            response = await call_next(request)
        except Exception as e:
            self.EXCEPTION_COUNT.labels(
                exception_type=type(e).__name__, path=self._resolve_path(request), **labels
            ).inc()
            raise
        finally:
            in_progress.dec()

        # The route is only known once routing has run
        path = self._resolve_path(request)
        self.REQUEST_COUNT.labels(path=path, **labels).inc()
        self.REQUEST_DURATION.labels(path=path, **labels).observe(time.perf_counter() - start_time)
        self.RESPONSE_COUNT.labels(path=path, status_code=response.status_code, **labels).inc()
        return response

    @staticmethod
    def _resolve_path(request: Request) -> str:
        """Route template of the request; every unmatched path shares one label"""
        return getattr(request.scope.get("route"), "path", UNMATCHED_PATH)

    def record_similarity_score(self, score: float, strategy: str) -> None:
        """Record similarity score"""
        self.SIMILARITY_SCORE_DISTRIBUTION.labels(strategy=strategy, app_name=self.app_name).observe(score)

    def record_evaluation_error(self, error_type: str, strategy: str) -> None:
        """Record evaluation error"""
        self.EVALUATION_ERRORS.labels(error_type=error_type, strategy=strategy, app_name=self.app_name).inc()

    def record_batch_size(self, batch_size: int) -> None:
        """Record batch processing size"""
        self.BATCH_SIZE_DISTRIBUTION.labels(app_name=self.app_name).observe(batch_size)

    def record_external_process_time(self, duration: float, outcome: str) -> None:
        """Record external process wall time"""
        self.EXTERNAL_PROCESS_DURATION.labels(outcome=outcome, app_name=self.app_name).observe(duration)

    def update_system_metrics(self) -> None:
        """Update system resource metrics - called periodically"""
        try:
            self.SYSTEM_CPU_USAGE.labels(app_name=self.app_name).set(psutil.cpu_percent())

            memory_info = psutil.Process().memory_info()
            self.SYSTEM_MEMORY_USAGE.labels(memory_type="rss", app_name=self.app_name).set(memory_info.rss)
            self.SYSTEM_MEMORY_USAGE.labels(memory_type="vms", app_name=self.app_name).set(memory_info.vms)

        except psutil.Error as e:
            logger.debug(f"System metrics update failed: {e}")


def get_metrics_middleware() -> PrometheusMiddleware:
    """Get the global metrics middleware instance"""
    if PrometheusMiddleware._instance is None:
        raise RuntimeError("Metrics middleware not initialized. Add middleware to FastAPI app first.")
    return PrometheusMiddleware._instance


def metrics_endpoint(request: Request) -> StarletteResponse:
    """Prometheus metrics endpoint"""
    return StarletteResponse(generate_latest(), media_type=CONTENT_TYPE_LATEST)
