from datetime import datetime, timezone
from typing import Any

from clip_api.__version__ import __version__
from clip_api.config import AppSettings
from clip_api.constants import APP_DESCRIPTION, APP_TITLE


def get_health() -> dict[str, Any]:
    """Liveness payload; never depends on configuration"""
    return {
        "status": "healthy",
        "service": APP_TITLE,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def get_info(settings: AppSettings) -> dict[str, Any]:
    """
    Describe the API and its evaluation endpoints.

    Args:
        settings: Application settings

    Returns:
        Dictionary with service metadata, endpoint listing and scoring setup
    """
    return {
        "name": APP_TITLE,
        "version": __version__,
        "description": APP_DESCRIPTION,
        "endpoints": {
            "GET /api/health": "Health check",
            "GET /api/info": "API information",
            "POST /api/evaluate/text-image": "Text-image similarity evaluation",
            "POST /api/batch-evaluate": "Batch evaluation",
            "GET /api/clip-evaluate": "Simulated evaluation health check",
            "POST /api/clip-evaluate": "Simulated single or batch evaluation",
        },
        "model": settings.model_id,
        "scoring": {
            "clip_evaluate": settings.scoring.clip_evaluate_strategy,
            "evaluate": settings.scoring.evaluate_strategy,
        },
        "token_configured": settings.token_configured,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
