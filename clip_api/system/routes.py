from typing import Any

from fastapi import APIRouter, Depends

from clip_api.config import AppSettings, get_settings
from clip_api.constants import API_PREFIX
from clip_api.system.handler import get_health, get_info

router = APIRouter(tags=["system"])


@router.get(f"{API_PREFIX}/health", summary="Health check")
@router.get("/health", include_in_schema=False)
async def health() -> dict[str, Any]:
    return get_health()


@router.get(f"{API_PREFIX}/info", summary="API information")
@router.get("/info", include_in_schema=False)
async def info(settings: AppSettings = Depends(get_settings)) -> dict[str, Any]:
    return get_info(settings)
