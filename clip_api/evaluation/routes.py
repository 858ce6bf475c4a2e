from fastapi import APIRouter, Depends

from clip_api.constants import API_PREFIX
from clip_api.core.exception_handler import common_exception_handler
from clip_api.evaluation.handler import EvaluationHandler, get_clip_evaluate_handler, get_evaluate_handler
from clip_api.evaluation.schema import (
    BatchEvaluationRequest,
    BatchEvaluationResponse,
    ClipEvaluateRequest,
    EvaluationRequest,
    EvaluationResponse,
    HealthResponse,
)
from clip_api.log import get_logger

logger = get_logger(__name__)

CLIP_EVALUATE_PATH = f"{API_PREFIX}/clip-evaluate"
TEXT_IMAGE_PATH = "/evaluate/text-image"
BATCH_PATH = "/batch-evaluate"

router = APIRouter(tags=["evaluation"])


@router.get(
    CLIP_EVALUATE_PATH,
    response_model=HealthResponse,
    summary="Health check of the clip-evaluate endpoint",
)
@common_exception_handler
async def clip_evaluate_health(handler: EvaluationHandler = Depends(get_clip_evaluate_handler)) -> HealthResponse:
    return await handler.health_check()


@router.post(
    CLIP_EVALUATE_PATH,
    response_model=EvaluationResponse | BatchEvaluationResponse,
    response_model_exclude_none=True,
    summary="Evaluate one image-text pair, or a batch when an items array is present",
)
@common_exception_handler
async def clip_evaluate(
    request: ClipEvaluateRequest, handler: EvaluationHandler = Depends(get_clip_evaluate_handler)
) -> EvaluationResponse | BatchEvaluationResponse:
    if request.is_batch:
        return await handler.evaluate_batch(request.entries)

    return await handler.evaluate_single(request)


@router.post(
    API_PREFIX + TEXT_IMAGE_PATH,
    response_model=EvaluationResponse,
    summary="Evaluate single image-text pair",
)
@router.post(TEXT_IMAGE_PATH, response_model=EvaluationResponse, include_in_schema=False)
@common_exception_handler
async def evaluate_text_image(
    request: EvaluationRequest, handler: EvaluationHandler = Depends(get_evaluate_handler)
) -> EvaluationResponse:
    return await handler.evaluate_single(request)


@router.post(
    API_PREFIX + BATCH_PATH,
    response_model=BatchEvaluationResponse,
    response_model_exclude_none=True,
    summary="Evaluate multiple image-text pairs",
)
@router.post(
    BATCH_PATH, response_model=BatchEvaluationResponse, response_model_exclude_none=True, include_in_schema=False
)
@common_exception_handler
async def evaluate_batch(
    request: BatchEvaluationRequest, handler: EvaluationHandler = Depends(get_evaluate_handler)
) -> BatchEvaluationResponse:
    return await handler.evaluate_batch(request.entries)
