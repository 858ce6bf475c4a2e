from typing import Any

from pydantic import BaseModel, Field


class EvaluationRequest(BaseModel):
    """Single evaluation request. Fields are optional here so that missing ones are reported as 400s."""

    image_url: str | None = Field(None, description="URL of the image to evaluate")
    text: str | None = Field(None, description="Text description to compare with the image")


class BatchEvaluationRequest(BaseModel):
    """
    Batch evaluation request.

    Accepts the list under either ``items`` or ``evaluations``; entries are
    validated one by one so a bad entry only fails itself.
    """

    items: list[Any] | None = Field(None, description="Image-text pairs to evaluate")
    evaluations: list[Any] | None = Field(None, description="Alias of items")

    @property
    def entries(self) -> list[Any] | None:
        return self.items if self.items is not None else self.evaluations


class ClipEvaluateRequest(EvaluationRequest, BatchEvaluationRequest):
    """Body of the combined endpoint: a batch when an items/evaluations array is present, else a single pair"""

    # Any value is accepted; only an array switches to batch mode
    items: Any = Field(None, description="Image-text pairs to evaluate")
    evaluations: Any = Field(None, description="Alias of items")

    @property
    def entries(self) -> list[Any] | None:
        for value in (self.items, self.evaluations):
            if isinstance(value, list):
                return value
        return None

    @property
    def is_batch(self) -> bool:
        return self.entries is not None


class EvaluationResponse(BaseModel):
    """Single evaluation response"""

    success: bool = Field(True, description="Whether the evaluation succeeded")
    similarity_score: float = Field(..., description="Image-text similarity score")
    text: str = Field(..., description="Original text")
    image_url: str = Field(..., description="Original image URL")
    model: str = Field(..., description="Model identifier")
    processing_time: int = Field(..., description="Processing time in milliseconds")
    timestamp: str = Field(..., description="ISO-8601 completion time")


class EvaluationItemResult(BaseModel):
    """One entry of a batch response"""

    success: bool = Field(..., description="Whether this pair was scored")
    similarity_score: float | None = Field(None, description="Similarity score when successful")
    text: Any = Field(None, description="Text as received")
    image_url: Any = Field(None, description="Image URL as received")
    model: str | None = Field(None, description="Model identifier when successful")
    error: str | None = Field(None, description="Error message if evaluation failed")


class BatchSummary(BaseModel):
    """Batch counts"""

    total: int = Field(..., description="Number of entries received")
    successful: int = Field(..., description="Number of successful evaluations")
    failed: int = Field(..., description="Number of failed evaluations")
    processing_time: int = Field(..., description="Total processing time in milliseconds")


class BatchEvaluationResponse(BaseModel):
    """Batch evaluation response"""

    success: bool = Field(True, description="Whether the batch was processed")
    results: list[EvaluationItemResult] = Field(..., description="Per-entry results in input order")
    summary: BatchSummary = Field(..., description="Batch counts")
    total: int = Field(..., description="Same as summary.total")
    model: str = Field(..., description="Model identifier")
    timestamp: str = Field(..., description="ISO-8601 completion time")


class HealthResponse(BaseModel):
    """Health check response of an evaluation endpoint"""

    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    model: str = Field(..., description="Model identifier")
    strategy: str = Field(..., description="Scoring strategy behind the endpoint")
    timestamp: str = Field(..., description="ISO-8601 time of the check")
