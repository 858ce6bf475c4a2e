from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class ScoreResult:
    """Score produced by a scoring strategy"""

    similarity_score: float
    model: str


@dataclass
class EvaluationResult:
    """Outcome of evaluating one image-text pair"""

    success: bool
    text: Any
    image_url: Any
    similarity_score: float | None = None
    model: str | None = None
    error: str | None = None
    error_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize without unset optional fields"""
        data = asdict(self)
        data.pop("error_type")
        for key in ("similarity_score", "model", "error"):
            if data[key] is None:
                data.pop(key)
        return data
