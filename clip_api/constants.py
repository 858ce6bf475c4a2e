APP_NAME = "clip-evaluation-api"
APP_TITLE = "Real CLIP Evaluation API"
APP_DESCRIPTION = "Image-text similarity evaluation with CLIP"

# Identifier reported alongside every score
DEFAULT_MODEL_ID = "openai/clip-vit-base-patch32"

API_PREFIX = "/api"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}

AVAILABLE_ENDPOINTS = {
    "GET /api/clip-evaluate": "Health check",
    "POST /api/clip-evaluate": "Single image-text similarity evaluation",
    "POST /api/clip-evaluate (with items array)": "Batch image-text similarity evaluation",
    "GET /api/health": "Health check",
    "GET /api/info": "API information",
    "POST /api/evaluate/text-image": "Text-image similarity evaluation",
    "POST /api/batch-evaluate": "Batch evaluation",
}
