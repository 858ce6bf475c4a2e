"""
CLIP scoring process

Scores one image-text pair with a real CLIP model and prints a single JSON
object on stdout. Started by ExternalProcessScorer, one process per pair.

Usage:
    python -m clip_api.core.ml.clip_runner --image-url URL --text TEXT

Exit status 0 with ``{"success": true, "similarity_score": ..., "model": ...}``
on success; exit status 1 with ``{"success": false, "error": ...}`` on stdout
and the error on stderr otherwise.
"""

import argparse
from datetime import datetime, timezone
from io import BytesIO
import json
import logging
import sys

import httpx
import open_clip
from PIL import Image
import torch
import torch.nn.functional as F  # noqa: N812

from clip_api.constants import DEFAULT_MODEL_ID
from clip_api.core.ml.device_manager import AUTO, PRECISIONS, DeviceManager

# stdout carries the result, keep diagnostics on stderr
logging.basicConfig(level=logging.WARNING, stream=sys.stderr, format="%(asctime)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Score an image-text pair with CLIP")
    parser.add_argument("--image-url", required=True, help="Image URL to download")
    parser.add_argument("--text", required=True, help="Text description to compare")
    parser.add_argument("--model-name", default="ViT-B-32", help="open_clip architecture")
    parser.add_argument("--pretrained", default="openai", help="open_clip pretrained weights tag")
    parser.add_argument("--model-id", default=DEFAULT_MODEL_ID, help="Identifier reported in the result")
    parser.add_argument("--device", default=AUTO, help="Torch device, or auto to detect one")
    parser.add_argument(
        "--precision", default=AUTO, choices=[AUTO, *PRECISIONS], help="Model precision, or auto to pick per device"
    )
    parser.add_argument("--download-timeout", type=float, default=30.0, help="Image download timeout in seconds")
    return parser.parse_args(argv)


def load_image(image_url: str, timeout: float) -> Image.Image:
    """Download an image and convert it to RGB"""
    response = httpx.get(image_url, timeout=timeout, follow_redirects=True)
    response.raise_for_status()
    return Image.open(BytesIO(response.content)).convert("RGB")


def compute_similarity(
    image: Image.Image,
    text: str,
    model_name: str,
    pretrained: str,
    device: str | None = None,
    precision: str | None = None,
) -> float:
    """
    Compute the CLIP logit for one image-text pair.

    Returns:
        logit_scale * cosine similarity, the same value as CLIP's logits_per_image
    """
    device_obj = DeviceManager.get_optimal_device(device)
    model, _, preprocess = open_clip.create_model_and_transforms(
        model_name,
        pretrained=pretrained,
        device=device_obj,
        precision=DeviceManager.get_optimal_precision(device_obj, precision),
    )
    model.eval()
    tokenizer = open_clip.get_tokenizer(model_name)

    with torch.no_grad():
        image_tensor = preprocess(image).unsqueeze(0).to(device_obj)
        text_tokens = tokenizer([text]).to(device_obj)

        image_features = F.normalize(model.encode_image(image_tensor), p=2, dim=-1)
        text_features = F.normalize(model.encode_text(text_tokens), p=2, dim=-1)

        logits_per_image = model.logit_scale.exp() * image_features @ text_features.T

    return float(logits_per_image[0][0])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        image = load_image(args.image_url, args.download_timeout)
        similarity = compute_similarity(
            image, args.text, args.model_name, args.pretrained, args.device, args.precision
        )
    except Exception as e:
        print(json.dumps({"success": False, "error": str(e), "timestamp": _timestamp()}))
        print(str(e), file=sys.stderr)
        return 1

    print(
        json.dumps(
            {"success": True, "similarity_score": similarity, "model": args.model_id, "timestamp": _timestamp()}
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
