"""
CLIP Evaluation Client

Sends the image-text pairs of a CSV file to a running CLIP evaluation API
and writes the scores back next to the input.

The CSV needs an ``image_url`` (or ``url``) column and a ``text`` (or
``caption``) column.

Usage:
    python app/evaluation_cli.py <csv_path> [--service-url URL] [--batch] [--simulated]
"""

import argparse
from datetime import datetime
from pathlib import Path
import time

import requests

try:
    import pandas as pd
except ModuleNotFoundError as e:
    if e.name == "pandas":
        raise ImportError(
            "'pandas' library is required to run this script."
        ) from e
    else:
        raise

URL_COLUMNS = ("image_url", "url")
TEXT_COLUMNS = ("text", "caption")


def pick_column(df: pd.DataFrame, candidates: tuple[str, ...]) -> str:
    """Return the first candidate column present in the frame."""
    for name in candidates:
        if name in df.columns:
            return name
    raise SystemExit(f"CSV needs one of the columns {candidates}, found {list(df.columns)}")


def evaluate_single(service_url: str, image_url: str, text: str, simulated: bool = False) -> dict:
    """Evaluate a single image-text pair."""
    path = "/api/clip-evaluate" if simulated else "/api/evaluate/text-image"
    try:
        response = requests.post(
            f"{service_url}{path}",
            json={"image_url": image_url, "text": text},
            timeout=300,
        )
    except requests.RequestException as e:
        return {"success": False, "error": str(e)}

    data = response.json() if response.headers.get("content-type", "").startswith("application/json") else {}
    if response.status_code == 200:
        return data
    return {"success": False, "error": data.get("message") or data.get("error") or f"HTTP {response.status_code}"}


def evaluate_batch(service_url: str, pairs: list[dict], simulated: bool = False) -> dict:
    """Evaluate multiple image-text pairs in one request."""
    if simulated:
        path, body = "/api/clip-evaluate", {"items": pairs}
    else:
        path, body = "/api/batch-evaluate", {"evaluations": pairs}

    try:
        response = requests.post(f"{service_url}{path}", json=body, timeout=3600)
    except requests.RequestException as e:
        return {"error": str(e), "results": []}

    if response.status_code == 200:
        return response.json()
    return {"error": f"HTTP {response.status_code}: {response.text[:200]}", "results": []}


def collect_stats(method: str, results: list[dict], total_time: float) -> dict:
    successful = [r for r in results if r.get("success") and r.get("similarity_score") is not None]
    scores = [r["similarity_score"] for r in successful]
    return {
        "method": method,
        "total_pairs": len(results),
        "successful": len(successful),
        "failed": len(results) - len(successful),
        "total_time_seconds": total_time,
        "avg_similarity_score": sum(scores) / len(scores) if scores else 0.0,
        "pairs_per_second": len(successful) / total_time if total_time > 0 else 0,
        "timestamp": datetime.now().isoformat(),
    }


def main():
    parser = argparse.ArgumentParser(description="CLIP evaluation client")
    parser.add_argument("csv_path", help="Path to CSV file")
    parser.add_argument("--service-url", default="http://localhost:8000", help="Service URL")
    parser.add_argument("--batch", action="store_true", help="Send all pairs in one batch request")
    parser.add_argument("--simulated", action="store_true", help="Use the heuristic /api/clip-evaluate endpoint")

    args = parser.parse_args()

    csv_path = Path(args.csv_path)
    df = pd.read_csv(csv_path)
    url_column = pick_column(df, URL_COLUMNS)
    text_column = pick_column(df, TEXT_COLUMNS)
    print(f"Loaded {len(df)} rows from {csv_path}")

    pairs = [{"image_url": row[url_column], "text": row[text_column]} for _, row in df.iterrows()]

    start_time = time.time()
    if args.batch:
        batch_result = evaluate_batch(args.service_url, pairs, simulated=args.simulated)
        if batch_result.get("error"):
            print(f"Batch evaluation failed: {batch_result['error']}")
        results = batch_result.get("results", [])
    else:
        results = []
        for i, pair in enumerate(pairs):
            result = evaluate_single(args.service_url, pair["image_url"], pair["text"], simulated=args.simulated)
            print(f"Row {i + 1}/{len(pairs)}: {result.get('similarity_score', 'Error - ' + str(result.get('error')))}")
            results.append(result)
    stats = collect_stats("batch" if args.batch else "single", results, time.time() - start_time)

    df["similarity_score"] = [r.get("similarity_score") for r in results] + [None] * (len(df) - len(results))
    df["error"] = [r.get("error") for r in results] + [None] * (len(df) - len(results))

    output_path = csv_path.parent / f"{csv_path.stem}_with_scores.csv"
    df.to_csv(output_path, index=False)
    print(f"Results saved to: {output_path}")
    print(
        f"Successfully processed {stats['successful']}/{stats['total_pairs']} pairs "
        f"in {stats['total_time_seconds']:.2f}s ({stats['pairs_per_second']:.2f} pairs/s)"
    )


if __name__ == "__main__":
    main()
