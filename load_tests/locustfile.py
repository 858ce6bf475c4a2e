"""
Load tests for the CLIP Evaluation API

Exercises the health, simulated (heuristic) and model-backed endpoints.
Image-text pairs come from the CSV named by LOAD_TEST_PAIRS (columns
image_url,text) or from a small built-in sample.

Usage:
    locust -f load_tests/locustfile.py --host=http://localhost:8000

    locust -f load_tests/locustfile.py --host=http://localhost:8000 \
           --users 50 --spawn-rate 5 --run-time 5m --headless
"""

import csv
import logging
import os
import random
from pathlib import Path
from typing import Any, Dict, List

from locust import HttpUser, TaskSet, between, task
from locust.exception import StopUser

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_PAIRS = [
    {"image_url": "https://upload.wikimedia.org/wikipedia/commons/3/3a/Cat03.jpg", "text": "a cat sitting"},
    {"image_url": "https://upload.wikimedia.org/wikipedia/commons/6/6e/Golde33443.jpg", "text": "a golden dog"},
    {"image_url": "https://upload.wikimedia.org/wikipedia/commons/a/a9/Example.jpg", "text": "an example image"},
]


def load_pairs() -> List[Dict[str, Any]]:
    """Load image-text pairs from LOAD_TEST_PAIRS or fall back to the sample"""
    pairs_path = os.getenv("LOAD_TEST_PAIRS")
    if not pairs_path or not Path(pairs_path).exists():
        return SAMPLE_PAIRS

    with open(pairs_path, "r", encoding="utf-8") as f:
        pairs = [{"image_url": row["image_url"], "text": row["text"]} for row in csv.DictReader(f)]
    logger.info(f"Loaded {len(pairs)} image-text pairs from {pairs_path}")
    return pairs or SAMPLE_PAIRS


PAIRS = load_pairs()


class HealthCheckTasks(TaskSet):
    """Health and info endpoints"""

    @task(3)
    def health_check(self):
        with self.client.get("/api/health", catch_response=True) as response:
            if response.status_code == 200 and response.json().get("status") == "healthy":
                response.success()
            else:
                response.failure(f"Health check returned {response.status_code}")

    @task(1)
    def info(self):
        with self.client.get("/api/info", catch_response=True) as response:
            if response.status_code == 200 and "endpoints" in response.json():
                response.success()
            else:
                response.failure(f"Info endpoint returned {response.status_code}")


class SimulatedEvaluationTasks(TaskSet):
    """Heuristic endpoint, single and batch"""

    @task(7)
    def evaluate_single(self):
        pair = random.choice(PAIRS)
        with self.client.post("/api/clip-evaluate", json=pair, catch_response=True, timeout=30) as response:
            data = response.json()
            if response.status_code == 200 and 0.1 <= data.get("similarity_score", -1) <= 0.95:
                response.success()
            else:
                response.failure(f"Simulated evaluation failed: {response.status_code} {data}")

    @task(3)
    def evaluate_batch(self):
        items = random.sample(PAIRS, min(5, len(PAIRS)))
        with self.client.post(
            "/api/clip-evaluate", json={"items": items}, catch_response=True, timeout=60
        ) as response:
            data = response.json()
            if response.status_code == 200 and data.get("summary", {}).get("total") == len(items):
                response.success()
            else:
                response.failure(f"Simulated batch failed: {response.status_code}")


class ModelEvaluationTasks(TaskSet):
    """External-process endpoints; each pair starts a CLIP process"""

    @task(4)
    def evaluate_text_image(self):
        pair = random.choice(PAIRS)
        with self.client.post(
            "/api/evaluate/text-image", json=pair, catch_response=True, timeout=180
        ) as response:
            if response.status_code == 200 and "similarity_score" in response.json():
                response.success()
            else:
                response.failure(f"Model evaluation failed: {response.status_code}")

    @task(1)
    def evaluate_batch(self):
        evaluations = random.sample(PAIRS, min(2, len(PAIRS)))
        with self.client.post(
            "/api/batch-evaluate", json={"evaluations": evaluations}, catch_response=True, timeout=600
        ) as response:
            if response.status_code == 200 and response.json().get("total") == len(evaluations):
                response.success()
            else:
                response.failure(f"Model batch failed: {response.status_code}")


class ClipEvaluationUser(HttpUser):
    """Mixed traffic"""

    wait_time = between(1, 3)

    def on_start(self):
        """Stop early when the service is not reachable"""
        try:
            response = self.client.get("/api/health", timeout=10)
        except Exception as e:
            logger.error(f"Failed to connect to service: {e}")
            raise StopUser()
        if response.status_code != 200:
            logger.error("Service health check failed, stopping user")
            raise StopUser()

    tasks = {
        HealthCheckTasks: 1,
        SimulatedEvaluationTasks: 6,
        ModelEvaluationTasks: 3,
    }


class LightLoadUser(HttpUser):
    """Light load for CI, heuristic endpoint only"""

    wait_time = between(2, 5)

    tasks = {
        HealthCheckTasks: 3,
        SimulatedEvaluationTasks: 7,
    }
