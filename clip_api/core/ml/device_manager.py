"""
Device and precision selection for the CLIP runner
"""

import logging

import torch

logger = logging.getLogger(__name__)

AUTO = "auto"
PRECISIONS = ("fp32", "fp16", "bf16")


class DeviceManager:
    """Resolves the ``--device`` and ``--precision`` options of the runner"""

    @staticmethod
    def _available(device_type: str) -> bool:
        if device_type == "cuda":
            return torch.cuda.is_available()
        if device_type == "mps":
            return hasattr(torch.backends, "mps") and torch.backends.mps.is_available()
        return device_type == "cpu"

    @classmethod
    def get_optimal_device(cls, device: str | None = None) -> torch.device:
        """
        Resolve the requested device.

        ``None`` or ``"auto"`` picks CUDA, then MPS, then CPU. An explicit
        device that is not present falls back to CPU.
        """
        if device and device != AUTO:
            requested = torch.device(device)
            if cls._available(requested.type):
                return requested
            logger.warning(f"Requested device {device} is not available, using CPU")
            return torch.device("cpu")

        for device_type in ("cuda", "mps"):
            if cls._available(device_type):
                logger.info(f"Using {device_type}")
                return torch.device(device_type)
        return torch.device("cpu")

    @staticmethod
    def get_optimal_precision(device: torch.device, precision: str | None = None) -> str:
        """Half precision on CUDA, full precision elsewhere, unless overridden"""
        if precision and precision != AUTO:
            if precision not in PRECISIONS:
                raise ValueError(f"Unsupported precision: {precision}. Choose from {PRECISIONS}")
            if precision != "fp32" and device.type == "cpu":
                logger.warning(f"{precision} is slow or unsupported on CPU, using fp32")
                return "fp32"
            return precision

        return "fp16" if device.type == "cuda" else "fp32"
