"""
Device selection for the transformers session.

Preference order when nothing is requested: MPS (Apple Silicon), then CUDA,
then CPU. torch is imported lazily; without the transformers extra every GPU
reports as unavailable.
"""

import logging
import platform
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

AUTO_DEVICES = (None, "", "auto", "gpu")


def is_mps_available() -> bool:
    try:
        import torch
        return torch.backends.mps.is_available()
    except (ImportError, AttributeError):
        return False


def is_cuda_available() -> bool:
    try:
        import torch
        return torch.cuda.is_available()
    except ImportError:
        return False


def get_optimal_device(prefer_gpu: bool = True) -> str:
    """
    Best device available on this machine.

    Args:
        prefer_gpu: If False, always use the CPU

    Returns:
        str: "mps", "cuda" or "cpu"
    """
    if prefer_gpu and is_mps_available():
        return "mps"
    if prefer_gpu and is_cuda_available():
        return "cuda"
    return "cpu"


def resolve_device(requested: Optional[str]) -> str:
    """
    Turn a configured device name into one torch can load onto.

    "auto", "gpu" and None pick the best available device. A GPU that was
    asked for but is missing falls back to the CPU with a warning.

    Args:
        requested: "cpu", "mps", "cuda", "cuda:<index>", "auto", "gpu" or None

    Returns:
        str: Device string for ``torch.device``

    Raises:
        ValueError: If the name is not a known device
    """
    name = requested.strip().lower() if requested else requested
    if name in AUTO_DEVICES:
        device = get_optimal_device()
        logger.info(f"Auto-selected device: {device}")
        return device

    kind = name.split(":", 1)[0]
    if kind not in ("cpu", "mps", "cuda"):
        raise ValueError(f"Unknown device: {requested!r} (expected cpu, mps, cuda or auto)")

    available = {
        "cpu": True,
        "mps": is_mps_available(),
        "cuda": is_cuda_available(),
    }
    if not available[kind]:
        logger.warning(f"Device {name} is not available, using cpu")
        return "cpu"

    return name


def get_device_info() -> Dict[str, Any]:
    """
    Summary of the compute devices on this machine (shown by ``llm-codable info``).

    Returns:
        Dict with platform, processor, mps_available, cuda_available and
        optimal_device
    """
    return {
        'platform': platform.system(),
        'processor': platform.machine(),
        'mps_available': is_mps_available(),
        'cuda_available': is_cuda_available(),
        'optimal_device': get_optimal_device(),
    }
