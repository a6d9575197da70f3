"""Memory checks for the bounded-memory inference passes."""

import gc
import logging
from dataclasses import dataclass
from datetime import datetime

import numpy as np
import psutil

from .exceptions import PassMemoryExhausted

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


@dataclass
class MemoryStats:
    """Memory statistics data structure."""
    total_memory_mb: float
    used_memory_mb: float
    available_memory_mb: float
    memory_percent: float
    timestamp: datetime


def estimate_pass_bytes(target_size: int, channels: int = 4) -> int:
    """Bytes held by one pass: the uint8 canvas plus the float32 input tensor."""
    canvas = target_size * target_size * channels * np.dtype(np.uint8).itemsize
    tensor = target_size * target_size * 3 * np.dtype(np.float32).itemsize
    return canvas + tensor


class MemoryGuard:
    """Refuses to start an allocation when system memory is too low.

    The guard keeps ``reserve_mb`` of system memory free on top of whatever
    the caller says it needs. A shortfall raises ``PassMemoryExhausted`` so the
    pipeline can treat it like an allocation failure.
    """

    def __init__(self, reserve_mb: int = 64, enabled: bool = True):
        self.reserve_bytes = max(0, int(reserve_mb)) * _MB
        self.enabled = enabled

    def collect_stats(self) -> MemoryStats:
        """Collect current memory statistics."""
        process = psutil.Process()
        system_memory = psutil.virtual_memory()
        return MemoryStats(
            total_memory_mb=system_memory.total / _MB,
            used_memory_mb=process.memory_info().rss / _MB,
            available_memory_mb=system_memory.available / _MB,
            memory_percent=process.memory_percent(),
            timestamp=datetime.now(),
        )

    def ensure(self, required_bytes: int, purpose: str = "") -> None:
        """Raise PassMemoryExhausted if ``required_bytes`` cannot be allocated safely."""
        if not self.enabled:
            return
        available = psutil.virtual_memory().available
        if available - self.reserve_bytes < required_bytes:
            stats = self.collect_stats()
            logger.warning(
                f"Insufficient memory for {purpose or 'allocation'}: "
                f"need {required_bytes / _MB:.1f}MB + {self.reserve_bytes / _MB:.0f}MB reserve, "
                f"available {stats.available_memory_mb:.1f}MB of {stats.total_memory_mb:.0f}MB "
                f"(process RSS {stats.used_memory_mb:.1f}MB, {stats.memory_percent:.1f}%)"
            )
            raise PassMemoryExhausted(
                f"Not enough memory for {purpose or 'allocation'} "
                f"({required_bytes / _MB:.1f}MB requested)"
            )

    @staticmethod
    def release() -> int:
        """Collect garbage after a pass has dropped its buffers."""
        return gc.collect()
