"""
Batching and concurrency primitives
"""

from saleradar.batching.coordinator import (
    BatchCoordinator,
    BatchRequest,
    get_batch_coordinator,
)
from saleradar.batching.limiter import ConcurrencyLimiter

__all__ = [
    "BatchCoordinator",
    "BatchRequest",
    "ConcurrencyLimiter",
    "get_batch_coordinator",
]
