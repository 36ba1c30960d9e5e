"""
Core module: Configuration, Database, Logging, Pagination
"""

from saleradar.core.config import settings

__all__ = ["settings"]
