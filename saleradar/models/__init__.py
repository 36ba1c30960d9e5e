"""
SQLAlchemy 2.0 Models
"""

from saleradar.models.base import Base, BaseModel  # noqa: F401
from saleradar.models.offer import SupermarketOffer  # noqa: F401

__all__ = [
    "Base",
    "BaseModel",
    "SupermarketOffer",
]
