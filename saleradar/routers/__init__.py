"""
API Routers
FastAPI route handlers
"""

from saleradar.routers import embeddings, recommendations

__all__ = ["embeddings", "recommendations"]
