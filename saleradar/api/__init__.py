"""
API Application Factory
FastAPI app creation and configuration
"""

from saleradar.api.main import create_app

__all__ = ["create_app"]
