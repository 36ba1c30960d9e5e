"""
Application Entry Point
Run with: python main.py or uvicorn main:app --reload
"""

import uvicorn

from saleradar.api.main import app

if __name__ == "__main__":
    uvicorn.run(
        "saleradar.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # dev only
        log_level="info",
    )
