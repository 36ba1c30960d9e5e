"""
FastAPI Application Factory

Creates and configures FastAPI application
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from saleradar.api.error_handlers import register_exception_handlers
from saleradar.core.config import settings
from saleradar.core.db import close_db
from saleradar.core.logging import configure_logging, get_logger
from saleradar.routers import embeddings, recommendations

logger = get_logger(__name__)


async def warmup_embedding_model() -> None:
    """Preload the local E5 model so the first request does not pay for it."""
    from saleradar.embedding.e5 import E5ModelHandle

    t0 = time.perf_counter()
    try:
        logger.info(
            "embedding_model_background_warmup_start",
            model=settings.e5_model_name,
            device=settings.embedding_device,
        )
        await E5ModelHandle().warmup()
        logger.info(
            "embedding_model_background_warmup_complete",
            model=settings.e5_model_name,
            elapsed_seconds=f"{time.perf_counter() - t0:.2f}",
        )
    except Exception as e:  # noqa: BLE001
        # first embed call retries the load
        logger.error(
            "embedding_model_background_warmup_failed",
            error=str(e),
            elapsed_seconds=f"{time.perf_counter() - t0:.2f}",
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan events

    Startup:
        - Configure logging
        - Schedule E5 model warmup as a background task (e5 provider only)

    Shutdown:
        - Close database connections
    """
    configure_logging()
    logger.info(
        "application_startup",
        environment=settings.environment,
        embedding_provider=settings.embedding_provider,
        offer_store=settings.offer_store_type,
    )

    warmup_task: asyncio.Task[None] | None = None
    if settings.embedding_provider == "e5":
        warmup_task = asyncio.create_task(warmup_embedding_model())

    yield

    logger.info("application_shutdown")
    if warmup_task is not None and not warmup_task.done():
        warmup_task.cancel()
    await close_db()


def create_app() -> FastAPI:
    """
    Create FastAPI application

    Returns:
        Configured FastAPI app instance

    Usage:
        app = create_app()
        uvicorn.run(app, host="0.0.0.0", port=8000)
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Supermarket offer recommendations for grocery lists",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(recommendations.router, prefix=settings.api_v1_prefix)
    app.include_router(embeddings.router, prefix=settings.api_v1_prefix)

    register_exception_handlers(app)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        return {
            "status": "ok",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    logger.info("fastapi_app_created", routes=len(app.routes))

    return app


# Application instance
app = create_app()
