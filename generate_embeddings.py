#!/usr/bin/env python
"""
Embed every offer that has no embedding yet.
Meant to run on a schedule after each catalog import.

Exit codes: 0 on completion (even with per-offer failures),
1 on configuration errors, 2 if the store could not be read.
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

from saleradar.core.db import close_db  # noqa: E402
from saleradar.core.exceptions import ConfigurationError, StoreError  # noqa: E402
from saleradar.core.logging import configure_logging, get_logger  # noqa: E402
from saleradar.embedding.factory import create_embedding_provider  # noqa: E402
from saleradar.services.embedding_pipeline import EmbeddingPipeline  # noqa: E402
from saleradar.store.factory import create_offer_store  # noqa: E402

logger = get_logger("generate_embeddings")


async def generate_embeddings() -> int:
    try:
        pipeline = EmbeddingPipeline(
            store=create_offer_store(),
            provider=create_embedding_provider("passage"),
        )
        report = await pipeline.run()
    except ConfigurationError as e:
        logger.error("embedding_generation_misconfigured", error=e.message)
        return 1
    except StoreError as e:
        logger.error("embedding_generation_store_unavailable", error=e.message)
        return 2
    finally:
        await close_db()

    print(f"Embedded {report.succeeded}/{report.total} offers ({report.failed} failed)")
    if report.failed_ids:
        print("Failed offer ids: " + ", ".join(report.failed_ids))
    return 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(generate_embeddings()))
