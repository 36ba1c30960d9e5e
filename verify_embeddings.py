#!/usr/bin/env python
"""
Report how much of the offer catalog has embeddings.
Exits 1 on configuration errors, 2 if the store could not be read.
"""

import argparse
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

logger = get_logger("verify_embeddings")


async def verify_embeddings(sample_size: int) -> int:
    try:
        pipeline = EmbeddingPipeline(
            store=create_offer_store(),
            provider=create_embedding_provider("passage"),
        )
        coverage = await pipeline.verify(sample_size=sample_size)
    except ConfigurationError as e:
        logger.error("embedding_verification_misconfigured", error=e.message)
        return 1
    except StoreError as e:
        logger.error("embedding_verification_store_unavailable", error=e.message)
        return 2
    finally:
        await close_db()

    print(f"Total offers:    {coverage.total}")
    print(f"With embedding:  {coverage.embedded}")
    print(f"Missing:         {coverage.missing}")
    for sample in coverage.sample:
        print(f"  {sample.id}  {sample.product_name}  dim={sample.dimension}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--sample-size", type=int, default=5)
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(verify_embeddings(args.sample_size)))
