"""
Offer Store Factory
Creates appropriate HybridSearchStore implementation based on configuration
"""

from saleradar.core.config import settings
from saleradar.core.exceptions import ConfigurationError
from saleradar.core.logging import get_logger
from saleradar.store.mock import InMemoryOfferStore
from saleradar.store.protocol import HybridSearchStore

logger = get_logger(__name__)


def create_offer_store() -> HybridSearchStore:
    """
    Build the configured offer store

    Raises:
        ConfigurationError: If offer_store_type is not supported
    """
    store_type = settings.offer_store_type

    logger.info("offer_store_factory", store_type=store_type)

    if store_type == "mock":
        return InMemoryOfferStore()

    if store_type == "pgvector":
        from saleradar.store.pgvector import PGVectorOfferStore

        return PGVectorOfferStore()

    raise ConfigurationError(
        f"Unsupported offer_store_type: {store_type}. Supported types: mock, pgvector"
    )


# Singleton instance for dependency injection
_offer_store: HybridSearchStore | None = None


def get_offer_store() -> HybridSearchStore:
    """
    Get singleton offer store instance

    Returns:
        HybridSearchStore implementation
    """
    global _offer_store
    if _offer_store is None:
        _offer_store = create_offer_store()
    return _offer_store
