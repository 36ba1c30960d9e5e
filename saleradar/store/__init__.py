"""
Offer store abstraction
Interface and implementations for catalog reads, embedding writes and hybrid search
"""

from saleradar.store.protocol import HybridSearchStore, OfferFilter
from saleradar.store.factory import create_offer_store, get_offer_store

__all__ = ["HybridSearchStore", "OfferFilter", "create_offer_store", "get_offer_store"]
