from __future__ import annotations

import logging

from hierarchigraph.core.config import Settings
from hierarchigraph.persistence.base import GraphStore
from hierarchigraph.persistence.cosmos import CosmosGraphStore
from hierarchigraph.persistence.memory import InMemoryGraphStore

logger = logging.getLogger(__name__)

__all__ = ["CosmosGraphStore", "GraphStore", "InMemoryGraphStore", "create_store"]


async def create_store(settings: Settings) -> GraphStore:
    backend = settings.STORE_BACKEND.strip().lower()

    if backend == "cosmos":
        store = CosmosGraphStore()
        await store.initialize(settings)
        if store.initialized:
            return store
        logger.warning("Cosmos DB not configured — falling back to in-memory graph store")
    elif backend != "memory":
        raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")

    return InMemoryGraphStore()
