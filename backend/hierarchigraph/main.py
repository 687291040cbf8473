from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hierarchigraph.api.v1.router import api_router
from hierarchigraph.core.config import settings
from hierarchigraph.persistence import create_store
from hierarchigraph.services.hierarchy_engine import HierarchyEngine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    store = await create_store(settings)
    engine = HierarchyEngine(store, max_hierarchy_nodes=settings.MAX_HIERARCHY_NODES)
    application.state.engine = engine
    logger.info("HierarchyEngine ready (store=%s)", type(store).__name__)
    yield
    application.state.engine = None
    await engine.close()


app = FastAPI(
    title="HierarchiGraph API",
    description="Organization hierarchy graph engine",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "HierarchiGraph API"}
