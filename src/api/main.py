"""
FastAPI application for the RAG API.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .deps import Services, build_services
from .routes import router

logger = logging.getLogger(__name__)


def _seed(services: Services) -> None:
    logger.info("Seeding sample F1 documents...")
    services.ingestor.seed_sample_documents()
    services.ingestor.initialize_embeddings()
    logger.info("Sample data initialization complete!")


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the app; services are created in lifespan unless injected."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build services and seed sample documents on startup."""
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services()
        current: Services = app.state.services
        if current.seed_on_startup:
            try:
                await asyncio.to_thread(_seed, current)
            except Exception:
                logger.exception("Failed to initialize sample data")
        yield

    app = FastAPI(
        title="Pitwall API",
        description="Hybrid-retrieval Q&A over Formula 1 strategy documents",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("src.api.main:app", host="0.0.0.0", port=8000)
