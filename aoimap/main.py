"""AOI-MAP - area-of-interest feature sync.

Main FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from aoimap import __version__
from aoimap.config import Settings, settings
from aoimap.features.remote import SqlFeatureRepository, create_remote_store
from aoimap.routers import drafts_router, features_router, geo_router, map_router
from aoimap.session import create_session


def create_app(config: Settings = settings) -> FastAPI:
    """Build the application; the session is created in the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info("=" * 60)
        logger.info(f"  {config.app_name} v{__version__} - INITIALIZING")
        logger.info("=" * 60)

        remote = create_remote_store(config)
        if isinstance(remote, SqlFeatureRepository):
            logger.info(f"Initializing database {config.database_url}...")
            await remote.create_tables()
            logger.info("Database initialized")
        else:
            logger.info(f"Remote store: {config.remote_backend} ({config.rest_url})")

        session = create_session(config, remote=remote)
        await session.load()
        app.state.session = session

        logger.info("=" * 60)
        logger.info(f"  {config.app_name} ONLINE")
        logger.info("=" * 60)

        yield

        await session.search.wait()
        if isinstance(remote, SqlFeatureRepository):
            await remote.dispose()
        logger.info(f"{config.app_name} shutting down...")

    app = FastAPI(
        title=config.app_name,
        description="Area-of-interest map with remote feature sync",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(features_router)
    app.include_router(drafts_router)
    app.include_router(geo_router)
    app.include_router(map_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "operational",
            "version": __version__,
            "system": config.app_name,
        }

    return app


app = create_app()
