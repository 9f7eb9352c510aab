"""
FastAPI Application

Read-only status API for a running vault instance.
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clvault.config import ApiSettings
from clvault.vault import Vault
from clvault.api.v1 import health, vault as vault_routes

logger = logging.getLogger(__name__)


def create_app(vault: Vault, settings: Optional[ApiSettings] = None) -> FastAPI:
    """Build the status API around an already-wired vault"""
    settings = settings or ApiSettings()

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.vault = vault

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(vault_routes.router, prefix="/api/v1", tags=["Vault"])

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "name": settings.API_TITLE,
            "version": settings.API_VERSION,
            "description": settings.API_DESCRIPTION,
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    logger.info("Created %s v%s for vault %s", settings.API_TITLE, settings.API_VERSION,
                vault.config.vault_address)
    return app
