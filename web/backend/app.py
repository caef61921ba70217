#!/usr/bin/env python3
"""
Campus Match API - FastAPI Application

Usage:
    python main.py --mode serve

Then open:
    - http://localhost:8080/docs - API Documentation (Swagger UI)
    - http://localhost:8080/redoc - Alternative API Documentation
"""

import logging

from fastapi import FastAPI, HTTPException

from core.app_context import AppContext
from core.exceptions import MatchingError
from .exceptions import (
    matching_exception_handler,
    http_exception_handler,
    general_exception_handler
)
from .routers import matches_router

logger = logging.getLogger(__name__)


def create_app(ctx: AppContext) -> FastAPI:
    """Create the API around an already wired AppContext."""
    app = FastAPI(
        title="Campus Match API",
        description="Student and company matching and recommendations",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.ctx = ctx

    # Register exception handlers
    app.add_exception_handler(MatchingError, matching_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(matches_router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "campus-match",
            "cache": ctx.cache.is_available,
            "provider": ctx.provider_client is not None
        }

    return app


def run_server(ctx: AppContext) -> None:
    """Run the web server."""
    import uvicorn

    web_config = ctx.config.web
    logger.info(f"Starting Campus Match API on {web_config.host}:{web_config.port}")
    logger.info(f"API Docs: http://{web_config.host}:{web_config.port}/docs")

    uvicorn.run(
        create_app(ctx),
        host=web_config.host,
        port=web_config.port,
        log_level="info"
    )
