#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.

The AppContext is built once at startup and kept on app.state; routes
reach the engine through it instead of module-level singletons.
"""

from fastapi import Request

from core.app_context import AppContext
from core.matching_service import MatchingEngine


def get_app_context(request: Request) -> AppContext:
    return request.app.state.ctx


def get_engine(request: Request) -> MatchingEngine:
    """
    FastAPI dependency that returns the matching engine.

    Usage:
        @router.get("/endpoint")
        def my_endpoint(engine: MatchingEngine = Depends(get_engine)):
            ...
    """
    return request.app.state.ctx.engine
