"""
FastAPI integration module.

Provides helpers for binding a corewire container to a FastAPI application.
"""

from .integration import container_lifespan, create_fastapi_dependency, resolve_from_app

__all__ = [
    "create_fastapi_dependency",
    "container_lifespan",
    "resolve_from_app",
]
