"""FastAPI dependencies."""
from fastapi import Request

from .services.registry import ServiceRegistry


def get_registry(request: Request) -> ServiceRegistry:
    """Dependency to get the application's service registry."""
    return request.app.state.registry
