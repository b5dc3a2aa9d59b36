"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from coursereg.registry import Registry


def get_registry(request: Request) -> Registry:
    """Dependency that provides the app's Registry instance."""
    registry: Registry | None = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RuntimeError("Registry not initialized. Start the app through its lifespan.")
    return registry


# Type alias for dependency injection
RegistryDep = Annotated[Registry, Depends(get_registry)]
