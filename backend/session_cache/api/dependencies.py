"""Request Dependencies — bind each request to its cached Session.

Invariants:
    - The registry lives on app.state (set in lifespan, or by tests)
    - current_session sets the sid cookie on the response FastAPI sends back
"""

from fastapi import Depends, Request, Response

from session_cache.core.errors import ConfigError
from session_cache.core.session import Session
from session_cache.services.registry import SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise ConfigError("session registry not initialized", "registry")
    return registry


async def current_session(
    request: Request,
    response: Response,
    registry: SessionRegistry = Depends(get_registry),
) -> Session:
    return await registry.start(request, response)
