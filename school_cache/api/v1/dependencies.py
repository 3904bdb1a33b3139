"""FastAPI dependencies for the cache endpoints.

The cache container is created in the app lifespan and stored on
app.state.cache; routes receive it through CacheContainerDep.
"""

from typing import Annotated

from fastapi import Depends, Request

from school_cache.core.container import CacheContainer
from school_cache.domain.exceptions import CacheConfigError


def get_cache_container(request: Request) -> CacheContainer:
    """Return the app's cache container.

    Raises:
        CacheConfigError: If the lifespan did not initialize one.
    """
    container = getattr(request.app.state, "cache", None)
    if container is None or not container.initialized:
        raise CacheConfigError("Cache container is not initialized")
    return container


CacheContainerDep = Annotated[CacheContainer, Depends(get_cache_container)]
