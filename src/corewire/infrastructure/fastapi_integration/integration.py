from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional, Type, TypeVar, Union

from fastapi import FastAPI, Request

from corewire.application import Container
from corewire.domain import ContainerPhase, IContainer

T = TypeVar("T")


def create_fastapi_dependency(
    container: IContainer,
    key: Union[str, Type[T]],
    qualifier: Optional[Dict[str, Any]] = None,
) -> Callable[[], Any]:
    """Create a FastAPI Depends() callable that resolves from the container.

    The resolved instance follows the component's scope: the same
    singleton on every request, a fresh transient instance per request.

    Args:
        container: The container to resolve from.
        key: A component name or a type.
        qualifier: Qualifier filter, used when ``key`` is a type.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> get_user_repo = create_fastapi_dependency(container, UserRepository)
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: UserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> Any:
        """Resolve the component from the container."""
        return container.get(key, qualifier)

    return dependency


def container_lifespan(container: Container) -> Callable[[FastAPI], Any]:
    """Create a FastAPI lifespan that refreshes the container on startup and closes it on shutdown.

    The container is also published as ``app.state.container`` for
    ``resolve_from_app``.

    Args:
        container: The container bound to the application's lifetime.

    Returns:
        An async context manager factory for ``FastAPI(lifespan=...)``.

    Example:
        >>> container = Container()
        >>> container.register_singletons({"database": Database})
        >>> app = FastAPI(lifespan=container_lifespan(container))
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if container.phase == ContainerPhase.UNSTARTED:
            container.refresh()
        app.state.container = container
        try:
            yield
        finally:
            container.close()

    return lifespan


def resolve_from_app(key: Union[str, Type[T]], qualifier: Optional[Dict[str, Any]] = None) -> Callable[[Request], Any]:
    """Create a FastAPI dependency resolving from the container published on the app.

    Requires the application to use ``container_lifespan``.

    Example:
        >>> app = FastAPI(lifespan=container_lifespan(container))
        >>>
        >>> @app.get("/orders")
        >>> async def list_orders(service: OrderService = Depends(resolve_from_app(OrderService))):
        ...     return service.list()
    """

    def app_dependency(request: Request) -> Any:
        """Resolve from the application's container."""
        if not hasattr(request.app.state, "container"):
            raise RuntimeError("Application has no container. Did you forget to use container_lifespan?")
        app_container: IContainer = request.app.state.container
        return app_container.get(key, qualifier)

    return app_dependency
