"""Shared pytest fixtures for liteinject tests."""

from collections.abc import Iterator

import pytest

from liteinject.container import Container
from liteinject.entries import Lifetime
from liteinject.injector import Injector
from liteinject.registry import ServiceRegistry


@pytest.fixture()
def container() -> Iterator[Container]:
    """Default container: singleton lifetime, thread locks, default sources."""
    with Container() as container:
        yield container


@pytest.fixture()
def container_transient() -> Iterator[Container]:
    """Container with transient lifetime as default."""
    with Container(default_lifetime=Lifetime.TRANSIENT) as container:
        yield container


@pytest.fixture()
def registry() -> ServiceRegistry:
    """Registry with the default sources registered."""
    return ServiceRegistry.with_default_sources()


@pytest.fixture()
def injector(registry: ServiceRegistry) -> Injector:
    """Injector over ``registry`` without an owning container."""
    return Injector(registry)
