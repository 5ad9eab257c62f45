from __future__ import annotations

import logging
import weakref
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar, overload

from liteinject.exceptions import NoImplementationForContractError, ObjectDisposedError

if TYPE_CHECKING:
    from typing_extensions import Self

    from liteinject.container import Container
    from liteinject.registry import ServiceRegistry

T = TypeVar("T")

logger = logging.getLogger(__name__)
_NOT_FOUND: Any = object()


class Injector:
    """Resolve services for one scope.

    An injector owns a handle to the (possibly shared) registry and a weak,
    non-owning reference to the container that created it. Every resolution
    and registration query checks that the injector, its container and its
    registry are still open, so a torn-down container is reported instead of
    silently rebuilding singletons it already released.

    Lookup order: the registry entry for the contract, then the first matching
    service source. A total miss is not an error for ``get_service`` and
    ``try_resolve``; it is for ``resolve``.

    Closing an injector only invalidates the injector. The registry and its
    singleton caches are left untouched for other scopes.
    """

    def __init__(self, registry: ServiceRegistry, container: Container | None = None) -> None:
        self._registry = registry
        self._container_ref: weakref.ReferenceType[Container] | None = (
            weakref.ref(container) if container is not None else None
        )
        self._closed = False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"{type(self).__name__}({state}, registry={self._registry!r})"

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def registry(self) -> ServiceRegistry:
        return self._registry

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def container(self) -> Container | None:
        """The live container that created this injector.

        Raises:
            ObjectDisposedError: The injector or its container is closed.

        """
        self._ensure_alive()
        if self._container_ref is None:
            return None
        return self._container_ref()

    def close(self) -> None:
        self._closed = True

    def is_registered(self, contract_type: Any) -> bool:
        self._ensure_alive()
        return self._registry.is_registered(contract_type)

    def get_service(self, contract_type: Any) -> Any | None:
        """Return the service for ``contract_type`` or ``None`` when nothing matches.

        Errors raised while producing a matched service propagate.
        """
        service = self._get_service(contract_type)
        return None if service is _NOT_FOUND else service

    @overload
    def resolve(self, contract_type: type[T]) -> T: ...

    @overload
    def resolve(self, contract_type: Any) -> Any: ...

    def resolve(self, contract_type: Any) -> Any:
        """Resolve ``contract_type`` to an instance.

        Raises:
            NoImplementationForContractError: Neither a registration nor a
                source matches ``contract_type``.
            ObjectDisposedError: The injector or its container is closed.

        """
        service = self._get_service(contract_type)
        if service is _NOT_FOUND:
            raise NoImplementationForContractError(contract_type)
        return service

    @overload
    def try_resolve(self, contract_type: type[T]) -> T | None: ...

    @overload
    def try_resolve(self, contract_type: Any) -> Any | None: ...

    def try_resolve(self, contract_type: Any) -> Any | None:
        """Resolve ``contract_type``, returning ``None`` when nothing matches it."""
        return self.get_service(contract_type)

    def _get_service(self, contract_type: Any) -> Any:
        self._ensure_alive()

        value = self._registry.try_get_value(contract_type)
        if value is not None:
            return value.get_service(self)

        source = self._registry.find_source(contract_type)
        if source is not None:
            logger.debug("Resolving %r through %r", contract_type, source)
            return source.get_service(self, contract_type)

        return _NOT_FOUND

    def _ensure_alive(self) -> None:
        if self._closed:
            msg = "The injector is closed."
            raise ObjectDisposedError(msg)
        if self._container_ref is not None:
            container = self._container_ref()
            if container is None or container.closed:
                msg = "The container owning this injector is closed."
                raise ObjectDisposedError(msg)
        if self._registry.closed:
            msg = "The registry of this injector is closed."
            raise ObjectDisposedError(msg)
