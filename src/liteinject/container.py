from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar, overload

from liteinject._internal.type_checks import is_runtime_class
from liteinject.entries import Lifetime, ServiceEntry, ServiceFactory
from liteinject.exceptions import InvalidRegistrationError
from liteinject.injector import Injector
from liteinject.lock_mode import LockMode
from liteinject.registry import ServiceRegistry
from liteinject.sources import ServiceSource

if TYPE_CHECKING:
    from typing_extensions import Self

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Container:
    """Own a service registry and hand out injectors that resolve from it.

    Registrations are made programmatically with ``add_instance``,
    ``add_factory`` and ``add_concrete``. Resolution goes through the root
    injector (``resolve``/``try_resolve``) or through scope injectors created
    with ``create_scope``; all of them share the registry and its singleton
    caches.

    Closing the container releases owned singletons and makes every injector
    it created raise ``ObjectDisposedError``.
    """

    def __init__(
        self,
        *,
        default_lifetime: Lifetime = Lifetime.SINGLETON,
        lock_mode: LockMode = LockMode.THREAD,
        register_default_sources: bool = True,
    ) -> None:
        """Initialize a container and configure default registration behavior.

        Args:
            default_lifetime: Lifetime used by ``add_factory``/``add_concrete``
                when ``lifetime`` is omitted.
            lock_mode: Guard used for singleton caches of new registrations.
            register_default_sources: Register the default service sources
                (``Lazy``, ``LazyWithMetadata``, ``ExportFactory``,
                ``ExportFactoryWithMetadata``, collections).

        """
        self._default_lifetime = default_lifetime
        self._lock_mode = lock_mode
        self._registry = (
            ServiceRegistry.with_default_sources() if register_default_sources else ServiceRegistry()
        )
        self._closed = False
        self._root_injector = Injector(self._registry, self)

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
    def root_injector(self) -> Injector:
        return self._root_injector

    @property
    def closed(self) -> bool:
        return self._closed

    def add_instance(
        self,
        instance: Any,
        *,
        provides: Any = None,
        metadata: Mapping[str, Any] | None = None,
        allow_multiple: bool = False,
        externally_owned: bool = False,
    ) -> ServiceEntry:
        """Register a pre-built instance (always a singleton).

        Args:
            instance: The object returned for every resolution.
            provides: Contract type; defaults to ``type(instance)``.
            metadata: Metadata exposed through ``...WithMetadata`` contracts.
            allow_multiple: Collect this registration with the other
                ``allow_multiple`` registrations of the contract.
            externally_owned: Do not close the instance when the container closes.

        """
        entry = ServiceEntry(
            type(instance) if provides is None else provides,
            instance=instance,
            metadata=metadata,
            allow_multiple=allow_multiple,
            externally_owned=externally_owned,
            lock_mode=self._lock_mode,
        )
        return self._register(entry)

    def add_factory(
        self,
        factory: ServiceFactory,
        *,
        provides: Any,
        lifetime: Lifetime | None = None,
        metadata: Mapping[str, Any] | None = None,
        allow_multiple: bool = False,
        externally_owned: bool = False,
    ) -> ServiceEntry:
        """Register a factory called with the resolving ``Injector``.

        Example:
            .. code-block:: python

                container.add_factory(lambda injector: Database(injector.resolve(Settings)), provides=Database)

        Args:
            factory: Callable taking the injector and returning the service.
            provides: Contract type satisfied by the factory.
            lifetime: Overrides the container default lifetime.
            metadata: Metadata exposed through ``...WithMetadata`` contracts.
            allow_multiple: Collect this registration with the other
                ``allow_multiple`` registrations of the contract.
            externally_owned: Do not close the produced singleton when the container closes.

        """
        entry = ServiceEntry(
            provides,
            factory=factory,
            lifetime=self._default_lifetime if lifetime is None else lifetime,
            metadata=metadata,
            allow_multiple=allow_multiple,
            externally_owned=externally_owned,
            lock_mode=self._lock_mode,
        )
        return self._register(entry)

    def add_concrete(
        self,
        concrete_type: Any,
        *,
        provides: Any = None,
        lifetime: Lifetime | None = None,
        metadata: Mapping[str, Any] | None = None,
        allow_multiple: bool = False,
        externally_owned: bool = False,
    ) -> ServiceEntry:
        """Register a class built through constructor injection.

        Registering an open generic class for an open generic contract (for
        example ``add_concrete(SqlRepository, provides=Repository)``) makes every
        closed ``Repository[X]`` resolvable as ``SqlRepository[X]``.

        Pydantic settings models (``pydantic_settings.BaseSettings`` subclasses)
        are registered as singletons built without arguments, so they keep
        reading their values from the environment instead of the container.

        Args:
            concrete_type: Class (or closed generic alias) to instantiate.
            provides: Contract type; defaults to ``concrete_type``.
            lifetime: Overrides the container default lifetime.
            metadata: Metadata exposed through ``...WithMetadata`` contracts.
            allow_multiple: Collect this registration with the other
                ``allow_multiple`` registrations of the contract.
            externally_owned: Do not close the produced singleton when the container closes.

        """
        contract_type = concrete_type if provides is None else provides
        if _is_settings_model(concrete_type):
            logger.debug("Registering settings model %r as a singleton factory", concrete_type)
            entry = ServiceEntry(
                contract_type,
                factory=lambda _injector: concrete_type(),
                lifetime=Lifetime.SINGLETON,
                metadata=metadata,
                allow_multiple=allow_multiple,
                externally_owned=externally_owned,
                lock_mode=self._lock_mode,
            )
            return self._register(entry)

        if not is_runtime_class(concrete_type) and not is_runtime_class(
            getattr(concrete_type, "__origin__", None),
        ):
            msg = f"Concrete type must be a class, got {concrete_type!r}."
            raise InvalidRegistrationError(msg)

        entry = ServiceEntry(
            contract_type,
            instance_type=concrete_type,
            lifetime=self._default_lifetime if lifetime is None else lifetime,
            metadata=metadata,
            allow_multiple=allow_multiple,
            externally_owned=externally_owned,
            lock_mode=self._lock_mode,
        )
        return self._register(entry)

    def add_source(self, source: ServiceSource | type[ServiceSource]) -> ServiceSource:
        """Append a service source, after the default ones.

        Args:
            source: A source instance, or a source class built with this
                container's registry.

        """
        if isinstance(source, type):
            source = source(self._registry)
        self._registry.register_source(source)
        return source

    def create_scope(self) -> Injector:
        """Return a new injector sharing this container's registry."""
        return Injector(self._registry, self)

    def is_registered(self, contract_type: Any) -> bool:
        return self._root_injector.is_registered(contract_type)

    @overload
    def resolve(self, contract_type: type[T]) -> T: ...

    @overload
    def resolve(self, contract_type: Any) -> Any: ...

    def resolve(self, contract_type: Any) -> Any:
        """Resolve ``contract_type`` through the root injector."""
        return self._root_injector.resolve(contract_type)

    @overload
    def try_resolve(self, contract_type: type[T]) -> T | None: ...

    @overload
    def try_resolve(self, contract_type: Any) -> Any | None: ...

    def try_resolve(self, contract_type: Any) -> Any | None:
        """Resolve ``contract_type`` through the root injector, ``None`` when nothing matches."""
        return self._root_injector.try_resolve(contract_type)

    def close(self) -> None:
        """Close the root injector and release owned singletons."""
        if self._closed:
            return
        self._closed = True
        self._root_injector.close()
        self._registry.close()
        logger.debug("Closed %r", self)

    def _register(self, entry: ServiceEntry) -> ServiceEntry:
        if self._closed:
            msg = f"Cannot register {entry.contract_type!r} on a closed container."
            raise InvalidRegistrationError(msg)
        self._registry.register_service(entry)
        return entry


def _is_settings_model(concrete_type: Any) -> bool:
    # A settings subclass can only exist once pydantic_settings has been imported.
    module = sys.modules.get("pydantic_settings")
    base_settings = getattr(module, "BaseSettings", None)
    if not is_runtime_class(base_settings) or not is_runtime_class(concrete_type):
        return False
    return issubclass(concrete_type, base_settings)
