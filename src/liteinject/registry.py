from __future__ import annotations

import functools
import logging
import threading
from typing import TYPE_CHECKING, Any, Union

from liteinject._internal.generics import split_closed_generic
from liteinject._internal.type_checks import is_open_generic_class, type_parameter_count
from liteinject.constructors import ConstructorSelector
from liteinject.entries import (
    MultiServiceEntry,
    ServiceDescriptor,
    ServiceEntry,
    ServiceKind,
)
from liteinject.exceptions import InvalidRegistrationError, MismatchedMultipleRegistrationError
from liteinject.sources import DEFAULT_SOURCE_TYPES, ServiceSource

if TYPE_CHECKING:
    from typing_extensions import Self

    from liteinject.injector import Injector

logger = logging.getLogger(__name__)

RegisteredService = Union[ServiceEntry, MultiServiceEntry]


class ServiceRegistry:
    """Map contract types to registration entries and keep the ordered service sources.

    The registry is built once and is read-mostly afterwards: lookups are safe
    from several threads, and the only writes after the build are singleton
    caches inside entries and closed entries derived from open generic
    registrations. There is no removal operation.

    Registering a single entry for a contract that already has one replaces
    it silently (last writer wins). Entries with ``allow_multiple=True`` are
    appended to the ``MultiServiceEntry`` of their contract.
    """

    def __init__(self) -> None:
        self._services: dict[Any, RegisteredService] = {}
        self._sources: list[ServiceSource] = []
        self._lock = threading.RLock()
        self._closed = False
        self.constructors = ConstructorSelector(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(services={len(self._services)}, sources={len(self._sources)})"

    @classmethod
    def with_default_sources(cls) -> ServiceRegistry:
        """Create a registry with ``DEFAULT_SOURCE_TYPES`` registered in their documented order."""
        registry = cls()
        for source_type in DEFAULT_SOURCE_TYPES:
            registry.register_source(source_type(registry))
        return registry

    @property
    def sources(self) -> tuple[ServiceSource, ...]:
        return tuple(self._sources)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def contract_types(self) -> tuple[Any, ...]:
        return tuple(self._services)

    def register_service(self, entry: ServiceEntry) -> Self:
        """Register ``entry`` under its contract type.

        Args:
            entry: Registration entry to add.

        Raises:
            InvalidRegistrationError: An open generic contract is registered with
                anything but a generic instance type of the same arity.
            MismatchedMultipleRegistrationError: Single and multiple registrations
                are mixed for the same contract.

        """
        if entry.is_open_generic:
            self._validate_open_generic(entry)

        contract_type = entry.contract_type
        with self._lock:
            existing = self._services.get(contract_type)
            if entry.allow_multiple:
                if existing is None:
                    self._services[contract_type] = MultiServiceEntry(entry)
                elif isinstance(existing, MultiServiceEntry):
                    existing.add(entry)
                else:
                    raise MismatchedMultipleRegistrationError(contract_type)
                return self

            if isinstance(existing, MultiServiceEntry):
                raise MismatchedMultipleRegistrationError(contract_type)
            if existing is not None:
                logger.debug("Overriding registration for %r: %r -> %r", contract_type, existing, entry)
            self._services[contract_type] = entry
        return self

    def register_source(self, source: ServiceSource) -> Self:
        """Append ``source``; sources are consulted in registration order."""
        with self._lock:
            self._sources.append(source)
        return self

    def try_get_value(self, contract_type: Any) -> RegisteredService | None:
        """Return the entry (or aggregate) registered for ``contract_type``, if any.

        Closed generic contracts such as ``Repository[int]`` are derived from an
        open ``Repository`` registration on first lookup and stored, so later
        lookups share the same entry and its singleton cache.
        """
        value = self._lookup(contract_type)
        if value is not None:
            return value

        closed = split_closed_generic(contract_type)
        if closed is None:
            return None
        origin, arguments = closed
        open_value = self._lookup(origin)
        if open_value is None or not open_value.is_open_generic:
            return None

        with self._lock:
            value = self._services.get(contract_type)
            if value is None:
                value = open_value.close_generic(arguments)
                self._services[contract_type] = value
                logger.debug("Closed open generic registration %r for %r", origin, contract_type)
            return value

    def find_source(self, contract_type: Any) -> ServiceSource | None:
        """Return the first source matching ``contract_type``."""
        return next((source for source in self._sources if source.is_match(contract_type)), None)

    def is_registered(self, contract_type: Any) -> bool:
        """Whether ``contract_type`` is registered directly or matched by a source."""
        return self.try_get_value(contract_type) is not None or self.find_source(contract_type) is not None

    def get_service_descriptors(
        self,
        injector: Injector,
        contract_type: Any,
    ) -> list[ServiceDescriptor]:
        """Return one descriptor per service available for ``contract_type``.

        Direct registrations yield one descriptor per entry, in registration
        order. Otherwise the first matching source provides the descriptors.
        Nothing registered yields an empty list.
        """
        value = self.try_get_value(contract_type)
        if value is not None:
            entries = list(value) if isinstance(value, MultiServiceEntry) else [value]
            return [
                ServiceDescriptor(entry, functools.partial(entry.get_service, injector))
                for entry in entries
            ]

        source = self.find_source(contract_type)
        if source is None:
            return []
        return source.get_service_descriptors(injector, contract_type)

    def close(self) -> None:
        """Release owned singleton values in reverse registration order.

        Values of entries marked ``externally_owned`` are left alone. Closing an
        already closed registry does nothing.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            services = list(self._services.values())

        for value in reversed(services):
            value.close()
        logger.debug("Closed %r", self)

    def _lookup(self, contract_type: Any) -> RegisteredService | None:
        try:
            return self._services.get(contract_type)
        except TypeError:
            # unhashable Annotated metadata
            return None

    def _validate_open_generic(self, entry: ServiceEntry) -> None:
        if entry.kind is not ServiceKind.CONSTRUCTIBLE:
            msg = (
                f"Open generic contract {entry.contract_type!r} must be registered with a "
                f"generic instance type, got a {entry.kind.value} registration."
            )
            raise InvalidRegistrationError(msg)
        if not is_open_generic_class(entry.instance_type) or type_parameter_count(
            entry.instance_type,
        ) != type_parameter_count(entry.contract_type):
            msg = (
                f"Instance type {entry.instance_type!r} must declare the same type parameters "
                f"as the open generic contract {entry.contract_type!r}."
            )
            raise InvalidRegistrationError(msg)
