"""Service sources: strategies that synthesize services for generic contract shapes.

A source recognizes a family of contracts structurally (``Lazy[T]``,
``list[T]``, ...) and builds the requested service from whatever is registered
for the inner type ``T``. The registry asks its sources in registration order
and the first match wins; ``DEFAULT_SOURCE_TYPES`` is the order used by
``ServiceRegistry.with_default_sources``.
"""

from __future__ import annotations

import collections.abc
import functools
from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, get_args, get_origin

from liteinject.contracts import ExportFactory, ExportFactoryWithMetadata, Lazy, LazyWithMetadata
from liteinject.entries import ServiceDescriptor
from liteinject.exceptions import AmbiguousMatchError, NoImplementationForContractError

if TYPE_CHECKING:
    from liteinject.injector import Injector
    from liteinject.registry import ServiceRegistry

_READ_ONLY_METADATA_TYPES: tuple[Any, ...] = (Mapping, Any, object)


class ServiceSource(ABC):
    """Synthesize services for a family of contract shapes.

    Sources hold no per-call state; lifetime caching always stays in the
    underlying registration entries.
    """

    def __init__(self, registry: ServiceRegistry) -> None:
        self._registry = registry

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    @property
    def registry(self) -> ServiceRegistry:
        return self._registry

    @abstractmethod
    def is_match(self, contract_type: Any) -> bool:
        """Return whether ``contract_type`` has the shape this source handles."""

    @abstractmethod
    def get_service_descriptors(
        self,
        injector: Injector,
        contract_type: Any,
    ) -> list[ServiceDescriptor]:
        """Return one descriptor per service this source can produce for ``contract_type``."""

    @abstractmethod
    def get_service(self, injector: Injector, contract_type: Any) -> Any:
        """Produce the service requested as ``contract_type``."""


class UniqueServiceSource(ServiceSource):
    """Base for sources that wrap exactly one registration of the inner type.

    Descriptors fan out over every registration of the inner type, so
    ``list[Lazy[T]]`` yields one handle per registration. ``get_service``
    requires exactly one.
    """

    origin: ClassVar[Any]
    arity: ClassVar[int] = 1

    def is_match(self, contract_type: Any) -> bool:
        return get_origin(contract_type) is self.origin and len(get_args(contract_type)) == self.arity

    def get_service_type(self, contract_type: Any) -> Any:
        return get_args(contract_type)[0]

    def get_service_descriptors(
        self,
        injector: Injector,
        contract_type: Any,
    ) -> list[ServiceDescriptor]:
        service_type = self.get_service_type(contract_type)
        return [
            ServiceDescriptor(
                entry=descriptor.entry,
                factory=functools.partial(self.create_handle, contract_type, descriptor),
            )
            for descriptor in self._registry.get_service_descriptors(injector, service_type)
        ]

    def get_service(self, injector: Injector, contract_type: Any) -> Any:
        service_type = self.get_service_type(contract_type)
        descriptors = self.get_service_descriptors(injector, contract_type)
        if not descriptors:
            raise NoImplementationForContractError(service_type)
        if len(descriptors) > 1:
            raise AmbiguousMatchError(service_type, len(descriptors))
        return descriptors[0].factory()

    @abstractmethod
    def create_handle(self, contract_type: Any, descriptor: ServiceDescriptor) -> Any:
        """Wrap the underlying descriptor into the requested handle."""


class LazyServiceSource(UniqueServiceSource):
    """Synthesize ``Lazy[T]``."""

    origin = Lazy

    def create_handle(self, contract_type: Any, descriptor: ServiceDescriptor) -> Any:
        return Lazy(descriptor.factory)


class LazyWithMetadataServiceSource(UniqueServiceSource):
    """Synthesize ``LazyWithMetadata[T, M]``; metadata is readable before the value."""

    origin = LazyWithMetadata
    arity = 2

    def create_handle(self, contract_type: Any, descriptor: ServiceDescriptor) -> Any:
        metadata_type = get_args(contract_type)[1]
        return LazyWithMetadata(
            descriptor.factory,
            build_metadata(metadata_type, descriptor.metadata),
        )


class ExportFactoryServiceSource(UniqueServiceSource):
    """Synthesize ``ExportFactory[T]`` and the plain per-call factory ``Callable[[], T]``."""

    origin = ExportFactory

    def is_match(self, contract_type: Any) -> bool:
        return super().is_match(contract_type) or _is_zero_argument_callable(contract_type)

    def get_service_type(self, contract_type: Any) -> Any:
        return get_args(contract_type)[-1]

    def create_handle(self, contract_type: Any, descriptor: ServiceDescriptor) -> Any:
        return ExportFactory(descriptor.factory)


class ExportFactoryWithMetadataServiceSource(UniqueServiceSource):
    """Synthesize ``ExportFactoryWithMetadata[T, M]``."""

    origin = ExportFactoryWithMetadata
    arity = 2

    def create_handle(self, contract_type: Any, descriptor: ServiceDescriptor) -> Any:
        metadata_type = get_args(contract_type)[1]
        return ExportFactoryWithMetadata(
            descriptor.factory,
            build_metadata(metadata_type, descriptor.metadata),
        )


class CollectionServiceSource(ServiceSource):
    """Synthesize a collection of every registration of ``T``.

    ``list[T]``, ``Sequence[T]``, ``Collection[T]`` and ``MutableSequence[T]``
    resolve to a ``list``; ``tuple[T, ...]`` and ``Iterable[T]`` resolve to a
    ``tuple``, which can be iterated any number of times. Items follow
    registration order. Nothing registered yields an empty collection.
    """

    LIST_ORIGINS: ClassVar[tuple[Any, ...]] = (
        list,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Collection,
    )
    TUPLE_ORIGINS: ClassVar[tuple[Any, ...]] = (tuple, collections.abc.Iterable)

    def is_match(self, contract_type: Any) -> bool:
        return self._get_item_type(contract_type) is not None

    def get_service_descriptors(
        self,
        injector: Injector,
        contract_type: Any,
    ) -> list[ServiceDescriptor]:
        # The whole collection is one service; it has no registration of its own.
        return [
            ServiceDescriptor(
                entry=None,
                factory=functools.partial(self.get_service, injector, contract_type),
            ),
        ]

    def get_service(self, injector: Injector, contract_type: Any) -> Any:
        item_type = self._get_item_type(contract_type)
        items = [
            descriptor.factory()
            for descriptor in self._registry.get_service_descriptors(injector, item_type)
        ]
        if get_origin(contract_type) in self.TUPLE_ORIGINS:
            return tuple(items)
        return items

    def _get_item_type(self, contract_type: Any) -> Any | None:
        origin = get_origin(contract_type)
        arguments = get_args(contract_type)
        if origin is tuple:
            if len(arguments) == 2 and arguments[1] is Ellipsis:  # noqa: PLR2004
                return arguments[0]
            return None
        if origin in self.LIST_ORIGINS or origin in self.TUPLE_ORIGINS:
            if len(arguments) == 1:
                return arguments[0]
        return None


DEFAULT_SOURCE_TYPES: tuple[type[ServiceSource], ...] = (
    LazyServiceSource,
    LazyWithMetadataServiceSource,
    ExportFactoryServiceSource,
    ExportFactoryWithMetadataServiceSource,
    CollectionServiceSource,
)


def build_metadata(metadata_type: Any, metadata: Mapping[str, Any]) -> Any:
    """Build the metadata view requested by a ``...WithMetadata[T, M]`` contract.

    ``dict`` receives a copy, ``Mapping``/``Any``/``object`` a read-only view.
    Any other type is called with the metadata as keyword arguments.

    Args:
        metadata_type: The ``M`` argument of the requested contract.
        metadata: The metadata attached to the registration entry.

    """
    origin = get_origin(metadata_type) or metadata_type
    if origin is dict:
        return dict(metadata)
    if origin in _READ_ONLY_METADATA_TYPES:
        return MappingProxyType(dict(metadata))
    return metadata_type(**metadata)


def _is_zero_argument_callable(contract_type: Any) -> bool:
    if get_origin(contract_type) is not collections.abc.Callable:
        return False
    arguments = get_args(contract_type)
    return len(arguments) == 2 and arguments[0] == []  # noqa: PLR2004
