from liteinject.container import Container
from liteinject.contracts import ExportFactory, ExportFactoryWithMetadata, Lazy, LazyWithMetadata
from liteinject.entries import (
    Lifetime,
    MultiServiceEntry,
    ServiceDescriptor,
    ServiceEntry,
    ServiceKind,
)
from liteinject.exceptions import (
    AmbiguousConstructorError,
    AmbiguousMatchError,
    CircularDependencyError,
    ConstructorAnnotationError,
    InvalidRegistrationError,
    LiteInjectError,
    MismatchedMultipleRegistrationError,
    MissingConstructorError,
    NoImplementationForContractError,
    ObjectDisposedError,
)
from liteinject.injector import Injector
from liteinject.lock_mode import LockMode
from liteinject.registry import ServiceRegistry
from liteinject.sources import (
    DEFAULT_SOURCE_TYPES,
    CollectionServiceSource,
    ExportFactoryServiceSource,
    ExportFactoryWithMetadataServiceSource,
    LazyServiceSource,
    LazyWithMetadataServiceSource,
    ServiceSource,
    UniqueServiceSource,
)

__all__ = [
    "DEFAULT_SOURCE_TYPES",
    "AmbiguousConstructorError",
    "AmbiguousMatchError",
    "CircularDependencyError",
    "CollectionServiceSource",
    "ConstructorAnnotationError",
    "Container",
    "ExportFactory",
    "ExportFactoryServiceSource",
    "ExportFactoryWithMetadata",
    "ExportFactoryWithMetadataServiceSource",
    "Injector",
    "InvalidRegistrationError",
    "Lazy",
    "LazyServiceSource",
    "LazyWithMetadata",
    "LazyWithMetadataServiceSource",
    "Lifetime",
    "LiteInjectError",
    "LockMode",
    "MismatchedMultipleRegistrationError",
    "MissingConstructorError",
    "MultiServiceEntry",
    "NoImplementationForContractError",
    "ObjectDisposedError",
    "ServiceDescriptor",
    "ServiceEntry",
    "ServiceKind",
    "ServiceRegistry",
    "ServiceSource",
    "UniqueServiceSource",
]
