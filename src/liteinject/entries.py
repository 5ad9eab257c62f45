"""Registration entries: one concrete way to satisfy a contract, plus its lifetime."""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import AbstractContextManager
from contextvars import ContextVar
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, NamedTuple, overload

from liteinject._internal.generics import rebuild_alias
from liteinject._internal.type_checks import is_open_generic_class
from liteinject.exceptions import CircularDependencyError, InvalidRegistrationError
from liteinject.lock_mode import LockMode

if TYPE_CHECKING:
    from liteinject.injector import Injector

_MISSING: Any = object()
_EMPTY_METADATA: Mapping[str, Any] = MappingProxyType({})

# Entries being produced on the current call stack (works per thread and per task).
_producing: ContextVar[tuple[ServiceEntry, ...]] = ContextVar(
    "liteinject_producing",
    default=(),
)


class Lifetime(str, Enum):
    """Defines the lifetime of a service produced by a registration entry."""

    TRANSIENT = "transient"
    """A new instance is created every time the service is requested."""

    SINGLETON = "singleton"
    """A single instance is created on first request and shared afterwards."""


class ServiceKind(Enum):
    """Which payload a registration entry carries."""

    INSTANCE = "instance"
    FACTORY = "factory"
    CONSTRUCTIBLE = "constructible"


ServiceFactory = Callable[["Injector"], Any]
"""A factory called with the resolving injector as its only argument."""


class ServiceDescriptor(NamedTuple):
    """Pair a registration entry with a zero-argument producer for its service.

    ``entry`` is ``None`` for services synthesized as a whole, such as collections.
    """

    entry: ServiceEntry | None
    factory: Callable[[], Any]

    @property
    def metadata(self) -> Mapping[str, Any]:
        if self.entry is None:
            return _EMPTY_METADATA
        return self.entry.metadata


class ServiceEntry:
    """Describe one concrete way to satisfy a contract type.

    Exactly one of ``instance``, ``factory`` or ``instance_type`` must be given.
    Instances are always singletons. Factories and constructible types honor
    ``lifetime``: singletons are produced at most once, even when several
    threads request them concurrently for the first time.
    """

    def __init__(
        self,
        contract_type: Any,
        *,
        instance: Any = _MISSING,
        factory: ServiceFactory | None = None,
        instance_type: Any = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
        metadata: Mapping[str, Any] | None = None,
        allow_multiple: bool = False,
        externally_owned: bool = False,
        lock_mode: LockMode = LockMode.THREAD,
    ) -> None:
        payloads = [
            name
            for name, is_set in (
                ("instance", instance is not _MISSING),
                ("factory", factory is not None),
                ("instance_type", instance_type is not None),
            )
            if is_set
        ]
        if len(payloads) != 1:
            msg = (
                f"Registration for {contract_type!r} must set exactly one of "
                f"instance, factory or instance_type, got: {', '.join(payloads) or 'none'}."
            )
            raise InvalidRegistrationError(msg)
        if factory is not None and not callable(factory):
            msg = f"Factory registered for {contract_type!r} is not callable: {factory!r}."
            raise InvalidRegistrationError(msg)

        self.contract_type = contract_type
        self.factory = factory
        self.instance_type = instance_type
        self.metadata: Mapping[str, Any] = MappingProxyType(dict(metadata or {}))
        self.allow_multiple = allow_multiple
        self.externally_owned = externally_owned
        self.lock_mode = lock_mode

        if instance is not _MISSING:
            self.kind = ServiceKind.INSTANCE
            self.lifetime = Lifetime.SINGLETON
        elif factory is not None:
            self.kind = ServiceKind.FACTORY
            self.lifetime = lifetime
        else:
            self.kind = ServiceKind.CONSTRUCTIBLE
            self.lifetime = lifetime

        self._value: Any = instance
        self._lock: threading.RLock | None = (
            threading.RLock() if lock_mode is LockMode.THREAD else None
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(contract_type={self.contract_type!r}, "
            f"kind={self.kind.value}, lifetime={self.lifetime.value})"
        )

    @property
    def is_singleton(self) -> bool:
        return self.lifetime is Lifetime.SINGLETON

    @property
    def is_open_generic(self) -> bool:
        """Whether this entry registers an unparametrized generic contract."""
        return is_open_generic_class(self.contract_type)

    @property
    def has_cached_value(self) -> bool:
        return self._value is not _MISSING

    def get_service(self, injector: Injector) -> Any:
        """Return the service, producing and caching it according to the lifetime."""
        if self.kind is ServiceKind.INSTANCE:
            return self._value
        if self.lifetime is Lifetime.TRANSIENT:
            return self._produce(injector)

        value = self._value
        if value is not _MISSING:
            return value

        with self._lock if self._lock is not None else contextlib.nullcontext():
            if self._value is _MISSING:
                self._value = self._produce(injector)
            return self._value

    def close_generic(self, arguments: tuple[Any, ...]) -> ServiceEntry:
        """Build the closed entry of an open generic registration.

        Args:
            arguments: Type arguments of the requested closed contract.

        """
        closed_contract = rebuild_alias(
            origin=self.contract_type,
            args=arguments,
            fallback=self.contract_type,
        )
        closed_instance_type = rebuild_alias(
            origin=self.instance_type,
            args=arguments,
            fallback=self.instance_type,
        )
        return ServiceEntry(
            closed_contract,
            instance_type=closed_instance_type,
            lifetime=self.lifetime,
            metadata=self.metadata,
            allow_multiple=self.allow_multiple,
            externally_owned=self.externally_owned,
            lock_mode=self.lock_mode,
        )

    def close(self) -> None:
        """Release the cached value unless it is externally owned."""
        value = self._value
        if value is _MISSING or self.externally_owned:
            return
        if self.kind is not ServiceKind.INSTANCE:
            self._value = _MISSING
        if isinstance(value, AbstractContextManager):
            value.__exit__(None, None, None)
            return
        close = getattr(value, "close", None)
        if callable(close):
            close()

    def _produce(self, injector: Injector) -> Any:
        producing = _producing.get()
        if self in producing:
            start = producing.index(self)
            chain = [entry.contract_type for entry in producing[start:]]
            raise CircularDependencyError([*chain, self.contract_type])

        token = _producing.set((*producing, self))
        try:
            if self.factory is not None:
                return self.factory(injector)
            return injector.registry.constructors.create_instance(self.instance_type, injector)
        finally:
            _producing.reset(token)


class MultiServiceEntry(Sequence[ServiceEntry]):
    """Group the entries registered for one ``allow_multiple`` contract.

    Iteration order is registration order; it is the order exposed to sequence
    consumers and the priority order for consumers that want a single service.
    """

    allow_multiple = True

    def __init__(self, first: ServiceEntry) -> None:
        self.contract_type = first.contract_type
        self._entries: list[ServiceEntry] = [first]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(contract_type={self.contract_type!r}, count={len(self)})"

    def add(self, entry: ServiceEntry) -> None:
        self._entries.append(entry)

    @overload
    def __getitem__(self, index: int) -> ServiceEntry: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[ServiceEntry]: ...

    def __getitem__(self, index: int | slice) -> ServiceEntry | Sequence[ServiceEntry]:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ServiceEntry]:
        return iter(tuple(self._entries))

    @property
    def is_open_generic(self) -> bool:
        return is_open_generic_class(self.contract_type)

    def get_service(self, injector: Injector) -> Any:
        """Return the service of the first registered entry."""
        return self._entries[0].get_service(injector)

    def close_generic(self, arguments: tuple[Any, ...]) -> MultiServiceEntry:
        entries = [entry.close_generic(arguments) for entry in self._entries]
        closed = MultiServiceEntry(entries[0])
        for entry in entries[1:]:
            closed.add(entry)
        return closed

    def close(self) -> None:
        for entry in reversed(self._entries):
            entry.close()
