"""Meta-contract shapes synthesized on demand by the default service sources.

Request these as dependencies without registering them::

    class Dispatcher:
        def __init__(
            self,
            handlers: list[Handler],
            clock: Lazy[Clock],
            sessions: ExportFactory[Session],
        ) -> None: ...

``Lazy``/``LazyWithMetadata`` and ``ExportFactory``/``ExportFactoryWithMetadata``
require exactly one registration for ``T``; sequence shapes such as ``list[T]``
accept any number, including zero.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")
M = TypeVar("M")

_MISSING: Any = object()


class Lazy(Generic[T]):
    """Defer producing a dependency until ``value`` is first read.

    The underlying registration still decides the lifetime: a transient
    registration is produced once per ``Lazy`` handle, a singleton one is
    shared with every other consumer.
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._value: Any = _MISSING
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        state = "created" if self.is_value_created else "pending"
        return f"{type(self).__name__}({state})"

    @property
    def is_value_created(self) -> bool:
        return self._value is not _MISSING

    @property
    def value(self) -> T:
        value = self._value
        if value is not _MISSING:
            return value
        with self._lock:
            if self._value is _MISSING:
                self._value = self._factory()
            return self._value


class LazyWithMetadata(Lazy[T], Generic[T, M]):
    """A ``Lazy`` handle that also exposes the registration metadata.

    ``metadata`` is available without producing the value.
    """

    def __init__(self, factory: Callable[[], T], metadata: M) -> None:
        super().__init__(factory)
        self._metadata = metadata

    @property
    def metadata(self) -> M:
        return self._metadata


class ExportFactory(Generic[T]):
    """Produce a handle to ``T`` on every call.

    Each call goes through the underlying registration, so transient
    registrations yield a fresh instance per call while singleton ones keep
    returning the shared instance.
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._factory!r})"

    def __call__(self) -> T:
        return self.create_export()

    def create_export(self) -> T:
        return self._factory()


class ExportFactoryWithMetadata(ExportFactory[T], Generic[T, M]):
    """An ``ExportFactory`` that also exposes the registration metadata."""

    def __init__(self, factory: Callable[[], T], metadata: M) -> None:
        super().__init__(factory)
        self._metadata = metadata

    @property
    def metadata(self) -> M:
        return self._metadata


__all__ = ["ExportFactory", "ExportFactoryWithMetadata", "Lazy", "LazyWithMetadata"]
